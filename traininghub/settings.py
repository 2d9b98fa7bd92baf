# traininghub/settings.py
import os
import sys
from pathlib import Path
import dj_database_url

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("SECRET_KEY", "django-insecure-placeholder")
DEBUG = os.environ.get("DEBUG", "False") == "True"
TESTING = "test" in sys.argv or "pytest" in sys.modules

ALLOWED_HOSTS = os.environ.get("ALLOWED_HOSTS", "")
ALLOWED_HOSTS = ALLOWED_HOSTS.split(",") if ALLOWED_HOSTS else []

CSRF_TRUSTED_ORIGINS = os.environ.get("CSRF_TRUSTED_ORIGINS", "")
CSRF_TRUSTED_ORIGINS = CSRF_TRUSTED_ORIGINS.split(",") if CSRF_TRUSTED_ORIGINS else []

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "accounts",
    "subjects",
    "courses",
    "trainees",
    "daily_reports",
    # Storage backends (for S3 compatible object storage)
    "storages",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.locale.LocaleMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "traininghub.middleware.DomainErrorMiddleware",
]

ROOT_URLCONF = "traininghub.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
                "accounts.context_processors.user_role",
            ],
        },
    },
]

WSGI_APPLICATION = "traininghub.wsgi.application"

# Database: prefer DATABASE_URL, else DATABASE_PUBLIC_URL, else sqlite3
_db_url = os.environ.get("DATABASE_URL") or os.environ.get("DATABASE_PUBLIC_URL")

if _db_url:
    db_cfg = dj_database_url.parse(_db_url, conn_max_age=600, ssl_require=False)
    db_cfg["ENGINE"] = "django.db.backends.postgresql"
    host = (db_cfg.get("HOST") or "").lower()
    if host in ("localhost", "127.0.0.1"):
        db_cfg.setdefault("OPTIONS", {})["sslmode"] = "disable"
    else:
        db_cfg.setdefault("OPTIONS", {})["sslmode"] = "require"
    DATABASES = {"default": db_cfg}
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

AUTH_USER_MODEL = "accounts.User"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

LANGUAGE_CODE = "en"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True
LOCALE_PATHS = [BASE_DIR / "locale"]

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "public" / "static"
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {
        "BACKEND": (
            "django.contrib.staticfiles.storage.StaticFilesStorage"
            if TESTING
            else "whitenoise.storage.CompressedManifestStaticFilesStorage"
        )
    },
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
LOGIN_URL = "/accounts/login/"
LOGIN_REDIRECT_URL = "/"
LOGOUT_REDIRECT_URL = "/"

CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}}

REST_FRAMEWORK = {
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.IsAuthenticated"],
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
    ],
    "EXCEPTION_HANDLER": "traininghub.errors.api_exception_handler",
}

# Domain constants for trainee progress tracking. Every value can be
# overridden through the matching TRAINING_* environment variable.
TRAINING = {
    "TASK_STATUS_NOT_DONE": int(os.environ.get("TRAINING_TASK_STATUS_NOT_DONE", "0")),
    "TASK_STATUS_DONE": int(os.environ.get("TRAINING_TASK_STATUS_DONE", "1")),
    "MIN_SPENT_TIME": int(os.environ.get("TRAINING_MIN_SPENT_TIME", "1")),
    "MIN_DOCUMENT_SIZE": int(os.environ.get("TRAINING_MIN_DOCUMENT_SIZE", "1")),
    "MAX_DOCUMENT_SIZE": int(
        os.environ.get("TRAINING_MAX_DOCUMENT_SIZE", str(5 * 1024 * 1024))
    ),
    "SUBJECT_MAX_SCORE_LIMIT": int(os.environ.get("TRAINING_SUBJECT_MAX_SCORE_LIMIT", "100")),
    "SUBJECT_MAX_NAME_LENGTH": int(os.environ.get("TRAINING_SUBJECT_MAX_NAME_LENGTH", "255")),
    "USER_MAX_NAME_LENGTH": int(os.environ.get("TRAINING_USER_MAX_NAME_LENGTH", "50")),
    "USER_BIRTHDAY_VALID_YEARS": int(
        os.environ.get("TRAINING_USER_BIRTHDAY_VALID_YEARS", "100")
    ),
}

_allowed_types = os.environ.get("TRAINING_ALLOWED_DOCUMENT_TYPES", "")
if _allowed_types:
    TRAINING["ALLOWED_DOCUMENT_TYPES"] = [
        value.strip() for value in _allowed_types.split(",") if value.strip()
    ]

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,

    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        }
    },

    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "verbose",
        }
    },
    "root": {
        "handlers": ["console"],
        "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
    },
    "loggers": {
        "accounts": {
            "handlers": ["console"],
            "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
        "courses": {
            "handlers": ["console"],
            "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
        "subjects": {
            "handlers": ["console"],
            "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
        "trainees": {
            "handlers": ["console"],
            "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
        "traininghub": {
            "handlers": ["console"],
            "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}

# Media storage: local filesystem by default.
# Set USE_S3_MEDIA=true and the AWS_* variables to keep documents in object storage.
USE_S3_MEDIA = os.environ.get("USE_S3_MEDIA", "false").lower() == "true"

if USE_S3_MEDIA:
    _AWS_BUCKET = os.environ.get("AWS_STORAGE_BUCKET_NAME")
    if _AWS_BUCKET:
        AWS_S3_REGION_NAME = os.environ.get("AWS_S3_REGION_NAME", "us-east-1")
        AWS_S3_ENDPOINT_URL = os.environ.get("AWS_S3_ENDPOINT_URL") or None
        AWS_S3_SIGNATURE_VERSION = os.environ.get("AWS_S3_SIGNATURE_VERSION", "s3v4")
        AWS_S3_ADDRESSING_STYLE = os.environ.get("AWS_S3_ADDRESSING_STYLE", "virtual")
        AWS_DEFAULT_ACL = os.environ.get("AWS_DEFAULT_ACL") or None
        AWS_S3_FILE_OVERWRITE = os.environ.get("AWS_S3_FILE_OVERWRITE", "False").lower() == "true"
        AWS_QUERYSTRING_AUTH = os.environ.get("AWS_QUERYSTRING_AUTH", "True").lower() == "true"
        AWS_STORAGE_BUCKET_NAME = _AWS_BUCKET
        STORAGES["default"] = {"BACKEND": "storages.backends.s3.S3Storage"}
    else:
        USE_S3_MEDIA = False  # fallback to local if no bucket

if not USE_S3_MEDIA:
    MEDIA_URL = os.environ.get("MEDIA_URL", "/media/")
    MEDIA_ROOT = os.environ.get("MEDIA_ROOT", str(BASE_DIR / "media"))
