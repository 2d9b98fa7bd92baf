"""WSGI config for the traininghub project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "traininghub.settings")

application = get_wsgi_application()
