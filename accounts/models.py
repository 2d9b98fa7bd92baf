import datetime

from django.contrib.auth.models import AbstractUser, UserManager as BaseUserManager
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models.functions import Lower
from django.utils import timezone

from traininghub.conf import training_setting


def _years_before(day: datetime.date, years: int) -> datetime.date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # 29 February in a non-leap year
        return day.replace(year=day.year - years, day=28)


def validate_birthday(value) -> None:
    if value is None:
        return
    years = training_setting("USER_BIRTHDAY_VALID_YEARS")
    today = timezone.localdate()
    if not _years_before(today, years) <= value <= today:
        raise ValidationError(
            "Birthday must be a date within the last %(years)s years.",
            code="birthday_invalid",
            params={"years": years},
        )


def validate_user_name_length(value) -> None:
    limit = training_setting("USER_MAX_NAME_LENGTH")
    if value and len(value) > limit:
        raise ValidationError(
            "Ensure this value has at most %(limit)s characters.",
            code="max_length",
            params={"limit": limit},
        )


class UserManager(BaseUserManager):
    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("role", User.Role.ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    class Role(models.TextChoices):
        TRAINEE = "trainee", "Trainee"
        SUPERVISOR = "supervisor", "Supervisor"
        ADMIN = "admin", "Admin"

    class Gender(models.TextChoices):
        FEMALE = "female", "Female"
        MALE = "male", "Male"
        OTHER = "other", "Other"

    email = models.EmailField(blank=True)
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.TRAINEE,
        db_index=True,
    )
    name = models.CharField(max_length=255, blank=True, validators=[validate_user_name_length])
    birthday = models.DateField(null=True, blank=True, validators=[validate_birthday])
    gender = models.CharField(max_length=10, choices=Gender.choices, blank=True)

    objects = UserManager()

    class Meta:
        ordering = ("username",)
        constraints = [
            models.UniqueConstraint(
                Lower("email"),
                condition=~models.Q(email=""),
                name="accounts_user_email_ci_unique",
            ),
        ]

    def __str__(self) -> str:
        return self.name or self.get_full_name() or self.username

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    def activate(self) -> None:
        self.is_active = True
        self.save(update_fields=["is_active"])

    @property
    def is_trainee(self) -> bool:
        return self.role == self.Role.TRAINEE

    @property
    def is_supervisor(self) -> bool:
        return self.role == self.Role.SUPERVISOR

    @property
    def is_admin(self) -> bool:
        return self.role == self.Role.ADMIN
