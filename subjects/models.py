from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models, transaction
from django.db.models.functions import Lower
from django.utils import timezone

from traininghub.conf import training_setting


class TimeStampedModel(models.Model):
    """Reusable timestamped base model for catalog entities."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class SoftDeleteQuerySet(models.QuerySet):
    def visible(self):
        return self.filter(deleted_at__isnull=True)

    def deleted(self):
        return self.filter(deleted_at__isnull=False)

    def delete(self):
        return self.update(deleted_at=timezone.now())

    delete.queryset_only = True

    def hard_delete(self):
        return super().delete()

    hard_delete.queryset_only = True


class VisibleManager(models.Manager.from_queryset(SoftDeleteQuerySet)):
    """Default manager: rows with ``deleted_at`` set are left out."""

    def get_queryset(self):
        return super().get_queryset().visible()


class SoftDeleteModel(TimeStampedModel):
    """Rows are hidden by ``delete()`` and removed only by ``hard_delete()``.

    ``objects`` returns visible rows, ``all_objects`` includes deleted ones.
    """

    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)

    objects = VisibleManager()
    all_objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def delete(self, using=None, keep_parents=False):
        stamp = timezone.now()
        with transaction.atomic(using=using):
            self._soft_delete_related(stamp)
            self.deleted_at = stamp
            self.save(update_fields=["deleted_at", "updated_at"])
        return 1, {self._meta.label: 1}

    def restore(self) -> None:
        if self.deleted_at is None:
            return
        with transaction.atomic():
            self._restore_related(self.deleted_at)
            self.deleted_at = None
            self.save(update_fields=["deleted_at", "updated_at"])

    def hard_delete(self, using=None, keep_parents=False):
        return super().delete(using=using, keep_parents=keep_parents)

    def _soft_delete_related(self, stamp) -> None:
        pass

    def _restore_related(self, stamp) -> None:
        pass


def validate_subject_max_score(value) -> None:
    limit = training_setting("SUBJECT_MAX_SCORE_LIMIT")
    if value is not None and value > limit:
        raise ValidationError(
            "Ensure this value is less than or equal to %(limit)s.",
            code="max_value",
            params={"limit": limit},
        )


def validate_subject_name_length(value) -> None:
    limit = training_setting("SUBJECT_MAX_NAME_LENGTH")
    if value and len(value) > limit:
        raise ValidationError(
            "Ensure this value has at most %(limit)s characters.",
            code="max_length",
            params={"limit": limit},
        )


class Category(TimeStampedModel):
    name = models.CharField(max_length=100, unique=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"

    def __str__(self) -> str:
        return self.name


class SubjectQuerySet(SoftDeleteQuerySet):
    def ordered_by_name(self):
        return self.order_by("name")

    def recent(self):
        return self.order_by("-created_at", "-id")

    def search_by_name(self, query: str | None):
        if not query or not query.strip():
            return self
        return self.filter(name__icontains=query.strip())


class VisibleSubjectManager(models.Manager.from_queryset(SubjectQuerySet)):
    def get_queryset(self):
        return super().get_queryset().visible()


class Subject(SoftDeleteModel):
    name = models.CharField(max_length=255, validators=[validate_subject_name_length])
    description = models.TextField(blank=True, help_text="Markdown")
    max_score = models.PositiveIntegerField(
        validators=[MinValueValidator(1), validate_subject_max_score],
    )
    estimated_time_days = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    categories = models.ManyToManyField(Category, related_name="subjects", blank=True)

    objects = VisibleSubjectManager()
    all_objects = SubjectQuerySet.as_manager()

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                Lower("name"),
                condition=models.Q(deleted_at__isnull=True),
                name="subjects_subject_name_ci_unique",
                violation_error_message="Subject with this name already exists.",
            ),
        ]

    def __str__(self) -> str:
        return self.name

    def _soft_delete_related(self, stamp) -> None:
        Task.objects.filter(subject=self).update(deleted_at=stamp)

    def _restore_related(self, stamp) -> None:
        Task.all_objects.filter(subject=self, deleted_at=stamp).update(deleted_at=None)


class Task(SoftDeleteModel):
    """A unit of work owned by a bare subject or by a subject offered in a course."""

    class Taskable(models.TextChoices):
        SUBJECT = "subject", "Subject"
        COURSE_SUBJECT = "course_subject", "Course subject"

    name = models.CharField(max_length=255)
    taskable_type = models.CharField(max_length=20, choices=Taskable.choices)
    subject = models.ForeignKey(
        Subject,
        on_delete=models.CASCADE,
        related_name="tasks",
        null=True,
        blank=True,
    )
    course_subject = models.ForeignKey(
        "courses.CourseSubject",
        on_delete=models.CASCADE,
        related_name="tasks",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ("id",)
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(
                        taskable_type="subject",
                        subject__isnull=False,
                        course_subject__isnull=True,
                    )
                    | models.Q(
                        taskable_type="course_subject",
                        subject__isnull=True,
                        course_subject__isnull=False,
                    )
                ),
                name="subjects_task_single_taskable",
            ),
            models.UniqueConstraint(
                fields=["subject", "name"],
                condition=models.Q(deleted_at__isnull=True, subject__isnull=False),
                name="subjects_task_name_unique_per_subject",
            ),
            models.UniqueConstraint(
                fields=["course_subject", "name"],
                condition=models.Q(deleted_at__isnull=True, course_subject__isnull=False),
                name="subjects_task_name_unique_per_course_subject",
            ),
        ]

    def __str__(self) -> str:
        return self.name

    def save(self, *args, **kwargs):
        if not self.taskable_type:
            if self.course_subject_id:
                self.taskable_type = self.Taskable.COURSE_SUBJECT
            elif self.subject_id:
                self.taskable_type = self.Taskable.SUBJECT
        super().save(*args, **kwargs)

    def clean(self):
        super().clean()

        if self.taskable_type == self.Taskable.SUBJECT:
            if not self.subject_id:
                raise ValidationError({"subject": "A subject task needs a subject."})
            if self.course_subject_id:
                raise ValidationError(
                    {"course_subject": "A subject task cannot reference a course subject."}
                )
        elif self.taskable_type == self.Taskable.COURSE_SUBJECT:
            if not self.course_subject_id:
                raise ValidationError(
                    {"course_subject": "A course subject task needs a course subject."}
                )
            if self.subject_id:
                raise ValidationError(
                    {"subject": "A course subject task cannot reference a subject."}
                )

    @property
    def taskable(self):
        if self.taskable_type == self.Taskable.SUBJECT:
            return self.subject
        if self.taskable_type == self.Taskable.COURSE_SUBJECT:
            return self.course_subject
        return None
