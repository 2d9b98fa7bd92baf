"""Per-trainee progress records for offered subjects and their tasks."""

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from courses.models import CourseEnrollment, CourseSubject
from subjects.models import Task, TimeStampedModel
from traininghub.conf import training_setting


def validate_spent_time(value) -> None:
    minimum = training_setting("MIN_SPENT_TIME")
    if value is not None and value < minimum:
        raise ValidationError(
            "Ensure this value is greater than or equal to %(minimum)s.",
            code="min_value",
            params={"minimum": minimum},
        )


def validate_document_metadata(content_type: str | None, size: int | None) -> None:
    """Check an uploaded document against the configured type and size limits."""

    allowed = training_setting("ALLOWED_DOCUMENT_TYPES")
    if not content_type or content_type not in allowed:
        raise ValidationError(
            "Document type %(content_type)s is not allowed.",
            code="invalid_document_type",
            params={"content_type": content_type or "unknown"},
        )

    minimum = training_setting("MIN_DOCUMENT_SIZE")
    maximum = training_setting("MAX_DOCUMENT_SIZE")
    if size is None or size < minimum or size > maximum:
        raise ValidationError(
            "Document size must be between %(minimum)s and %(maximum)s bytes.",
            code="document_size_exceeded",
            params={"minimum": minimum, "maximum": maximum},
        )


class SubjectProgress(TimeStampedModel):
    class Status(models.TextChoices):
        NOT_STARTED = "not_started", "Not started"
        IN_PROGRESS = "in_progress", "In progress"
        COMPLETED = "completed", "Completed"

    enrollment = models.ForeignKey(
        CourseEnrollment,
        on_delete=models.CASCADE,
        related_name="subject_progresses",
    )
    course_subject = models.ForeignKey(
        CourseSubject,
        on_delete=models.CASCADE,
        related_name="subject_progresses",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="subject_progresses",
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.NOT_STARTED,
    )
    score = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    started_at = models.DateField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        unique_together = ("user", "course_subject")
        verbose_name = "Subject progress"
        verbose_name_plural = "Subject progresses"

    def __str__(self) -> str:
        return f"{self.user} → {self.course_subject} ({self.status})"


class TaskProgress(TimeStampedModel):
    class Status(models.TextChoices):
        NOT_DONE = "not_done", "Not done"
        DONE = "done", "Done"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="task_progresses",
    )
    task = models.ForeignKey(
        Task,
        on_delete=models.CASCADE,
        related_name="task_progresses",
    )
    subject_progress = models.ForeignKey(
        SubjectProgress,
        on_delete=models.CASCADE,
        related_name="task_progresses",
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.NOT_DONE,
    )
    spent_time = models.PositiveIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(0), validate_spent_time],
        help_text="Time spent on the task, in minutes",
    )

    class Meta:
        unique_together = ("user", "task")
        ordering = ("task_id",)
        verbose_name = "Task progress"
        verbose_name_plural = "Task progresses"

    def __str__(self) -> str:
        return f"{self.user} → {self.task} ({self.status})"


def document_upload_to(instance: "TaskDocument", filename: str) -> str:
    return f"task_documents/{instance.task_progress.user_id}/{instance.task_progress_id}/{filename}"


class TaskDocument(models.Model):
    task_progress = models.ForeignKey(
        TaskProgress,
        on_delete=models.CASCADE,
        related_name="documents",
    )
    file = models.FileField(upload_to=document_upload_to, max_length=500)
    filename = models.CharField(max_length=255)
    content_type = models.CharField(max_length=120)
    size = models.PositiveBigIntegerField()
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("uploaded_at", "id")

    def __str__(self) -> str:
        return self.filename

    def clean(self):
        super().clean()
        try:
            validate_document_metadata(self.content_type, self.size)
        except ValidationError as exc:
            raise ValidationError({"file": exc.messages}) from exc

    def delete(self, using=None, keep_parents=False):
        storage, name = self.file.storage, self.file.name
        result = super().delete(using=using, keep_parents=keep_parents)
        if name:
            storage.delete(name)
        return result
