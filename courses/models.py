from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.urls import reverse

from subjects.models import Subject, TimeStampedModel


class Course(TimeStampedModel):
    class Status(models.TextChoices):
        NOT_STARTED = "not_started", "Not started"
        IN_PROGRESS = "in_progress", "In progress"
        FINISHED = "finished", "Finished"

    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    link_to_course = models.URLField(blank=True)
    start_date = models.DateField(null=True, blank=True)
    finish_date = models.DateField(null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.NOT_STARTED,
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="courses_created",
    )
    supervisors = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="CourseSupervisor",
        related_name="supervised_courses",
        blank=True,
    )
    subjects = models.ManyToManyField(
        Subject,
        through="CourseSubject",
        related_name="courses",
        blank=True,
    )

    class Meta:
        ordering = ("name",)

    def __str__(self) -> str:
        return self.name

    def clean(self):
        super().clean()
        if self.start_date and self.finish_date and self.finish_date < self.start_date:
            raise ValidationError({"finish_date": "Finish date must not be before start date."})

    def get_absolute_url(self) -> str:
        return reverse("courses:course-detail", kwargs={"course_id": self.pk})


class CourseSupervisor(TimeStampedModel):
    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name="course_supervisors",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="course_supervisors",
    )

    class Meta:
        unique_together = ("course", "user")

    def __str__(self) -> str:
        return f"{self.user} supervises {self.course}"


class CourseSubject(TimeStampedModel):
    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name="course_subjects",
    )
    subject = models.ForeignKey(
        Subject,
        on_delete=models.CASCADE,
        related_name="course_subjects",
    )
    position = models.PositiveIntegerField(default=0)
    start_date = models.DateField(null=True, blank=True)
    finish_date = models.DateField(null=True, blank=True)

    class Meta:
        ordering = ("course", "position", "id")
        unique_together = ("course", "subject")
        indexes = [
            models.Index(fields=["course", "position"], name="courses_cs_course_position"),
        ]

    def __str__(self) -> str:
        return f"{self.course}: {self.subject}"

    def clean(self):
        super().clean()
        if self.start_date and self.finish_date and self.finish_date < self.start_date:
            raise ValidationError({"finish_date": "Finish date must not be before start date."})

    def get_absolute_url(self) -> str:
        return reverse(
            "trainees:subject-detail",
            kwargs={"course_id": self.course_id, "subject_id": self.subject_id},
        )


class CourseEnrollment(TimeStampedModel):
    class Status(models.TextChoices):
        NOT_STARTED = "not_started", "Not started"
        IN_PROGRESS = "in_progress", "In progress"
        FINISHED = "finished", "Finished"

    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name="enrollments",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="course_enrollments",
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.NOT_STARTED,
    )

    class Meta:
        unique_together = ("user", "course")
        verbose_name = "Course enrollment"
        verbose_name_plural = "Course enrollments"

    def __str__(self) -> str:
        return f"{self.user} → {self.course} ({self.status})"
