from django.conf import settings
from django.db import models

from courses.models import Course
from subjects.models import TimeStampedModel


class DailyReport(TimeStampedModel):
    """A trainee's end-of-day note for one of their courses."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="daily_reports",
    )
    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name="daily_reports",
    )
    report_date = models.DateField()
    content = models.TextField()

    class Meta:
        ordering = ("-report_date", "-id")
        indexes = [
            models.Index(fields=["course", "report_date"], name="daily_reports_course_date"),
        ]

    def __str__(self) -> str:
        return f"{self.user} · {self.course} · {self.report_date}"
