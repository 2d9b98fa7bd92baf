"""Enrollment and progress tracking for trainees.

A trainee's progress on a subject offered in a course moves through
``NotStarted -> InProgress -> Completed``:

* opening the subject page while enrolled creates the ``SubjectProgress`` row
  (if absent) together with one ``TaskProgress`` row per task of the course
  subject; both steps run in one transaction and are safe to repeat;
* the first successful task update moves the subject to ``in_progress`` and
  stamps ``started_at``, later updates leave it untouched;
* a supervisor's score completes the subject.

Every transition is a conditional ``UPDATE`` so concurrent requests cannot
apply it twice.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import DateField, F, Value
from django.db.models.functions import Coalesce
from django.urls import reverse
from django.utils import timezone

from accounts.abilities import authorize
from courses.models import Course, CourseEnrollment, CourseSubject
from subjects.models import Subject, Task
from traininghub.errors import NotFound, ProgressInitializationFailed, ValidationFailed

from .models import SubjectProgress, TaskProgress

logger = logging.getLogger(__name__)


@dataclass
class SubjectPage:
    course: Course
    subject: Subject
    course_subject: Optional[CourseSubject] = None
    enrollment: Optional[CourseEnrollment] = None
    subject_progress: Optional[SubjectProgress] = None
    tasks: list[Task] = field(default_factory=list)
    task_progresses: dict[int, TaskProgress] = field(default_factory=dict)

    @property
    def is_enrolled(self) -> bool:
        return self.enrollment is not None


def get_course_or_404(course_id) -> Course:
    course = Course.objects.filter(pk=course_id).first()
    if course is None:
        raise NotFound("Course not found.", fallback_url=reverse("home"))
    return course


def get_subject_or_404(course: Course, subject_id) -> Subject:
    subject = Subject.objects.filter(pk=subject_id).first()
    if subject is None:
        raise NotFound("Subject not found.", fallback_url=course.get_absolute_url())
    return subject


def open_subject(user, course_id, subject_id) -> SubjectPage:
    """Load a subject page, materializing progress rows for enrolled users.

    Users that are not enrolled in the course get the catalog data only and
    no rows are written. A subject not offered by the course has no tasks.
    """

    course = get_course_or_404(course_id)
    subject = get_subject_or_404(course, subject_id)
    page = SubjectPage(course=course, subject=subject)

    page.course_subject = (
        CourseSubject.objects.select_related("subject")
        .filter(course=course, subject=subject)
        .first()
    )
    if page.course_subject is None:
        return page

    page.tasks = list(page.course_subject.tasks.all())
    page.enrollment = CourseEnrollment.objects.filter(user=user, course=course).first()
    if page.enrollment is None:
        return page

    page.subject_progress = initialize_subject_progress(
        user, page.enrollment, page.course_subject
    )
    page.task_progresses = {
        progress.task_id: progress
        for progress in TaskProgress.objects.filter(
            user=user, subject_progress=page.subject_progress
        ).prefetch_related("documents")
    }
    return page


def initialize_subject_progress(
    user, enrollment: CourseEnrollment, course_subject: CourseSubject
) -> SubjectProgress:
    """Create-or-fetch the user's ``SubjectProgress`` and fill missing task rows.

    The progress row and its task rows are committed together. Any integrity
    or validation failure rolls both back and surfaces as
    ``ProgressInitializationFailed``.
    """

    try:
        with transaction.atomic():
            subject_progress, created = SubjectProgress.objects.get_or_create(
                user=user,
                course_subject=course_subject,
                defaults={
                    "enrollment": enrollment,
                    "status": SubjectProgress.Status.NOT_STARTED,
                },
            )
            filled = fill_task_gaps(subject_progress)
    except (IntegrityError, DjangoValidationError) as exc:
        logger.exception(
            "Could not initialize progress of user %s for course subject %s",
            getattr(user, "pk", None),
            course_subject.pk,
        )
        raise ProgressInitializationFailed(
            fallback_url=course_subject.course.get_absolute_url()
        ) from exc

    if created:
        logger.info(
            "Initialized subject progress %s for user %s with %s task(s)",
            subject_progress.pk,
            subject_progress.user_id,
            filled,
        )
    return subject_progress


def fill_task_gaps(subject_progress: SubjectProgress) -> int:
    """Create a ``not_done`` row for every task the user has no progress for.

    Returns the number of rows requested. Rows inserted concurrently by
    another request are skipped by the unique ``(user, task)`` constraint.
    """

    task_ids = list(
        Task.objects.filter(course_subject_id=subject_progress.course_subject_id)
        .order_by("id")
        .values_list("id", flat=True)
    )
    if not task_ids:
        return 0

    existing = set(
        TaskProgress.objects.filter(
            user_id=subject_progress.user_id, task_id__in=task_ids
        ).values_list("task_id", flat=True)
    )
    missing = [
        TaskProgress(
            user_id=subject_progress.user_id,
            task_id=task_id,
            subject_progress=subject_progress,
            status=TaskProgress.Status.NOT_DONE,
        )
        for task_id in task_ids
        if task_id not in existing
    ]
    if missing:
        TaskProgress.objects.bulk_create(missing, ignore_conflicts=True)
    return len(missing)


def mark_subject_in_progress(subject_progress: SubjectProgress) -> bool:
    """Move a not-started subject to ``in_progress``; a no-op otherwise.

    Returns ``True`` only for the call that performed the transition.
    """

    today = timezone.localdate()
    updated = SubjectProgress.objects.filter(
        pk=subject_progress.pk, status=SubjectProgress.Status.NOT_STARTED
    ).update(
        status=SubjectProgress.Status.IN_PROGRESS,
        started_at=Coalesce(F("started_at"), Value(today, output_field=DateField())),
        updated_at=timezone.now(),
    )
    subject_progress.refresh_from_db(fields=["status", "started_at", "updated_at"])
    if updated:
        logger.info(
            "Subject progress %s of user %s is now in progress",
            subject_progress.pk,
            subject_progress.user_id,
        )
    return bool(updated)


def _parse_score(raw_score) -> Decimal:
    try:
        score = Decimal(str(raw_score).strip())
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationFailed("Score must be a number.") from exc
    if not score.is_finite():
        raise ValidationFailed("Score must be a number.")
    return score


def complete_subject(actor, subject_progress: SubjectProgress, raw_score) -> SubjectProgress:
    """Score an in-progress subject and mark it completed."""

    course_subject = subject_progress.course_subject
    authorize(
        actor,
        "update_score",
        course_subject,
        fallback_url=course_subject.course.get_absolute_url(),
    )

    score = _parse_score(raw_score)
    max_score = course_subject.subject.max_score
    if score < 0 or score > max_score:
        raise ValidationFailed(f"Score must be between 0 and {max_score}.")

    updated = SubjectProgress.objects.filter(
        pk=subject_progress.pk, status=SubjectProgress.Status.IN_PROGRESS
    ).update(
        status=SubjectProgress.Status.COMPLETED,
        score=score,
        completed_at=timezone.now(),
        updated_at=timezone.now(),
    )
    if not updated:
        raise ValidationFailed("Only subjects in progress can be completed.")

    subject_progress.refresh_from_db()
    logger.info(
        "Subject progress %s completed by %s with score %s",
        subject_progress.pk,
        actor.pk,
        score,
    )
    return subject_progress
