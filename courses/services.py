from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from django.db.models import Count, Q

from accounts.abilities import authorize
from accounts.models import User
from traininghub.errors import ValidationFailed

from .models import Course, CourseEnrollment, CourseSubject

logger = logging.getLogger(__name__)


@dataclass
class CourseSubjectRow:
    course_subject: CourseSubject
    task_count: int
    progress: Optional[object] = None

    @property
    def status(self) -> str | None:
        return getattr(self.progress, "status", None)


def enroll_trainee(actor, course: Course, trainee) -> tuple[CourseEnrollment, bool]:
    """Enroll ``trainee`` in ``course``; repeated calls return the existing row."""

    authorize(
        actor,
        "create",
        CourseEnrollment(course=course, user=trainee),
        fallback_url=course.get_absolute_url(),
    )
    if trainee.role != User.Role.TRAINEE:
        raise ValidationFailed("Only trainees can be enrolled in a course.")

    enrollment, created = CourseEnrollment.objects.get_or_create(user=trainee, course=course)
    if created:
        logger.info("User %s enrolled user %s in course %s", actor.pk, trainee.pk, course.pk)
    return enrollment, created


def build_subject_progress_map(
    *,
    user,
    course_subjects: Sequence[CourseSubject],
) -> Mapping[int, object]:
    """Map course subject ids to the user's subject progress rows, if any."""

    from trainees.models import SubjectProgress

    ids = [course_subject.id for course_subject in course_subjects]
    if not ids or not getattr(user, "is_authenticated", False):
        return {}
    return {
        progress.course_subject_id: progress
        for progress in SubjectProgress.objects.filter(user=user, course_subject_id__in=ids)
    }


def build_course_outline(*, user, course: Course) -> list[CourseSubjectRow]:
    course_subjects = list(
        course.course_subjects.select_related("subject")
        .filter(subject__deleted_at__isnull=True)
        .annotate(task_count=Count("tasks", filter=Q(tasks__deleted_at__isnull=True)))
        .order_by("position", "id")
    )
    progress_map = build_subject_progress_map(user=user, course_subjects=course_subjects)
    return [
        CourseSubjectRow(
            course_subject=course_subject,
            task_count=course_subject.task_count,
            progress=progress_map.get(course_subject.id),
        )
        for course_subject in course_subjects
    ]
