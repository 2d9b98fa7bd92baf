"""Trainee updates on a single task: documents, status and spent time.

Every operation returns a :class:`TaskUpdateResult` instead of raising, so
callers only decide how to present the outcome. A successful attach, status
or spent-time update also moves the enclosing subject to ``in_progress`` the
first time it happens; detaching a document does not.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction

from accounts.abilities import authorize
from subjects.models import Task
from traininghub.conf import training_setting
from traininghub.errors import AuthorizationDenied, DomainError, NotFound, ValidationFailed

from .models import SubjectProgress, TaskDocument, TaskProgress, validate_document_metadata
from .services import mark_subject_in_progress

logger = logging.getLogger(__name__)

CANNOT_DO_THIS_TASK = "cannot_do_this_task"

_LEADING_INTEGER = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class TaskUpdateResult:
    success: bool
    message_kind: str
    task_progress: Optional[TaskProgress] = None
    error: Optional[DomainError] = None


def _record_id(value, label: str) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise NotFound(f"{label} not found.") from exc


def parse_status_code(raw_status) -> int:
    """Read the leading integer of ``raw_status``; ``0`` when there is none.

    ``"1.0"`` and ``"1abc"`` both read as ``1``, ``"done"`` reads as ``0``.
    """

    match = _LEADING_INTEGER.match(str(raw_status))
    return int(match.group(1)) if match else 0


def get_or_create_task_progress(user, task_id, subject_progress_id) -> TaskProgress:
    """Return the user's progress row for a task, creating it when missing.

    The subject progress must belong to ``user`` and an existing row must be
    attached to that subject progress, otherwise ``NotFound`` is raised.
    """

    subject_progress_id = _record_id(subject_progress_id, "Subject progress")
    task_id = _record_id(task_id, "Task")
    subject_progress = (
        SubjectProgress.objects.select_related("course_subject__course")
        .filter(pk=subject_progress_id, user=user)
        .first()
    )
    if subject_progress is None:
        raise NotFound("Subject progress not found.")

    task = Task.objects.filter(pk=task_id, course_subject_id=subject_progress.course_subject_id).first()
    if task is None:
        raise NotFound("Task not found.")

    task_progress, created = TaskProgress.objects.get_or_create(
        user=user,
        task=task,
        defaults={
            "subject_progress": subject_progress,
            "status": TaskProgress.Status.NOT_DONE,
        },
    )
    if task_progress.subject_progress_id != subject_progress.pk:
        raise NotFound("Task progress not found.")
    if created:
        logger.info("Created task progress %s for user %s", task_progress.pk, user.pk)
    # Reuse the already loaded subject progress for navigation.
    task_progress.subject_progress = subject_progress
    return task_progress


def _save_fields(task_progress: TaskProgress, fields: list[str]) -> None:
    try:
        task_progress.full_clean(validate_unique=False, validate_constraints=False)
        task_progress.save(update_fields=[*fields, "updated_at"])
    except DjangoValidationError as exc:
        raise ValidationFailed("; ".join(exc.messages)) from exc
    except IntegrityError as exc:
        raise ValidationFailed("Task progress could not be saved.") from exc


def _run(
    user,
    task_id,
    subject_progress_id,
    *,
    action: str,
    apply: Callable[[TaskProgress], None],
    success_kind: str,
    failure_kind: str,
    starts_subject: bool = True,
) -> TaskUpdateResult:
    try:
        task_progress = get_or_create_task_progress(user, task_id, subject_progress_id)
        authorize(user, action, task_progress)
    except (NotFound, AuthorizationDenied) as exc:
        logger.warning(
            "User %s cannot %s task %s: %s",
            getattr(user, "pk", None),
            action,
            task_id,
            exc.detail,
        )
        return TaskUpdateResult(False, CANNOT_DO_THIS_TASK, error=exc)

    try:
        apply(task_progress)
    except (ValidationFailed, NotFound) as exc:
        logger.warning(
            "Rejected %s on task progress %s: %s", action, task_progress.pk, exc.detail
        )
        return TaskUpdateResult(False, failure_kind, task_progress, exc)

    if starts_subject:
        mark_subject_in_progress(task_progress.subject_progress)
    return TaskUpdateResult(True, success_kind, task_progress)


def attach_document(user, task_id, subject_progress_id, uploaded_file) -> TaskUpdateResult:
    """Store ``uploaded_file`` as a document of the task progress."""

    def apply(task_progress: TaskProgress) -> None:
        if not uploaded_file or not getattr(uploaded_file, "size", 0):
            raise ValidationFailed("Choose a non-empty document to upload.")

        content_type = getattr(uploaded_file, "content_type", None)
        try:
            validate_document_metadata(content_type, uploaded_file.size)
        except DjangoValidationError as exc:
            raise ValidationFailed("; ".join(exc.messages)) from exc

        document = TaskDocument(
            task_progress=task_progress,
            file=uploaded_file,
            filename=uploaded_file.name[:255],
            content_type=content_type,
            size=uploaded_file.size,
        )
        try:
            with transaction.atomic():
                document.full_clean(exclude=["file"])
                document.save()
                task_progress.save(update_fields=["updated_at"])
        except DjangoValidationError as exc:
            raise ValidationFailed("; ".join(exc.messages)) from exc

        # The stored metadata is checked again before the subject is started.
        try:
            validate_document_metadata(document.content_type, document.size)
        except DjangoValidationError as exc:
            document.delete()
            raise ValidationFailed("; ".join(exc.messages)) from exc
        logger.info("Attached document %s to task progress %s", document.pk, task_progress.pk)

    return _run(
        user,
        task_id,
        subject_progress_id,
        action="update_document",
        apply=apply,
        success_kind="document_updated",
        failure_kind="document_update_failed",
    )


def set_status(user, task_id, subject_progress_id, raw_status) -> TaskUpdateResult:
    """Set the task status from its numeric code.

    The leading integer of the input is the code. The configured done code
    selects ``done``; any other code, including input with no leading digits,
    selects ``not_done``. Blank input is rejected.
    """

    def apply(task_progress: TaskProgress) -> None:
        if raw_status is None or str(raw_status).strip() == "":
            raise ValidationFailed("Status is required.")
        if parse_status_code(raw_status) == training_setting("TASK_STATUS_DONE"):
            task_progress.status = TaskProgress.Status.DONE
        else:
            task_progress.status = TaskProgress.Status.NOT_DONE
        _save_fields(task_progress, ["status"])

    return _run(
        user,
        task_id,
        subject_progress_id,
        action="update_status",
        apply=apply,
        success_kind="status_updated",
        failure_kind="status_update_failed",
    )


def set_spent_time(user, task_id, subject_progress_id, raw_spent_time) -> TaskUpdateResult:
    """Record the minutes spent on the task."""

    def apply(task_progress: TaskProgress) -> None:
        if raw_spent_time is None or str(raw_spent_time).strip() == "":
            raise ValidationFailed("Spent time is required.")
        try:
            spent_time = int(str(raw_spent_time).strip())
        except ValueError as exc:
            raise ValidationFailed("Spent time must be a whole number.") from exc

        minimum = training_setting("MIN_SPENT_TIME")
        if spent_time < minimum:
            raise ValidationFailed(f"Spent time must be at least {minimum}.")

        task_progress.spent_time = spent_time
        _save_fields(task_progress, ["spent_time"])

    return _run(
        user,
        task_id,
        subject_progress_id,
        action="update_spent_time",
        apply=apply,
        success_kind="spent_time_updated",
        failure_kind="spent_time_update_failed",
    )


def detach_document(user, task_id, subject_progress_id, document_id) -> TaskUpdateResult:
    """Remove one of the task progress documents."""

    def apply(task_progress: TaskProgress) -> None:
        pk = _record_id(document_id, "Document")
        document = task_progress.documents.filter(pk=pk).first()
        if document is None:
            raise NotFound("Document not found.")
        document.delete()
        logger.info("Removed document %s from task progress %s", pk, task_progress.pk)

    return _run(
        user,
        task_id,
        subject_progress_id,
        action="destroy_document",
        apply=apply,
        success_kind="document_destroyed",
        failure_kind="document_not_found",
        starts_subject=False,
    )
