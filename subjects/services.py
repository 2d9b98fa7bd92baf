from __future__ import annotations

import logging
from typing import Iterable

from django.db import transaction
from django.utils import timezone

from accounts.abilities import authorize

from .models import Subject, Task

logger = logging.getLogger(__name__)


def destroy_tasks(actor, subject: Subject, task_ids: Iterable) -> int:
    """Soft-delete the listed tasks of ``subject`` and return how many were hidden.

    ``actor`` needs ``destroy_tasks`` on the subject: admins always, supervisors
    only when the subject is offered by a course they supervise.

    Ids of tasks owned by another subject, or already deleted, are ignored.
    """

    authorize(actor, "destroy_tasks", subject)

    ids = {int(task_id) for task_id in task_ids if str(task_id).strip().isdigit()}
    if not ids:
        return 0

    with transaction.atomic():
        deleted = Task.objects.filter(subject=subject, pk__in=ids).update(
            deleted_at=timezone.now(), updated_at=timezone.now()
        )
    if deleted:
        logger.info("User %s deleted %s task(s) of subject %s", actor.pk, deleted, subject.pk)
    return deleted
