"""HTML views for the trainee subject page and its task updates."""

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils.translation import gettext_lazy as _
from django.views.decorators.http import require_POST

from courses.models import Course
from traininghub.errors import ValidationFailed

from . import task_updates
from .services import open_subject

MESSAGES = {
    "document_updated": _("Document uploaded."),
    "document_update_failed": _("The document could not be uploaded."),
    "status_updated": _("Task status updated."),
    "status_update_failed": _("The task status could not be updated."),
    "spent_time_updated": _("Spent time updated."),
    "spent_time_update_failed": _("The spent time could not be updated."),
    "document_destroyed": _("Document removed."),
    "document_not_found": _("Document not found."),
    task_updates.CANNOT_DO_THIS_TASK: _("You cannot work on this task."),
}


def _flash(request, result) -> None:
    text = MESSAGES.get(result.message_kind, result.message_kind)
    if result.success:
        messages.success(request, text)
        return
    if isinstance(result.error, ValidationFailed):
        text = f"{text} {result.error.detail}"
    messages.error(request, text)


def _redirect_after(result, course_id):
    if result.task_progress is not None:
        course_subject = result.task_progress.subject_progress.course_subject
        return redirect(course_subject.get_absolute_url())
    course = Course.objects.filter(pk=course_id).first()
    if course is not None:
        return redirect(course.get_absolute_url())
    return redirect(reverse("home"))


@login_required
def subject_detail(request, course_id: int, subject_id: int):
    page = open_subject(request.user, course_id, subject_id)
    rows = [
        {"task": task, "progress": page.task_progresses.get(task.id)}
        for task in page.tasks
    ]
    return render(request, "trainees/subject_detail.html", {"page": page, "rows": rows})


@login_required
@require_POST
def update_document(request, course_id: int, task_id: int):
    result = task_updates.attach_document(
        request.user,
        task_id,
        request.POST.get("subject_progress_id"),
        request.FILES.get("document"),
    )
    _flash(request, result)
    return _redirect_after(result, course_id)


@login_required
@require_POST
def update_status(request, course_id: int, task_id: int):
    result = task_updates.set_status(
        request.user,
        task_id,
        request.POST.get("subject_progress_id"),
        request.POST.get("status"),
    )
    _flash(request, result)
    return _redirect_after(result, course_id)


@login_required
@require_POST
def update_spent_time(request, course_id: int, task_id: int):
    result = task_updates.set_spent_time(
        request.user,
        task_id,
        request.POST.get("subject_progress_id"),
        request.POST.get("spent_time"),
    )
    _flash(request, result)
    return _redirect_after(result, course_id)


@login_required
@require_POST
def destroy_document(request, course_id: int, task_id: int, document_id: int):
    result = task_updates.detach_document(
        request.user,
        task_id,
        request.POST.get("subject_progress_id"),
        document_id,
    )
    _flash(request, result)
    return _redirect_after(result, course_id)
