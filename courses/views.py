from __future__ import annotations

from django.contrib.auth.decorators import login_required
from django.shortcuts import render

from accounts.abilities import authorize, can
from trainees.services import get_course_or_404

from .services import build_course_outline


@login_required
def course_detail(request, course_id: int):
    course = get_course_or_404(course_id)
    authorize(request.user, "read", course)

    enrollment = request.user.course_enrollments.filter(course=course).first()
    context = {
        "course": course,
        "enrollment": enrollment,
        "rows": build_course_outline(user=request.user, course=course),
        "supervisors": course.supervisors.order_by("username"),
        "can_manage": can(request.user, "update", course),
    }
    return render(request, "courses/course_detail.html", context)
