"""Role based permission rules.

The rules are a literal table of ``(role, resource, actions, scope)`` rows that
is grouped by role once at import time. :func:`can` is a pure lookup over that
table: it reads ``user.role`` and, for scoped rows, foreign key columns of the
resource instance. Checks against a model class (``can(user, "create",
Course)``) ignore scopes, checks against an instance apply them.

Rows are evaluated in order and the last matching row wins, which lets a
``deny`` row carve exceptions out of a broader ``manage`` grant.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Optional

from traininghub.errors import AuthorizationDenied

from .models import User

MANAGE = "manage"
ALL = "all"

ACTION_ALIASES = {
    "index": "read",
    "show": "read",
    "new": "create",
    "edit": "update",
}

Scope = Callable[[User, object], bool]


@dataclass(frozen=True)
class Rule:
    role: str
    resource: str
    actions: frozenset[str]
    scope: Optional[Scope] = None
    allow: bool = True

    def matches(self, action: str, resource_label: str) -> bool:
        if self.resource not in (ALL, resource_label):
            return False
        if MANAGE in self.actions or action in self.actions:
            return True
        return ACTION_ALIASES.get(action) in self.actions


def _owned_by_user(user, record) -> bool:
    return record.user_id is not None and record.user_id == user.pk


def _enrolled_in_course(user, course) -> bool:
    from courses.models import CourseEnrollment

    if course.pk is None:
        return False
    return CourseEnrollment.objects.filter(user_id=user.pk, course_id=course.pk).exists()


def _subject_in_enrolled_course(user, subject) -> bool:
    from courses.models import CourseSubject

    if subject.pk is None:
        return False
    return CourseSubject.objects.filter(
        subject_id=subject.pk, course__enrollments__user_id=user.pk
    ).exists()


def _supervises_course(user, course) -> bool:
    return _supervises_course_id(user, course.pk)


def _supervises_record_course(user, record) -> bool:
    return _supervises_course_id(user, record.course_id)


def _supervises_course_id(user, course_id) -> bool:
    from courses.models import CourseSupervisor

    if course_id is None:
        return False
    return CourseSupervisor.objects.filter(user_id=user.pk, course_id=course_id).exists()


def _supervises_subject(user, subject) -> bool:
    from courses.models import CourseSubject

    if subject.pk is None:
        return False
    return CourseSubject.objects.filter(
        subject_id=subject.pk, course__course_supervisors__user_id=user.pk
    ).exists()


def _actions(*names: str) -> frozenset[str]:
    return frozenset(names)


TRAINEE = User.Role.TRAINEE.value
SUPERVISOR = User.Role.SUPERVISOR.value
ADMIN = User.Role.ADMIN.value

RULES: tuple[Rule, ...] = (
    # Trainee
    Rule(TRAINEE, "daily_reports.DailyReport", _actions(MANAGE), _owned_by_user),
    Rule(
        TRAINEE,
        "courses.Course",
        _actions("read", "members", "subjects"),
        _enrolled_in_course,
    ),
    Rule(TRAINEE, "subjects.Subject", _actions("read"), _subject_in_enrolled_course),
    Rule(TRAINEE, "trainees.SubjectProgress", _actions("update"), _owned_by_user),
    Rule(
        TRAINEE,
        "trainees.TaskProgress",
        _actions(
            "update_document",
            "update_status",
            "update_spent_time",
            "destroy_document",
        ),
        _owned_by_user,
    ),
    # Supervisor
    Rule(SUPERVISOR, "daily_reports.DailyReport", _actions("read"), _supervises_record_course),
    Rule(SUPERVISOR, "subjects.Subject", _actions(MANAGE)),
    Rule(SUPERVISOR, "subjects.Subject", _actions("destroy_tasks"), allow=False),
    Rule(SUPERVISOR, "subjects.Subject", _actions("destroy_tasks"), _supervises_subject),
    Rule(SUPERVISOR, "subjects.Task", _actions(MANAGE)),
    Rule(SUPERVISOR, "subjects.Category", _actions(MANAGE)),
    Rule(
        SUPERVISOR,
        "accounts.User",
        _actions(
            "index",
            "show",
            "update",
            "update_status",
            "update_user_course_status",
            "delete_user_course",
            "bulk_deactivate",
        ),
    ),
    Rule(
        SUPERVISOR,
        "courses.Course",
        _actions(
            "read",
            "create",
            "update",
            "destroy",
            "members",
            "subjects",
            "supervisors",
            "search_members",
            "leave",
            "add_subject",
        ),
        _supervises_course,
    ),
    Rule(SUPERVISOR, "courses.CourseEnrollment", _actions(MANAGE), _supervises_record_course),
    Rule(SUPERVISOR, "courses.CourseSupervisor", _actions(MANAGE), _supervises_record_course),
    Rule(
        SUPERVISOR,
        "courses.CourseSubject",
        _actions(
            "read",
            "create",
            "update",
            "destroy",
            "create_task",
            "update_task",
            "update_score",
            "create_comment",
            "update_comment",
            "destroy_comment",
            "finish",
        ),
        _supervises_record_course,
    ),
    # Admin
    Rule(ADMIN, ALL, _actions(MANAGE)),
    Rule(ADMIN, "daily_reports.DailyReport", _actions("update", "destroy"), allow=False),
)


def _group_by_role(rules) -> Mapping[str, tuple[Rule, ...]]:
    grouped: dict[str, list[Rule]] = {}
    for rule in rules:
        grouped.setdefault(rule.role, []).append(rule)
    return MappingProxyType({role: tuple(items) for role, items in grouped.items()})


_RULES_BY_ROLE = _group_by_role(RULES)


def resource_label(resource) -> str:
    model = resource if isinstance(resource, type) else type(resource)
    meta = getattr(model, "_meta", None)
    if meta is None:
        return model.__name__
    return meta.label


def can(user, action: str, resource) -> bool:
    """Return ``True`` if ``user`` may perform ``action`` on ``resource``."""

    if user is None or not getattr(user, "is_authenticated", False):
        return False

    label = resource_label(resource)
    instance = None if isinstance(resource, type) else resource

    allowed = False
    for rule in _RULES_BY_ROLE.get(getattr(user, "role", None), ()):
        if not rule.matches(action, label):
            continue
        if instance is not None and rule.scope is not None and not rule.scope(user, instance):
            continue
        allowed = rule.allow
    return allowed


def authorize(user, action: str, resource, *, fallback_url: str | None = None):
    """Return ``resource`` if the check passes, raise ``AuthorizationDenied`` otherwise."""

    if can(user, action, resource):
        return resource
    raise AuthorizationDenied(
        action,
        resource_label(resource).rsplit(".", 1)[-1],
        fallback_url=fallback_url,
    )
