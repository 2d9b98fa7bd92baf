from __future__ import annotations

from typing import Any

from django.conf import settings

DEFAULTS: dict[str, Any] = {
    "TASK_STATUS_NOT_DONE": 0,
    "TASK_STATUS_DONE": 1,
    "MIN_SPENT_TIME": 1,
    "MIN_DOCUMENT_SIZE": 1,
    "MAX_DOCUMENT_SIZE": 5 * 1024 * 1024,
    "ALLOWED_DOCUMENT_TYPES": [
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/zip",
        "text/plain",
        "image/png",
        "image/jpeg",
    ],
    "SUBJECT_MAX_SCORE_LIMIT": 100,
    "SUBJECT_MAX_NAME_LENGTH": 255,
    "USER_MAX_NAME_LENGTH": 50,
    "USER_BIRTHDAY_VALID_YEARS": 100,
}


def training_setting(name: str) -> Any:
    """Return ``settings.TRAINING[name]``, falling back to the module default.

    Values are resolved on every call so ``override_settings`` applies.
    """

    overrides = getattr(settings, "TRAINING", None) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
