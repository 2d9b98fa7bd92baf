"""Domain error taxonomy shared by the services and both web surfaces.

Every error is a DRF ``APIException``. :func:`api_exception_handler` renders
them for the API and answers denials exactly like missing records, while
:class:`traininghub.middleware.DomainErrorMiddleware` converts them into a
flash message plus redirect for HTML views.
"""
from __future__ import annotations

import logging

from django.utils.translation import gettext_lazy as _
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DomainError(exceptions.APIException):
    """Base class carrying the message kind and the safe fallback location."""

    message_kind = "error"

    def __init__(self, detail=None, code=None, *, message_kind=None, fallback_url=None):
        super().__init__(detail=detail, code=code)
        if message_kind is not None:
            self.message_kind = message_kind
        self.fallback_url = fallback_url


class AuthorizationDenied(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not authorized to perform this action."
    default_code = "not_authorized"
    message_kind = "not_authorized"

    def __init__(self, action: str, resource_type: str, **kwargs):
        super().__init__(**kwargs)
        self.action = action
        self.resource_type = resource_type


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"
    message_kind = "not_found"


class ValidationFailed(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input."
    default_code = "validation_failed"
    message_kind = "validation_failed"


class ProgressInitializationFailed(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Subject progress could not be initialized."
    default_code = "progress_initialization_failed"
    message_kind = "cannot_proceed"


# Shown for both forbidden and missing records.
GENERIC_DENIAL = _("The requested page is not available to you.")


def is_concealed(error) -> bool:
    return isinstance(error, (AuthorizationDenied, NotFound))


def api_exception_handler(exc, context):
    """DRF exception handler that answers denials exactly like missing records."""

    if is_concealed(exc):
        if isinstance(exc, AuthorizationDenied):
            request = context.get("request")
            logger.warning(
                "Denied %s on %s for user %s",
                exc.action,
                exc.resource_type,
                getattr(getattr(request, "user", None), "pk", None),
            )
        return Response(
            {"detail": str(GENERIC_DENIAL), "code": NotFound.default_code},
            status=NotFound.status_code,
        )
    return exception_handler(exc, context)
