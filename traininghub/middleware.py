import logging

from django.contrib import messages
from django.shortcuts import redirect
from django.utils.http import url_has_allowed_host_and_scheme

from .errors import GENERIC_DENIAL, AuthorizationDenied, DomainError, is_concealed

logger = logging.getLogger(__name__)


def flash_text(error: DomainError) -> str:
    if is_concealed(error):
        return str(GENERIC_DENIAL)
    return str(error.detail)


def _safe_fallback(request, url: str | None) -> str:
    if url and url_has_allowed_host_and_scheme(
        url, allowed_hosts={request.get_host()}, require_https=request.is_secure()
    ):
        return url
    return "/"


class DomainErrorMiddleware:
    """
    Converts domain errors raised by HTML views into a flash message and a
    redirect to the error's fallback location. API requests are left to the
    DRF exception handler, everything else propagates untouched.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if not isinstance(exception, DomainError):
            return None
        if request.path.startswith("/api/"):
            return None

        if isinstance(exception, AuthorizationDenied):
            logger.warning(
                "Denied %s on %s for user %s",
                exception.action,
                exception.resource_type,
                getattr(request.user, "pk", None),
            )
        messages.error(request, flash_text(exception))
        return redirect(_safe_fallback(request, exception.fallback_url))
