"""
DRF exception handler that renders every failure as the standardized payload.
"""
import logging

from rest_framework.response import Response

from .errors import normalize_error

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """
    Normalize ``exc`` and return the standardized error response.

    Registered as ``REST_FRAMEWORK["EXCEPTION_HANDLER"]``.
    """
    error = normalize_error(exc)
    request = context.get("request")
    method = getattr(request, "method", "-")
    path = getattr(request, "path", "-")

    if error.status_code >= 500:
        logger.error(
            "[ERROR] %s %s: %s (%s) original=%s",
            method,
            path,
            error.message,
            error.code.value,
            exc.__class__.__name__,
            exc_info=exc,
        )
    else:
        logger.info(
            "[ERROR] %s %s: %s (%s)",
            method,
            path,
            error.message,
            error.code.value,
        )

    response = Response(error.to_dict(), status=error.status_code)
    auth_header = getattr(exc, "auth_header", None)
    if auth_header:
        response["WWW-Authenticate"] = auth_header
    return response
