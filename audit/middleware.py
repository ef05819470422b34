"""
Audit middleware

Records every request/response exchange. The request body is captured before
the view runs and the response once it exists; sanitizing happens inline,
while persistence and alerting are handed to a background task so audit
storage never delays or fails the response.
"""
import logging
import time

from django.conf import settings

from .entries import (
    build_audit_entry,
    capture_request_body,
    column_length,
    generate_request_id,
)
from .tasks import dispatch_audit_record

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = 'X-Request-ID'


class AuditLogMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    @staticmethod
    def get_request_id(request) -> str:
        """Incoming X-Request-ID, or a fresh one when missing or longer than the column."""
        incoming = (request.headers.get(REQUEST_ID_HEADER) or '').strip()
        if incoming and len(incoming) <= column_length('request_id'):
            return incoming
        return generate_request_id()

    def __call__(self, request):
        if not getattr(settings, 'AUDIT_ENABLED', True):
            return self.get_response(request)

        started = time.monotonic()
        request_id = self.get_request_id(request)
        request.request_id = request_id
        request_body = capture_request_body(request)

        response = self.get_response(request)
        response[REQUEST_ID_HEADER] = request_id

        try:
            entry = build_audit_entry(
                request,
                response,
                request_body=request_body,
                request_id=request_id,
                started=started,
            )
            dispatch_audit_record(entry)
        except Exception as exc:  # noqa: BLE001 - auditing never fails the response
            logger.error(
                "[AUDIT_LOG] Unhandled error in audit logging for %s %s: %s",
                request.method,
                request.path,
                exc,
            )
        return response
