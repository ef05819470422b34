"""
Audit entries

``AuditEntry`` is the sanitized, in-memory form of an audit record. The
middleware builds it once the response exists and hands it to a background
task for persistence and alerting.
"""
from __future__ import annotations

import json
import random
import string
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

from django.core.exceptions import RequestDataTooBig
from django.http.request import RawPostDataException
from django.utils import timezone

from .models import AuditRecord
from .sanitization import extract_service_name, sanitize_data, sanitize_headers

MAX_TEXT_RESPONSE_LENGTH = 500
_REQUEST_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class AuditEntry:
    request_id: str
    service: str
    method: str
    path: str
    status_code: int
    response_time_ms: int
    user_id: Optional[int] = None
    user_email: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    request_body: Any = None
    response_body: Any = None
    request_headers: Dict[str, str] = field(default_factory=dict)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: Any = field(default_factory=timezone.now)

    def model_fields(self) -> Dict[str, Any]:
        """Keyword arguments for ``AuditRecord.objects.create``."""
        fields = asdict(self)
        fields.pop('user_email')
        return fields


def column_length(field_name: str) -> Optional[int]:
    return AuditRecord._meta.get_field(field_name).max_length


def clip(value: Optional[str], field_name: str) -> Optional[str]:
    """Cut a client-controlled value to its audit column."""
    max_length = column_length(field_name)
    if value is None or max_length is None:
        return value
    return value[:max_length]


def generate_request_id() -> str:
    suffix = ''.join(random.choices(_REQUEST_ID_ALPHABET, k=9))
    return f"req-{int(time.time() * 1000)}-{suffix}"


def get_client_ip(request) -> Optional[str]:
    remote_addr = request.META.get('REMOTE_ADDR')
    if remote_addr:
        return remote_addr
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
    return forwarded.split(',')[0].strip() or None


def capture_request_body(request) -> Any:
    """
    Read the request body before the view runs.

    JSON and text bodies are decoded; form bodies become a flat dict.
    Multipart uploads and other payloads are not recorded.
    """
    content_type = (request.content_type or '').lower()
    try:
        if content_type == 'application/json' or content_type.endswith('+json'):
            raw = request.body
            if not raw:
                return None
            try:
                return json.loads(raw)
            except ValueError:
                return raw.decode('utf-8', errors='replace')
        if content_type == 'application/x-www-form-urlencoded':
            return request.POST.dict() or None
        if content_type.startswith('text/'):
            return request.body.decode('utf-8', errors='replace') or None
    except (RawPostDataException, RequestDataTooBig):
        return None
    return None


def capture_response_body(response) -> Any:
    if getattr(response, 'streaming', False):
        return None
    content = getattr(response, 'content', b'')
    if not content:
        return None
    try:
        return json.loads(content)
    except ValueError:
        charset = getattr(response, 'charset', None) or 'utf-8'
        return content.decode(charset, errors='replace')[:MAX_TEXT_RESPONSE_LENGTH]


def _error_fields(status_code: int, response_body: Any):
    if status_code < 400:
        return None, None
    error_code = error_message = None
    if isinstance(response_body, dict):
        error_code = response_body.get('errorCode') or response_body.get('error_code')
        error_message = response_body.get('message') or response_body.get('error')
    if not error_code:
        error_code = f"HTTP_{status_code}"
    if error_message is not None and not isinstance(error_message, str):
        error_message = json.dumps(error_message, default=str)
    return str(error_code), error_message


def _resolve_user(request):
    user = getattr(request, 'user', None)
    if user is None or not getattr(user, 'is_authenticated', False):
        return None, None
    return getattr(user, 'pk', None), getattr(user, 'email', None) or None


def build_audit_entry(request, response, *, request_body, request_id, started) -> AuditEntry:
    """
    Sanitize one request/response exchange into an ``AuditEntry``.

    ``started`` is a ``time.monotonic()`` reading taken before the view ran.
    """
    status_code = response.status_code
    raw_response_body = capture_response_body(response)
    if isinstance(raw_response_body, str):
        response_body = raw_response_body
    else:
        response_body = sanitize_data(raw_response_body)
    error_code, error_message = _error_fields(status_code, response_body)
    user_id, user_email = _resolve_user(request)

    return AuditEntry(
        request_id=request_id,
        service=clip(extract_service_name(request.path), 'service'),
        method=clip(request.method, 'method'),
        path=clip(request.path, 'path'),
        status_code=status_code,
        response_time_ms=int((time.monotonic() - started) * 1000),
        user_id=user_id,
        user_email=user_email,
        error_code=clip(error_code, 'error_code'),
        error_message=error_message,
        request_body=sanitize_data(request_body) if request_body is not None else None,
        response_body=response_body,
        request_headers=sanitize_headers(request.headers),
        ip_address=clip(get_client_ip(request), 'ip_address'),
        user_agent=request.headers.get('User-Agent') or None,
    )
