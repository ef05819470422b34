"""
Audit sanitization

Bounded, secret-free copies of request and response data for the audit
trail. Traversal stops at ``MAX_DEPTH``; long strings, long lists and wide
mappings are cut down with visible markers.
"""
from collections.abc import Mapping
from typing import Any, Dict, Optional

REDACTED = '[REDACTED]'
TRUNCATED_SUFFIX = '... [truncated]'
MAX_DEPTH_MARKER = '[Max Depth Reached]'
TOO_MANY_KEYS_KEY = '...'
TOO_MANY_KEYS_MARKER = '[Too many keys, truncated]'

MAX_DEPTH = 3
MAX_STRING_LENGTH = 1000
MAX_LIST_ITEMS = 10
MAX_MAPPING_KEYS = 50

# Substrings of lower-cased mapping keys whose values are never stored.
SENSITIVE_KEYS = (
    'password',
    'token',
    'apikey',
    'api_key',
    'authorization',
    'x-api-key',
    'secret',
    'key',
)
SENSITIVE_HEADER_MARKERS = ('api-key', 'authorization', 'token')

SERVICE_MAP = {
    'chat': 'CHAT',
    'coverletter': 'COVER_LETTER',
    'experience': 'EXPERIENCE',
    'keywords': 'KEYWORDS',
    'upload-resume': 'UPLOAD_RESUME',
    'hr-lookup': 'HR_LOOKUP',
    'applied-jobs': 'APPLIED_JOBS',
    'auth': 'AUTH',
    'health': 'HEALTH',
    'usage': 'USAGE',
}


def is_sensitive_key(key: Any) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in SENSITIVE_KEYS)


def sanitize_data(data: Any, max_depth: int = MAX_DEPTH, _depth: int = 0) -> Any:
    """
    Return a JSON-safe copy of ``data`` with secrets redacted.

    Every value nested ``max_depth`` levels deep, scalars included, is
    replaced by the depth marker.
    """
    if _depth >= max_depth:
        return MAX_DEPTH_MARKER

    if data is None:
        return None

    if isinstance(data, str):
        if len(data) > MAX_STRING_LENGTH:
            return data[:MAX_STRING_LENGTH] + TRUNCATED_SUFFIX
        return str(data)

    if isinstance(data, (bool, int, float)):
        return data

    if isinstance(data, (list, tuple)):
        return [sanitize_data(item, max_depth, _depth + 1) for item in data[:MAX_LIST_ITEMS]]

    if isinstance(data, Mapping):
        sanitized: Dict[str, Any] = {}
        for key, value in data.items():
            key = str(key)
            if is_sensitive_key(key):
                sanitized[key] = REDACTED
                continue
            if len(sanitized) >= MAX_MAPPING_KEYS:
                sanitized[TOO_MANY_KEYS_KEY] = TOO_MANY_KEYS_MARKER
                break
            sanitized[key] = sanitize_data(value, max_depth, _depth + 1)
        return sanitized

    return str(data)


def sanitize_headers(headers: Optional[Mapping]) -> Dict[str, str]:
    """
    Header names are lower-cased; credential-bearing headers are redacted.
    """
    sanitized = {}
    for name, value in (headers or {}).items():
        lowered = str(name).lower()
        if any(marker in lowered for marker in SENSITIVE_HEADER_MARKERS):
            sanitized[lowered] = REDACTED
        else:
            sanitized[lowered] = str(value)
    return sanitized


def extract_service_name(path: str) -> str:
    """
    Service tag for a request path, e.g. "/api/coverletter" -> "COVER_LETTER".
    """
    if path.startswith('/api'):
        path = path[len('/api'):]
    parts = [part for part in path.split('/') if part]
    if not parts:
        return 'UNKNOWN'
    return SERVICE_MAP.get(parts[0], parts[0].upper())
