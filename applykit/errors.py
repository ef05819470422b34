"""
Standardized error taxonomy

Every failure that reaches the HTTP boundary is converted into an ``AppError``
and rendered with the same payload shape:

    {
        "success": false,
        "error": "Ai Service Error",
        "errorCode": "AI_SERVICE_ERROR",
        "message": "...",
        "details": {...},          # optional
        "timestamp": "2025-01-01T00:00:00+00:00"
    }
"""
from __future__ import annotations

import json
import logging
import traceback
from enum import Enum
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.db import DatabaseError as DjangoDatabaseError
from django.db import IntegrityError
from django.http import Http404
from django.utils import timezone
from rest_framework import exceptions as drf_exceptions

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    # Authentication & authorization
    INVALID_API_KEY = "INVALID_API_KEY"
    MISSING_API_KEY = "MISSING_API_KEY"
    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_ERROR = "AUTH_ERROR"
    FORBIDDEN = "FORBIDDEN"
    API_KEY_INACTIVE = "API_KEY_INACTIVE"
    USER_DELETED = "USER_DELETED"
    USER_NOT_VERIFIED = "USER_NOT_VERIFIED"
    DATA_ERROR = "DATA_ERROR"

    # Validation
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FIELD = "INVALID_FIELD"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_JSON = "INVALID_JSON"
    INVALID_FORMAT = "INVALID_FORMAT"

    # Not found
    NOT_FOUND = "NOT_FOUND"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"

    # Conflict
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # Rate limiting
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server side
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    DATABASE_CONNECTION_ERROR = "DATABASE_CONNECTION_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Upstream text generation
    AI_SERVICE_ERROR = "AI_SERVICE_ERROR"
    AI_QUOTA_EXCEEDED = "AI_QUOTA_EXCEEDED"
    AI_INVALID_RESPONSE = "AI_INVALID_RESPONSE"
    AI_TIMEOUT = "AI_TIMEOUT"


ERROR_STATUS_MAP: Dict[ErrorCode, int] = {
    ErrorCode.INVALID_API_KEY: 401,
    ErrorCode.MISSING_API_KEY: 401,
    ErrorCode.AUTH_REQUIRED: 401,
    ErrorCode.AUTH_ERROR: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.API_KEY_INACTIVE: 403,
    ErrorCode.USER_DELETED: 403,
    ErrorCode.USER_NOT_VERIFIED: 403,
    ErrorCode.DATA_ERROR: 500,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.MISSING_FIELD: 400,
    ErrorCode.INVALID_FIELD: 400,
    ErrorCode.INVALID_FILE_TYPE: 400,
    ErrorCode.FILE_TOO_LARGE: 413,
    ErrorCode.INVALID_JSON: 400,
    ErrorCode.INVALID_FORMAT: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.RESOURCE_NOT_FOUND: 404,
    ErrorCode.RECORD_NOT_FOUND: 404,
    ErrorCode.DUPLICATE_ENTRY: 409,
    ErrorCode.ALREADY_EXISTS: 409,
    ErrorCode.QUOTA_EXCEEDED: 429,
    ErrorCode.RATE_LIMIT_EXCEEDED: 429,
    ErrorCode.INTERNAL_SERVER_ERROR: 500,
    ErrorCode.DATABASE_ERROR: 500,
    ErrorCode.DATABASE_CONNECTION_ERROR: 503,
    ErrorCode.EXTERNAL_SERVICE_ERROR: 502,
    ErrorCode.SERVICE_UNAVAILABLE: 503,
    ErrorCode.CONFIGURATION_ERROR: 500,
    ErrorCode.AI_SERVICE_ERROR: 502,
    ErrorCode.AI_QUOTA_EXCEEDED: 429,
    ErrorCode.AI_INVALID_RESPONSE: 502,
    ErrorCode.AI_TIMEOUT: 504,
}

# Vendor-neutral hints that a database failure is a connectivity problem.
CONNECTION_ERROR_MARKERS = (
    "connection refused",
    "could not connect",
    "can't connect",
    "connection reset",
    "server closed the connection",
    "timed out",
    "timeout expired",
    "could not translate host name",
    "name or service not known",
    "unknown host",
    "host not found",
)
CONNECTION_ERROR_CODES = {"ECONNREFUSED", "ETIMEDOUT", "ENOTFOUND", "ECONNRESET"}
# MySQL client-side connection failures
MYSQL_CONNECTION_CODES = {2002, 2003, 2005, 2006, 2013}


def error_name(code: ErrorCode) -> str:
    """
    Readable name for an error code, e.g. AI_SERVICE_ERROR -> "Ai Service Error".
    """
    return " ".join(word.capitalize() for word in code.value.split("_"))


def error_response_payload(
    code: ErrorCode,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    timestamp: Optional[str] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "success": False,
        "error": error_name(code),
        "errorCode": code.value,
        "message": message,
    }
    if details:
        payload["details"] = details
    payload["timestamp"] = timestamp or timezone.now().isoformat()
    return payload


class AppError(Exception):
    """
    Base class for every normalized error that may cross a component boundary.
    """

    default_code = ErrorCode.INTERNAL_SERVER_ERROR
    default_message = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[ErrorCode] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code or self.default_code
        self.message = message or self.default_message
        self.status_code = status_code or ERROR_STATUS_MAP.get(self.code, 500)
        self.details = details
        self.timestamp = timezone.now().isoformat()
        super().__init__(self.message)

    @property
    def error_name(self) -> str:
        return error_name(self.code)

    def to_dict(self) -> Dict[str, Any]:
        return error_response_payload(
            self.code,
            self.message,
            details=self.details,
            timestamp=self.timestamp,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.code.value}, {self.status_code}, {self.message!r})"


class ValidationError(AppError):
    default_code = ErrorCode.VALIDATION_ERROR
    default_message = "Validation failed"


class AuthenticationError(AppError):
    default_code = ErrorCode.AUTH_ERROR
    default_message = "Authentication failed"


class ForbiddenError(AppError):
    default_code = ErrorCode.FORBIDDEN
    default_message = "You do not have permission to perform this action"


class NotFoundError(AppError):
    default_code = ErrorCode.NOT_FOUND
    default_message = "Resource not found"


class DatabaseError(AppError):
    default_code = ErrorCode.DATABASE_ERROR
    default_message = "Database error occurred"


class QuotaError(AppError):
    default_code = ErrorCode.QUOTA_EXCEEDED
    default_message = "Quota exceeded"


class ExternalServiceError(AppError):
    default_code = ErrorCode.EXTERNAL_SERVICE_ERROR
    default_message = "External service error"


class ConfigurationError(AppError):
    default_code = ErrorCode.CONFIGURATION_ERROR
    default_message = "Service is misconfigured"


def is_database_connection_error(exc: BaseException) -> bool:
    """
    Recognize connectivity failures across database vendors.

    Checks the exception and its cause chain for connection-refused, timeout
    and host-not-found signals, the SQLSTATE class 08 ("connection exception")
    and MySQL client connection codes.
    """
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))

        pgcode = getattr(current, "pgcode", None) or getattr(current, "sqlstate", None)
        if isinstance(pgcode, str) and pgcode.startswith("08"):
            return True

        args = getattr(current, "args", ()) or ()
        if args and isinstance(args[0], int) and args[0] in MYSQL_CONNECTION_CODES:
            return True

        code = getattr(current, "code", None)
        if isinstance(code, str) and code.upper() in CONNECTION_ERROR_CODES:
            return True

        if isinstance(current, (ConnectionError, TimeoutError)):
            return True

        message = str(current).lower()
        if any(marker in message for marker in CONNECTION_ERROR_MARKERS):
            return True

        current = current.__cause__ or current.__context__
    return False


def _normalize_drf_exception(exc: drf_exceptions.APIException) -> AppError:
    if isinstance(exc, drf_exceptions.ParseError):
        return ValidationError(
            "Invalid JSON format",
            code=ErrorCode.INVALID_JSON,
            details={"originalError": str(exc.detail)},
        )
    if isinstance(exc, drf_exceptions.ValidationError):
        return ValidationError(details={"fields": exc.detail})
    if isinstance(exc, drf_exceptions.NotAuthenticated):
        return AuthenticationError(str(exc.detail), code=ErrorCode.AUTH_REQUIRED)
    if isinstance(exc, drf_exceptions.AuthenticationFailed):
        return AuthenticationError(str(exc.detail))
    if isinstance(exc, drf_exceptions.PermissionDenied):
        return ForbiddenError(str(exc.detail))
    if isinstance(exc, drf_exceptions.NotFound):
        return NotFoundError(str(exc.detail))
    if isinstance(exc, drf_exceptions.Throttled):
        return QuotaError(str(exc.detail), code=ErrorCode.RATE_LIMIT_EXCEEDED)
    if isinstance(exc, drf_exceptions.UnsupportedMediaType):
        return ValidationError(str(exc.detail), code=ErrorCode.INVALID_FORMAT, status_code=415)
    if isinstance(exc, drf_exceptions.MethodNotAllowed):
        return ValidationError(str(exc.detail), code=ErrorCode.VALIDATION_ERROR, status_code=405)
    return AppError(str(exc.detail), status_code=exc.status_code)


def normalize_error(exc: BaseException) -> AppError:
    """
    Convert any exception into an ``AppError``.
    """
    if isinstance(exc, AppError):
        return exc

    if isinstance(exc, drf_exceptions.APIException):
        return _normalize_drf_exception(exc)

    if isinstance(exc, Http404):
        return NotFoundError(str(exc) or "Resource not found")

    if isinstance(exc, ObjectDoesNotExist):
        return NotFoundError(
            "The requested record could not be found",
            code=ErrorCode.RECORD_NOT_FOUND,
        )

    if isinstance(exc, DjangoPermissionDenied):
        return ForbiddenError(str(exc) or None)

    if isinstance(exc, IntegrityError):
        return AppError(
            "A record with this information already exists",
            code=ErrorCode.DUPLICATE_ENTRY,
        )

    if isinstance(exc, DjangoDatabaseError):
        if is_database_connection_error(exc):
            return DatabaseError(
                "Database connection error. Please try again in a moment.",
                code=ErrorCode.DATABASE_CONNECTION_ERROR,
                details={"name": exc.__class__.__name__},
            )
        return DatabaseError(
            "Database operation failed",
            details={"name": exc.__class__.__name__},
        )

    if isinstance(exc, json.JSONDecodeError):
        return ValidationError(
            "Invalid JSON format",
            code=ErrorCode.INVALID_JSON,
            details={"originalError": exc.msg},
        )

    details = None
    if getattr(settings, "DEBUG", False):
        details = {
            "stack": "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            )
        }
    return AppError(str(exc) or None, details=details)
