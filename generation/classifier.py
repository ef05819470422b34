"""
Failure classification for upstream text-generation calls.

``classify`` maps a raw failure onto a retry decision and an ``ErrorKind``.
The decision is driven by ``CLASSIFICATION_RULES``, an ordered table of
predicates; the first matching rule wins. Supporting a new provider's error
vocabulary means adding a rule, not a branch.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple


class ErrorKind(str, Enum):
    RATE_LIMITED = "RateLimited"
    OVERLOADED = "Overloaded"
    TIMEOUT = "Timeout"
    UNAUTHORIZED = "Unauthorized"
    CONFIGURATION = "Configuration"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class RawFailure:
    """
    Provider-neutral view of an upstream failure.
    """

    message: str = ""
    code: Optional[str] = None
    status: Optional[int] = None

    @property
    def normalized_message(self) -> str:
        return (self.message or "").lower()

    @property
    def normalized_code(self) -> str:
        return str(self.code or "").lower()

    @classmethod
    def from_exception(cls, exc: BaseException) -> "RawFailure":
        """
        Read message, code and HTTP status off a provider exception.

        SDKs disagree on attribute names (``status_code``, ``status``,
        ``code``, ``response.status_code``), so all of them are inspected here
        and nowhere else.
        """
        status = _coerce_status(getattr(exc, "status_code", None))
        if status is None:
            status = _coerce_status(getattr(exc, "status", None))
        if status is None:
            response = getattr(exc, "response", None)
            status = _coerce_status(getattr(response, "status_code", None))

        raw_code = getattr(exc, "code", None)
        if status is None:
            status = _coerce_status(raw_code)
        code = str(raw_code) if raw_code is not None else None

        message = str(exc) or exc.__class__.__name__
        return cls(message=message, code=code, status=status)


def _coerce_status(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if 100 <= value <= 599 else None
    if isinstance(value, str) and value.isdigit():
        return _coerce_status(int(value))
    return None


@dataclass(frozen=True)
class Classification:
    retryable: bool
    kind: ErrorKind


@dataclass(frozen=True)
class ClassificationRule:
    name: str
    matches: Callable[[RawFailure], bool]
    classification: Classification


def _status_in(*statuses: int) -> Callable[[RawFailure], bool]:
    return lambda failure: failure.status in statuses


def _message_contains(*needles: str) -> Callable[[RawFailure], bool]:
    return lambda failure: any(needle in failure.normalized_message for needle in needles)


def _code_in(*codes: str) -> Callable[[RawFailure], bool]:
    lowered = {code.lower() for code in codes}
    return lambda failure: failure.normalized_code in lowered


def _any(*predicates: Callable[[RawFailure], bool]) -> Callable[[RawFailure], bool]:
    return lambda failure: any(predicate(failure) for predicate in predicates)


RATE_LIMITED = Classification(retryable=True, kind=ErrorKind.RATE_LIMITED)
OVERLOADED = Classification(retryable=True, kind=ErrorKind.OVERLOADED)
TIMED_OUT = Classification(retryable=True, kind=ErrorKind.TIMEOUT)
UNAUTHORIZED = Classification(retryable=False, kind=ErrorKind.UNAUTHORIZED)
MISCONFIGURED = Classification(retryable=False, kind=ErrorKind.CONFIGURATION)
UNKNOWN = Classification(retryable=False, kind=ErrorKind.UNKNOWN)


CLASSIFICATION_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(
        "rate_limit",
        _any(
            _status_in(429),
            _message_contains("rate limit", "rate_limit", "quota", "too many requests"),
            _code_in("rate_limit_exceeded", "resource_exhausted", "insufficient_quota"),
        ),
        RATE_LIMITED,
    ),
    ClassificationRule(
        "overloaded",
        _any(
            _status_in(500, 502, 503),
            _message_contains(
                "overloaded",
                "service unavailable",
                "try again later",
                "temporarily unavailable",
                "server error",
                "bad gateway",
            ),
            _code_in("unavailable", "internal"),
        ),
        OVERLOADED,
    ),
    ClassificationRule(
        "timeout",
        _any(
            _status_in(408, 504),
            _message_contains("timeout", "timed out", "deadline exceeded"),
            _code_in("deadline_exceeded", "etimedout"),
        ),
        TIMED_OUT,
    ),
    ClassificationRule(
        "unauthorized",
        _any(
            _status_in(401, 403),
            _message_contains(
                "invalid api key",
                "incorrect api key",
                "api key not valid",
                "api_key_invalid",
                "invalid credential",
                "missing api key",
                "api key is required",
                "unauthorized",
                "unauthenticated",
                "permission denied",
                "forbidden",
            ),
            _code_in("invalid_api_key", "unauthenticated", "permission_denied"),
        ),
        UNAUTHORIZED,
    ),
    ClassificationRule(
        "configuration",
        _any(
            _message_contains("api keys configured", "not configured", "no credentials"),
            _code_in("configuration_error"),
        ),
        MISCONFIGURED,
    ),
)


def classify(failure: RawFailure) -> Classification:
    """
    Classify ``failure``; pure and deterministic.
    """
    for rule in CLASSIFICATION_RULES:
        if rule.matches(failure):
            return rule.classification
    return UNKNOWN
