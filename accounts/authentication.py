"""
Accounts app authentication

Resolves the X-API-Key header to a user. Used as the default DRF
authentication class and by the public validation and usage endpoints.
"""
import logging
import time

from django.db import DatabaseError
from rest_framework.authentication import BaseAuthentication

from applykit.errors import AuthenticationError, ErrorCode, ForbiddenError

from .models import ApiKey

logger = logging.getLogger(__name__)

API_KEY_HEADER = 'HTTP_X_API_KEY'


def get_api_key_header(request) -> str:
    return (request.META.get(API_KEY_HEADER) or '').strip()


def resolve_api_key(raw_key, *, enforce_status=True) -> ApiKey:
    """
    Look up ``raw_key`` and run the account checks.

    With ``enforce_status=False`` only existence is checked, which is enough
    for read-only lookups such as the public usage endpoint.

    Raises:
        AuthenticationError: Missing or unknown key (401).
        ForbiddenError: Inactive key, deleted or unverified user (403).
    """
    raw_key = (raw_key or '').strip()
    if not raw_key:
        raise AuthenticationError('API key is required', code=ErrorCode.MISSING_API_KEY)

    try:
        api_key = ApiKey.objects.select_related('user').get(key=raw_key)
    except ApiKey.DoesNotExist:
        logger.info("[AUTH] Invalid API key: %s... (length: %d)", raw_key[:8], len(raw_key))
        raise AuthenticationError('Invalid API key', code=ErrorCode.INVALID_API_KEY) from None

    if not enforce_status:
        return api_key

    user = api_key.user
    if not api_key.is_usable:
        logger.info("[AUTH] API key inactive for user: %s", user.email)
        raise ForbiddenError('API key is inactive', code=ErrorCode.API_KEY_INACTIVE)

    if user.is_deleted:
        logger.info("[AUTH] User deleted: %s", user.email)
        raise ForbiddenError(
            'Your account has been deleted. Please contact support for assistance.',
            code=ErrorCode.USER_DELETED,
        )

    if not user.is_verified_by_admin:
        logger.info("[AUTH] User not verified: %s", user.email)
        raise ForbiddenError(
            'Your account is pending verification. Please wait for admin approval '
            'before using the extension.',
            code=ErrorCode.USER_NOT_VERIFIED,
        )

    return api_key


def touch_last_used(api_key: ApiKey) -> None:
    """Best-effort ``last_used_at`` update; never fails the request."""
    try:
        api_key.mark_used()
    except DatabaseError as exc:
        logger.warning("[AUTH] Failed to update last_used_at for API key %s: %s", api_key.pk, exc)


class ApiKeyAuthentication(BaseAuthentication):
    """
    DRF authentication via the X-API-Key header.

    Returns ``(user, api_key)`` so views can read ``request.auth``.
    """

    def authenticate(self, request):
        started = time.monotonic()
        api_key = resolve_api_key(get_api_key_header(request))
        touch_last_used(api_key)
        logger.info(
            "[AUTH] %s %s - Authentication successful for user: %s (%dms)",
            request.method,
            request.path,
            api_key.user.email,
            int((time.monotonic() - started) * 1000),
        )
        return (api_key.user, api_key)

    def authenticate_header(self, request):
        return 'X-API-Key'
