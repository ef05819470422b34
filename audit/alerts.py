"""
Alert dispatch

Posts a one-line notification to a Slack incoming webhook when an audited
outcome needs a developer: any 5xx, or an error code in
``ATTENTION_ERROR_CODES``. Client errors (4xx) never alert. Delivery is
best-effort: failures are logged and swallowed.
"""
import logging
import os

import requests
from django.conf import settings

from applykit.errors import ErrorCode

logger = logging.getLogger(__name__)

ATTENTION_ERROR_CODES = frozenset(
    code.value
    for code in (
        ErrorCode.DATABASE_ERROR,
        ErrorCode.DATABASE_CONNECTION_ERROR,
        ErrorCode.CONFIGURATION_ERROR,
        ErrorCode.AI_SERVICE_ERROR,
        ErrorCode.SERVICE_UNAVAILABLE,
    )
)

MAX_MESSAGE_LENGTH = 80
MAX_PATH_LENGTH = 30
DEFAULT_TIMEOUT_SECONDS = 5


def requires_attention(status_code, error_code=None) -> bool:
    if 400 <= status_code < 500:
        return False
    return status_code >= 500 or error_code in ATTENTION_ERROR_CODES


def build_alert_message(*, service, error_code, message, user, path) -> str:
    message = message or 'Unknown error'
    if len(message) > MAX_MESSAGE_LENGTH:
        message = message[: MAX_MESSAGE_LENGTH - 3] + '...'
    return (
        f"🚨 *{service or 'UNKNOWN'}* | {error_code} | {message} | "
        f"User: {user or 'anonymous'} | Path: {(path or 'N/A')[:MAX_PATH_LENGTH]}"
    )


def send_alert(text: str) -> bool:
    """POST ``text`` to the configured webhook. Returns True on delivery."""
    webhook_url = os.environ.get('SLACK_WEBHOOK_URL') or getattr(settings, 'SLACK_WEBHOOK_URL', '')
    if not webhook_url:
        logger.warning("[SLACK] Webhook URL not configured, skipping notification")
        return False

    timeout = float(getattr(settings, 'ALERT_TIMEOUT_SECONDS', DEFAULT_TIMEOUT_SECONDS))
    try:
        response = requests.post(webhook_url, json={'text': text}, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("[SLACK] Failed to send notification: %s", exc)
        return False
    return True


def notify_from_audit_entry(entry) -> bool:
    """
    Alert for ``entry`` if it requires attention. Never raises.
    """
    if not requires_attention(entry.status_code, entry.error_code):
        return False

    user = entry.user_email or (str(entry.user_id)[:12] if entry.user_id else None)
    text = build_alert_message(
        service=entry.service,
        error_code=entry.error_code or f"HTTP_{entry.status_code}",
        message=entry.error_message,
        user=user,
        path=entry.path,
    )
    return send_alert(text)
