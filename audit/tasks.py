"""
Background tasks for the audit app.

Audit records are persisted off the request path, either on a bounded worker
pool (default, sized by ``AUDIT_MAX_WORKERS``) or through Django-Q's
``async_task`` when ``AUDIT_TASK_BACKEND`` is "django_q". Neither path can fail the request that produced
the record.
"""
import functools
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from django.conf import settings
from django.db import connection
from django_q.tasks import async_task

from .alerts import notify_from_audit_entry
from .entries import AuditEntry
from .models import AuditRecord

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


def persist_audit_record(entry: AuditEntry) -> Optional[AuditRecord]:
    """
    Insert ``entry`` and send an alert when it requires attention.

    Can be called directly or queued via Django-Q's async_task().
    """
    record = None
    try:
        record = AuditRecord.objects.create(**entry.model_fields())
    except Exception as exc:  # noqa: BLE001 - audit writes never reach the client
        logger.error(
            "[AUDIT_LOG] Failed to create audit log entry: %s (service=%s, user=%s)",
            exc,
            entry.service,
            entry.user_id,
        )

    try:
        notify_from_audit_entry(entry)
    except Exception as exc:  # noqa: BLE001
        logger.error("[AUDIT_LOG] Alert dispatch failed for %s: %s", entry.request_id, exc)
    return record


def _run_in_worker(entry: AuditEntry) -> None:
    try:
        persist_audit_record(entry)
    finally:
        # Thread-local connection; close it so it is not leaked.
        connection.close()


@functools.lru_cache(maxsize=None)
def get_audit_executor() -> ThreadPoolExecutor:
    """Process-wide worker pool for the "thread" backend."""
    max_workers = int(getattr(settings, 'AUDIT_MAX_WORKERS', DEFAULT_MAX_WORKERS))
    return ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='audit')


def dispatch_audit_record(entry: AuditEntry) -> Optional[Future]:
    """
    Hand ``entry`` to the configured background backend.

    Returns the pending future for the "thread" backend, otherwise None.
    """
    backend = getattr(settings, 'AUDIT_TASK_BACKEND', 'thread')

    if backend == 'django_q':
        try:
            async_task(
                'audit.tasks.persist_audit_record',
                entry,
                task_name=f"audit-{entry.request_id}",
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("[AUDIT_LOG] Failed to queue audit record %s: %s", entry.request_id, exc)
        return None

    return get_audit_executor().submit(_run_in_worker, entry)
