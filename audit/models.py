"""
Audit app models

One AuditRecord per HTTP request/response cycle. Records are written once by
the audit middleware's background task and never updated afterwards, except
for the soft delete marker.
"""
from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

# Service tags that call an upstream text-generation provider; these count
# towards the daily usage limit.
GENERATION_SERVICES = frozenset({'CHAT', 'COVER_LETTER', 'EXPERIENCE', 'KEYWORDS'})


class AuditRecordQuerySet(models.QuerySet):
    def active(self):
        return self.filter(deleted_at__isnull=True)

    def for_user(self, user_id):
        return self.filter(user_id=user_id)

    def created_today(self):
        start = timezone.localtime().replace(hour=0, minute=0, second=0, microsecond=0)
        return self.filter(created_at__gte=start, created_at__lt=start + timedelta(days=1))

    def generation_calls(self):
        return self.filter(service__in=GENERATION_SERVICES)

    def soft_delete(self) -> int:
        return self.filter(deleted_at__isnull=True).update(deleted_at=timezone.now())


class AuditRecord(models.Model):
    """
    Sanitized summary of one request/response exchange.
    """

    request_id = models.CharField(max_length=100, db_index=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_records',
    )
    service = models.CharField(max_length=50, db_index=True)
    method = models.CharField(max_length=10)
    path = models.CharField(max_length=500)
    status_code = models.PositiveSmallIntegerField()
    error_code = models.CharField(max_length=100, null=True, blank=True)
    error_message = models.TextField(null=True, blank=True)
    request_body = models.JSONField(null=True, blank=True)
    response_body = models.JSONField(null=True, blank=True)
    request_headers = models.JSONField(default=dict, blank=True)
    response_time_ms = models.PositiveIntegerField(default=0)
    ip_address = models.CharField(max_length=64, null=True, blank=True)
    user_agent = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = AuditRecordQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'created_at'], name='audit_user_created_idx'),
        ]

    def __str__(self):
        return f"{self.method} {self.path} -> {self.status_code} ({self.service})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Audit records are immutable; use soft_delete().")
        super().save(*args, **kwargs)

    def soft_delete(self) -> None:
        now = timezone.now()
        AuditRecord.objects.filter(pk=self.pk, deleted_at__isnull=True).update(deleted_at=now)
        self.deleted_at = now
