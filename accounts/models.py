"""
Accounts app models

Custom User model with admin verification and soft delete, and the API keys
the browser extension presents in the X-API-Key header.
"""
import secrets

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class User(AbstractUser):
    """
    Custom user model.

    Extends Django's AbstractUser to add:
    - full_name: Display name returned to the extension
    - is_verified_by_admin: Accounts are unusable until an admin approves them
    - deleted_at: Soft delete marker
    """

    full_name = models.CharField(max_length=255, blank=True)
    is_verified_by_admin = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return self.email or self.username

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def display_name(self) -> str:
        return self.full_name or self.get_full_name() or self.username

    class Meta:
        verbose_name = 'User'
        verbose_name_plural = 'Users'


class ApiKey(models.Model):
    """
    Opaque credential issued to a user for the browser extension.
    """

    KEY_PREFIX = 'ak_'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='api_keys',
    )
    name = models.CharField(max_length=100, default='Default')
    key = models.CharField(max_length=128, unique=True)
    is_active = models.BooleanField(default=True)
    last_used_at = models.DateTimeField(null=True, blank=True)
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'API key'
        verbose_name_plural = 'API keys'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.key[:8]}...)"

    @classmethod
    def generate_key(cls) -> str:
        return f"{cls.KEY_PREFIX}{secrets.token_urlsafe(32)}"

    def save(self, *args, **kwargs):
        if not self.key:
            self.key = self.generate_key()
        super().save(*args, **kwargs)

    @property
    def is_usable(self) -> bool:
        return self.is_active and self.deleted_at is None

    def mark_used(self) -> None:
        """Stamp ``last_used_at`` without touching other columns."""
        now = timezone.now()
        ApiKey.objects.filter(pk=self.pk).update(last_used_at=now)
        self.last_used_at = now
