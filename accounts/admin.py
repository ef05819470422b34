from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import ApiKey, User


class ApiKeyInline(admin.TabularInline):
    model = ApiKey
    extra = 0
    fields = ['name', 'key', 'is_active', 'last_used_at', 'deleted_at', 'created_at']
    readonly_fields = ['key', 'last_used_at', 'created_at']


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin interface for custom User model."""

    list_display = [
        'username',
        'email',
        'full_name',
        'is_verified_by_admin',
        'deleted_at',
        'is_staff',
    ]
    list_filter = ['is_verified_by_admin', 'is_staff', 'is_superuser']
    inlines = [ApiKeyInline]

    fieldsets = BaseUserAdmin.fieldsets + (
        ('Extension access', {'fields': ('full_name', 'is_verified_by_admin', 'deleted_at')}),
    )

    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Extension access', {'fields': ('full_name', 'is_verified_by_admin')}),
    )


@admin.register(ApiKey)
class ApiKeyAdmin(admin.ModelAdmin):
    list_display = ['name', 'user', 'is_active', 'last_used_at', 'deleted_at', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'user__email', 'user__username']
    readonly_fields = ['key', 'last_used_at', 'created_at']
