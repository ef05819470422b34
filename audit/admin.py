from django.contrib import admin

from .models import AuditRecord


@admin.register(AuditRecord)
class AuditRecordAdmin(admin.ModelAdmin):
    """Read-only admin for the audit trail; records can only be soft deleted."""

    list_display = [
        'created_at',
        'service',
        'method',
        'path',
        'status_code',
        'error_code',
        'user',
        'response_time_ms',
        'deleted_at',
    ]
    list_filter = ['service', 'status_code', 'method']
    search_fields = ['request_id', 'path', 'error_code', 'user__email']
    date_hierarchy = 'created_at'
    actions = ['soft_delete_selected']

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description='Soft delete selected audit records')
    def soft_delete_selected(self, request, queryset):
        updated = queryset.soft_delete()
        self.message_user(request, f"{updated} audit record(s) soft deleted.")
