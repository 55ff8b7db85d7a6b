"""
Admin configuration for notifications app.

The reminder queue is maintained by the scheduler and the processing
pass; the admin is for inspecting it and cancelling stuck entries.
"""

from django.contrib import admin
from django.utils import timezone
from django.utils.html import format_html

from .models import Reminder


@admin.register(Reminder)
class ReminderAdmin(admin.ModelAdmin):
    """Admin for Reminder model."""

    list_display = (
        'id', 'task', 'user', 'kind', 'scheduled_for', 'status_display',
        'attempts', 'last_attempt_at', 'error_preview'
    )
    list_filter = ('status', 'kind', 'scheduled_for')
    search_fields = ('task__title', 'user__email', 'error_message')
    ordering = ('-scheduled_for',)
    date_hierarchy = 'scheduled_for'
    list_select_related = ('task', 'user')

    readonly_fields = (
        'task', 'user', 'kind', 'scheduled_for', 'status', 'attempts',
        'last_attempt_at', 'error_message', 'created_at', 'updated_at'
    )

    actions = ['cancel_pending']

    def has_add_permission(self, request):
        return False

    def status_display(self, obj):
        """Display status with color coding."""
        colors = {
            'pending': '#FFA500',
            'sent': '#27ae60',
            'failed': '#e74c3c',
            'cancelled': '#95a5a6',
        }
        color = colors.get(obj.status, '#000')
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color, obj.get_status_display()
        )
    status_display.short_description = 'Status'
    status_display.admin_order_field = 'status'

    def error_preview(self, obj):
        """Show truncated error message."""
        message = obj.error_message
        return message[:50] + '...' if len(message) > 50 else message
    error_preview.short_description = 'Error'

    @admin.action(description='Cancel selected pending reminders')
    def cancel_pending(self, request, queryset):
        now = timezone.now()
        cancelled = queryset.pending().update(
            status=Reminder.Status.CANCELLED,
            last_attempt_at=now,
            updated_at=now,
            error_message='Cancelled by administrator',
        )
        self.message_user(request, f'{cancelled} reminder(s) cancelled.')
