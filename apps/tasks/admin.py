"""
Admin configuration for tasks app.
"""

from django.contrib import admin
from django.utils import timezone
from django.utils.html import format_html

from apps.notifications.models import Reminder
from .models import Task
from .services import REMINDER_FIELDS, sync_reminders

# Admin edits to these fields change which reminders the task should have
REMINDER_TRIGGER_FIELDS = set(REMINDER_FIELDS) | {'status', 'deleted_at'}


class ReminderInline(admin.TabularInline):
    """Read-only view of a task's reminder queue entries."""
    model = Reminder
    extra = 0
    fields = ('kind', 'scheduled_for', 'status', 'attempts', 'last_attempt_at', 'error_message')
    readonly_fields = fields
    can_delete = False
    ordering = ('-scheduled_for',)

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    """Admin for Task model."""

    list_display = (
        'title', 'owner', 'status_display', 'priority_display', 'due_at',
        'reminder_display', 'is_overdue_display', 'deleted_at', 'created_at'
    )
    list_filter = (
        'status', 'priority', 'reminder_enabled', 'reminder_lead_time',
        'created_at', 'due_at'
    )
    search_fields = ('title', 'description', 'owner__email')
    ordering = ('-created_at',)
    date_hierarchy = 'created_at'

    readonly_fields = ('created_at', 'updated_at', 'completed_at', 'deleted_at')

    fieldsets = (
        (None, {
            'fields': ('title', 'description', 'owner')
        }),
        ('Status & Priority', {
            'fields': ('status', 'priority', 'due_at')
        }),
        ('Reminder', {
            'fields': ('reminder_enabled', 'reminder_lead_time'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'completed_at', 'deleted_at'),
            'classes': ('collapse',),
        }),
    )

    inlines = [ReminderInline]

    def get_queryset(self, request):
        """Optimize with select_related."""
        return super().get_queryset(request).select_related('owner')

    def save_model(self, request, obj, form, change):
        """Save the task and keep its reminder queue in step."""
        changed = set(form.changed_data)

        if 'status' in changed:
            if obj.status == Task.Status.COMPLETED:
                obj.completed_at = timezone.now()
            elif obj.status != Task.Status.CANCELLED:
                obj.completed_at = None

        super().save_model(request, obj, form, change)

        if not change or changed & REMINDER_TRIGGER_FIELDS:
            sync_reminders(obj, created=not change)

    def status_display(self, obj):
        """Display status with color coding."""
        colors = {
            'pending': '#FFA500',      # Orange
            'in_progress': '#3498db',  # Blue
            'completed': '#27ae60',    # Green
            'cancelled': '#95a5a6',    # Gray
        }
        color = colors.get(obj.status, '#000')
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color, obj.get_status_display()
        )
    status_display.short_description = 'Status'
    status_display.admin_order_field = 'status'

    def priority_display(self, obj):
        """Display priority with color coding."""
        colors = {
            'low': '#95a5a6',
            'medium': '#3498db',
            'high': '#e67e22',
        }
        color = colors.get(obj.priority, '#000')
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color, obj.get_priority_display()
        )
    priority_display.short_description = 'Priority'
    priority_display.admin_order_field = 'priority'

    def reminder_display(self, obj):
        if not obj.reminder_enabled or not obj.reminder_lead_time:
            return '-'
        return obj.get_reminder_lead_time_display()
    reminder_display.short_description = 'Reminder'

    def is_overdue_display(self, obj):
        """Display overdue status."""
        if obj.is_overdue:
            return format_html('<span style="color: red;">⚠️ OVERDUE</span>')
        return ''
    is_overdue_display.short_description = 'Overdue'
