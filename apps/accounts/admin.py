"""
Admin configuration for accounts app.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count, Q
from django.utils.translation import gettext_lazy as _

from apps.notifications.models import Reminder
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Custom User admin with email authentication and reminder counts."""

    list_display = (
        'email', 'full_name_display', 'is_active', 'is_staff',
        'pending_reminders', 'created_at'
    )
    list_filter = ('is_active', 'is_staff')
    search_fields = ('email', 'first_name', 'last_name')
    ordering = ('first_name', 'last_name')
    list_per_page = 25

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        (_('Personal Info'), {'fields': ('first_name', 'last_name')}),
        (_('Permissions'), {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',),
        }),
        (_('Important dates'), {
            'fields': ('last_login', 'created_at', 'updated_at'),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'first_name', 'last_name', 'password1', 'password2'),
        }),
    )

    readonly_fields = ('created_at', 'updated_at', 'last_login')

    def full_name_display(self, obj):
        """Display full name."""
        return obj.get_full_name() or '-'
    full_name_display.short_description = 'Name'
    full_name_display.admin_order_field = 'first_name'

    def get_queryset(self, request):
        """Annotate pending reminder counts in the list query."""
        return super().get_queryset(request).annotate(
            pending_reminder_count=Count(
                'reminders',
                filter=Q(reminders__status=Reminder.Status.PENDING),
            )
        )

    def pending_reminders(self, obj):
        """Number of reminders still waiting to be delivered."""
        return obj.pending_reminder_count
    pending_reminders.short_description = 'Pending reminders'
    pending_reminders.admin_order_field = 'pending_reminder_count'
