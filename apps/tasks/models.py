"""
Task management models.

Models:
- Task: A user's to-do item with optional due date, reminder configuration
  and soft deletion.

Status workflow:
- pending ⇄ in_progress → completed (completed tasks can be reopened)
- Any status except cancelled can transition to cancelled (terminal)
- completed and cancelled are closed: no reminders are delivered for them
"""

from django.db import models
from django.conf import settings
from django.utils import timezone


class TaskQuerySet(models.QuerySet):

    def active(self):
        """Tasks that have not been soft-deleted."""
        return self.filter(deleted_at__isnull=True)

    def deleted(self):
        return self.filter(deleted_at__isnull=False)

    def open(self):
        """Active tasks that still expect work."""
        return self.active().filter(
            status__in=[Task.Status.PENDING, Task.Status.IN_PROGRESS]
        )


class Task(models.Model):
    """
    Main Task model.

    Reminder configuration is stored as two columns:
    ``reminder_enabled`` and ``reminder_lead_time`` (how long before
    ``due_at`` the reminder should fire).
    """

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        IN_PROGRESS = 'in_progress', 'In Progress'
        COMPLETED = 'completed', 'Completed'
        CANCELLED = 'cancelled', 'Cancelled'

    class Priority(models.TextChoices):
        LOW = 'low', 'Low'
        MEDIUM = 'medium', 'Medium'
        HIGH = 'high', 'High'

    class ReminderLeadTime(models.TextChoices):
        THIRTY_MINUTES = '30min', '30 minutes before'
        ONE_HOUR = '1hour', '1 hour before'
        ONE_DAY = '1day', '1 day before'
        ONE_WEEK = '1week', '1 week before'

    CLOSED_STATUSES = (Status.COMPLETED, Status.CANCELLED)

    title = models.CharField(max_length=100)
    description = models.TextField(blank=True)

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='tasks',
        help_text='User who owns this task and receives its reminders'
    )

    status = models.CharField(
        max_length=15,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    priority = models.CharField(
        max_length=10,
        choices=Priority.choices,
        default=Priority.MEDIUM,
    )

    due_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text='Date and time when the task is due'
    )

    # Reminder configuration
    reminder_enabled = models.BooleanField(default=False)
    reminder_lead_time = models.CharField(
        max_length=10,
        choices=ReminderLeadTime.choices,
        blank=True,
        default='',
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text='Set when the task is moved to the trash'
    )

    objects = TaskQuerySet.as_manager()

    class Meta:
        verbose_name = 'task'
        verbose_name_plural = 'tasks'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['owner', 'status']),
            models.Index(fields=['due_at', 'status']),
        ]

    def __str__(self):
        return self.title

    # ==========================================================================
    # Status Properties
    # ==========================================================================

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    @property
    def is_closed(self):
        """Completed or cancelled tasks never receive reminders."""
        return self.status in self.CLOSED_STATUSES

    @property
    def is_overdue(self):
        """Check if task is past its due date and still open."""
        if not self.due_at or self.is_closed:
            return False
        return timezone.now() > self.due_at

    @property
    def reminder_config(self):
        """Reminder configuration as ``{'enabled', 'lead_time'}``, or None."""
        if not self.reminder_lead_time:
            return None
        return {
            'enabled': self.reminder_enabled,
            'lead_time': self.reminder_lead_time,
        }

    # ==========================================================================
    # Status Workflow Methods
    # ==========================================================================

    def can_transition_to(self, new_status):
        """Check if status transition is valid."""
        if self.status == new_status:
            return False

        # Cancelled is terminal
        if self.status == self.Status.CANCELLED:
            return False

        if new_status == self.Status.CANCELLED:
            return True

        # Completed tasks can be reopened
        valid_transitions = {
            self.Status.PENDING: [self.Status.IN_PROGRESS, self.Status.COMPLETED],
            self.Status.IN_PROGRESS: [self.Status.PENDING, self.Status.COMPLETED],
            self.Status.COMPLETED: [self.Status.PENDING, self.Status.IN_PROGRESS],
        }

        return new_status in valid_transitions.get(self.status, [])
