"""
Reminder queue model.

Each Reminder is one scheduled (or already processed) notification for
one task and one user. Status only moves forward:

    pending → sent
    pending → failed     (user missing, or delivery failed max_attempts times)
    pending → cancelled  (task deleted/closed, or reminders rescheduled)

A failed delivery below the attempt ceiling leaves the reminder pending,
so the next processing pass retries it.
"""

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone


class ReminderQuerySet(models.QuerySet):

    def pending(self):
        return self.filter(status=Reminder.Status.PENDING)

    def for_task(self, task_id):
        return self.filter(task_id=task_id)

    def terminal(self):
        return self.filter(status__in=Reminder.TERMINAL_STATUSES)

    def find_due(self, now, limit=None):
        """
        Pending reminders whose scheduled time has come, oldest first.

        The task and user are fetched in the same query. At most ``limit``
        rows (default ``REMINDER_BATCH_SIZE``) are returned.
        """
        if limit is None:
            limit = settings.REMINDER_BATCH_SIZE
        return list(
            self.pending()
            .filter(scheduled_for__lte=now)
            .select_related('task', 'user')
            .order_by('scheduled_for', 'id')[:limit]
        )

    def delete_terminal_older_than(self, cutoff):
        """Delete sent/failed/cancelled reminders last touched before ``cutoff``."""
        deleted, _ = self.terminal().filter(last_attempt_at__lt=cutoff).delete()
        return deleted

    def transition(self, reminder, **fields):
        """
        Atomically apply ``fields`` to ``reminder`` if nobody touched it
        since it was fetched.

        The UPDATE is keyed by id and guarded on the status and attempt
        count read at fetch time. Returns True when the row was updated;
        False means another pass or a cancellation got there first.
        """
        fields.setdefault('updated_at', timezone.now())
        updated = self.filter(
            pk=reminder.pk,
            status=reminder.status,
            attempts=reminder.attempts,
        ).update(**fields)
        return updated == 1


class Reminder(models.Model):
    """
    A queued reminder for a task.

    ``task`` and ``user`` are references, not ownership: when either row
    disappears the reference is cleared and the processing pass resolves
    the reminder to cancelled or failed.
    """

    class Kind(models.TextChoices):
        DUE_DATE = 'due_date', 'Due date'
        OVERDUE = 'overdue', 'Overdue'

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        SENT = 'sent', 'Sent'
        FAILED = 'failed', 'Failed'
        CANCELLED = 'cancelled', 'Cancelled'

    TERMINAL_STATUSES = (Status.SENT, Status.FAILED, Status.CANCELLED)

    task = models.ForeignKey(
        'tasks.Task',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reminders',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reminders',
    )
    kind = models.CharField(
        max_length=10,
        choices=Kind.choices,
        default=Kind.DUE_DATE,
    )
    scheduled_for = models.DateTimeField(
        help_text='When the reminder becomes eligible for delivery'
    )
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
    )
    attempts = models.PositiveIntegerField(
        default=0,
        help_text='Delivery attempts made so far'
    )
    last_attempt_at = models.DateTimeField(null=True, blank=True)
    error_message = models.TextField(
        blank=True,
        help_text='Reason for the last failure or cancellation'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ReminderQuerySet.as_manager()

    class Meta:
        verbose_name = 'reminder'
        verbose_name_plural = 'reminders'
        ordering = ['scheduled_for']
        indexes = [
            models.Index(fields=['status', 'scheduled_for']),
            models.Index(fields=['task']),
            models.Index(fields=['user', 'status']),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['task', 'kind'],
                condition=Q(status='pending'),
                name='unique_pending_reminder_per_task_kind',
            ),
        ]

    def __str__(self):
        return f"{self.get_kind_display()} reminder for task {self.task_id} ({self.status})"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES
