"""
Service layer for tasks app.

All business logic for task operations is centralized here, so every
caller (admin actions, scheduled jobs, future API views) keeps the
reminder queue in step with the task.

Services:
- create_task: Create a task and schedule its reminder
- update_task: Update task fields, rescheduling reminders when needed
- change_status: Change task status with workflow validation
- delete_task / restore_task: Move a task to and from the trash
- sync_reminders: Re-sync reminders after a direct save (admin)
- purge_deleted_tasks: Permanently remove tasks trashed long ago

Reminder side effects never fail a task operation: if the reminder
queue is unavailable the error is logged and the task change stands.
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.utils import timezone

from apps.notifications import scheduler
from apps.notifications.exceptions import StorageError
from .models import Task

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = Task._meta.get_field('title').max_length
EDITABLE_FIELDS = (
    'title', 'description', 'priority', 'due_at',
    'reminder_enabled', 'reminder_lead_time',
)
REMINDER_FIELDS = ('due_at', 'reminder_enabled', 'reminder_lead_time')


def create_task(
    title: str,
    owner,
    description: str = '',
    priority: str = 'medium',
    due_at=None,
    reminder_enabled: bool = False,
    reminder_lead_time: str = '',
):
    """
    Central task creation function.

    Args:
        title: Task title (required, max 100 characters)
        owner: User who owns the task and receives its reminders
        description: Task description (optional)
        priority: low/medium/high (default: medium)
        due_at: Aware datetime when the task is due (optional)
        reminder_enabled: Whether a reminder should be sent
        reminder_lead_time: How long before ``due_at`` to remind

    Returns:
        Created Task instance

    Raises:
        ValidationError: If required fields are missing or invalid
    """
    if not owner:
        raise ValidationError("Owner is required.")

    if not owner.is_active:
        raise ValidationError("Cannot create a task for an inactive user.")

    fields = _clean_fields(None, {
        'title': title,
        'description': description,
        'priority': priority,
        'due_at': due_at,
        'reminder_enabled': reminder_enabled,
        'reminder_lead_time': reminder_lead_time,
    })

    task = Task.objects.create(owner=owner, **fields)
    logger.info(f"Task {task.pk} created for {owner.email}")

    _sync_reminders(task, scheduler.schedule_reminder)
    return task


def update_task(task, user, **kwargs):
    """
    Update task fields.
    Only the task owner (or a superuser) can edit.

    Args:
        task: Task instance to update
        user: User performing the update
        **kwargs: Fields to update (title, description, priority, due_at,
            reminder_enabled, reminder_lead_time)

    Returns:
        Updated Task instance

    Raises:
        PermissionDenied: If user cannot edit the task
        ValidationError: If validation fails
    """
    _check_owner(task, user, "You don't have permission to edit this task.")

    if task.is_deleted:
        raise ValidationError("Deleted tasks cannot be edited. Restore the task first.")

    unknown = set(kwargs) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

    cleaned = _clean_fields(task, kwargs)
    changed = [
        field for field, value in cleaned.items()
        if getattr(task, field) != value
    ]
    if not changed:
        return task

    with transaction.atomic():
        for field in changed:
            setattr(task, field, cleaned[field])
        task.save(update_fields=changed + ['updated_at'])

    logger.info(f"Task {task.pk} updated: {', '.join(changed)}")

    if any(field in REMINDER_FIELDS for field in changed):
        _sync_reminders(task, scheduler.reschedule_reminders)
    return task


def change_status(task, user, new_status):
    """
    Change task status with workflow validation.

    Closing a task (completed/cancelled) cancels its pending reminders;
    reopening it schedules them again.

    Returns:
        Updated Task instance

    Raises:
        PermissionDenied: If user cannot change status
        ValidationError: If transition is invalid
    """
    _check_owner(task, user, "You don't have permission to change this task's status.")

    if task.is_deleted:
        raise ValidationError("Deleted tasks cannot change status.")

    if new_status not in Task.Status.values:
        raise ValidationError(f"Invalid status: {new_status}")

    if not task.can_transition_to(new_status):
        raise ValidationError(
            f"Cannot change status from '{task.get_status_display()}' to "
            f"'{Task.Status(new_status).label}'."
        )

    old_status = task.status

    with transaction.atomic():
        task.status = new_status
        if new_status == Task.Status.COMPLETED:
            task.completed_at = timezone.now()
        elif new_status != Task.Status.CANCELLED:
            task.completed_at = None
        task.save(update_fields=['status', 'completed_at', 'updated_at'])

    logger.info(f"Task {task.pk} status changed from {old_status} to {new_status}")

    if task.is_closed:
        _sync_reminders(task, scheduler.cancel_reminders)
    else:
        _sync_reminders(task, scheduler.reschedule_reminders)
    return task


def delete_task(task, user):
    """
    Move a task to the trash (soft delete).

    Trashed tasks are kept for DELETED_TASK_RETENTION_DAYS days and can be
    restored until purge_deleted_tasks removes them.
    """
    _check_owner(task, user, "You don't have permission to delete this task.")

    if task.is_deleted:
        raise ValidationError("Task is already deleted.")

    task.deleted_at = timezone.now()
    task.save(update_fields=['deleted_at', 'updated_at'])
    logger.info(f"Task {task.pk} moved to trash")

    _sync_reminders(task, scheduler.cancel_reminders)
    return task


def restore_task(task, user):
    """Restore a task from the trash and schedule its reminder again."""
    _check_owner(task, user, "You don't have permission to restore this task.")

    if not task.is_deleted:
        raise ValidationError("Task is not deleted.")

    task.deleted_at = None
    task.save(update_fields=['deleted_at', 'updated_at'])
    logger.info(f"Task {task.pk} restored from trash")

    _sync_reminders(task, scheduler.reschedule_reminders)
    return task


def sync_reminders(task, created=False):
    """
    Bring the task's reminder queue in line with its current state.

    For code paths that save tasks directly instead of going through the
    services above (the Django admin).
    """
    if created:
        action = scheduler.schedule_reminder
    elif task.is_deleted or task.is_closed:
        action = scheduler.cancel_reminders
    else:
        action = scheduler.reschedule_reminders
    _sync_reminders(task, action)


def purge_deleted_tasks(now=None):
    """
    Scheduled job to run daily at 3:00 AM.

    Permanently deletes tasks that have been in the trash for more than
    DELETED_TASK_RETENTION_DAYS days. Their reminders are cancelled first
    and then expire through the normal reminder retention cleanup.

    Returns:
        Number of tasks deleted
    """
    now = now or timezone.now()
    cutoff = now - timedelta(days=settings.DELETED_TASK_RETENTION_DAYS)

    expired = list(Task.objects.deleted().filter(deleted_at__lt=cutoff))
    for task in expired:
        _sync_reminders(task, scheduler.cancel_reminders)

    if expired:
        Task.objects.filter(pk__in=[task.pk for task in expired]).delete()

    logger.info(f"Purged {len(expired)} task(s) deleted before {cutoff.isoformat()}")
    return len(expired)


# =============================================================================
# Helper Functions
# =============================================================================

def _check_owner(task, user, message):
    if task.owner_id != user.pk and not user.is_superuser:
        raise PermissionDenied(message)


def _clean_fields(task, fields):
    """
    Validate and normalize editable task fields.

    ``task`` is the instance being edited (None on create); it supplies
    current values for reminder fields not included in ``fields``.
    """
    cleaned = {}

    if 'title' in fields:
        title = (fields['title'] or '').strip()
        if not title:
            raise ValidationError("Task title is required.")
        if len(title) > TITLE_MAX_LENGTH:
            raise ValidationError(f"Task title cannot exceed {TITLE_MAX_LENGTH} characters.")
        cleaned['title'] = title

    if 'description' in fields:
        cleaned['description'] = (fields['description'] or '').strip()

    if 'priority' in fields:
        if fields['priority'] not in Task.Priority.values:
            raise ValidationError(f"Invalid priority: {fields['priority']}")
        cleaned['priority'] = fields['priority']

    if 'due_at' in fields:
        due_at = fields['due_at']
        if due_at is not None:
            if timezone.is_naive(due_at):
                raise ValidationError("Due date must include a time zone.")
            # Allow clearing the due date (None) or keeping an unchanged one
            unchanged = task is not None and task.due_at == due_at
            if not unchanged and due_at < timezone.now():
                raise ValidationError("Due date cannot be in the past.")
        cleaned['due_at'] = due_at

    if 'reminder_lead_time' in fields:
        lead_time = fields['reminder_lead_time'] or ''
        if lead_time and lead_time not in Task.ReminderLeadTime.values:
            raise ValidationError(f"Invalid reminder lead time: {lead_time}")
        cleaned['reminder_lead_time'] = lead_time

    if 'reminder_enabled' in fields:
        cleaned['reminder_enabled'] = bool(fields['reminder_enabled'])

    enabled = cleaned.get('reminder_enabled', task.reminder_enabled if task else False)
    lead_time = cleaned.get('reminder_lead_time', task.reminder_lead_time if task else '')
    if enabled and not lead_time:
        raise ValidationError("Choose when the reminder should be sent.")

    return cleaned


def _sync_reminders(task, action):
    """Run a scheduler action for ``task``; queue failures are logged, not raised."""
    try:
        if action is scheduler.cancel_reminders:
            action(task.pk)
        else:
            action(task, task.owner_id)
    except StorageError as e:
        logger.error(f"Reminders for task {task.pk} could not be updated: {e}")
