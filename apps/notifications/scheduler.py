"""
Reminder scheduling for tasks.

Due-time calculation:
- compute_reminder_time: when a "N before due" reminder should fire
- compute_overdue_time: when an "overdue" reminder should fire

Queue maintenance (called by apps.tasks.services after task mutations):
- schedule_reminder: replace the task's pending reminders with a fresh one
- schedule_overdue_reminder: queue a follow-up after the due date
- cancel_reminders: cancel every pending reminder of a task
- reschedule_reminders: cancel + schedule in one transaction

Expected "nothing to schedule" outcomes are reported through
ScheduleResult. Only StorageError is raised; callers must log it and
carry on with the task mutation.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta, timezone as dt_timezone
from typing import Optional

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from apps.tasks.models import Task

from .exceptions import StorageError
from .models import Reminder

logger = logging.getLogger(__name__)

LeadTime = Task.ReminderLeadTime

# Fixed durations, subtracted on the absolute (UTC) timeline
EXACT_OFFSETS = {
    LeadTime.THIRTY_MINUTES.value: timedelta(minutes=30),
    LeadTime.ONE_HOUR.value: timedelta(hours=1),
}

# Calendar days, subtracted on the local wall clock
CALENDAR_OFFSETS = {
    LeadTime.ONE_DAY.value: timedelta(days=1),
    LeadTime.ONE_WEEK.value: timedelta(days=7),
}

# ScheduleResult reasons
REMINDERS_DISABLED = 'reminders_disabled'
NO_DUE_DATE = 'no_due_date'
TASK_CLOSED = 'task_closed'
TIME_PASSED = 'reminder_time_passed'
ALREADY_SCHEDULED = 'already_scheduled'


@dataclass
class ScheduleResult:
    """Outcome of a scheduling call."""
    scheduled: bool
    reminder: Optional[Reminder] = None
    reason: str = ''


# =============================================================================
# Due-time calculation
# =============================================================================

def compute_reminder_time(due_at, lead_time, now, tz=None):
    """
    Compute when a reminder should fire for a task due at ``due_at``.

    Minute/hour lead times subtract an exact duration. Day/week lead times
    subtract calendar days in ``tz`` (default: the project time zone), so the
    reminder keeps the due date's local time of day across month ends and
    DST changes.

    Args:
        due_at: Aware datetime when the task is due (None allowed)
        lead_time: One of Task.ReminderLeadTime values
        now: Aware datetime to compare against
        tz: Optional tzinfo for calendar arithmetic

    Returns:
        Aware datetime strictly after ``now``, or None when no reminder
        should be scheduled.
    """
    if due_at is None or not lead_time:
        return None

    lead_time = str(lead_time)
    if lead_time in EXACT_OFFSETS:
        reminder_at = due_at.astimezone(dt_timezone.utc) - EXACT_OFFSETS[lead_time]
    elif lead_time in CALENDAR_OFFSETS:
        tz = tz or timezone.get_default_timezone()
        local_due = timezone.localtime(due_at, tz)
        wall_clock = local_due.replace(tzinfo=None) - CALENDAR_OFFSETS[lead_time]
        reminder_at = timezone.make_aware(wall_clock, tz)
    else:
        return None

    # Never schedule a reminder that would fire immediately or in the past
    if reminder_at <= now:
        return None
    return reminder_at


def compute_overdue_time(due_at, now, delay=None):
    """Overdue reminders fire ``REMINDER_OVERDUE_DELAY_MINUTES`` after the due date."""
    if due_at is None:
        return None
    if delay is None:
        delay = timedelta(minutes=settings.REMINDER_OVERDUE_DELAY_MINUTES)
    overdue_at = due_at + delay
    if overdue_at <= now:
        return None
    return overdue_at


# =============================================================================
# Queue maintenance
# =============================================================================

def schedule_reminder(task, user_id, now=None):
    """
    Schedule the due-date reminder for a task.

    Any pending reminders of the task are removed first, so calling this
    twice never leaves two pending reminders behind.

    Args:
        task: Task instance
        user_id: Primary key of the user to remind
        now: Clock value for the whole call (default: timezone.now())

    Returns:
        ScheduleResult

    Raises:
        StorageError: If the reminder queue is unavailable
    """
    now = now or timezone.now()

    try:
        with transaction.atomic():
            Reminder.objects.pending().for_task(task.pk).delete()

            result = _enqueue(
                task, user_id, Reminder.Kind.DUE_DATE,
                _due_date_skip_reason(task) or _reminder_time(task, now),
            )

            if settings.REMINDER_OVERDUE_ENABLED and result.reason != REMINDERS_DISABLED:
                _enqueue(
                    task, user_id, Reminder.Kind.OVERDUE,
                    _overdue_skip_reason(task) or _overdue_time(task, now),
                )
    except IntegrityError as e:
        if not _has_pending(task, [Reminder.Kind.DUE_DATE, Reminder.Kind.OVERDUE]):
            raise StorageError(f"Could not schedule reminder for task {task.pk}: {e}") from e
        logger.warning(f"Reminder for task {task.pk} already scheduled by a concurrent request")
        return ScheduleResult(scheduled=False, reason=ALREADY_SCHEDULED)
    except DatabaseError as e:
        raise StorageError(f"Could not schedule reminder for task {task.pk}: {e}") from e

    return result


def schedule_overdue_reminder(task, user_id, now=None):
    """
    Schedule an overdue reminder for a task (fires after the due date).

    Replaces any pending overdue reminder of the task. Closed tasks and
    tasks without a due date are not scheduled.
    """
    now = now or timezone.now()

    try:
        with transaction.atomic():
            Reminder.objects.pending().for_task(task.pk).filter(
                kind=Reminder.Kind.OVERDUE
            ).delete()
            return _enqueue(
                task, user_id, Reminder.Kind.OVERDUE,
                _overdue_skip_reason(task) or _overdue_time(task, now),
            )
    except IntegrityError as e:
        if not _has_pending(task, [Reminder.Kind.OVERDUE]):
            raise StorageError(f"Could not schedule overdue reminder for task {task.pk}: {e}") from e
        logger.warning(f"Overdue reminder for task {task.pk} already scheduled by a concurrent request")
        return ScheduleResult(scheduled=False, reason=ALREADY_SCHEDULED)
    except DatabaseError as e:
        raise StorageError(f"Could not schedule overdue reminder for task {task.pk}: {e}") from e


def cancel_reminders(task_id, now=None):
    """
    Cancel all pending reminders of a task.

    Used when a task is deleted, completed or cancelled.

    Returns:
        Number of reminders cancelled
    """
    now = now or timezone.now()

    try:
        with transaction.atomic():
            cancelled = Reminder.objects.pending().for_task(task_id).update(
                status=Reminder.Status.CANCELLED,
                last_attempt_at=now,
                updated_at=now,
            )
    except DatabaseError as e:
        raise StorageError(f"Could not cancel reminders for task {task_id}: {e}") from e

    if cancelled:
        logger.info(f"Cancelled {cancelled} pending reminder(s) for task {task_id}")
    return cancelled


def reschedule_reminders(task, user_id, now=None):
    """
    Cancel the task's pending reminders and schedule new ones.

    Both steps share one transaction so a processing pass never sees the
    task with its old reminder cancelled but the new one missing.
    """
    now = now or timezone.now()

    try:
        with transaction.atomic():
            cancel_reminders(task.pk, now=now)
            return schedule_reminder(task, user_id, now=now)
    except DatabaseError as e:
        raise StorageError(f"Could not reschedule reminders for task {task.pk}: {e}") from e


# =============================================================================
# Helpers
# =============================================================================

def _due_date_skip_reason(task):
    if task.is_deleted or task.is_closed:
        return TASK_CLOSED
    if not task.reminder_enabled or not task.reminder_lead_time:
        return REMINDERS_DISABLED
    if not task.due_at:
        return NO_DUE_DATE
    return None


def _overdue_skip_reason(task):
    if task.is_deleted or task.is_closed:
        return TASK_CLOSED
    if not task.due_at:
        return NO_DUE_DATE
    return None


def _reminder_time(task, now):
    return compute_reminder_time(task.due_at, task.reminder_lead_time, now) or TIME_PASSED


def _overdue_time(task, now):
    return compute_overdue_time(task.due_at, now) or TIME_PASSED


def _enqueue(task, user_id, kind, when):
    """Insert a pending reminder at ``when``, or report why it was skipped."""
    if isinstance(when, str):
        logger.info(f"No {kind} reminder scheduled for task {task.pk}: {when}")
        return ScheduleResult(scheduled=False, reason=when)

    reminder = Reminder.objects.create(
        task=task,
        user_id=user_id,
        kind=kind,
        scheduled_for=when,
        status=Reminder.Status.PENDING,
        attempts=0,
    )
    logger.info(f"{kind} reminder scheduled for task {task.pk} at {when.isoformat()}")
    return ScheduleResult(scheduled=True, reminder=reminder)


def _has_pending(task, kinds):
    """
    Whether a pending reminder of ``kinds`` exists for ``task``.

    Tells a lost race on the one-pending-per-kind constraint apart from
    other integrity errors (e.g. the task row vanished before commit).
    """
    try:
        return Reminder.objects.pending().for_task(task.pk).filter(kind__in=kinds).exists()
    except DatabaseError:
        logger.exception(f"Could not check pending reminders for task {task.pk}")
        return False
