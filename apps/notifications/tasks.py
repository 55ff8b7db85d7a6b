"""
Scheduled tasks for notifications app.

Background jobs for:
- Reminder processing (every REMINDER_PROCESS_INTERVAL_MINUTES)
- Daily task summary emails (daily at 8 AM)

Both run under the Django-Q2 cluster (see ``manage.py setup_schedules``).
process_reminders can also be triggered by ``manage.py process_reminders``
or the cron endpoint in ``apps.notifications.views``.
"""

import logging
from datetime import timedelta
from itertools import groupby
from operator import attrgetter

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from apps.tasks.models import Task

from .exceptions import StorageError
from .models import Reminder

logger = logging.getLogger(__name__)

TASK_UNAVAILABLE = 'Task deleted or completed'
USER_NOT_FOUND = 'User not found'


def process_reminders(now=None, limit=None, notifier=None, max_attempts=None):
    """
    Deliver every pending reminder that is due, then purge old ones.

    Each reminder is resolved independently; a failure on one never stops
    the others. Failed deliveries stay pending until ``max_attempts`` is
    reached.

    Args:
        now: Clock value for the whole pass (default: timezone.now())
        limit: Max reminders handled per pass (default: REMINDER_BATCH_SIZE)
        notifier: Callable ``(task, user, kind)`` that delivers one reminder
        max_attempts: Attempt ceiling (default: REMINDER_MAX_ATTEMPTS)

    Returns:
        Summary dict::

            {
                'timestamp': '2024-03-15T12:00:00+00:00',
                'processed': {'sent': 3, 'failed': 1, 'cancelled': 0,
                              'skipped': 0, 'errors': 0},
                'cleaned_up': 12,
            }

    Raises:
        StorageError: If the queue cannot be read or cleaned up
    """
    now = now or timezone.now()
    if notifier is None:
        from .services import send_task_reminder
        notifier = send_task_reminder
    if max_attempts is None:
        max_attempts = settings.REMINDER_MAX_ATTEMPTS

    try:
        due = Reminder.objects.find_due(now, limit=limit)
    except DatabaseError as e:
        raise StorageError(f'Could not fetch due reminders: {e}') from e

    logger.info(f'Processing {len(due)} due reminder(s)')

    processed = {'sent': 0, 'failed': 0, 'cancelled': 0, 'skipped': 0, 'errors': 0}
    for reminder in due:
        outcome = _process_reminder(reminder, now, notifier, max_attempts)
        processed[outcome] += 1

    cutoff = now - timedelta(days=settings.REMINDER_RETENTION_DAYS)
    try:
        cleaned_up = Reminder.objects.delete_terminal_older_than(cutoff)
    except DatabaseError as e:
        raise StorageError(f'Could not clean up old reminders: {e}') from e

    summary = {
        'timestamp': now.isoformat(),
        'processed': processed,
        'cleaned_up': cleaned_up,
    }
    logger.info(f'Reminder processing complete: {summary}')
    return summary


def _process_reminder(reminder, now, notifier, max_attempts):
    """Resolve one due reminder. Returns the summary bucket it falls into."""
    task = reminder.task

    if task is None or task.is_deleted or task.is_closed:
        outcome = 'cancelled'
        fields = {
            'status': Reminder.Status.CANCELLED,
            'last_attempt_at': now,
            'error_message': TASK_UNAVAILABLE,
        }
    elif reminder.user is None:
        outcome = 'failed'
        fields = {
            'status': Reminder.Status.FAILED,
            'attempts': reminder.attempts + 1,
            'last_attempt_at': now,
            'error_message': USER_NOT_FOUND,
        }
    else:
        attempts = reminder.attempts + 1
        try:
            notifier(task, reminder.user, reminder.kind)
        except Exception as e:
            outcome = 'failed'
            fields = {
                'status': Reminder.Status.FAILED if attempts >= max_attempts else Reminder.Status.PENDING,
                'attempts': attempts,
                'last_attempt_at': now,
                'error_message': str(e) or e.__class__.__name__,
            }
            logger.warning(
                f'Reminder {reminder.pk} delivery failed (attempt {attempts}/{max_attempts}): {e}'
            )
        else:
            outcome = 'sent'
            fields = {
                'status': Reminder.Status.SENT,
                'attempts': attempts,
                'last_attempt_at': now,
            }

    try:
        updated = Reminder.objects.transition(reminder, **fields)
    except DatabaseError:
        logger.exception(f'Could not record outcome of reminder {reminder.pk}')
        return 'errors'

    if not updated:
        logger.info(f'Reminder {reminder.pk} changed during processing, skipping')
        return 'skipped'
    return outcome


def send_daily_summary_emails(today=None):
    """
    Scheduled job to run daily at 8:00 AM.

    Sends each active user one digest of their open tasks due today.
    Users with nothing due today are skipped.

    Returns:
        {'sent': n, 'failed': m}
    """
    from .services import send_daily_task_summary

    today = today or timezone.localdate()

    tasks = (
        Task.objects.open()
        .filter(due_at__date=today, owner__is_active=True)
        .select_related('owner')
        .order_by('owner_id', 'due_at')
    )

    results = {'sent': 0, 'failed': 0}
    for owner, owner_tasks in groupby(tasks, key=attrgetter('owner')):
        try:
            if send_daily_task_summary(owner, owner_tasks, today):
                results['sent'] += 1
        except Exception:
            logger.exception(f'Daily summary for {owner.email} failed')
            results['failed'] += 1

    logger.info(f'Daily summaries: {results}')
    return results
