"""
Reminder queue maintenance: schedule, cancel, reschedule.

Run with:
    pytest tests/test_reminder_scheduler.py
"""

from datetime import datetime, timedelta, timezone as dt_timezone
from unittest import mock

from django.db import DatabaseError, IntegrityError, transaction
from django.test import TestCase, override_settings

from apps.accounts.models import User
from apps.notifications import scheduler
from apps.notifications.exceptions import StorageError
from apps.notifications.models import Reminder
from apps.tasks.models import Task

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=dt_timezone.utc)
DUE = datetime(2024, 3, 15, 14, 0, tzinfo=dt_timezone.utc)


class SchedulerTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(email='owner@example.com', password='x')

    def make_task(self, **fields):
        fields.setdefault('title', 'Write report')
        fields.setdefault('owner', self.user)
        fields.setdefault('due_at', DUE)
        fields.setdefault('reminder_enabled', True)
        fields.setdefault('reminder_lead_time', Task.ReminderLeadTime.ONE_DAY)
        return Task.objects.create(**fields)


# =============================================================================
# schedule_reminder
# =============================================================================

class ScheduleReminderTests(SchedulerTestCase):

    def test_schedules_pending_reminder(self):
        task = self.make_task()

        result = scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        self.assertTrue(result.scheduled)
        reminder = Reminder.objects.get()
        self.assertEqual(result.reminder, reminder)
        self.assertEqual(reminder.task, task)
        self.assertEqual(reminder.user, self.user)
        self.assertEqual(reminder.kind, Reminder.Kind.DUE_DATE)
        self.assertEqual(reminder.status, Reminder.Status.PENDING)
        self.assertEqual(reminder.attempts, 0)
        self.assertEqual(reminder.scheduled_for, datetime(2024, 3, 14, 14, 0, tzinfo=dt_timezone.utc))

    def test_scheduling_twice_keeps_one_pending_reminder(self):
        task = self.make_task()

        scheduler.schedule_reminder(task, self.user.pk, now=NOW)
        scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        self.assertEqual(Reminder.objects.pending().for_task(task.pk).count(), 1)

    def test_replaces_pending_reminder_with_new_time(self):
        task = self.make_task()
        scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        task.reminder_lead_time = Task.ReminderLeadTime.ONE_HOUR
        scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        reminder = Reminder.objects.pending().get(task=task)
        self.assertEqual(reminder.scheduled_for, DUE - timedelta(hours=1))

    def test_reminders_disabled(self):
        task = self.make_task(reminder_enabled=False)

        result = scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        self.assertFalse(result.scheduled)
        self.assertEqual(result.reason, scheduler.REMINDERS_DISABLED)
        self.assertFalse(Reminder.objects.exists())

    def test_no_due_date(self):
        task = self.make_task(due_at=None)

        result = scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        self.assertFalse(result.scheduled)
        self.assertEqual(result.reason, scheduler.NO_DUE_DATE)
        self.assertFalse(Reminder.objects.exists())

    def test_reminder_time_passed(self):
        task = self.make_task(due_at=NOW + timedelta(hours=5))

        result = scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        self.assertFalse(result.scheduled)
        self.assertEqual(result.reason, scheduler.TIME_PASSED)
        self.assertFalse(Reminder.objects.exists())

    def test_closed_task(self):
        task = self.make_task(status=Task.Status.COMPLETED)

        result = scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        self.assertFalse(result.scheduled)
        self.assertEqual(result.reason, scheduler.TASK_CLOSED)

    def test_disabling_removes_existing_pending_reminder(self):
        task = self.make_task()
        scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        task.reminder_enabled = False
        scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        self.assertFalse(Reminder.objects.pending().exists())

    @override_settings(REMINDER_OVERDUE_ENABLED=True)
    def test_overdue_reminder_scheduled_when_enabled(self):
        task = self.make_task()

        scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        kinds = dict(Reminder.objects.pending().values_list('kind', 'scheduled_for'))
        self.assertEqual(kinds, {
            'due_date': DUE - timedelta(days=1),
            'overdue': DUE + timedelta(hours=1),
        })

    @override_settings(REMINDER_OVERDUE_ENABLED=True)
    def test_overdue_reminder_not_scheduled_when_reminders_disabled(self):
        task = self.make_task(reminder_enabled=False)

        result = scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        self.assertFalse(result.scheduled)
        self.assertEqual(result.reason, scheduler.REMINDERS_DISABLED)
        self.assertFalse(Reminder.objects.pending().exists())

    @override_settings(REMINDER_OVERDUE_ENABLED=True)
    def test_disabling_with_overdue_enabled_removes_all_pending(self):
        task = self.make_task()
        scheduler.schedule_reminder(task, self.user.pk, now=NOW)
        self.assertEqual(Reminder.objects.pending().count(), 2)

        task.reminder_enabled = False
        scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        self.assertFalse(Reminder.objects.pending().exists())

    def test_concurrent_insert_reported_as_already_scheduled(self):
        task = self.make_task()
        # Row committed by a concurrent request; survives the rolled-back savepoint
        Reminder.objects.create(task=task, user=self.user, scheduled_for=NOW + timedelta(days=1))

        with mock.patch.object(Reminder.objects, 'create', side_effect=IntegrityError('duplicate')):
            result = scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        self.assertFalse(result.scheduled)
        self.assertEqual(result.reason, scheduler.ALREADY_SCHEDULED)

    def test_other_integrity_errors_raise_storage_error(self):
        task = self.make_task()

        with mock.patch.object(
            Reminder.objects, 'create', side_effect=IntegrityError('FOREIGN KEY constraint failed'),
        ):
            with self.assertRaises(StorageError):
                scheduler.schedule_reminder(task, self.user.pk, now=NOW)

    def test_overdue_integrity_error_without_pending_row(self):
        task = self.make_task()

        with mock.patch.object(
            Reminder.objects, 'create', side_effect=IntegrityError('FOREIGN KEY constraint failed'),
        ):
            with self.assertRaises(StorageError):
                scheduler.schedule_overdue_reminder(task, self.user.pk, now=NOW)

    def test_storage_failure_raises_storage_error(self):
        task = self.make_task()

        with mock.patch.object(Reminder.objects, 'pending', side_effect=DatabaseError('db down')):
            with self.assertRaises(StorageError):
                scheduler.schedule_reminder(task, self.user.pk, now=NOW)


# =============================================================================
# schedule_overdue_reminder
# =============================================================================

class ScheduleOverdueReminderTests(SchedulerTestCase):

    def test_schedules_after_due_date(self):
        task = self.make_task()

        result = scheduler.schedule_overdue_reminder(task, self.user.pk, now=NOW)

        self.assertTrue(result.scheduled)
        self.assertEqual(result.reminder.kind, Reminder.Kind.OVERDUE)
        self.assertEqual(result.reminder.scheduled_for, DUE + timedelta(hours=1))

    def test_keeps_due_date_reminder(self):
        task = self.make_task()
        scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        scheduler.schedule_overdue_reminder(task, self.user.pk, now=NOW)
        scheduler.schedule_overdue_reminder(task, self.user.pk, now=NOW)

        self.assertEqual(
            sorted(Reminder.objects.pending().values_list('kind', flat=True)),
            [Reminder.Kind.DUE_DATE, Reminder.Kind.OVERDUE],
        )

    def test_ignores_reminder_setting(self):
        task = self.make_task(reminder_enabled=False)

        result = scheduler.schedule_overdue_reminder(task, self.user.pk, now=NOW)

        self.assertTrue(result.scheduled)


# =============================================================================
# cancel_reminders / reschedule_reminders
# =============================================================================

class CancelReminderTests(SchedulerTestCase):

    def test_cancels_pending_reminders_only(self):
        task = self.make_task()
        scheduler.schedule_reminder(task, self.user.pk, now=NOW)
        sent = Reminder.objects.create(
            task=task, user=self.user, scheduled_for=NOW - timedelta(days=1),
            status=Reminder.Status.SENT, attempts=1, last_attempt_at=NOW,
        )

        cancelled = scheduler.cancel_reminders(task.pk, now=NOW)

        self.assertEqual(cancelled, 1)
        self.assertFalse(Reminder.objects.pending().exists())
        sent.refresh_from_db()
        self.assertEqual(sent.status, Reminder.Status.SENT)

    def test_cancel_stamps_last_attempt(self):
        task = self.make_task()
        scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        scheduler.cancel_reminders(task.pk, now=NOW)

        reminder = Reminder.objects.get()
        self.assertEqual(reminder.status, Reminder.Status.CANCELLED)
        self.assertEqual(reminder.last_attempt_at, NOW)

    def test_nothing_to_cancel(self):
        task = self.make_task()
        self.assertEqual(scheduler.cancel_reminders(task.pk, now=NOW), 0)

    def test_storage_failure(self):
        with mock.patch.object(Reminder.objects, 'pending', side_effect=DatabaseError('db down')):
            with self.assertRaises(StorageError):
                scheduler.cancel_reminders(1, now=NOW)


class RescheduleReminderTests(SchedulerTestCase):

    def test_old_reminder_cancelled_and_new_one_pending(self):
        task = self.make_task()
        scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        task.due_at = DUE + timedelta(days=2)
        result = scheduler.reschedule_reminders(task, self.user.pk, now=NOW)

        self.assertTrue(result.scheduled)
        self.assertEqual(Reminder.objects.filter(status=Reminder.Status.CANCELLED).count(), 1)
        pending = Reminder.objects.pending().get()
        self.assertEqual(pending.scheduled_for, DUE + timedelta(days=1))

    def test_reschedule_without_due_date_only_cancels(self):
        task = self.make_task()
        scheduler.schedule_reminder(task, self.user.pk, now=NOW)

        task.due_at = None
        result = scheduler.reschedule_reminders(task, self.user.pk, now=NOW)

        self.assertFalse(result.scheduled)
        self.assertFalse(Reminder.objects.pending().exists())


# =============================================================================
# Queue invariants
# =============================================================================

class ReminderQueueTests(SchedulerTestCase):

    def test_one_pending_reminder_per_task_and_kind(self):
        task = self.make_task()
        Reminder.objects.create(task=task, user=self.user, scheduled_for=NOW)

        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Reminder.objects.create(task=task, user=self.user, scheduled_for=NOW)

    def test_terminal_reminders_do_not_block_new_ones(self):
        task = self.make_task()
        Reminder.objects.create(
            task=task, user=self.user, scheduled_for=NOW, status=Reminder.Status.SENT,
        )
        Reminder.objects.create(task=task, user=self.user, scheduled_for=NOW)

        self.assertEqual(Reminder.objects.for_task(task.pk).count(), 2)

    def test_find_due_orders_oldest_first_and_limits(self):
        reminders = [
            Reminder.objects.create(
                task=self.make_task(), user=self.user,
                scheduled_for=NOW - timedelta(minutes=minutes),
            )
            for minutes in (5, 30, 10)
        ]
        Reminder.objects.create(
            task=self.make_task(), user=self.user, scheduled_for=NOW + timedelta(minutes=1),
        )

        due = Reminder.objects.find_due(NOW, limit=2)

        self.assertEqual(due, [reminders[1], reminders[2]])

    def test_transition_rejects_stale_reminder(self):
        reminder = Reminder.objects.create(task=self.make_task(), user=self.user, scheduled_for=NOW)
        stale = Reminder.objects.get(pk=reminder.pk)

        self.assertTrue(Reminder.objects.transition(reminder, status=Reminder.Status.CANCELLED))
        self.assertFalse(Reminder.objects.transition(stale, status=Reminder.Status.SENT))

        reminder.refresh_from_db()
        self.assertEqual(reminder.status, Reminder.Status.CANCELLED)
