"""
Exceptions raised by the reminder queue.

"Nothing to schedule" outcomes (no due date, reminders disabled,
reminder time already passed) are not exceptions; see
``apps.notifications.scheduler.ScheduleResult``.
"""


class ReminderError(Exception):
    """Base class for reminder queue errors."""


class StorageError(ReminderError):
    """The reminder queue could not be read or written."""


class DeliveryError(ReminderError):
    """The notifier finished without delivering the reminder."""
