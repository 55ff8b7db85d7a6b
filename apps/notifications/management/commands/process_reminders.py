"""
Management command to run one reminder processing pass.

For deployments driven by system cron instead of the Django-Q cluster:

    */5 * * * * python manage.py process_reminders

Exits with a non-zero status if the reminder queue is unavailable.
"""
from django.core.management.base import BaseCommand, CommandError

from apps.notifications.exceptions import StorageError
from apps.notifications.tasks import process_reminders


class Command(BaseCommand):
    help = 'Deliver due task reminders and purge old ones'

    def add_arguments(self, parser):
        parser.add_argument(
            '--limit',
            type=int,
            default=None,
            help='Maximum number of reminders to process (default: REMINDER_BATCH_SIZE)',
        )

    def handle(self, *args, **options):
        limit = options['limit']
        if limit is not None and limit < 1:
            raise CommandError('--limit must be a positive integer')

        try:
            summary = process_reminders(limit=limit)
        except StorageError as e:
            raise CommandError(f'Reminder processing failed: {e}') from e

        processed = summary['processed']
        self.stdout.write(
            self.style.SUCCESS(
                f"Done! {processed['sent']} sent, {processed['failed']} failed, "
                f"{processed['cancelled']} cancelled, {processed['skipped']} skipped, "
                f"{processed['errors']} error(s). "
                f"{summary['cleaned_up']} old reminder(s) cleaned up."
            )
        )
