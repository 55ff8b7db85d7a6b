"""
Management command to set up Django-Q2 schedules for reminder jobs.

This command creates/updates the scheduled tasks required for:
- Reminder processing (every REMINDER_PROCESS_INTERVAL_MINUTES minutes)
- Daily task summary emails (8:00 AM)
- Purging tasks that have been in the trash too long (3:00 AM)

Usage:
    python manage.py setup_schedules

The command is idempotent - safe to run multiple times.
Existing schedules will be updated if their configuration changes.
"""
from django.conf import settings
from django.core.management.base import BaseCommand
from django_q.models import Schedule


class Command(BaseCommand):
    help = 'Set up Django-Q2 schedules for reminder jobs'

    def handle(self, *args, **options):
        interval = settings.REMINDER_PROCESS_INTERVAL_MINUTES
        schedules = [
            (
                'Process Task Reminders',
                {
                    'func': 'apps.notifications.tasks.process_reminders',
                    'schedule_type': Schedule.MINUTES,
                    'minutes': interval,
                    'repeats': -1,  # Run forever
                },
                f'every {interval} minutes',
            ),
            (
                'Daily Task Summary',
                {
                    'func': 'apps.notifications.tasks.send_daily_summary_emails',
                    'schedule_type': Schedule.CRON,
                    'cron': '0 8 * * *',  # 8:00 AM daily
                    'repeats': -1,
                },
                'daily at 8:00 AM',
            ),
            (
                'Purge Deleted Tasks',
                {
                    'func': 'apps.tasks.services.purge_deleted_tasks',
                    'schedule_type': Schedule.CRON,
                    'cron': '0 3 * * *',  # 3:00 AM daily
                    'repeats': -1,
                },
                'daily at 3:00 AM',
            ),
        ]

        self.stdout.write('\nSetting up Django-Q2 schedules...\n')

        schedules_created = 0
        schedules_updated = 0

        for name, defaults, description in schedules:
            _, created = Schedule.objects.update_or_create(name=name, defaults=defaults)
            if created:
                schedules_created += 1
                self.stdout.write(
                    self.style.SUCCESS(f'✓ Created schedule: {name} ({description})')
                )
            else:
                schedules_updated += 1
                self.stdout.write(
                    self.style.WARNING(f'↻ Updated schedule: {name} ({description})')
                )

        # Summary
        total = schedules_created + schedules_updated
        self.stdout.write('')

        if schedules_created > 0 and schedules_updated > 0:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Done! {schedules_created} schedule(s) created, '
                    f'{schedules_updated} schedule(s) updated. '
                    f'Total: {total} schedules configured.'
                )
            )
        elif schedules_created > 0:
            self.stdout.write(
                self.style.SUCCESS(f'Done! {schedules_created} schedules configured.')
            )
        else:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Done! All {total} schedules already exist and were updated.'
                )
            )

        self.stdout.write('')
        self.stdout.write(
            self.style.NOTICE(
                'Note: Ensure Django-Q cluster is running: python manage.py qcluster'
            )
        )
        self.stdout.write('')
