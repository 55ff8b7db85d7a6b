from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tasks', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Reminder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('due_date', 'Due date'), ('overdue', 'Overdue')], default='due_date', max_length=10)),
                ('scheduled_for', models.DateTimeField(help_text='When the reminder becomes eligible for delivery')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('sent', 'Sent'), ('failed', 'Failed'), ('cancelled', 'Cancelled')], default='pending', max_length=10)),
                ('attempts', models.PositiveIntegerField(default=0, help_text='Delivery attempts made so far')),
                ('last_attempt_at', models.DateTimeField(blank=True, null=True)),
                ('error_message', models.TextField(blank=True, help_text='Reason for the last failure or cancellation')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('task', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reminders', to='tasks.task')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reminders', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'reminder',
                'verbose_name_plural': 'reminders',
                'ordering': ['scheduled_for'],
                'indexes': [
                    models.Index(fields=['status', 'scheduled_for'], name='notificatio_status_290ade_idx'),
                    models.Index(fields=['task'], name='notificatio_task_id_f2fb67_idx'),
                    models.Index(fields=['user', 'status'], name='notificatio_user_id_4e47fa_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('status', 'pending')), fields=('task', 'kind'), name='unique_pending_reminder_per_task_kind'),
                ],
            },
        ),
    ]
