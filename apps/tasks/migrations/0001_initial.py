from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Task',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('in_progress', 'In Progress'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], db_index=True, default='pending', max_length=15)),
                ('priority', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High')], default='medium', max_length=10)),
                ('due_at', models.DateTimeField(blank=True, db_index=True, help_text='Date and time when the task is due', null=True)),
                ('reminder_enabled', models.BooleanField(default=False)),
                ('reminder_lead_time', models.CharField(blank=True, choices=[('30min', '30 minutes before'), ('1hour', '1 hour before'), ('1day', '1 day before'), ('1week', '1 week before')], default='', max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, help_text='Set when the task is moved to the trash', null=True)),
                ('owner', models.ForeignKey(help_text='User who owns this task and receives its reminders', on_delete=django.db.models.deletion.CASCADE, related_name='tasks', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'task',
                'verbose_name_plural': 'tasks',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['owner', 'status'], name='tasks_task_owner_i_9240ec_idx'),
                    models.Index(fields=['due_at', 'status'], name='tasks_task_due_at_848d69_idx'),
                ],
            },
        ),
    ]
