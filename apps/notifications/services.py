"""
Service layer for notifications app.

Email delivery for task reminders and the daily task summary.
"""

import logging

from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.conf import settings

from .exceptions import DeliveryError
from .models import Reminder

logger = logging.getLogger(__name__)


REMINDER_MESSAGES = {
    Reminder.Kind.DUE_DATE.value: 'Your task "{title}" is due soon!',
    Reminder.Kind.OVERDUE.value: 'Your task "{title}" is overdue.',
}


def send_notification_email(to_email, subject, template_name, context, from_email=None):
    """
    Generic email sending function with HTML/text templates.

    Args:
        to_email: Recipient email address
        subject: Email subject
        template_name: Base template name (without extension)
        context: Template context dict
        from_email: Sender email (defaults to DEFAULT_FROM_EMAIL)

    Returns:
        Number of messages the backend accepted (0 or 1)
    """
    context = {'site_url': settings.SITE_URL, **context}
    text_body = render_to_string(f'{template_name}.txt', context)
    html_body = render_to_string(f'{template_name}.html', context)

    message = EmailMultiAlternatives(
        subject=subject,
        body=text_body,
        from_email=from_email or settings.DEFAULT_FROM_EMAIL,
        to=[to_email],
    )
    message.attach_alternative(html_body, 'text/html')
    return message.send()


def send_task_reminder(task, user, kind=Reminder.Kind.DUE_DATE):
    """
    Send a reminder email for one task.

    Raises:
        DeliveryError: If the backend did not accept the message
        Exception: Transport errors (SMTP, timeout) propagate unchanged
    """
    message = REMINDER_MESSAGES.get(str(kind), REMINDER_MESSAGES[Reminder.Kind.DUE_DATE.value])

    sent = send_notification_email(
        to_email=user.email,
        subject=f'📋 Task Reminder: {task.title}',
        template_name='notifications/emails/task_reminder',
        context={
            'task': task,
            'user': user,
            'kind': kind,
            'message': message.format(title=task.title),
        },
    )
    if not sent:
        raise DeliveryError(f'Reminder email for task {task.pk} was not accepted by the mail backend')

    logger.info(f'Sent {kind} reminder for task {task.pk} to {user.email}')


def send_daily_task_summary(user, tasks, today):
    """
    Send one digest email listing the tasks due today.

    Returns:
        True if an email was sent, False if there was nothing to send
    """
    tasks = list(tasks)
    if not tasks:
        return False

    sent = send_notification_email(
        to_email=user.email,
        subject=f'📅 Your tasks for {today:%A, %B} {today.day}',
        template_name='notifications/emails/daily_summary',
        context={
            'user': user,
            'tasks': tasks,
            'today': today,
        },
    )
    if not sent:
        raise DeliveryError(f'Daily summary for {user.email} was not accepted by the mail backend')

    logger.info(f'Sent daily summary with {len(tasks)} task(s) to {user.email}')
    return True
