"""
Views for notifications app.

Exposes the reminder processing pass to external schedulers (hosting
platform cron, uptime pingers) that cannot run ``manage.py``.
"""

import hmac
import logging

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from .exceptions import ReminderError
from .tasks import process_reminders

logger = logging.getLogger(__name__)


def _has_valid_cron_token(request):
    """Check the ``Authorization: Bearer <CRON_SECRET>`` header."""
    secret = settings.CRON_SECRET
    if not secret:
        return False

    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme != 'Bearer' or not token:
        return False
    return hmac.compare_digest(token.strip(), secret)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def process_reminders_view(request):
    """
    Run one reminder processing pass.

    Returns the pass summary as JSON, 401 without a valid cron token,
    and 500 when the pass could not complete.
    """
    if not _has_valid_cron_token(request):
        logger.warning('Rejected reminder processing request with invalid cron token')
        return JsonResponse({'success': False, 'error': 'Unauthorized'}, status=401)

    try:
        summary = process_reminders()
    except ReminderError as e:
        logger.error(f'Reminder processing pass failed: {e}')
        return JsonResponse({'success': False, 'error': str(e)}, status=500)

    return JsonResponse({'success': True, **summary})
