"""
URL configuration for notifications app.
"""

from django.urls import path
from . import views

app_name = 'notifications'

urlpatterns = [
    path('cron/process-reminders/', views.process_reminders_view, name='process_reminders'),
]
