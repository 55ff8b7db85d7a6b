"""
Django test settings for task_reminders project.

Used by pytest-django (see pyproject.toml).
"""

from .base import *

DEBUG = False

ALLOWED_HOSTS = ['testserver', 'localhost']

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

# Fast hashing for test users
PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

TIME_ZONE = 'UTC'

CRON_SECRET = 'test-cron-secret'

REMINDER_BATCH_SIZE = 100
REMINDER_MAX_ATTEMPTS = 3
REMINDER_RETENTION_DAYS = 30
REMINDER_OVERDUE_ENABLED = False

# Scheduled functions run inline instead of through a cluster
Q_CLUSTER = {
    'name': 'task_reminders_test',
    'sync': True,
    'orm': 'default',
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'null': {
            'class': 'logging.NullHandler',
        },
    },
    'root': {
        'handlers': ['null'],
        'level': 'WARNING',
    },
}
