"""
Django base settings for task_reminders project.
Shared settings between development, production and test.

Reminder settings control the queue worker cadence, batch size,
retry ceiling and retention window.
"""

from pathlib import Path
from decouple import config, Csv

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = config('SECRET_KEY', default='django-insecure-change-me-in-production')

# Application definition
DJANGO_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
]

THIRD_PARTY_APPS = [
    'django_q',
]

LOCAL_APPS = [
    'apps.accounts',
    'apps.tasks',
    'apps.notifications',
]

INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'


# =============================================================================
# AUTHENTICATION - Custom User Model
# =============================================================================
# Must be set BEFORE first migration
AUTH_USER_MODEL = 'accounts.User'

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

# Password hashing - use Argon2 as primary
PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.Argon2PasswordHasher',
    'django.contrib.auth.hashers.PBKDF2PasswordHasher',
    'django.contrib.auth.hashers.PBKDF2SHA1PasswordHasher',
]


# =============================================================================
# INTERNATIONALIZATION & TIMEZONE
# =============================================================================
LANGUAGE_CODE = 'en-us'

# Calendar-aware reminder offsets ("1 day before") are computed in this zone
TIME_ZONE = config('TIME_ZONE', default='UTC')

USE_I18N = True

USE_TZ = True

DATETIME_FORMAT = 'j M Y, g:i A'


# =============================================================================
# STATIC FILES
# =============================================================================
STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'


# =============================================================================
# EMAIL SETTINGS
# =============================================================================
EMAIL_BACKEND = config(
    'EMAIL_BACKEND',
    default='django.core.mail.backends.console.EmailBackend'
)
EMAIL_HOST = config('EMAIL_HOST', default='localhost')
EMAIL_PORT = config('EMAIL_PORT', default=587, cast=int)
EMAIL_USE_TLS = config('EMAIL_USE_TLS', default=True, cast=bool)
EMAIL_HOST_USER = config('EMAIL_HOST_USER', default='')
EMAIL_HOST_PASSWORD = config('EMAIL_HOST_PASSWORD', default='')

# Upper bound (seconds) on a single reminder delivery attempt
EMAIL_TIMEOUT = config('EMAIL_TIMEOUT', default=10, cast=int)

DEFAULT_FROM_EMAIL = config('DEFAULT_FROM_EMAIL', default='Listed <noreply@listed.app>')

# Site URL for email links
SITE_URL = config('SITE_URL', default='http://localhost:8000')


# =============================================================================
# REMINDER QUEUE SETTINGS
# =============================================================================
# Maximum number of due reminders handled by one processing pass
REMINDER_BATCH_SIZE = config('REMINDER_BATCH_SIZE', default=100, cast=int)

# Delivery attempts before a reminder is marked failed for good
REMINDER_MAX_ATTEMPTS = config('REMINDER_MAX_ATTEMPTS', default=3, cast=int)

# Terminal reminders older than this are deleted by the processing pass
REMINDER_RETENTION_DAYS = config('REMINDER_RETENTION_DAYS', default=30, cast=int)

# Cadence of the "Process Task Reminders" schedule; retries happen once per pass
REMINDER_PROCESS_INTERVAL_MINUTES = config('REMINDER_PROCESS_INTERVAL_MINUTES', default=5, cast=int)

# Overdue reminders fire this long after the due date (disabled by default)
REMINDER_OVERDUE_ENABLED = config('REMINDER_OVERDUE_ENABLED', default=False, cast=bool)
REMINDER_OVERDUE_DELAY_MINUTES = config('REMINDER_OVERDUE_DELAY_MINUTES', default=60, cast=int)

# Soft-deleted tasks are purged after this many days
DELETED_TASK_RETENTION_DAYS = config('DELETED_TASK_RETENTION_DAYS', default=15, cast=int)

# Bearer token required by the cron trigger endpoint. Empty disables the endpoint.
CRON_SECRET = config('CRON_SECRET', default='')


# =============================================================================
# DJANGO-Q2 SETTINGS (Background Tasks)
# =============================================================================
Q_CLUSTER = {
    'name': 'task_reminders',
    'workers': 2,
    'recycle': 500,
    'timeout': 120,
    'retry': 180,
    'compress': True,
    'save_limit': 250,
    'queue_limit': 500,
    'cpu_affinity': 1,
    'label': 'Django Q2',
    'orm': 'default',
}


# =============================================================================
# DEFAULT PRIMARY KEY FIELD TYPE
# =============================================================================
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
