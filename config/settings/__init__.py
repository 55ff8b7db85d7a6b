"""
Settings package for task_reminders project.

By default, imports development settings.
For production, set DJANGO_SETTINGS_MODULE=config.settings.production
Tests run with config.settings.test (configured in pyproject.toml).
"""

# Default to development settings when importing from config.settings
from .development import *
