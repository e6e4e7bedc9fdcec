"""
Celery configuration for the ledger service.

Celery runs the ledger's background jobs:
- Daily scan that materializes due recurrences (finance.tasks)
- Daily refresh of cached overdue statuses

Redis is both the message broker and result backend. Periodic schedules
are stored in the database by django-celery-beat (DatabaseScheduler) and
seeded by a finance data migration.

Usage:
    celery -A config worker -l info
    celery -A config beat -l info

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Picks up finance.tasks
app.autodiscover_tasks()
