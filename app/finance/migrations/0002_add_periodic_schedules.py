"""
Add celery-beat schedules for the ledger's daily jobs.

- advance_due_recurrences: daily at 00:05, materializes due recurrences
- refresh_overdue_statuses: daily at 00:15, rewrites cached overdue statuses

Both run in the project TIME_ZONE so "today" matches the ledger's
calendar dates.
"""

from django.conf import settings
from django.db import migrations

SCHEDULES = [
    {
        "name": "Advance Due Recurrences",
        "task": "finance.tasks.advance_due_recurrences",
        "minute": "5",
        "description": (
            "Scans active recurrences with an occurrence due and queues one "
            "advance task per recurrence."
        ),
    },
    {
        "name": "Refresh Overdue Transaction Statuses",
        "task": "finance.tasks.refresh_overdue_statuses",
        "minute": "15",
        "description": "Rewrites the cached status of open transactions past their due date.",
    },
]


def create_periodic_tasks(apps, schema_editor):
    """Create the daily crontab schedules and their periodic tasks."""
    CrontabSchedule = apps.get_model("django_celery_beat", "CrontabSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    for entry in SCHEDULES:
        schedule, _ = CrontabSchedule.objects.get_or_create(
            minute=entry["minute"],
            hour="0",
            day_of_week="*",
            day_of_month="*",
            month_of_year="*",
            timezone=settings.TIME_ZONE,
        )
        PeriodicTask.objects.get_or_create(
            name=entry["name"],
            defaults={
                "task": entry["task"],
                "crontab": schedule,
                "enabled": True,
                "description": entry["description"],
            },
        )


def remove_periodic_tasks(apps, schema_editor):
    """Remove the periodic tasks on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name__in=[entry["name"] for entry in SCHEDULES]).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("finance", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_tasks, remove_periodic_tasks),
    ]
