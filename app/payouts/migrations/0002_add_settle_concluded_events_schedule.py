"""
Add celery-beat schedule for settling concluded events.

Runs settle_concluded_events every 30 minutes. The task itself waits
PAYOUT_SETTLEMENT_GRACE_HOURS after an event ends before settling it.
"""

from django.db import migrations

TASK_NAME = "Settle Concluded Events"


def create_periodic_task(apps, schema_editor):
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=30,
        period="minutes",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "payouts.tasks.settle_concluded_events",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Queues a payout pass for every event that ended more than the "
                "settlement grace period ago and is not fully paid out."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payouts", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
