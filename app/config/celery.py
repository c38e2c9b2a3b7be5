"""
Celery configuration for the Django application.

Celery runs the settlement passes off the request path:
- initiate_event_payouts: one pass for one event (queued per event)
- settle_concluded_events: periodic sweep that queues the above for
  events whose grace period has passed (scheduled by django-celery-beat)

This configuration uses Redis as both the message broker and result backend.
Tasks are auto-discovered from all installed Django apps.

Usage:
    from payouts.tasks import initiate_event_payouts

    initiate_event_payouts.delay(str(event.id), caller_email=request.user.email)

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Create Celery application instance
# The name should match the Django project name
app = Celery("config")

# Load configuration from Django settings
# All Celery settings should be prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks from all registered Django apps
# Celery will look for a tasks.py module in each installed app
app.autodiscover_tasks()
