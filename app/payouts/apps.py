"""
Payouts app configuration.

This app settles concluded events: it computes each host's share of
every unpaid booking, transfers it to the host's Stripe connected
account, and records the outcome.
"""

from django.apps import AppConfig


class PayoutsConfig(AppConfig):
    """Configuration for the payouts application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payouts"
    verbose_name = "Payouts"
