"""
PayoutAttempt model: durable per-booking outcome of each dispatch pass.

Rows are append-only. One row is written straight after each booking is
handled, so an interrupted pass still leaves a record of everything it
did. The count of FAILED rows for a booking also drives the generation
number in its next idempotency key.

Usage:
    from payouts.models import PayoutAttempt

    history = PayoutAttempt.objects.filter(booking=booking)
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payouts.constants import PayoutOutcome


class PayoutAttemptQuerySet(models.QuerySet):
    def for_booking(self, booking_id):
        return self.filter(booking_id=booking_id)

    def definitive_failures(self):
        return self.filter(outcome=PayoutOutcome.FAILED)


class PayoutAttempt(UUIDPrimaryKeyMixin, BaseModel):
    """
    One booking's outcome in one dispatch pass.

    Fields:
        booking / event / host: What was being settled and for whom
        outcome: See PayoutOutcome
        gross_amount_cents / platform_fee_cents / net_amount_cents: The fee
            split (null when the booking was skipped before computing it)
        currency: Settlement currency
        idempotency_key: Key sent to Stripe (empty if no call was made)
        transfer_group: Stripe transfer group (event_<event_id>)
        stripe_transfer_id: Transfer ID when a transfer was made
        error_code / error_message: Failure details
    """

    booking = models.ForeignKey(
        "events.Booking",
        on_delete=models.PROTECT,
        related_name="payout_attempts",
        help_text="Booking being settled",
    )

    event = models.ForeignKey(
        "events.Event",
        on_delete=models.PROTECT,
        related_name="payout_attempts",
        help_text="Event the booking belongs to",
    )

    host = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payout_attempts",
        help_text="Host being paid",
    )

    outcome = models.CharField(
        max_length=20,
        choices=PayoutOutcome.choices,
        db_index=True,
        help_text="Result of this attempt",
    )

    gross_amount_cents = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Booking total in cents",
    )

    platform_fee_cents = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Platform fee withheld in cents",
    )

    net_amount_cents = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Amount transferred to the host in cents",
    )

    currency = models.CharField(
        max_length=3,
        default="usd",
        help_text="ISO 4217 currency code (lowercase)",
    )

    idempotency_key = models.CharField(
        max_length=255,
        blank=True,
        default="",
        db_index=True,
        help_text="Idempotency key sent with the transfer",
    )

    transfer_group = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Stripe transfer group",
    )

    stripe_transfer_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Stripe Transfer ID (tr_xxx)",
    )

    error_code = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Machine-readable failure code",
    )

    error_message = models.TextField(
        blank=True,
        default="",
        help_text="Failure description",
    )

    objects = PayoutAttemptQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payout Attempt"
        verbose_name_plural = "Payout Attempts"
        indexes = [
            models.Index(fields=["booking", "outcome"]),
        ]

    def __str__(self) -> str:
        return f"PayoutAttempt({self.booking_id}, {self.outcome})"
