"""
Payout enumerations.
"""

from django.db import models


class PayoutOutcome(models.TextChoices):
    """
    Result of one booking within one dispatch pass.

    PAID: Transfer made (or net was zero) and the booking marked paid
    SKIPPED: Host has no connected payout account; nothing attempted
    FAILED: Stripe definitively rejected the transfer
    UNKNOWN: Transfer outcome unknown (timeout, outage, lock contention);
        the next pass retries with the same idempotency key
    ALREADY_PAID: Another pass marked the booking paid first
    UNRECORDED: Transfer made but the booking could not be marked paid;
        needs manual reconciliation
    """

    PAID = "paid", "Paid"
    SKIPPED = "skipped", "Skipped"
    FAILED = "failed", "Failed"
    UNKNOWN = "unknown", "Unknown"
    ALREADY_PAID = "already_paid", "Already paid"
    UNRECORDED = "unrecorded", "Unrecorded"


# Operation name used in payout idempotency keys
EVENT_PAYOUT_OPERATION = "event_payout"
