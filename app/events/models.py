"""
Event and Booking models.

An Event is the occasion drivers park for. A Booking is one renter's
paid reservation of one host's driveway space for an event. After the
event concludes the payout engine settles every unpaid booking.

Usage:
    from events.models import Booking, Event, EventPayoutStatus

    unpaid = Booking.objects.unpaid().filter(event=event)
    if event.payout_status == EventPayoutStatus.COMPLETE:
        ...
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.exceptions import ConflictError
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class EventPayoutStatus(models.TextChoices):
    """
    Settlement state of an event.

    PENDING: at least one booking is still unpaid (or nothing ran yet)
    COMPLETE: every booking for the event has been paid out
    """

    PENDING = "pending", "Pending"
    COMPLETE = "complete", "Complete"


class Event(UUIDPrimaryKeyMixin, BaseModel):
    """
    An event with parking demand.

    Fields:
        title: Display name
        starts_at / ends_at: When the event runs
        payout_status: Settlement state, written only by the reconciler
        payout_status_updated_at: When payout_status was last written

    Events are never deleted by the payout engine; bookings reference
    them with PROTECT.
    """

    title = models.CharField(
        max_length=255,
        help_text="Event display name",
    )

    starts_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the event starts",
    )

    ends_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="When the event ends (settlement may begin after this)",
    )

    payout_status = models.CharField(
        max_length=20,
        choices=EventPayoutStatus.choices,
        default=EventPayoutStatus.PENDING,
        db_index=True,
        help_text="Settlement state of the event's bookings",
    )

    payout_status_updated_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When payout_status was last reconciled",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Event"
        verbose_name_plural = "Events"

    def __str__(self) -> str:
        return f"{self.title} ({self.payout_status})"


class BookingQuerySet(models.QuerySet):
    """Query helpers used by the payout engine."""

    def unpaid(self):
        return self.filter(paid_out=False)

    def for_event(self, event_id):
        return self.filter(event_id=event_id)


class Booking(UUIDPrimaryKeyMixin, BaseModel):
    """
    A renter's reservation of a host's space for an event.

    Fields:
        event: The event this booking is for
        host: The homeowner who receives the payout
        renter: The driver who paid for the space
        total_price: Renter-facing gross amount in major currency units
        paid_out: Whether the host has been paid for this booking
        paid_out_at: When paid_out was set
        stripe_transfer_id: Processor transfer reference (tr_xxx), blank
            when the net payout was zero

    Invariant:
        paid_out only moves from False to True. save() refuses to persist
        the reverse transition; the payout engine writes the flag with a
        conditional UPDATE instead of save().
    """

    event = models.ForeignKey(
        Event,
        on_delete=models.PROTECT,
        related_name="bookings",
        help_text="Event this booking is for",
    )

    host = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="hosted_bookings",
        help_text="Host who receives the payout",
    )

    renter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="rented_bookings",
        help_text="Renter who paid for the space",
    )

    total_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Gross amount paid by the renter (major units, e.g. dollars)",
    )

    paid_out = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the host has been paid for this booking",
    )

    paid_out_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the booking was marked paid out",
    )

    stripe_transfer_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Stripe Transfer ID (tr_xxx)",
    )

    objects = BookingQuerySet.as_manager()

    class Meta:
        ordering = ["created_at"]
        verbose_name = "Booking"
        verbose_name_plural = "Bookings"
        indexes = [
            models.Index(fields=["event", "paid_out"]),
        ]

    def __str__(self) -> str:
        return f"Booking({self.id}, paid_out={self.paid_out})"

    def save(self, *args, **kwargs):
        """
        Save, refusing to flip paid_out from True back to False.

        Raises:
            ConflictError: If the stored row is paid out and this
                instance is not
        """
        if not self._state.adding and not self.paid_out:
            if type(self).objects.filter(pk=self.pk, paid_out=True).exists():
                raise ConflictError(
                    message="A paid-out booking cannot be marked unpaid",
                    error_code="PAID_OUT_IMMUTABLE",
                    details={"booking_id": str(self.pk)},
                )
        super().save(*args, **kwargs)
