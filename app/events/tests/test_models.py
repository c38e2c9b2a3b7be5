"""
Tests for Event and Booking models.
"""

from decimal import Decimal

import pytest

from core.exceptions import ConflictError
from events.models import Booking, EventPayoutStatus
from events.tests.factories import BookingFactory, EventFactory


class TestEvent:
    def test_defaults_to_pending(self, db):
        event = EventFactory()

        assert event.payout_status == EventPayoutStatus.PENDING
        assert event.payout_status_updated_at is None

    def test_event_with_bookings_cannot_be_deleted(self, booking):
        from django.db.models import ProtectedError

        with pytest.raises(ProtectedError):
            booking.event.delete()


class TestBookingPaidOutInvariant:
    """paid_out may only move from False to True."""

    def test_can_mark_paid(self, booking):
        booking.paid_out = True
        booking.save()

        booking.refresh_from_db()
        assert booking.paid_out is True

    def test_refuses_to_unmark_paid(self, db):
        booking = BookingFactory(paid_out=True, stripe_transfer_id="tr_1")
        booking.paid_out = False

        with pytest.raises(ConflictError) as exc_info:
            booking.save()

        assert exc_info.value.error_code == "PAID_OUT_IMMUTABLE"
        booking.refresh_from_db()
        assert booking.paid_out is True

    def test_unpaid_booking_can_be_saved_again(self, booking):
        booking.total_price = Decimal("30.00")
        booking.save()

        booking.refresh_from_db()
        assert booking.total_price == Decimal("30.00")


class TestBookingQuerySet:
    def test_unpaid_for_event(self, event):
        unpaid = BookingFactory(event=event)
        BookingFactory(event=event, paid_out=True)
        BookingFactory()

        result = list(Booking.objects.for_event(event.id).unpaid())

        assert result == [unpaid]
