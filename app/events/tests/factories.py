"""
Factory Boy factories for events models.

Usage:
    from events.tests.factories import BookingFactory, EventFactory

    event = EventFactory()
    booking = BookingFactory(event=event, total_price=Decimal("40.00"))
"""

from datetime import timedelta
from decimal import Decimal

import factory
from django.utils import timezone

from authentication.tests.factories import UserFactory
from events.models import Booking, Event, EventPayoutStatus


class EventFactory(factory.django.DjangoModelFactory):
    """
    Factory for Event.

    Defaults to an event that ended a day ago and has not been settled.
    """

    class Meta:
        model = Event

    title = factory.Sequence(lambda n: f"Stadium Game {n}")
    starts_at = factory.LazyFunction(lambda: timezone.now() - timedelta(days=1, hours=3))
    ends_at = factory.LazyFunction(lambda: timezone.now() - timedelta(days=1))
    payout_status = EventPayoutStatus.PENDING


class BookingFactory(factory.django.DjangoModelFactory):
    """
    Factory for Booking.

    Examples:
        # Unpaid $25 booking
        booking = BookingFactory(total_price=Decimal("25.00"))

        # Booking that was already settled
        booking = BookingFactory(paid_out=True, stripe_transfer_id="tr_123")
    """

    class Meta:
        model = Booking

    event = factory.SubFactory(EventFactory)
    host = factory.SubFactory(UserFactory)
    renter = factory.SubFactory(UserFactory)
    total_price = Decimal("25.00")
    paid_out = False
