"""
Fixtures for events tests.
"""

import pytest

from events.tests.factories import BookingFactory, EventFactory


@pytest.fixture
def event(db):
    """An unsettled event that has already ended."""
    return EventFactory()


@pytest.fixture
def booking(event):
    """An unpaid booking for the event."""
    return BookingFactory(event=event)
