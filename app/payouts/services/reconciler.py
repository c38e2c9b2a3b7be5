"""
Event payout status reconciliation.

An event's payout status is derived, never tracked incrementally: it is
COMPLETE exactly when none of its bookings is still unpaid. The count is
read from the database on every call, so reconciling is safe to repeat
and converges after an interrupted pass.

Usage:
    from payouts.services import EventPayoutReconciler

    status = EventPayoutReconciler.reconcile(event.id)
"""

from __future__ import annotations

import uuid

from django.utils import timezone

from core.services import BaseService
from events.models import Booking, Event, EventPayoutStatus


class EventPayoutReconciler(BaseService):
    """
    Re-derives Event.payout_status from current booking state.

    This is the only writer of Event.payout_status.
    """

    @classmethod
    def outstanding(cls, event_id: uuid.UUID) -> int:
        """Number of the event's bookings that are still unpaid."""
        return Booking.objects.for_event(event_id).unpaid().count()

    @classmethod
    def reconcile(cls, event_id: uuid.UUID) -> str:
        """
        Write and return the event's payout status.

        Returns:
            EventPayoutStatus.COMPLETE if no booking is unpaid,
            otherwise EventPayoutStatus.PENDING

        Raises:
            Exception: Any database error, after logging it at CRITICAL
        """
        logger = cls.get_logger()

        try:
            remaining = cls.outstanding(event_id)
            status = (
                EventPayoutStatus.COMPLETE if remaining == 0 else EventPayoutStatus.PENDING
            )
            now = timezone.now()
            Event.objects.filter(pk=event_id).update(
                payout_status=status,
                payout_status_updated_at=now,
                updated_at=now,
            )
        except Exception:
            logger.critical(
                "Failed to reconcile event payout status",
                extra={"event_id": str(event_id)},
                exc_info=True,
            )
            raise

        logger.info(
            "Event payout status reconciled",
            extra={
                "event_id": str(event_id),
                "payout_status": str(status),
                "unpaid_bookings": remaining,
            },
        )
        return status
