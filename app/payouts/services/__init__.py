"""
Payout services.

- PayoutDispatcher: Settles every unpaid booking of an event
- EventPayoutReconciler: Derives an event's payout status from its bookings
- HostAccountService: Host onboarding and dashboard links

Usage:
    from payouts.services import PayoutDispatcher

    result = PayoutDispatcher.dispatch(event_id, caller)
"""

from payouts.services.dispatcher import (
    BookingOutcome,
    DispatchResult,
    PayoutDispatcher,
    group_by_host,
)
from payouts.services.host_accounts import HostAccountService
from payouts.services.reconciler import EventPayoutReconciler

__all__ = [
    "BookingOutcome",
    "DispatchResult",
    "EventPayoutReconciler",
    "HostAccountService",
    "PayoutDispatcher",
    "group_by_host",
]
