"""
Pytest fixtures for payout tests.

Redis and Stripe never see real traffic here:
- mock_redis_lock (autouse) patches the lock module's Redis connection
- stripe_adapter injects a MagicMock adapter into PayoutDispatcher whose
  create_transfer returns a fresh TransferResult per call

Usage:
    def test_pays_booking(payable_booking, operator, stripe_adapter):
        result = PayoutDispatcher.dispatch(payable_booking.event_id, operator)
        assert result.payouts_issued == 1
"""

import itertools

import pytest

from events.tests.factories import BookingFactory, EventFactory
from payouts.adapters import TransferResult
from payouts.authorization import CallerIdentity
from payouts.services import PayoutDispatcher
from payouts.tests.factories import (
    OPERATOR_EMAIL,
    OPERATOR_ROLE,
    SCHEDULER_EMAIL,
    HostAccountFactory,
)


# =============================================================================
# Settings and Infrastructure
# =============================================================================


@pytest.fixture(autouse=True)
def payout_settings(settings):
    """Deterministic payout configuration for every test."""
    settings.PAYOUT_OPERATOR_EMAILS = [OPERATOR_EMAIL, SCHEDULER_EMAIL]
    settings.PAYOUT_OPERATOR_ROLE = OPERATOR_ROLE
    settings.PAYOUT_SCHEDULER_EMAIL = SCHEDULER_EMAIL
    settings.PLATFORM_FEE_PERCENT = 15
    settings.PAYOUT_CURRENCY = "usd"
    settings.PAYOUT_DISPATCH_MAX_WORKERS = 1
    settings.PAYOUT_HOST_LOCK_TIMEOUT_SECONDS = 0
    return settings


@pytest.fixture(autouse=True)
def mock_redis_lock(mocker):
    """
    Mock Redis for distributed locking.

    Every SET NX succeeds and every Lua release reports the key deleted.
    """
    mock_redis = mocker.MagicMock()
    mock_redis.set.return_value = True
    mock_redis.get.return_value = None
    mock_redis.delete.return_value = 1
    mock_redis.eval.return_value = 1

    mocker.patch("payouts.locks.get_redis_connection", return_value=mock_redis)
    return mock_redis


@pytest.fixture
def stripe_adapter(mocker):
    """Fake Stripe adapter injected into the dispatcher."""
    transfer_numbers = itertools.count(1)

    def create_transfer(**kwargs):
        return TransferResult(
            id=f"tr_test_{next(transfer_numbers)}",
            amount_cents=kwargs["amount_cents"],
            currency=kwargs.get("currency", "usd"),
            destination_account=kwargs["destination_account"],
            transfer_group=kwargs.get("transfer_group"),
            metadata=kwargs.get("metadata") or {},
        )

    adapter = mocker.MagicMock()
    adapter.create_transfer.side_effect = create_transfer

    PayoutDispatcher.set_stripe_adapter(adapter)
    yield adapter
    PayoutDispatcher.set_stripe_adapter(None)


# =============================================================================
# Callers
# =============================================================================


@pytest.fixture
def operator():
    """Identity on the operator allow-list."""
    return CallerIdentity.from_email(OPERATOR_EMAIL)


@pytest.fixture
def outsider():
    """Authenticated identity that is not an operator."""
    return CallerIdentity.from_email("renter@example.com")


# =============================================================================
# Events and Bookings
# =============================================================================


@pytest.fixture
def event(db):
    """A concluded event awaiting settlement."""
    return EventFactory()


@pytest.fixture
def host_account(db):
    """Host with a connected account and standard fee terms."""
    return HostAccountFactory()


@pytest.fixture
def payable_booking(event, host_account):
    """Unpaid $25.00 booking whose host can receive payouts."""
    return BookingFactory(event=event, host=host_account.user)
