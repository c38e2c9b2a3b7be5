"""
Tests for payout Celery tasks.

Tasks are called directly (synchronously); queueing is mocked.
"""

import uuid
from datetime import timedelta

import pytest
from django.utils import timezone
from django_celery_beat.models import PeriodicTask

from events.models import EventPayoutStatus
from events.tests.factories import EventFactory
from payouts.exceptions import PayoutDispatchError
from payouts.services import PayoutDispatcher
from payouts.tasks import initiate_event_payouts, settle_concluded_events

pytestmark = pytest.mark.django_db


class TestInitiateEventPayouts:
    def test_runs_pass_as_scheduler(self, payable_booking, stripe_adapter):
        result = initiate_event_payouts(str(payable_booking.event_id))

        assert result == {
            "status": "completed",
            "event_id": str(payable_booking.event_id),
            "payouts": 1,
            "payout_status": EventPayoutStatus.COMPLETE,
            "outcomes": {"paid": 1},
        }

    def test_passes_deadline(self, payable_booking, mocker, settings):
        settings.PAYOUT_TASK_DEADLINE_SECONDS = 60
        mocker.patch("payouts.tasks.time.monotonic", return_value=1000.0)
        dispatch = mocker.patch.object(PayoutDispatcher, "dispatch")
        dispatch.return_value.outcomes = []

        initiate_event_payouts(str(payable_booking.event_id))

        assert dispatch.call_args.kwargs["deadline"] == 1060.0

    def test_scheduler_must_be_operator(self, payable_booking, stripe_adapter, settings):
        settings.PAYOUT_SCHEDULER_EMAIL = "cron@parkpal.co"

        result = initiate_event_payouts(str(payable_booking.event_id))

        assert result["status"] == "rejected"
        assert result["error_code"] == "PERMISSION_DENIED"
        stripe_adapter.create_transfer.assert_not_called()

    def test_caller_email_overrides_scheduler(self, payable_booking, stripe_adapter):
        result = initiate_event_payouts(
            str(payable_booking.event_id), caller_email="renter@example.com"
        )

        assert result["status"] == "rejected"

    def test_unknown_event_is_rejected(self):
        result = initiate_event_payouts(str(uuid.uuid4()))

        assert result["status"] == "rejected"
        assert result["error_code"] == "NOT_FOUND"

    def test_internal_failure_propagates(self, event, mocker):
        mocker.patch.object(
            PayoutDispatcher, "dispatch", side_effect=PayoutDispatchError("reconcile failed")
        )

        with pytest.raises(PayoutDispatchError):
            initiate_event_payouts(str(event.id))


class TestSettleConcludedEvents:
    @pytest.fixture
    def delay(self, mocker):
        return mocker.patch.object(initiate_event_payouts, "delay")

    def test_queues_events_past_grace_period(self, delay, settings):
        settings.PAYOUT_SETTLEMENT_GRACE_HOURS = 12
        now = timezone.now()
        older = EventFactory(ends_at=now - timedelta(days=2))
        old = EventFactory(ends_at=now - timedelta(hours=13))
        EventFactory(ends_at=now - timedelta(hours=1))  # within grace period
        EventFactory(ends_at=now + timedelta(hours=5))  # not over yet
        EventFactory(ends_at=None)
        EventFactory(
            ends_at=now - timedelta(days=3),
            payout_status=EventPayoutStatus.COMPLETE,
        )

        result = settle_concluded_events()

        assert result == {"queued_count": 2}
        assert [c.args[0] for c in delay.call_args_list] == [str(older.id), str(old.id)]

    def test_respects_batch_size(self, delay, mocker):
        mocker.patch("payouts.tasks.BATCH_SIZE", 2)
        for _ in range(3):
            EventFactory(ends_at=timezone.now() - timedelta(days=1))

        assert settle_concluded_events() == {"queued_count": 2}

    def test_queue_failure_is_not_counted(self, delay):
        EventFactory(ends_at=timezone.now() - timedelta(days=1))
        delay.side_effect = ConnectionError("broker down")

        assert settle_concluded_events() == {"queued_count": 0}

    def test_schedule_is_installed(self):
        task = PeriodicTask.objects.get(name="Settle Concluded Events")

        assert task.task == "payouts.tasks.settle_concluded_events"
        assert task.interval.every == 30
        assert task.enabled is True
