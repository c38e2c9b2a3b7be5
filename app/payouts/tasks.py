"""
Celery tasks for event settlement.

Tasks:
- initiate_event_payouts: Run one dispatch pass for an event
- settle_concluded_events: Periodic scan that queues a pass for every
  concluded event that is not fully paid out

Scheduled runs act as PAYOUT_SCHEDULER_EMAIL, which must itself pass the
operator guard (list it in PAYOUT_OPERATOR_EMAILS).

Usage:
    from payouts.tasks import initiate_event_payouts

    initiate_event_payouts.delay(str(event.id))
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from core.exceptions import BaseApplicationError
from events.models import Event, EventPayoutStatus
from payouts.authorization import CallerIdentity
from payouts.exceptions import PayoutDispatchError

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Maximum events queued per scan
BATCH_SIZE = 100


# =============================================================================
# Settlement Tasks
# =============================================================================


@shared_task(bind=True, acks_late=True)
def initiate_event_payouts(self, event_id: str, caller_email: str | None = None) -> dict:
    """
    Run one dispatch pass for an event.

    Args:
        event_id: Event to settle
        caller_email: Identity to act as (default: PAYOUT_SCHEDULER_EMAIL)

    Returns:
        Dict with:
        - status: "completed" or "rejected"
        - event_id: The event processed
        - payouts: Bookings paid in this pass (completed only)
        - payout_status: Event status afterwards (completed only)
        - outcomes: Count per outcome (completed only)
        - error_code / error: Why the pass was refused (rejected only)

    Raises:
        PayoutDispatchError: Loading the work list or reconciling failed;
            left to Celery so the failure is visible in the result backend
    """
    from payouts.services import PayoutDispatcher

    caller = CallerIdentity.from_email(
        caller_email or getattr(settings, "PAYOUT_SCHEDULER_EMAIL", "")
    )
    deadline = time.monotonic() + getattr(settings, "PAYOUT_TASK_DEADLINE_SECONDS", 600)

    logger.info(
        "Processing event payout task",
        extra={
            "event_id": event_id,
            "caller": caller.email,
            "celery_retries": self.request.retries,
        },
    )

    try:
        result = PayoutDispatcher.dispatch(event_id, caller, deadline=deadline)
    except PayoutDispatchError:
        raise
    except BaseApplicationError as e:
        logger.warning(
            f"Event payout task rejected: {e.message}",
            extra={"event_id": event_id, "error_code": e.error_code},
        )
        return {
            "status": "rejected",
            "event_id": event_id,
            "error_code": e.error_code,
            "error": e.message,
        }

    return {
        "status": "completed",
        "event_id": str(result.event_id),
        "payouts": result.payouts_issued,
        "payout_status": result.payout_status,
        "outcomes": dict(Counter(str(o.outcome) for o in result.outcomes)),
    }


@shared_task(bind=True)
def settle_concluded_events(self) -> dict:
    """
    Queue a payout pass for each concluded, unsettled event.

    An event is picked up once it ended more than
    PAYOUT_SETTLEMENT_GRACE_HOURS ago and its payout status is still
    pending. Oldest events go first, at most BATCH_SIZE per run.

    Returns:
        Dict with:
        - queued_count: Number of events queued

    Note:
        Idempotent: a queued pass only touches bookings that are still
        unpaid, so overlapping scans never double pay.
    """
    grace = timedelta(hours=getattr(settings, "PAYOUT_SETTLEMENT_GRACE_HOURS", 12))
    cutoff = timezone.now() - grace

    logger.info("Starting concluded event scan", extra={"cutoff": cutoff.isoformat()})

    event_ids = list(
        Event.objects.filter(
            payout_status=EventPayoutStatus.PENDING,
            ends_at__isnull=False,
            ends_at__lte=cutoff,
        )
        .order_by("ends_at")
        .values_list("id", flat=True)[:BATCH_SIZE]
    )

    queued_count = 0
    for event_id in event_ids:
        try:
            initiate_event_payouts.delay(str(event_id))
            queued_count += 1
        except Exception as e:
            logger.error(
                f"Failed to queue event payout task: {e}",
                extra={"event_id": str(event_id)},
            )

    logger.info(
        f"Concluded event scan complete: queued {queued_count} events",
        extra={"queued_count": queued_count},
    )

    return {"queued_count": queued_count}
