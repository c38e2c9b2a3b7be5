"""
Payout dispatcher: settles every unpaid booking of one event.

One dispatch pass:
1. Checks the caller is a payout operator and the event exists
2. Loads the event's unpaid bookings and groups them per host
3. For each host, under a per-host distributed lock and in booking order:
   a. Skips the booking if the host has no connected account
   b. Computes the fee split
   c. Transfers the net amount with a booking-derived idempotency key
   d. Marks the booking paid with a conditional UPDATE
   e. Records a PayoutAttempt row with the outcome
4. Reconciles the event's payout status
5. Returns the number of bookings paid in this pass

Per-booking failures never abort the pass. A failed booking stays unpaid
and is picked up again by the next pass. Only precondition violations
(permission, missing or unknown event) and failures while loading the
work list or reconciling are raised to the caller.

Usage:
    from payouts.authorization import CallerIdentity
    from payouts.services import PayoutDispatcher

    result = PayoutDispatcher.dispatch(event_id, CallerIdentity.from_user(user))
    print(result.payouts_issued, result.payout_status)
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from django.conf import settings
from django.db import connection
from django.utils import timezone

from core.exceptions import NotFoundError, ValidationError
from core.services import BaseService
from events.models import Booking, Event
from payouts.adapters import IdempotencyKeyGenerator, StripeAdapter
from payouts.authorization import CallerIdentity, require_operator
from payouts.constants import EVENT_PAYOUT_OPERATION, PayoutOutcome
from payouts.exceptions import LockAcquisitionError, PayoutDispatchError, StripeError
from payouts.fees import FeeSplit, compute_split, to_cents
from payouts.locks import DistributedLock, host_lock_key
from payouts.models import HostAccount, PayoutAttempt
from payouts.services.reconciler import EventPayoutReconciler

if TYPE_CHECKING:
    from collections.abc import Iterable


# =============================================================================
# Constants
# =============================================================================

# Upper bound on cross-host parallelism regardless of configuration
MAX_DISPATCH_WORKERS = 8

# Booking fields the dispatcher needs; keeps worker threads off lazy loads
WORK_ITEM_FIELDS = ("id", "event_id", "host_id", "total_price", "created_at")


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True)
class BookingOutcome:
    """
    What happened to one booking in one pass.

    Attributes:
        booking_id: The booking
        host_id: The host it pays
        outcome: A PayoutOutcome value
        split: Fee split, when it was computed
        stripe_transfer_id: Transfer ID when a transfer was made
        error_code / error: Failure details
    """

    booking_id: uuid.UUID
    host_id: Any
    outcome: str
    split: FeeSplit | None = None
    stripe_transfer_id: str | None = None
    error_code: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["booking_id"] = str(self.booking_id)
        data["host_id"] = str(self.host_id)
        data["outcome"] = str(self.outcome)
        return data


@dataclass
class DispatchResult:
    """
    Result of one dispatch pass.

    Attributes:
        event_id: The settled event
        payouts_issued: Bookings paid in this pass
        payout_status: Event status after reconciliation
        outcomes: One entry per booking handled (unstarted bookings are
            absent when the pass was cancelled)
        success: Always True; failures before the work loop are raised
    """

    event_id: uuid.UUID
    payouts_issued: int
    payout_status: str
    outcomes: list[BookingOutcome] = field(default_factory=list)
    success: bool = True

    def count(self, outcome: str) -> int:
        return sum(1 for o in self.outcomes if o.outcome == outcome)


def group_by_host(bookings: Iterable[Booking]) -> dict[Any, list[Booking]]:
    """
    Split a work list into per-host queues.

    Hosts appear in the order of their first booking and each queue keeps
    the work list's order.
    """
    queues: dict[Any, list[Booking]] = {}
    for booking in bookings:
        queues.setdefault(booking.host_id, []).append(booking)
    return queues


# =============================================================================
# Payout Dispatcher
# =============================================================================


class PayoutDispatcher(BaseService):
    """
    Runs dispatch passes for events.

    Concurrency:
        Bookings of one host are always processed one after another while
        holding DistributedLock("payout:host:<host_id>"), which serializes
        concurrent passes and worker processes. Distinct hosts run in
        parallel when PAYOUT_DISPATCH_MAX_WORKERS > 1.

    Double-payment protection:
        - paid_out is re-read under the host lock before transferring
        - The transfer carries a booking-derived idempotency key
        - paid_out is set with UPDATE ... WHERE paid_out = false
    """

    # Stripe adapter - can be injected for testing
    _stripe_adapter: type | None = None

    @classmethod
    def get_stripe_adapter(cls) -> type:
        return cls._stripe_adapter or StripeAdapter

    @classmethod
    def set_stripe_adapter(cls, adapter: type | None) -> None:
        """Set the Stripe adapter class (for testing)."""
        cls._stripe_adapter = adapter

    @classmethod
    def get_max_workers(cls) -> int:
        workers = int(getattr(settings, "PAYOUT_DISPATCH_MAX_WORKERS", 1) or 1)
        return max(1, min(workers, MAX_DISPATCH_WORKERS))

    # =========================================================================
    # Entry Point
    # =========================================================================

    @classmethod
    def dispatch(
        cls,
        event_id: uuid.UUID | str | None,
        caller: CallerIdentity | None,
        *,
        cancel_event: threading.Event | None = None,
        deadline: float | None = None,
    ) -> DispatchResult:
        """
        Pay out every unpaid booking of an event.

        Args:
            event_id: Event to settle
            caller: Identity of whoever triggered the pass
            cancel_event: When set, no further bookings are started
            deadline: time.monotonic() value after which no further
                bookings are started

        Returns:
            DispatchResult with the count of bookings paid in this pass

        Raises:
            PermissionDeniedError: Caller is not a payout operator
            ValidationError: event_id missing (INVALID_ARGUMENT)
            NotFoundError: Event does not exist
            PayoutDispatchError: Unexpected failure loading the work list
                or reconciling (INTERNAL)
        """
        logger = cls.get_logger()

        require_operator(caller)
        event_uuid = cls._parse_event_id(event_id)

        try:
            event_exists = Event.objects.filter(pk=event_uuid).exists()
        except Exception as e:
            raise cls._internal_error("Failed to load event", event_uuid, 0) from e
        if not event_exists:
            raise NotFoundError(
                f"Event {event_uuid} not found",
                details={"event_id": str(event_uuid)},
            )

        try:
            bookings = list(
                Booking.objects.for_event(event_uuid)
                .unpaid()
                .only(*WORK_ITEM_FIELDS)
                .order_by("created_at", "id")
            )
        except Exception as e:
            raise cls._internal_error("Failed to load unpaid bookings", event_uuid, 0) from e

        queues = group_by_host(bookings)
        logger.info(
            "Starting event payout pass",
            extra={
                "event_id": str(event_uuid),
                "caller": caller.email if caller else None,
                "unpaid_bookings": len(bookings),
                "hosts": len(queues),
            },
        )

        outcomes = cls._run_queues(event_uuid, queues, cls._stop_checker(cancel_event, deadline))
        payouts_issued = sum(1 for o in outcomes if o.outcome == PayoutOutcome.PAID)

        if len(outcomes) < len(bookings):
            logger.warning(
                "Payout pass cancelled before all bookings were started",
                extra={
                    "event_id": str(event_uuid),
                    "unstarted_bookings": len(bookings) - len(outcomes),
                },
            )

        try:
            payout_status = EventPayoutReconciler.reconcile(event_uuid)
        except Exception as e:
            raise cls._internal_error(
                "Failed to reconcile event payout status", event_uuid, payouts_issued
            ) from e

        logger.info(
            "Event payout pass finished",
            extra={
                "event_id": str(event_uuid),
                "payouts_issued": payouts_issued,
                "payout_status": str(payout_status),
                "outcomes": {
                    str(value): sum(1 for o in outcomes if o.outcome == value)
                    for value in PayoutOutcome.values
                },
            },
        )

        return DispatchResult(
            event_id=event_uuid,
            payouts_issued=payouts_issued,
            payout_status=str(payout_status),
            outcomes=outcomes,
        )

    @staticmethod
    def _parse_event_id(event_id: uuid.UUID | str | None) -> uuid.UUID:
        if isinstance(event_id, uuid.UUID):
            return event_id
        if event_id is None or not str(event_id).strip():
            raise ValidationError(
                "eventId is required",
                details={"field": "eventId"},
            )
        try:
            return uuid.UUID(str(event_id).strip())
        except ValueError:
            # Not a well-formed id, so no such event can exist
            raise NotFoundError(
                f"Event {event_id} not found",
                details={"event_id": str(event_id)},
            ) from None

    @staticmethod
    def _internal_error(message: str, event_id: uuid.UUID, payouts_issued: int) -> PayoutDispatchError:
        return PayoutDispatchError(
            message,
            details={"event_id": str(event_id), "payouts_issued": payouts_issued},
        )

    @staticmethod
    def _stop_checker(
        cancel_event: threading.Event | None,
        deadline: float | None,
    ) -> Callable[[], bool]:
        def should_stop() -> bool:
            if cancel_event is not None and cancel_event.is_set():
                return True
            return deadline is not None and time.monotonic() >= deadline

        return should_stop

    # =========================================================================
    # Host Queues
    # =========================================================================

    @classmethod
    def _run_queues(
        cls,
        event_id: uuid.UUID,
        queues: dict[Any, list[Booking]],
        should_stop: Callable[[], bool],
    ) -> list[BookingOutcome]:
        """Process every host queue, sequentially or on a bounded pool."""
        max_workers = min(cls.get_max_workers(), len(queues))

        if max_workers <= 1:
            outcomes: list[BookingOutcome] = []
            for host_id, items in queues.items():
                outcomes.extend(cls._process_host_queue(event_id, host_id, items, should_stop))
            return outcomes

        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="payout") as pool:
            futures = [
                pool.submit(cls._process_host_queue_in_worker, event_id, host_id, items, should_stop)
                for host_id, items in queues.items()
            ]
            results = [future.result() for future in futures]

        return [outcome for host_outcomes in results for outcome in host_outcomes]

    @classmethod
    def _process_host_queue_in_worker(
        cls,
        event_id: uuid.UUID,
        host_id: Any,
        items: list[Booking],
        should_stop: Callable[[], bool],
    ) -> list[BookingOutcome]:
        try:
            return cls._process_host_queue(event_id, host_id, items, should_stop)
        finally:
            connection.close()

    @classmethod
    def _process_host_queue(
        cls,
        event_id: uuid.UUID,
        host_id: Any,
        items: list[Booking],
        should_stop: Callable[[], bool],
    ) -> list[BookingOutcome]:
        """Settle one host's bookings in order while holding the host lock."""
        logger = cls.get_logger()

        if should_stop():
            return []

        lock = DistributedLock(
            host_lock_key(host_id),
            ttl=getattr(settings, "PAYOUT_HOST_LOCK_TTL_SECONDS", 300),
            timeout=getattr(settings, "PAYOUT_HOST_LOCK_TIMEOUT_SECONDS", 10),
        )
        try:
            lock.acquire()
        except LockAcquisitionError as e:
            logger.warning(
                "Host payout lock is held elsewhere, leaving bookings for a later pass",
                extra={"event_id": str(event_id), "host_id": str(host_id)},
            )
            return [
                cls._record(event_id, b, PayoutOutcome.UNKNOWN, error_code=e.error_code, error=e.message)
                for b in items
            ]
        except Exception as e:
            logger.error(
                "Could not reach lock store, leaving bookings for a later pass",
                extra={"event_id": str(event_id), "host_id": str(host_id)},
                exc_info=True,
            )
            return [
                cls._record(event_id, b, PayoutOutcome.UNKNOWN, error_code="LOCK_UNAVAILABLE", error=str(e))
                for b in items
            ]

        outcomes: list[BookingOutcome] = []
        try:
            for index, booking in enumerate(items):
                if should_stop():
                    break
                # Each transfer may take up to the Stripe timeout, so the
                # TTL is renewed between bookings
                if index and not cls._extend_lock(lock, event_id, host_id):
                    outcomes.extend(
                        cls._record(
                            event_id,
                            b,
                            PayoutOutcome.UNKNOWN,
                            error_code="LOCK_LOST",
                            error=f"Lost lock '{lock.key}' before settling booking",
                        )
                        for b in items[index:]
                    )
                    break
                outcomes.append(cls._settle_booking(event_id, booking))
        finally:
            try:
                lock.release()
            except Exception:
                # The lock expires on its own after its TTL
                logger.warning(
                    "Failed to release host payout lock",
                    extra={"host_id": str(host_id)},
                    exc_info=True,
                )
        return outcomes

    @classmethod
    def _extend_lock(cls, lock: DistributedLock, event_id: uuid.UUID, host_id: Any) -> bool:
        """Renew the host lock; False means it expired or could not be renewed."""
        try:
            extended = lock.extend()
        except Exception:
            extended = False
            cls.get_logger().error(
                "Failed to extend host payout lock",
                extra={"event_id": str(event_id), "host_id": str(host_id)},
                exc_info=True,
            )
        if not extended:
            cls.get_logger().warning(
                "Host payout lock lost, leaving remaining bookings for a later pass",
                extra={"event_id": str(event_id), "host_id": str(host_id)},
            )
        return extended

    # =========================================================================
    # Single Booking
    # =========================================================================

    @classmethod
    def _settle_booking(cls, event_id: uuid.UUID, booking: Booking) -> BookingOutcome:
        """Settle one booking; never raises."""
        try:
            return cls._settle_booking_unchecked(event_id, booking)
        except Exception as e:
            cls.get_logger().exception(
                "Unexpected error settling booking",
                extra={"event_id": str(event_id), "booking_id": str(booking.pk)},
            )
            return cls._record(
                event_id,
                booking,
                PayoutOutcome.FAILED,
                error_code="UNEXPECTED_ERROR",
                error=str(e),
            )

    @classmethod
    def _settle_booking_unchecked(cls, event_id: uuid.UUID, booking: Booking) -> BookingOutcome:
        logger = cls.get_logger()
        log_context = {
            "event_id": str(event_id),
            "booking_id": str(booking.pk),
            "host_id": str(booking.host_id),
        }

        host_account = HostAccount.objects.filter(user_id=booking.host_id).first()
        if host_account is None or not host_account.can_receive_payouts:
            logger.warning("Host has no payout destination, skipping booking", extra=log_context)
            return cls._record(
                event_id,
                booking,
                PayoutOutcome.SKIPPED,
                error_code="NO_PAYOUT_DESTINATION",
                error="Host has not connected a payout account",
            )

        if Booking.objects.filter(pk=booking.pk, paid_out=True).exists():
            logger.info("Booking already paid by another pass", extra=log_context)
            return cls._record(event_id, booking, PayoutOutcome.ALREADY_PAID)

        split = compute_split(to_cents(booking.total_price), host_account.waive_platform_fee)
        currency = getattr(settings, "PAYOUT_CURRENCY", "usd")
        transfer_group = f"event_{event_id}"

        if split.net_amount_cents == 0:
            logger.info("Nothing to transfer, marking booking paid", extra=log_context)
            return cls._mark_paid(event_id, booking, split, transfer_id=None, idempotency_key="")

        idempotency_key = cls.idempotency_key_for(booking.pk)
        adapter = cls.get_stripe_adapter()
        try:
            result = adapter.create_transfer(
                amount_cents=split.net_amount_cents,
                destination_account=host_account.stripe_account_id,
                idempotency_key=idempotency_key,
                currency=currency,
                transfer_group=transfer_group,
                metadata={"booking_id": str(booking.pk), "event_id": str(event_id)},
            )
        except StripeError as e:
            outcome = PayoutOutcome.UNKNOWN if e.is_retryable else PayoutOutcome.FAILED
            log = logger.warning if e.is_retryable else logger.error
            log(
                "Transfer failed, booking left unpaid",
                extra={
                    **log_context,
                    "amount_cents": split.net_amount_cents,
                    "idempotency_key": idempotency_key,
                    "outcome": str(outcome),
                    "error_code": e.error_code,
                    "error": e.message,
                },
            )
            return cls._record(
                event_id,
                booking,
                outcome,
                split=split,
                idempotency_key=idempotency_key,
                error_code=e.error_code,
                error=e.message,
            )

        return cls._mark_paid(
            event_id, booking, split, transfer_id=result.id, idempotency_key=idempotency_key
        )

    @classmethod
    def _mark_paid(
        cls,
        event_id: uuid.UUID,
        booking: Booking,
        split: FeeSplit,
        transfer_id: str | None,
        idempotency_key: str,
    ) -> BookingOutcome:
        """Flip paid_out only if it is still False."""
        logger = cls.get_logger()
        log_context = {
            "event_id": str(event_id),
            "booking_id": str(booking.pk),
            "host_id": str(booking.host_id),
            "amount_cents": split.net_amount_cents,
            "stripe_transfer_id": transfer_id,
        }

        now = timezone.now()
        try:
            updated = Booking.objects.filter(pk=booking.pk, paid_out=False).update(
                paid_out=True,
                paid_out_at=now,
                stripe_transfer_id=transfer_id or "",
                updated_at=now,
            )
        except Exception as e:
            logger.critical(
                "Transfer succeeded but booking could not be marked paid - reconciliation needed",
                extra={**log_context, "idempotency_key": idempotency_key},
                exc_info=True,
            )
            return cls._record(
                event_id,
                booking,
                PayoutOutcome.UNRECORDED,
                split=split,
                idempotency_key=idempotency_key,
                transfer_id=transfer_id,
                error_code="STORE_WRITE_FAILED",
                error=str(e),
            )

        if updated == 0:
            logger.warning("Booking was marked paid by a concurrent pass", extra=log_context)
            return cls._record(
                event_id,
                booking,
                PayoutOutcome.ALREADY_PAID,
                split=split,
                idempotency_key=idempotency_key,
                transfer_id=transfer_id,
            )

        logger.info("Booking paid out", extra={**log_context, "outcome": "paid"})
        return cls._record(
            event_id,
            booking,
            PayoutOutcome.PAID,
            split=split,
            idempotency_key=idempotency_key,
            transfer_id=transfer_id,
        )

    @classmethod
    def idempotency_key_for(cls, booking_id: uuid.UUID) -> str:
        """
        Processor idempotency key for a booking's next transfer.

        The generation only advances after a definitive rejection, so a
        retry after an ambiguous error reuses the previous key.
        """
        generation = 1 + PayoutAttempt.objects.for_booking(booking_id).definitive_failures().count()
        return IdempotencyKeyGenerator.generate(EVENT_PAYOUT_OPERATION, booking_id, generation)

    @classmethod
    def _record(
        cls,
        event_id: uuid.UUID,
        booking: Booking,
        outcome: str,
        split: FeeSplit | None = None,
        idempotency_key: str = "",
        transfer_id: str | None = None,
        error_code: str | None = None,
        error: str | None = None,
    ) -> BookingOutcome:
        """Persist a PayoutAttempt row and return the in-memory outcome."""
        try:
            PayoutAttempt.objects.create(
                booking_id=booking.pk,
                event_id=event_id,
                host_id=booking.host_id,
                outcome=outcome,
                gross_amount_cents=split.gross_amount_cents if split else None,
                platform_fee_cents=split.platform_fee_cents if split else None,
                net_amount_cents=split.net_amount_cents if split else None,
                currency=getattr(settings, "PAYOUT_CURRENCY", "usd"),
                idempotency_key=idempotency_key,
                transfer_group=f"event_{event_id}",
                stripe_transfer_id=transfer_id or "",
                error_code=error_code or "",
                error_message=error or "",
            )
        except Exception:
            # A missing FAILED row leaves the idempotency generation unchanged
            level = logging.CRITICAL if outcome == PayoutOutcome.FAILED else logging.ERROR
            cls.get_logger().log(
                level,
                "Failed to record payout attempt",
                extra={
                    "event_id": str(event_id),
                    "booking_id": str(booking.pk),
                    "outcome": str(outcome),
                    "stripe_transfer_id": transfer_id,
                },
                exc_info=True,
            )

        return BookingOutcome(
            booking_id=booking.pk,
            host_id=booking.host_id,
            outcome=outcome,
            split=split,
            stripe_transfer_id=transfer_id,
            error_code=error_code,
            error=error,
        )


__all__ = [
    "BookingOutcome",
    "DispatchResult",
    "PayoutDispatcher",
    "group_by_host",
]
