"""
Payout-specific exceptions.

Exception Hierarchy:
    PayoutError (base for the payout domain)
    ├── PayoutDispatchError - Unexpected failure outside per-booking work (INTERNAL)
    └── PayoutProcessingError - A single transfer could not be made
        └── StripeError - Base for all Stripe errors
            ├── StripeInvalidAccountError - Destination account unusable (definitive)
            ├── StripeInvalidRequestError - Request rejected as malformed (definitive)
            ├── StripeInsufficientFundsError - Platform balance too low (definitive)
            ├── StripeRateLimitError - Rate limited (ambiguous)
            ├── StripeAPIUnavailableError - Network or 5xx failure (ambiguous)
            └── StripeTimeoutError - No response within the timeout (ambiguous)

    LockAcquisitionError - Per-host lock held elsewhere (inherits ConflictError)
"Definitive" errors mean the processor refused the transfer, so the
booking's idempotency key moves on to a new generation. "Ambiguous"
errors mean the transfer may or may not exist, so the next pass reuses
the same key and the processor deduplicates it.

Usage:
    from payouts.exceptions import StripeError

    try:
        StripeAdapter.create_transfer(...)
    except StripeError as e:
        outcome = PayoutOutcome.UNKNOWN if e.is_retryable else PayoutOutcome.FAILED
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ConflictError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payout Domain Exceptions
# =============================================================================


class PayoutError(BaseApplicationError):
    """Base exception for payout operations."""

    default_error_code: str = "PAYOUT_ERROR"


class PayoutDispatchError(PayoutError):
    """
    Raised when a dispatch pass fails outside of per-booking handling.

    Covers loading the work list and writing the event's payout status.
    Per-booking outcomes recorded before the failure are already durable,
    so the pass can be re-run.

    Attributes:
        details: Always contains event_id and payouts_issued so far
    """

    default_error_code: str = "INTERNAL"


class PayoutProcessingError(PayoutError):
    """Raised when a single transfer to a host cannot be completed."""

    default_error_code: str = "PAYOUT_PROCESSING_ERROR"


# =============================================================================
# Stripe-Specific Exceptions
# =============================================================================


class StripeError(PayoutProcessingError):
    """
    Base exception for Stripe-related errors.

    Attributes:
        stripe_code: Stripe's own error code, when it sent one
        is_retryable: True when the transfer may have happened anyway
            (timeout, connection failure, rate limit, 5xx)
    """

    default_error_code: str = "STRIPE_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        stripe_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if stripe_code:
            details["stripe_code"] = stripe_code
        super().__init__(message, error_code=error_code, details=details)
        self.stripe_code = stripe_code


# -----------------------------------------------------------------------------
# Definitive errors
# -----------------------------------------------------------------------------


class StripeInvalidAccountError(StripeError):
    """
    The destination connected account cannot receive transfers.

    Typically the host never finished onboarding or the account was
    restricted. Needs host or operator action.
    """

    default_error_code: str = "INVALID_STRIPE_ACCOUNT"


class StripeInvalidRequestError(StripeError):
    """Stripe rejected the request parameters."""

    default_error_code: str = "INVALID_STRIPE_REQUEST"


class StripeInsufficientFundsError(StripeError):
    """The platform balance cannot cover the transfer."""

    default_error_code: str = "INSUFFICIENT_FUNDS"


# -----------------------------------------------------------------------------
# Ambiguous errors
# -----------------------------------------------------------------------------


class StripeRateLimitError(StripeError):
    """Rate limited by the Stripe API."""

    default_error_code: str = "STRIPE_RATE_LIMITED"
    is_retryable: bool = True


class StripeAPIUnavailableError(StripeError):
    """Network failure or Stripe server error (5xx)."""

    default_error_code: str = "STRIPE_UNAVAILABLE"
    is_retryable: bool = True


class StripeTimeoutError(StripeError):
    """
    No response within STRIPE_API_TIMEOUT_SECONDS.

    The transfer may have been created. The next pass retries with the
    same idempotency key so Stripe returns the original transfer.
    """

    default_error_code: str = "STRIPE_TIMEOUT"
    is_retryable: bool = True


# =============================================================================
# Conflict Exceptions
# =============================================================================


class LockAcquisitionError(ConflictError):
    """
    Raised when a distributed lock cannot be acquired.

    Example:
        with DistributedLock(f"payout:host:{host_id}", ttl=300, timeout=10):
            ...
        # raises LockAcquisitionError when another pass holds the host
    """

    default_error_code: str = "LOCK_ACQUISITION_FAILED"


__all__ = [
    "PayoutError",
    "PayoutDispatchError",
    "PayoutProcessingError",
    "StripeError",
    "StripeInvalidAccountError",
    "StripeInvalidRequestError",
    "StripeInsufficientFundsError",
    "StripeRateLimitError",
    "StripeAPIUnavailableError",
    "StripeTimeoutError",
    "LockAcquisitionError",
]
