"""
Stripe API adapter for payout operations.

Every Stripe call made by the payout engine goes through StripeAdapter so
timeouts, idempotency keys, structured logging and error translation are
applied in one place.

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_API_TIMEOUT_SECONDS: HTTP timeout for every call (default: 30)
- STRIPE_MAX_RETRIES: SDK-level network retries (default: 0)

Usage:
    from payouts.adapters import IdempotencyKeyGenerator, StripeAdapter

    result = StripeAdapter.create_transfer(
        amount_cents=3400,
        destination_account="acct_123",
        idempotency_key=IdempotencyKeyGenerator.generate("event_payout", booking.id),
        transfer_group=f"event_{event.id}",
        metadata={"booking_id": str(booking.id)},
    )
"""

from __future__ import annotations

import hashlib
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

import stripe
from django.conf import settings

from payouts.exceptions import (
    StripeAPIUnavailableError,
    StripeInsufficientFundsError,
    StripeInvalidAccountError,
    StripeInvalidRequestError,
    StripeRateLimitError,
    StripeTimeoutError,
)


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class TransferResult:
    """
    Result from a Stripe Transfer.

    Attributes:
        id: Transfer ID (tr_xxx)
        amount_cents: Amount transferred in cents
        currency: Currency code
        destination_account: Destination Stripe account ID
        transfer_group: Group label tying transfers to one event
        metadata: Attached metadata
        raw_response: Full Stripe response dict
    """

    id: str
    amount_cents: int
    currency: str
    destination_account: str
    transfer_group: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Idempotency Key Generator
# =============================================================================


class IdempotencyKeyGenerator:
    """
    Generate idempotency keys for Stripe API calls.

    Format: "{operation}:{entity_id}:{attempt}:{hash}"

    The key is deterministic: the same operation, entity and attempt
    always produce the same key, so a retried request is recognised by
    Stripe as the original one.

    Example:
        key = IdempotencyKeyGenerator.generate("event_payout", booking.id, 1)
        # "event_payout:550e8400-e29b-41d4-a716-446655440000:1:a1b2c3d4"
    """

    @staticmethod
    def generate(
        operation: str,
        entity_id: uuid.UUID | str,
        attempt: int = 1,
    ) -> str:
        entity_str = str(entity_id)
        hash_input = f"{operation}:{entity_str}:{attempt}:{settings.SECRET_KEY}"
        short_hash = hashlib.sha256(hash_input.encode()).hexdigest()[:8]

        return f"{operation}:{entity_str}:{attempt}:{short_hash}"


# =============================================================================
# Stripe Adapter
# =============================================================================


class StripeAdapter:
    """
    Adapter for Stripe Connect operations.

    All methods are class-level; no instance state is kept, so the adapter
    is safe to call from dispatch worker threads and Celery workers.

    Operations:
        create_transfer: Pay a host's connected account
        create_express_account: Open an Express account for a host
        create_account_link: Hosted onboarding URL for an Express account
        create_login_link: Express dashboard URL for a host
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _configure_stripe() -> None:
        """Configure the Stripe client with API key, timeout and retries."""
        stripe.api_key = settings.STRIPE_SECRET_KEY
        stripe.max_network_retries = getattr(settings, "STRIPE_MAX_RETRIES", 0)
        timeout = getattr(settings, "STRIPE_API_TIMEOUT_SECONDS", 30)
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Transfers
    # =========================================================================

    @classmethod
    def create_transfer(
        cls,
        amount_cents: int,
        destination_account: str,
        idempotency_key: str,
        currency: str = "usd",
        transfer_group: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> TransferResult:
        """
        Create a transfer to a connected Stripe account.

        Args:
            amount_cents: Amount to transfer in cents (must be positive)
            destination_account: Stripe Connect account ID (acct_xxx)
            idempotency_key: Unique key for idempotent transfer
            currency: Currency code (default: 'usd')
            transfer_group: Label grouping related transfers (event_<id>)
            metadata: Optional metadata dict

        Returns:
            TransferResult with transfer details

        Raises:
            StripeInvalidAccountError: Destination cannot receive transfers
            StripeInsufficientFundsError: Platform balance too low
            StripeInvalidRequestError: Other rejected parameters
            StripeRateLimitError / StripeAPIUnavailableError /
            StripeTimeoutError: Outcome unknown, retry with the same key
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_transfer",
            "amount_cents": amount_cents,
            "destination_account": destination_account,
            "idempotency_key": idempotency_key,
            "transfer_group": transfer_group,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            transfer_params: dict[str, Any] = {
                "amount": amount_cents,
                "currency": currency,
                "destination": destination_account,
                "metadata": metadata or {},
            }
            if transfer_group:
                transfer_params["transfer_group"] = transfer_group

            transfer = stripe.Transfer.create(
                idempotency_key=idempotency_key,
                **transfer_params,
            )

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={
                    **log_context,
                    "transfer_id": transfer.id,
                    "duration_ms": duration_ms,
                },
            )

            return TransferResult(
                id=transfer.id,
                amount_cents=transfer.amount,
                currency=transfer.currency,
                destination_account=transfer.destination,
                transfer_group=getattr(transfer, "transfer_group", transfer_group),
                metadata=dict(transfer.metadata or {}),
                raw_response=transfer.to_dict(),
            )

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    # =========================================================================
    # Connected Accounts
    # =========================================================================

    @classmethod
    def create_express_account(
        cls,
        email: str,
        user_id: Any,
        idempotency_key: str,
    ) -> str:
        """
        Create an Express connected account for a host.

        Returns:
            The new Stripe account ID (acct_xxx)
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_express_account",
            "user_id": str(user_id),
            "idempotency_key": idempotency_key,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            account = stripe.Account.create(
                type="express",
                email=email,
                capabilities={
                    "transfers": {"requested": True},
                    "card_payments": {"requested": True},
                },
                business_type="individual",
                metadata={"user_id": str(user_id)},
                idempotency_key=idempotency_key,
            )

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={**log_context, "account_id": account.id, "duration_ms": duration_ms},
            )
            return account.id

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    @classmethod
    def create_account_link(
        cls,
        account_id: str,
        refresh_url: str,
        return_url: str,
    ) -> str:
        """
        Create a hosted onboarding link for an Express account.

        Returns:
            Single-use onboarding URL
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {"operation": "create_account_link", "account_id": account_id}

        start_time = time.time()
        try:
            link = stripe.AccountLink.create(
                account=account_id,
                refresh_url=refresh_url,
                return_url=return_url,
                type="account_onboarding",
            )
            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={**log_context, "duration_ms": duration_ms},
            )
            return link.url

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    @classmethod
    def create_login_link(cls, account_id: str) -> str:
        """
        Create an Express dashboard login link.

        Returns:
            Single-use dashboard URL
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {"operation": "create_login_link", "account_id": account_id}

        start_time = time.time()
        try:
            link = stripe.Account.create_login_link(account_id)
            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={**log_context, "duration_ms": duration_ms},
            )
            return link.url

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    # =========================================================================
    # Error Handling
    # =========================================================================

    ACCOUNT_ERROR_CODES = frozenset(
        {"account_invalid", "account_closed", "no_account", "account_not_yet_onboarded"}
    )

    @classmethod
    def _handle_stripe_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe SDK exceptions to domain exceptions.

        Definitive rejections map to non-retryable errors. Anything that
        leaves the outcome unknown (timeouts, connection failures, rate
        limits, 5xx, unrecognised errors) maps to a retryable error.

        Raises:
            StripeInvalidAccountError: Destination account unusable
            StripeInsufficientFundsError: Platform balance too low
            StripeInvalidRequestError: Invalid parameters or credentials
            StripeRateLimitError: Rate limited
            StripeTimeoutError: Request timed out
            StripeAPIUnavailableError: Connection failure or server error
        """
        logger = cls.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, stripe.InvalidRequestError):
            code = error.code
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": code},
            )

            if code == "balance_insufficient":
                raise StripeInsufficientFundsError(str(error), stripe_code=code) from error

            if code in cls.ACCOUNT_ERROR_CODES or "account" in str(error).lower():
                raise StripeInvalidAccountError(str(error), stripe_code=code) from error

            raise StripeInvalidRequestError(str(error), stripe_code=code) from error

        if isinstance(error, stripe.CardError):
            logger.error(
                "Card error from Stripe",
                extra={**log_context, "stripe_code": error.code},
            )
            raise StripeInvalidRequestError(
                str(error.user_message or error),
                stripe_code=error.code,
            ) from error

        if isinstance(error, stripe.PermissionError):
            logger.error(
                "Stripe refused access to the account",
                extra={**log_context, "stripe_code": error.code},
            )
            raise StripeInvalidAccountError(str(error), stripe_code=error.code) from error

        if isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise StripeRateLimitError(
                "Stripe rate limit exceeded. Please retry.",
                stripe_code="rate_limit",
            ) from error

        if isinstance(error, stripe.APIConnectionError):
            if "timeout" in str(error).lower() or "timed out" in str(error).lower():
                logger.warning("Stripe request timed out", extra=log_context)
                raise StripeTimeoutError(
                    "Stripe request timed out. The operation may have completed.",
                    stripe_code="timeout",
                ) from error

            logger.error("Connection error to Stripe", extra=log_context, exc_info=True)
            raise StripeAPIUnavailableError(
                "Could not connect to Stripe. Please retry.",
                stripe_code="api_connection_error",
            ) from error

        if isinstance(error, stripe.APIError):
            logger.error("Stripe API error", extra=log_context, exc_info=True)
            raise StripeAPIUnavailableError(
                "Stripe service error. Please retry.",
                stripe_code="api_error",
            ) from error

        if isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise StripeInvalidRequestError(
                "Stripe authentication failed",
                stripe_code="authentication_error",
            ) from error

        logger.error(
            f"Unexpected error from Stripe: {type(error).__name__}",
            extra=log_context,
            exc_info=True,
        )
        raise StripeAPIUnavailableError(
            f"Unexpected Stripe error: {error}",
            stripe_code="unknown_error",
        ) from error
