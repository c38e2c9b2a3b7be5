"""
Host payout account onboarding.

Hosts receive payouts into a Stripe Express connected account. This
service opens that account on first use and hands out Stripe-hosted
URLs for onboarding and for the Express dashboard.

Usage:
    from payouts.services import HostAccountService

    result = HostAccountService.create_onboarding_link(request.user, origin)
    if result.success:
        return Response({"url": result.data})
"""

from __future__ import annotations

from django.conf import settings

from core.services import BaseService, ServiceResult
from payouts.adapters import IdempotencyKeyGenerator, StripeAdapter
from payouts.exceptions import StripeError
from payouts.models import HostAccount


class HostAccountService(BaseService):
    """
    Onboarding and dashboard links for hosts.

    Expected failures (unverified email, no account yet, Stripe errors)
    are returned as ServiceResult failures with an error code the view
    maps to an HTTP status.
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
    def create_onboarding_link(cls, user, origin: str | None = None) -> ServiceResult[str]:
        """
        Return a Stripe onboarding URL, creating the Express account if needed.

        Args:
            user: The host
            origin: Site origin for the return/refresh URLs
                (default: HOST_ONBOARDING_DEFAULT_ORIGIN)

        Returns:
            ServiceResult with the onboarding URL, or a failure with
            INVALID_ARGUMENT, PERMISSION_DENIED or INTERNAL
        """
        logger = cls.get_logger()

        if not user.email:
            return ServiceResult.failure(
                "User email is required for Stripe onboarding",
                error_code="INVALID_ARGUMENT",
            )
        if not user.email_verified:
            return ServiceResult.failure(
                "Email must be verified for Stripe onboarding",
                error_code="PERMISSION_DENIED",
            )

        adapter = cls.get_stripe_adapter()
        account, _ = HostAccount.objects.get_or_create(user=user)

        try:
            if not account.stripe_account_id:
                account.stripe_account_id = adapter.create_express_account(
                    email=user.email,
                    user_id=user.pk,
                    idempotency_key=IdempotencyKeyGenerator.generate(
                        "create_express_account", user.pk
                    ),
                )
                account.save(update_fields=["stripe_account_id", "updated_at"])
                logger.info(
                    "Created Stripe Express account for host",
                    extra={"user_id": str(user.pk), "account_id": account.stripe_account_id},
                )

            base = (origin or settings.HOST_ONBOARDING_DEFAULT_ORIGIN).rstrip("/")
            url = adapter.create_account_link(
                account_id=account.stripe_account_id,
                refresh_url=f"{base}/account-settings?stripe=refresh",
                return_url=f"{base}/account-settings?stripe=return",
            )
        except StripeError as e:
            logger.error(
                "Failed to create Stripe onboarding link",
                extra={"user_id": str(user.pk), "error_code": e.error_code, "error": e.message},
            )
            return ServiceResult.failure(
                "Failed to create Stripe onboarding link",
                error_code="INTERNAL",
            )

        return ServiceResult.ok(url)

    @classmethod
    def create_dashboard_link(cls, user) -> ServiceResult[str]:
        """
        Return a Stripe Express dashboard URL for the host.

        Returns:
            ServiceResult with the dashboard URL, or a failure with
            FAILED_PRECONDITION (no connected account) or INTERNAL
        """
        account = HostAccount.objects.filter(user=user).first()
        if account is None or not account.stripe_account_id:
            return ServiceResult.failure(
                "No Stripe account connected",
                error_code="FAILED_PRECONDITION",
            )

        try:
            url = cls.get_stripe_adapter().create_login_link(account.stripe_account_id)
        except StripeError as e:
            cls.get_logger().error(
                "Failed to create Stripe dashboard link",
                extra={"user_id": str(user.pk), "error_code": e.error_code, "error": e.message},
            )
            return ServiceResult.failure(
                "Failed to create Stripe dashboard link",
                error_code="INTERNAL",
            )

        return ServiceResult.ok(url)
