"""
HostAccount model: a host's payout destination and fee terms.

Usage:
    from payouts.models import HostAccount

    account = HostAccount.objects.filter(user_id=host_id).first()
    if account is None or not account.can_receive_payouts:
        # booking is skipped, not failed
        ...
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class HostAccount(UUIDPrimaryKeyMixin, BaseModel):
    """
    Payout settings for a host.

    Fields:
        user: The host (one account per user)
        stripe_account_id: Connected Stripe account (acct_xxx), empty until
            the host starts onboarding
        waive_platform_fee: Host keeps the full booking amount

    Note:
        The settlement engine only reads this model. It is written by
        HostAccountService when hosts onboard.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="host_account",
        help_text="Host this payout account belongs to",
    )

    stripe_account_id = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        help_text="Stripe Connect account ID (acct_xxx)",
    )

    waive_platform_fee = models.BooleanField(
        default=False,
        help_text="If set, no platform fee is withheld from this host's payouts",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Host Account"
        verbose_name_plural = "Host Accounts"

    def __str__(self) -> str:
        return f"HostAccount({self.user_id}, {self.stripe_account_id or 'not connected'})"

    @property
    def can_receive_payouts(self) -> bool:
        return bool(self.stripe_account_id)
