"""
Platform fee calculation.

The fee is a percentage of the booking's gross amount, rounded half-up
to whole cents. The host's net is gross minus fee, so fee and net always
add back up to the gross exactly.

Usage:
    from payouts.fees import compute_split, to_cents

    split = compute_split(to_cents(booking.total_price), waive_fee=False)
    # With 15%: 4000 -> FeeSplit(gross=4000, fee=600, net=3400)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

CENT = Decimal("1")
CENTS_PER_UNIT = Decimal("100")


@dataclass(frozen=True)
class FeeSplit:
    """
    How one booking's gross amount is divided.

    Attributes:
        gross_amount_cents: What the renter paid
        platform_fee_cents: What the platform keeps
        net_amount_cents: What the host receives
    """

    gross_amount_cents: int
    platform_fee_cents: int
    net_amount_cents: int


def to_cents(amount: Decimal | str | int) -> int:
    """
    Convert a major-unit amount (e.g. dollars) to whole cents.

    Sub-cent digits are rounded half-up.

    Raises:
        ValueError: If the amount is negative

    Example:
        to_cents(Decimal("25.00"))  # 2500
        to_cents("19.995")          # 2000
    """
    if isinstance(amount, float):
        raise TypeError("Use Decimal or str amounts, not float")
    cents = (Decimal(amount) * CENTS_PER_UNIT).quantize(CENT, rounding=ROUND_HALF_UP)
    if cents < 0:
        raise ValueError(f"Amount cannot be negative: {amount}")
    return int(cents)


def compute_split(
    gross_amount_cents: int,
    waive_fee: bool,
    fee_percent: int | Decimal | None = None,
) -> FeeSplit:
    """
    Split a gross amount into platform fee and host net.

    Args:
        gross_amount_cents: Non-negative integer amount in cents
        waive_fee: If True the fee is zero and the host gets everything
        fee_percent: Override for settings.PLATFORM_FEE_PERCENT (0-100)

    Returns:
        FeeSplit where fee + net == gross

    Raises:
        TypeError: If gross_amount_cents is not an int
        ValueError: If gross_amount_cents is negative or fee_percent is
            outside 0-100
    """
    if isinstance(gross_amount_cents, bool) or not isinstance(gross_amount_cents, int):
        raise TypeError("gross_amount_cents must be an int")
    if gross_amount_cents < 0:
        raise ValueError(f"gross_amount_cents cannot be negative: {gross_amount_cents}")

    if fee_percent is None:
        fee_percent = getattr(settings, "PLATFORM_FEE_PERCENT", 15)
    percent = Decimal(str(fee_percent))
    if not Decimal("0") <= percent <= Decimal("100"):
        raise ValueError(f"fee_percent must be between 0 and 100: {fee_percent}")

    if waive_fee:
        fee = 0
    else:
        fee = int(
            (Decimal(gross_amount_cents) * percent / CENTS_PER_UNIT).quantize(
                CENT, rounding=ROUND_HALF_UP
            )
        )

    return FeeSplit(
        gross_amount_cents=gross_amount_cents,
        platform_fee_cents=fee,
        net_amount_cents=gross_amount_cents - fee,
    )
