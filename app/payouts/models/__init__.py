"""
Payout domain models.

- HostAccount: A host's Stripe connected account and fee waiver
- PayoutAttempt: Append-only per-booking outcome of each dispatch pass
"""

from payouts.models.host_account import HostAccount
from payouts.models.payout_attempt import PayoutAttempt

__all__ = [
    "HostAccount",
    "PayoutAttempt",
]
