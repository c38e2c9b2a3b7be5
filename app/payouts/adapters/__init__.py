"""
Payout adapters for external services.

All payment processor calls go through StripeAdapter.

Usage:
    from payouts.adapters import StripeAdapter, IdempotencyKeyGenerator
"""

from payouts.adapters.stripe_adapter import (
    IdempotencyKeyGenerator,
    StripeAdapter,
    TransferResult,
)

__all__ = [
    "IdempotencyKeyGenerator",
    "StripeAdapter",
    "TransferResult",
]
