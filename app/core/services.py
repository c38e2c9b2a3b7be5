"""
Base service layer patterns for business logic encapsulation.

- ServiceResult: Result wrapper for expected, user-facing failures
- BaseService: Base class giving each service a named logger

Pattern Comparison:
    - ServiceResult: expected failures (unverified email, missing account)
    - Exceptions: precondition violations and unexpected failures

Usage:
    from core.services import BaseService, ServiceResult

    class HostAccountService(BaseService):
        @classmethod
        def create_dashboard_link(cls, user) -> ServiceResult[str]:
            if not account.stripe_account_id:
                return ServiceResult.failure(
                    "No Stripe account connected",
                    error_code="FAILED_PRECONDITION",
                )
            return ServiceResult.ok(url)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful
        error: Error message if failed
        error_code: Machine-readable error code for client handling
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, data: T) -> ServiceResult[T]:
        """Create a successful result carrying ``data``."""
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result.

        Example:
            return ServiceResult.failure("User not found", "NOT_FOUND")
        """
        return cls(success=False, error=error, error_code=error_code)

    def to_response(self) -> dict[str, Any]:
        """Convert a failed result to the structured API error body."""
        return {"code": self.error_code, "message": self.error}

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Design Notes:
        - Use @classmethod (no instance state)
        - Use ServiceResult for expected failures
        - Raise exceptions for precondition violations
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Return a logger named after the concrete service class."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")
