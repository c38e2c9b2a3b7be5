"""
Base exception classes for application-wide error handling.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input validation failures
    ├── NotFoundError - Resource not found
    ├── PermissionDeniedError - Authorization failures
    └── ConflictError - State conflicts (lock contention, failed preconditions)

Usage:
    from core.exceptions import NotFoundError, ValidationError

    raise ValidationError("eventId is required", error_code="INVALID_ARGUMENT")

    raise NotFoundError(
        f"Event {event_id} not found",
        details={"event_id": str(event_id)},
    )

    # Convert to dict for API response
    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=400)

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (authentication, parsing, etc.).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to the structured error body returned by the API.

        Example:
            {"code": "NOT_FOUND", "message": "Event ... not found"}
        """
        result: dict[str, Any] = {
            "code": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for missing or malformed arguments at a service boundary.
    Field-level request validation stays in DRF serializers.
    """

    default_error_code: str = "INVALID_ARGUMENT"


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource does not exist.

    Example:
        event = Event.objects.filter(id=event_id).first()
        if event is None:
            raise NotFoundError(f"Event {event_id} not found")
    """

    default_error_code: str = "NOT_FOUND"


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the caller lacks permission for an operation.

    For authentication failures (missing/invalid token) DRF's
    NotAuthenticated is used instead; this covers authorization only.
    """

    default_error_code: str = "PERMISSION_DENIED"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Use for:
    - Lock contention
    - Preconditions on external state that are not met yet

    Note:
        HTTP 409 Conflict is the matching status.
    """

    default_error_code: str = "CONFLICT"
