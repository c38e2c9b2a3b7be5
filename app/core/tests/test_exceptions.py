"""
Tests for the application exception hierarchy.
"""

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


class TestBaseApplicationError:
    def test_to_dict_without_details(self):
        error = NotFoundError("Event 1 not found")

        assert error.to_dict() == {"code": "NOT_FOUND", "message": "Event 1 not found"}

    def test_to_dict_with_details(self):
        error = ValidationError("eventId is required", details={"field": "eventId"})

        assert error.to_dict() == {
            "code": "INVALID_ARGUMENT",
            "message": "eventId is required",
            "details": {"field": "eventId"},
        }

    def test_explicit_code_overrides_default(self):
        error = ConflictError("Booking already paid", error_code="PAID_OUT_IMMUTABLE")

        assert error.error_code == "PAID_OUT_IMMUTABLE"
        assert str(error) == "[PAID_OUT_IMMUTABLE] Booking already paid"

    def test_default_codes(self):
        assert BaseApplicationError("x").error_code == "APPLICATION_ERROR"
        assert PermissionDeniedError("x").error_code == "PERMISSION_DENIED"
        assert ConflictError("x").error_code == "CONFLICT"
