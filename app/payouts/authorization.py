"""
Operator guard for settlement triggers.

Only payout operators may start a settlement pass. A caller is an
operator when their email is on PAYOUT_OPERATOR_EMAILS or one of their
roles (Django group names) equals PAYOUT_OPERATOR_ROLE. The check fails
closed: no identity or no email means not allowed.

Usage:
    from payouts.authorization import CallerIdentity, require_operator

    require_operator(CallerIdentity.from_user(request.user))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from django.conf import settings
from rest_framework import permissions

from core.exceptions import PermissionDeniedError

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


@dataclass(frozen=True)
class CallerIdentity:
    """
    Who is asking for a settlement pass.

    Attributes:
        email: Email claim of the caller, if any
        roles: Role claims (group names)
    """

    email: str | None
    roles: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_user(cls, user) -> CallerIdentity | None:
        """Build an identity from an authenticated Django user."""
        if user is None or not getattr(user, "is_authenticated", False):
            return None
        return cls(email=user.email or None, roles=user.role_names)

    @classmethod
    def from_email(cls, email: str | None, roles: Iterable[str] = ()) -> CallerIdentity:
        return cls(email=email or None, roles=frozenset(roles))


@dataclass(frozen=True)
class OperatorPolicy:
    """
    Decides whether an identity may trigger payouts.

    Attributes:
        allowed_emails: Lowercased operator emails
        operator_role: Role name that grants operator access (empty disables)
    """

    allowed_emails: frozenset[str]
    operator_role: str = ""

    @classmethod
    def from_settings(cls) -> OperatorPolicy:
        emails = getattr(settings, "PAYOUT_OPERATOR_EMAILS", [])
        return cls(
            allowed_emails=frozenset(e.strip().lower() for e in emails if e and e.strip()),
            operator_role=getattr(settings, "PAYOUT_OPERATOR_ROLE", ""),
        )

    def authorize(self, identity: CallerIdentity | None) -> bool:
        if identity is None or not identity.email:
            return False
        if identity.email.strip().lower() in self.allowed_emails:
            return True
        return bool(self.operator_role) and self.operator_role in identity.roles


def require_operator(
    identity: CallerIdentity | None,
    policy: OperatorPolicy | None = None,
) -> None:
    """
    Raise unless the identity is a payout operator.

    Raises:
        PermissionDeniedError: Caller is not allowed (PERMISSION_DENIED)
    """
    policy = policy or OperatorPolicy.from_settings()
    if not policy.authorize(identity):
        raise PermissionDeniedError(
            "Caller is not authorized to initiate payouts",
            details={"email": identity.email} if identity and identity.email else None,
        )


class IsPayoutOperator(permissions.BasePermission):
    """
    Allows access only to payout operators.

    The denial body uses the same {"code", "message"} shape as the
    settlement endpoint's other errors.
    """

    message = {
        "code": "PERMISSION_DENIED",
        "message": "Caller is not authorized to initiate payouts",
    }

    def has_permission(self, request: Request, view: APIView) -> bool:
        return OperatorPolicy.from_settings().authorize(
            CallerIdentity.from_user(request.user)
        )
