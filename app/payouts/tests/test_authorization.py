"""
Tests for the payout operator guard.
"""

from unittest.mock import MagicMock

import pytest
from django.contrib.auth.models import AnonymousUser

from core.exceptions import PermissionDeniedError
from payouts.authorization import (
    CallerIdentity,
    IsPayoutOperator,
    OperatorPolicy,
    require_operator,
)
from payouts.tests.factories import OPERATOR_EMAIL, OPERATOR_ROLE


class TestOperatorPolicy:
    def test_allows_listed_email(self):
        policy = OperatorPolicy(allowed_emails=frozenset({"ops@parkpal.co"}))

        assert policy.authorize(CallerIdentity.from_email("ops@parkpal.co")) is True

    def test_email_match_ignores_case_and_whitespace(self):
        policy = OperatorPolicy(allowed_emails=frozenset({"ops@parkpal.co"}))

        assert policy.authorize(CallerIdentity.from_email(" Ops@ParkPal.co ")) is True

    def test_allows_operator_role(self):
        policy = OperatorPolicy(allowed_emails=frozenset(), operator_role="payout-operators")
        identity = CallerIdentity.from_email("staff@parkpal.co", roles=["payout-operators"])

        assert policy.authorize(identity) is True

    def test_denies_other_roles(self):
        policy = OperatorPolicy(allowed_emails=frozenset(), operator_role="payout-operators")
        identity = CallerIdentity.from_email("staff@parkpal.co", roles=["support"])

        assert policy.authorize(identity) is False

    def test_empty_role_grants_nothing(self):
        policy = OperatorPolicy(allowed_emails=frozenset(), operator_role="")
        identity = CallerIdentity.from_email("staff@parkpal.co", roles=[""])

        assert policy.authorize(identity) is False

    @pytest.mark.parametrize("identity", [None, CallerIdentity.from_email(None)])
    def test_fails_closed_without_email(self, identity):
        policy = OperatorPolicy(allowed_emails=frozenset({"ops@parkpal.co"}), operator_role="x")

        assert policy.authorize(identity) is False

    def test_from_settings_normalizes_emails(self, settings):
        settings.PAYOUT_OPERATOR_EMAILS = [" Finance@ParkPal.co", "", "ops@parkpal.co"]
        settings.PAYOUT_OPERATOR_ROLE = "finance"

        policy = OperatorPolicy.from_settings()

        assert policy.allowed_emails == frozenset({"finance@parkpal.co", "ops@parkpal.co"})
        assert policy.operator_role == "finance"


class TestRequireOperator:
    def test_passes_for_operator(self):
        require_operator(CallerIdentity.from_email(OPERATOR_EMAIL))

    def test_raises_permission_denied(self):
        with pytest.raises(PermissionDeniedError) as exc_info:
            require_operator(CallerIdentity.from_email("renter@example.com"))

        assert exc_info.value.error_code == "PERMISSION_DENIED"
        assert exc_info.value.details == {"email": "renter@example.com"}

    def test_raises_for_missing_identity(self):
        with pytest.raises(PermissionDeniedError):
            require_operator(None)

    def test_uses_given_policy(self):
        policy = OperatorPolicy(allowed_emails=frozenset({"other@parkpal.co"}))

        with pytest.raises(PermissionDeniedError):
            require_operator(CallerIdentity.from_email(OPERATOR_EMAIL), policy=policy)


class TestCallerIdentity:
    def test_anonymous_user_has_no_identity(self):
        assert CallerIdentity.from_user(AnonymousUser()) is None

    def test_none_user_has_no_identity(self):
        assert CallerIdentity.from_user(None) is None

    def test_user_groups_become_roles(self, db):
        from authentication.tests.factories import UserFactory

        user = UserFactory(email="staff@parkpal.co", roles=[OPERATOR_ROLE, "support"])

        identity = CallerIdentity.from_user(user)

        assert identity.email == "staff@parkpal.co"
        assert identity.roles == frozenset({OPERATOR_ROLE, "support"})


class TestIsPayoutOperator:
    def test_grants_operator(self, db):
        from authentication.tests.factories import UserFactory

        request = MagicMock(user=UserFactory(email=OPERATOR_EMAIL))

        assert IsPayoutOperator().has_permission(request, MagicMock()) is True

    def test_denies_non_operator(self, db):
        from authentication.tests.factories import UserFactory

        request = MagicMock(user=UserFactory())

        assert IsPayoutOperator().has_permission(request, MagicMock()) is False

    def test_denial_message_is_structured(self):
        assert IsPayoutOperator.message["code"] == "PERMISSION_DENIED"
