"""
Tests for UserManager and the User model helpers.

Related files:
    - managers.py: Implementation under test
    - models.py: User model that uses this manager
"""

import pytest

from authentication.models import User
from authentication.tests.factories import UserFactory


class TestUserManagerCreateUser:
    """Tests for UserManager.create_user() method."""

    def test_creates_user_with_email_and_password(self, db):
        """
        Given valid email and password
        When create_user is called
        Then a user is created with those credentials
        """
        user = User.objects.create_user(email="host@example.com", password="Secure123!")

        assert user.pk is not None
        assert user.email == "host@example.com"
        assert user.check_password("Secure123!") is True
        assert user.is_staff is False
        assert user.is_superuser is False

    def test_normalizes_email_domain_to_lowercase(self, db):
        user = User.objects.create_user(email="Host.User@EXAMPLE.COM")

        assert user.email == "Host.User@example.com"

    def test_without_password_sets_unusable_password(self, db):
        user = User.objects.create_user(email="nopass@example.com")

        assert user.has_usable_password() is False

    def test_rejects_empty_email(self, db):
        with pytest.raises(ValueError, match="Email"):
            User.objects.create_user(email="")


class TestUserManagerCreateSuperuser:
    """Tests for UserManager.create_superuser() method."""

    def test_sets_admin_flags(self, db):
        admin = User.objects.create_superuser(email="ops@example.com", password="pw")

        assert admin.is_staff is True
        assert admin.is_superuser is True
        assert admin.email_verified is True

    def test_rejects_is_staff_false(self, db):
        with pytest.raises(ValueError, match="is_staff"):
            User.objects.create_superuser(
                email="ops@example.com", password="pw", is_staff=False
            )


class TestUserRoleNames:
    """Tests for User.role_names used as role claims."""

    def test_returns_group_names(self, db):
        user = UserFactory(roles=["payout-operators", "support"])

        assert user.role_names == frozenset({"payout-operators", "support"})

    def test_empty_without_groups(self, db):
        user = UserFactory()

        assert user.role_names == frozenset()
