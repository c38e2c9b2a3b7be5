"""
Test configuration and fixtures for authentication tests.
"""

import pytest

from authentication.models import User
from authentication.tests.factories import UserFactory


@pytest.fixture
def user(db):
    """Create a basic verified user."""
    return UserFactory()


@pytest.fixture
def superuser(db):
    """Create a superuser with admin privileges."""
    return User.objects.create_superuser(
        email="admin@example.com",
        password="AdminPass123!",
    )
