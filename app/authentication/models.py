"""
Authentication models.

- User: Custom user model with email-based authentication

The settlement core never reads this model for business data. It derives
the caller identity (email claim plus group names as role claims) from the
authenticated user, and bookings reference users as host and renter.

Related files:
    - managers.py: Custom user manager for email-based creation
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login
        email_verified: Whether the user's email has been verified
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified

    Usage:
        host = User.objects.create_user(email="host@example.com", password="...")
        operator = User.objects.create_superuser(email="ops@example.com", password="...")
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    email_verified = models.BooleanField(
        default=False,
        help_text="Whether the user's email has been verified",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        return self.email

    def get_short_name(self):
        return self.email.split("@")[0]

    @property
    def role_names(self) -> frozenset[str]:
        """Names of the permission groups this user belongs to."""
        return frozenset(self.groups.values_list("name", flat=True))
