"""
Authentication application.

Provides the email-based User model. Hosts, renters and payout operators
are all Users; operator access is granted by email allow-list or group.

Usage:
    from authentication.models import User
"""
