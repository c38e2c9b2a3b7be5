"""
Tests for authentication app.

This package contains test modules for:
- test_managers.py: UserManager and User helper tests

Usage:
    pytest authentication/tests/
"""
