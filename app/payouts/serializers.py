"""
DRF serializers for the payouts API.

Related files:
    - views.py: Payout API views
"""

from __future__ import annotations

from rest_framework import serializers


class InitiateEventPayoutsRequestSerializer(serializers.Serializer):
    """
    Request body for initiateEventPayouts.

    Accepts the camelCase ``eventId`` used by the web client and
    ``event_id`` for server-side callers. Presence is checked by the
    dispatcher so that an unauthorized caller is refused first.
    """

    eventId = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    event_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        return {"event_id": attrs.get("eventId") or attrs.get("event_id")}


class InitiateEventPayoutsResponseSerializer(serializers.Serializer):
    """Response body for a completed dispatch pass."""

    success = serializers.BooleanField()
    payouts = serializers.IntegerField(help_text="Bookings paid out in this pass")
    payoutStatus = serializers.ChoiceField(choices=["pending", "complete"])


class ErrorResponseSerializer(serializers.Serializer):
    """Structured error body."""

    code = serializers.CharField()
    message = serializers.CharField()


class OnboardingLinkRequestSerializer(serializers.Serializer):
    """Optional site origin for the onboarding return URLs."""

    origin = serializers.URLField(required=False, allow_blank=True)


class LinkResponseSerializer(serializers.Serializer):
    """A Stripe-hosted URL."""

    url = serializers.URLField()
