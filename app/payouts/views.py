"""
Payout API views.

Endpoints:
    - POST /api/v1/payouts/initiate-event-payouts/ (initiateEventPayouts)
    - POST /api/v1/payouts/host/onboarding-link/
    - POST /api/v1/payouts/host/dashboard-link/

Errors use the body {"code": ..., "message": ...} with codes
INVALID_ARGUMENT (400), PERMISSION_DENIED (403), NOT_FOUND (404),
FAILED_PRECONDITION (409) and INTERNAL (500).

Related files:
    - services/: Business logic
    - serializers.py: Request/response shapes
"""

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError
from payouts.authorization import CallerIdentity, IsPayoutOperator
from payouts.serializers import (
    ErrorResponseSerializer,
    InitiateEventPayoutsRequestSerializer,
    InitiateEventPayoutsResponseSerializer,
    LinkResponseSerializer,
    OnboardingLinkRequestSerializer,
)
from payouts.services import HostAccountService, PayoutDispatcher

logger = logging.getLogger(__name__)

ERROR_CODE_STATUS = {
    "INVALID_ARGUMENT": status.HTTP_400_BAD_REQUEST,
    "PERMISSION_DENIED": status.HTTP_403_FORBIDDEN,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "FAILED_PRECONDITION": status.HTTP_409_CONFLICT,
    "INTERNAL": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(code: str, message: str) -> Response:
    return Response(
        {"code": code, "message": message},
        status=ERROR_CODE_STATUS.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR),
    )


# =============================================================================
# Event Settlement
# =============================================================================


class InitiateEventPayoutsView(APIView):
    """
    Run one settlement pass for an event.

    POST /api/v1/payouts/initiate-event-payouts/
        {"eventId": "<uuid>"}

    Authentication:
        Requires a payout operator (allow-listed email or operator role).

    Response:
        200 OK: {"success": true, "payouts": 2, "payoutStatus": "complete"}
        400/403/404/500: {"code": ..., "message": ...}
    """

    permission_classes = [IsAuthenticated, IsPayoutOperator]

    @extend_schema(
        operation_id="initiate_event_payouts",
        summary="Initiate event payouts",
        description=(
            "Pay every unpaid booking of a concluded event to its host's connected "
            "account and return the number of payouts issued. Safe to call repeatedly."
        ),
        request=InitiateEventPayoutsRequestSerializer,
        responses={
            200: InitiateEventPayoutsResponseSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="eventId missing"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not a payout operator"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Event not found"),
            500: OpenApiResponse(response=ErrorResponseSerializer, description="Internal error"),
        },
        tags=["Payouts"],
    )
    def post(self, request):
        serializer = InitiateEventPayoutsRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("INVALID_ARGUMENT", "eventId must be a string")

        try:
            result = PayoutDispatcher.dispatch(
                serializer.validated_data["event_id"],
                CallerIdentity.from_user(request.user),
            )
        except BaseApplicationError as e:
            if e.error_code not in ERROR_CODE_STATUS:
                logger.error(
                    "Event payout pass failed",
                    extra={"error_code": e.error_code, "details": e.details},
                )
                return error_response("INTERNAL", e.message)
            return error_response(e.error_code, e.message)
        except Exception:
            logger.exception("Unexpected error initiating event payouts")
            return error_response("INTERNAL", "Failed to initiate event payouts")

        return Response(
            {
                "success": result.success,
                "payouts": result.payouts_issued,
                "payoutStatus": result.payout_status,
            },
            status=status.HTTP_200_OK,
        )


# =============================================================================
# Host Accounts
# =============================================================================


class HostOnboardingLinkView(APIView):
    """
    Get a Stripe onboarding URL for the current host.

    POST /api/v1/payouts/host/onboarding-link/
        {"origin": "https://parkpal.co"}  (optional)

    The first call opens the host's Stripe Express account.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_host_onboarding_link",
        summary="Create host onboarding link",
        request=OnboardingLinkRequestSerializer,
        responses={
            200: LinkResponseSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Email not verified"),
            500: OpenApiResponse(response=ErrorResponseSerializer),
        },
        tags=["Payouts - Hosts"],
    )
    def post(self, request):
        serializer = OnboardingLinkRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("INVALID_ARGUMENT", "origin must be a valid URL")

        result = HostAccountService.create_onboarding_link(
            request.user, serializer.validated_data.get("origin") or None
        )
        if not result.success:
            return error_response(result.error_code, result.error)
        return Response({"url": result.data}, status=status.HTTP_200_OK)


class HostDashboardLinkView(APIView):
    """
    Get a Stripe Express dashboard URL for the current host.

    POST /api/v1/payouts/host/dashboard-link/

    Response:
        200 OK: {"url": ...}
        409 Conflict: Host has no connected account yet
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_host_dashboard_link",
        summary="Create host dashboard link",
        request=None,
        responses={
            200: LinkResponseSerializer,
            409: OpenApiResponse(response=ErrorResponseSerializer, description="No Stripe account"),
            500: OpenApiResponse(response=ErrorResponseSerializer),
        },
        tags=["Payouts - Hosts"],
    )
    def post(self, request):
        result = HostAccountService.create_dashboard_link(request.user)
        if not result.success:
            return error_response(result.error_code, result.error)
        return Response({"url": result.data}, status=status.HTTP_200_OK)
