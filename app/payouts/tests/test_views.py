"""
Tests for the payouts API views.
"""

import uuid

import pytest
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import UserFactory
from events.models import EventPayoutStatus
from payouts.exceptions import PayoutDispatchError
from payouts.services import HostAccountService, PayoutDispatcher
from payouts.tests.factories import OPERATOR_EMAIL, OPERATOR_ROLE, HostAccountFactory

pytestmark = pytest.mark.django_db

INITIATE_URL = reverse("payouts:initiate_event_payouts")


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def operator_client(api_client):
    api_client.force_authenticate(user=UserFactory(email=OPERATOR_EMAIL))
    return api_client


class TestInitiateEventPayouts:
    def test_pays_event(self, operator_client, payable_booking, stripe_adapter):
        response = operator_client.post(
            INITIATE_URL, {"eventId": str(payable_booking.event_id)}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "success": True,
            "payouts": 1,
            "payoutStatus": EventPayoutStatus.COMPLETE,
        }

    def test_accepts_snake_case_event_id(self, operator_client, payable_booking, stripe_adapter):
        response = operator_client.post(
            INITIATE_URL, {"event_id": str(payable_booking.event_id)}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK

    def test_accepts_jwt_bearer(self, api_client, payable_booking, stripe_adapter):
        user = UserFactory(email=OPERATOR_EMAIL)
        token = RefreshToken.for_user(user).access_token
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        response = api_client.post(
            INITIATE_URL, {"eventId": str(payable_booking.event_id)}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK

    def test_operator_role_allowed(self, api_client, payable_booking, stripe_adapter):
        api_client.force_authenticate(user=UserFactory(roles=[OPERATOR_ROLE]))

        response = api_client.post(
            INITIATE_URL, {"eventId": str(payable_booking.event_id)}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK

    def test_unauthenticated(self, api_client, payable_booking):
        response = api_client.post(
            INITIATE_URL, {"eventId": str(payable_booking.event_id)}, format="json"
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_non_operator_forbidden(self, api_client, payable_booking, stripe_adapter):
        api_client.force_authenticate(user=UserFactory())

        response = api_client.post(
            INITIATE_URL, {"eventId": str(payable_booking.event_id)}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "PERMISSION_DENIED"
        stripe_adapter.create_transfer.assert_not_called()
        payable_booking.refresh_from_db()
        assert payable_booking.paid_out is False

    def test_missing_event_id(self, operator_client):
        response = operator_client.post(INITIATE_URL, {}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "INVALID_ARGUMENT"

    def test_non_string_event_id(self, operator_client):
        response = operator_client.post(INITIATE_URL, {"eventId": ["a", "b"]}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "INVALID_ARGUMENT"

    def test_unknown_event(self, operator_client):
        response = operator_client.post(INITIATE_URL, {"eventId": str(uuid.uuid4())}, format="json")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["code"] == "NOT_FOUND"

    def test_dispatch_failure_is_internal(self, operator_client, event, mocker):
        mocker.patch.object(
            PayoutDispatcher,
            "dispatch",
            side_effect=PayoutDispatchError("Failed to reconcile event payout status"),
        )

        response = operator_client.post(INITIATE_URL, {"eventId": str(event.id)}, format="json")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {
            "code": "INTERNAL",
            "message": "Failed to reconcile event payout status",
        }

    def test_unexpected_error_is_internal(self, operator_client, event, mocker):
        mocker.patch.object(PayoutDispatcher, "dispatch", side_effect=RuntimeError("boom"))

        response = operator_client.post(INITIATE_URL, {"eventId": str(event.id)}, format="json")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["code"] == "INTERNAL"

    def test_partial_failure_still_succeeds(self, operator_client, event, stripe_adapter):
        from events.tests.factories import BookingFactory

        BookingFactory(event=event, host=HostAccountFactory().user)
        BookingFactory(event=event)  # host without payout account

        response = operator_client.post(INITIATE_URL, {"eventId": str(event.id)}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["payouts"] == 1
        assert response.json()["payoutStatus"] == EventPayoutStatus.PENDING


class TestHostLinks:
    @pytest.fixture(autouse=True)
    def account_adapter(self, mocker):
        adapter = mocker.MagicMock()
        adapter.create_express_account.return_value = "acct_new"
        adapter.create_account_link.return_value = "https://connect.stripe.com/setup/e/acct_new"
        adapter.create_login_link.return_value = "https://connect.stripe.com/express/acct_new"
        HostAccountService.set_stripe_adapter(adapter)
        yield adapter
        HostAccountService.set_stripe_adapter(None)

    def test_onboarding_link(self, api_client):
        api_client.force_authenticate(user=UserFactory())

        response = api_client.post(
            reverse("payouts:host_onboarding_link"),
            {"origin": "https://parkpal.co"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"url": "https://connect.stripe.com/setup/e/acct_new"}

    def test_onboarding_link_requires_verified_email(self, api_client):
        api_client.force_authenticate(user=UserFactory(email_verified=False))

        response = api_client.post(reverse("payouts:host_onboarding_link"), {}, format="json")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "PERMISSION_DENIED"

    def test_onboarding_link_rejects_bad_origin(self, api_client):
        api_client.force_authenticate(user=UserFactory())

        response = api_client.post(
            reverse("payouts:host_onboarding_link"), {"origin": "javascript:alert(1)"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_dashboard_link(self, api_client):
        account = HostAccountFactory()
        api_client.force_authenticate(user=account.user)

        response = api_client.post(reverse("payouts:host_dashboard_link"))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["url"] == "https://connect.stripe.com/express/acct_new"

    def test_dashboard_link_without_account(self, api_client):
        api_client.force_authenticate(user=UserFactory())

        response = api_client.post(reverse("payouts:host_dashboard_link"))

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["code"] == "FAILED_PRECONDITION"

    def test_links_require_authentication(self, api_client):
        response = api_client.post(reverse("payouts:host_dashboard_link"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
