"""
URL configuration for the payouts app.

Routes:
    - POST initiate-event-payouts/ - Run a settlement pass for an event
    - POST host/onboarding-link/ - Stripe onboarding URL for the host
    - POST host/dashboard-link/ - Stripe Express dashboard URL for the host

All routes are prefixed with /api/v1/payouts/ when included in the main URLconf.
"""

from django.urls import path

from payouts.views import (
    HostDashboardLinkView,
    HostOnboardingLinkView,
    InitiateEventPayoutsView,
)

app_name = "payouts"

urlpatterns = [
    path(
        "initiate-event-payouts/",
        InitiateEventPayoutsView.as_view(),
        name="initiate_event_payouts",
    ),
    path("host/onboarding-link/", HostOnboardingLinkView.as_view(), name="host_onboarding_link"),
    path("host/dashboard-link/", HostDashboardLinkView.as_view(), name="host_dashboard_link"),
]
