"""
Tests for infrastructure endpoints.
"""

import pytest
from django.urls import reverse


@pytest.mark.django_db
class TestHealthCheck:
    @pytest.fixture(autouse=True)
    def cache(self, mocker):
        return mocker.patch("django.core.cache.cache")

    def test_healthy_with_database(self, client):
        response = client.get(reverse("health_check"))

        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    def test_unhealthy_without_database(self, client, mocker):
        mocker.patch("core.views.connection.cursor", side_effect=Exception("db down"))

        response = client.get(reverse("health_check"))

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    def test_plain_http_is_served(self, client, settings):
        response = client.get(reverse("health_check"), secure=False)

        assert settings.SECURE_SSL_REDIRECT is False
        assert response.status_code == 200
