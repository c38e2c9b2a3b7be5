"""
Infrastructure endpoints that sit outside the business domain.
"""

from django.db import connection
from django.http import JsonResponse


def health_check(request):
    """
    Liveness/readiness probe for containers and load balancers.

    The database is required; the cache (which also backs the payout
    host locks) is reported but does not fail the probe.

    HTTP Status Codes:
        200: Database reachable
        503: Database unreachable
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception:
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    try:
        from django.core.cache import cache

        cache.set("health_check", "ok", timeout=1)
        health_status["cache"] = (
            "connected" if cache.get("health_check") == "ok" else "disconnected"
        )
    except Exception:
        health_status["cache"] = "disconnected"

    return JsonResponse(health_status, status=200 if is_healthy else 503)
