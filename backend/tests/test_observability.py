"""Tests for observability features: metrics, health checks, and request tracing."""

from __future__ import annotations

import asyncio

import pytest
from backend.app.health import health_checker
from backend.app.logging_config import add_request_id, add_service_fields
from backend.app.main import app
from backend.app.metrics import normalize_endpoint
from backend.app.settings import settings
from backend.app.utils import get_request_id, request_id_ctx
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY


@pytest.fixture
def client():
    """Create test client"""
    return TestClient(app)


# ==============================================================================
# PROMETHEUS METRICS TESTS
# ==============================================================================


class TestPrometheusMetrics:
    """Test Prometheus metrics endpoint and tracking."""

    def test_metrics_endpoint_exists(self, client):
        response = client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")

    def test_metrics_endpoint_returns_prometheus_format(self, client):
        content = client.get("/metrics").text

        assert "# HELP" in content
        assert "# TYPE" in content
        assert "grand_palace_concierge_info" in content

    def test_http_metrics_tracked(self, client):
        client.get("/health")
        client.get("/v1/hotel")

        content = client.get("/metrics").text

        assert "http_requests_total" in content
        assert "http_request_duration_seconds" in content
        assert 'endpoint="/v1/hotel"' in content

    def test_concierge_metrics_tracked(self, client):
        replies = ("concierge_assistant_replies_total", {"intent": "weather", "source": "fallback"})
        provider = (
            "concierge_provider_requests_total",
            {"provider": "weather", "operation": "current", "outcome": "mock"},
        )
        requests = (
            "http_requests_total",
            {"method": "POST", "endpoint": "/v1/concierge/sessions/{id}/messages", "status": "200"},
        )
        samples = (replies, provider, requests)
        before = {name: REGISTRY.get_sample_value(name, labels) or 0 for name, labels in samples}

        client.post("/v1/concierge/sessions/metrics-1/messages", json={"message": "weather?"})

        for name, labels in samples:
            assert REGISTRY.get_sample_value(name, labels) == before[name] + 1
        assert REGISTRY.get_sample_value("concierge_active_sessions") == 1
        assert "concierge_active_sessions" in client.get("/metrics").text

    def test_endpoint_normalization(self):
        assert (
            normalize_endpoint("/v1/concierge/sessions/guest-42/messages")
            == "/v1/concierge/sessions/{id}/messages"
        )
        assert normalize_endpoint("/v1/concierge/sessions/abc/profile") == (
            "/v1/concierge/sessions/{id}/profile"
        )
        assert normalize_endpoint("/v1/items/12345") == "/v1/items/{id}"
        assert normalize_endpoint("/health") == "/health"
        assert normalize_endpoint("/v1/weather/forecast") == "/v1/weather/forecast"

    def test_metrics_endpoint_not_tracked(self, client):
        client.get("/metrics")
        content = client.get("/metrics").text

        # Metrics endpoint should not appear in its own metrics
        assert 'endpoint="/metrics"' not in content


# ==============================================================================
# HEALTH CHECK TESTS
# ==============================================================================


class TestHealthCheck:
    """Test health check with provider verification."""

    def test_health_endpoint_basic_structure(self, client):
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert data["service"] == "grand-palace-concierge"
        assert data["version"] == "0.1.0"
        assert set(data["checks"]) == {"profile_storage", "completion", "weather", "maps", "sentry"}

    def test_missing_keys_report_fallback(self, client):
        checks = client.get("/health").json()["checks"]

        assert checks["profile_storage"]["status"] == "ok"
        assert checks["completion"]["status"] == "fallback"
        assert checks["weather"]["status"] == "fallback"
        assert checks["maps"]["status"] == "fallback"
        assert checks["sentry"]["status"] == "disabled"

    def test_configured_keys_report_ok(self, client):
        settings.OPENAI_API_KEY = "sk-test"
        settings.OPENWEATHER_API_KEY = "weather-key"
        settings.GOOGLE_MAPS_API_KEY = "your_google_maps_api_key"

        checks = client.get("/health").json()["checks"]

        assert checks["completion"]["status"] == "ok"
        assert checks["weather"]["status"] == "ok"
        assert checks["maps"]["status"] == "fallback"

    def test_invalid_sentry_dsn_degrades(self, client):
        settings.SENTRY_DSN = "not-a-dsn"

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"
        assert response.json()["checks"]["sentry"]["status"] == "error"

    def test_debug_details_are_scrubbed(self, client, monkeypatch):
        monkeypatch.setattr(settings, "DEBUG", True)
        settings.SENTRY_DSN = "not-a-dsn"

        details = client.get("/health").json()["details"]

        assert "error" not in details["checks"]["sentry"]

    def test_check_all_directly(self):
        result = asyncio.run(health_checker.check_all())
        assert result["status"] == "healthy"


# ==============================================================================
# REQUEST ID TRACING TESTS
# ==============================================================================


class TestRequestIDTracing:
    """Test request ID tracing middleware."""

    def test_request_id_generated_if_not_provided(self, client):
        response = client.get("/health")

        request_id = response.headers["X-Request-ID"]
        assert len(request_id) == 36
        assert request_id.count("-") == 4

    def test_request_id_preserved_from_header(self, client):
        custom_id = "test-request-12345"
        response = client.get("/health", headers={"X-Request-ID": custom_id})
        assert response.headers["X-Request-ID"] == custom_id

    def test_request_id_unique_per_request(self, client):
        id1 = client.get("/health").headers["X-Request-ID"]
        id2 = client.get("/health").headers["X-Request-ID"]
        assert id1 != id2

    def test_request_id_context_accessible(self):
        token = request_id_ctx.set("test-context-id")
        assert get_request_id() == "test-context-id"
        request_id_ctx.reset(token)
        assert get_request_id() == ""

    def test_request_id_on_every_response(self, client):
        trace_id = "correlation-test-123"
        responses = [
            client.get("/health", headers={"X-Request-ID": trace_id}),
            client.get("/v1/hotel", headers={"X-Request-ID": trace_id}),
            client.get("/metrics", headers={"X-Request-ID": trace_id}),
            client.get("/nonexistent-endpoint", headers={"X-Request-ID": trace_id}),
        ]
        for response in responses:
            assert response.headers["X-Request-ID"] == trace_id

    def test_security_headers(self, client):
        response = client.get("/v1/hotel")
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Referrer-Policy"] == "no-referrer"

    def test_log_events_carry_request_and_service_fields(self):
        token = request_id_ctx.set("log-trace-1")
        try:
            event = add_service_fields(None, "info", add_request_id(None, "info", {"event": "guest_turn"}))
        finally:
            request_id_ctx.reset(token)

        assert event["request_id"] == "log-trace-1"
        assert event["service"] == "grand-palace-concierge"
        assert event["environment"] == settings.SENTRY_ENVIRONMENT
        assert "request_id" not in add_request_id(None, "info", {"event": "startup"})
