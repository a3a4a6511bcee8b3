"""Prometheus metrics for monitoring and observability."""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from functools import lru_cache

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# ==============================================================================
# APPLICATION INFO
# ==============================================================================

app_info = Info("grand_palace_concierge", "Grand Palace concierge API information")
app_info.info(
    {
        "version": "0.1.0",
        "service": "grand-palace-concierge",
    }
)

# ==============================================================================
# HTTP METRICS
# ==============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "HTTP requests currently in progress",
    ["method", "endpoint"],
)

# ==============================================================================
# CONCIERGE METRICS
# ==============================================================================

assistant_replies_total = Counter(
    "concierge_assistant_replies_total",
    "Assistant replies by detected intent and source",
    ["intent", "source"],  # source: completion | fallback
)

provider_requests_total = Counter(
    "concierge_provider_requests_total",
    "Outbound provider lookups by outcome",
    ["provider", "operation", "outcome"],  # outcome: ok | mock | error | miss
)

active_sessions = Gauge(
    "concierge_active_sessions",
    "Guest sessions currently held in memory",
)


def record_provider_call(provider: str, operation: str, outcome: str) -> None:
    provider_requests_total.labels(provider=provider, operation=operation, outcome=outcome).inc()


@lru_cache(maxsize=2048)
def normalize_endpoint(path: str) -> str:
    """
    Normalize endpoint path to reduce cardinality.

    Examples:
        /v1/concierge/sessions/guest-42/messages -> /v1/concierge/sessions/{id}/messages
        /v1/items/123 -> /v1/items/{id}
    """
    path = re.sub(r"/sessions/[^/]+", "/sessions/{id}", path)
    path = re.sub(r"/\d+(?=/|$)", "/{id}", path)
    return path


# ==============================================================================
# PROMETHEUS MIDDLEWARE
# ==============================================================================


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to track HTTP request metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        endpoint = normalize_endpoint(request.url.path)

        http_requests_in_progress.labels(method=method, endpoint=endpoint).inc()
        start_time = time.time()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            duration = time.time() - start_time
            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)
            http_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
            http_requests_in_progress.labels(method=method, endpoint=endpoint).dec()


def get_metrics() -> Response:
    """Generate Prometheus metrics response."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "PrometheusMiddleware",
    "active_sessions",
    "assistant_replies_total",
    "get_metrics",
    "http_request_duration_seconds",
    "http_requests_total",
    "normalize_endpoint",
    "provider_requests_total",
    "record_provider_call",
]
