"""Prometheus metrics for the recommendation and search API."""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from functools import lru_cache

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
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

app_info = Info("odiga", "odiga recommendation API information")
app_info.info({"version": "0.1.0", "service": "odiga-api"})

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
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ==============================================================================
# DOMAIN METRICS
# ==============================================================================

recommendations_total = Counter(
    "recommendations_total",
    "Recommendation responses by type",
    ["type"],
)

search_fallback_level_total = Counter(
    "search_fallback_level_total",
    "Searches by the relaxation level that produced the result",
    ["level"],
)

external_call_duration_seconds = Histogram(
    "external_call_duration_seconds",
    "Duration of calls to the LLM and the place catalog",
    ["call"],
    buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 15.0),
)


@lru_cache(maxsize=2048)
def normalize_endpoint(path: str) -> str:
    """
    Collapse IDs in a path to keep label cardinality bounded.

    Examples:
        /v1/places/123 -> /v1/places/{id}
    """
    path = re.sub(
        r"/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
        "/{id}",
        path,
        flags=re.IGNORECASE,
    )
    path = re.sub(r"/\d+", "/{id}", path)
    return path


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to track HTTP request metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        endpoint = normalize_endpoint(request.url.path)
        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            http_requests_total.labels(method=method, endpoint=endpoint, status="500").inc()
            raise
        finally:
            duration = time.perf_counter() - start_time
            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)

        http_requests_total.labels(
            method=method, endpoint=endpoint, status=str(response.status_code)
        ).inc()
        return response


def get_metrics() -> Response:
    """Generate Prometheus metrics response."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "PrometheusMiddleware",
    "get_metrics",
    "http_requests_total",
    "http_request_duration_seconds",
    "recommendations_total",
    "search_fallback_level_total",
    "external_call_duration_seconds",
]
