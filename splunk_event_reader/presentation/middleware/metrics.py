"""Prometheus request metrics."""
from __future__ import annotations

import time
from typing import Callable

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_COUNT = Counter(
    "splunk_event_reader_requests_total",
    "Total HTTP requests",
    ["method", "route", "status"],
)
REQUEST_LATENCY = Histogram(
    "splunk_event_reader_request_duration_seconds",
    "HTTP request latency",
    ["method", "route"],
)


UNMATCHED_ROUTE = "unmatched"


def _route_label(request: Request) -> str:
    # all unrouted requests share one label
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],  # type: ignore[override]
    ) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        route = _route_label(request)
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(request.method, route).observe(time.perf_counter() - start)
        return response
