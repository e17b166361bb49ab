"""Access logging middleware.

Emits one ``http_request`` event per request with method, path, status code
and duration.  Admin endpoints (``/__health``, ``/__gtg``, ...) and
``/metrics`` are polled constantly and are logged at debug level only.
"""
from __future__ import annotations

import time
from typing import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger("splunk_event_reader.access")


def is_admin_path(path: str) -> bool:
    return path.startswith("/__") or path.startswith("/metrics")


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],  # type: ignore[override]
    ) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 2)

        log_kwargs: dict[str, object] = {
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        }
        if request.url.query:
            log_kwargs["query"] = str(request.url.query)

        if is_admin_path(request.url.path):
            logger.debug("http_request", **log_kwargs)
        elif response.status_code >= 500:
            logger.error("http_request", **log_kwargs)
        elif response.status_code >= 400:
            logger.warning("http_request", **log_kwargs)
        else:
            logger.info("http_request", **log_kwargs)

        return response
