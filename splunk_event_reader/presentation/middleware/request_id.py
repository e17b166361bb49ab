"""Request ID middleware.

Every request and response carries an ``X-Request-Id`` header.  An incoming
value (the publishing pipeline forwards its transaction id this way) is
preserved; otherwise a new one is generated.  The id is bound into the
structlog context so all log events of the request carry it.
"""
from __future__ import annotations

import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ...infrastructure.logging import bind_request_id, clear_request_context

HEADER = "X-Request-Id"


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],  # type: ignore[override]
    ) -> Response:
        request_id = request.headers.get(HEADER) or f"tid_{uuid.uuid4().hex[:10]}"
        request.state.request_id = request_id
        clear_request_context()
        bind_request_id(request_id)

        response = await call_next(request)
        response.headers[HEADER] = request_id
        return response
