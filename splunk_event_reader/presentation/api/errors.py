"""Global exception handlers: map reader exceptions to HTTP responses."""
from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ...domain import EventReaderError, InvalidRequestError, NoResultsError

logger = structlog.get_logger(__name__)


def _error_response(status: int, code: str, message: str) -> JSONResponse:
    body = {
        "error": {
            "code": code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    }
    return JSONResponse(status_code=status, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = ", ".join(".".join(str(p) for p in e.get("loc", [])) for e in exc.errors())
        logger.warning("invalid_request", path=request.url.path, fields=fields)
        return _error_response(400, "INVALID_REQUEST", f"Invalid request parameters: {fields}")

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(request: Request, exc: InvalidRequestError) -> JSONResponse:
        logger.warning("invalid_request", path=request.url.path, error=exc.message)
        return _error_response(400, exc.error_code, exc.message)

    @app.exception_handler(NoResultsError)
    async def no_results_handler(request: Request, exc: NoResultsError) -> JSONResponse:
        return _error_response(404, exc.error_code, exc.message)

    @app.exception_handler(EventReaderError)
    async def reader_error_handler(request: Request, exc: EventReaderError) -> JSONResponse:
        logger.error("request_failed", path=request.url.path, error_code=exc.error_code, error=exc.message)
        return _error_response(500, exc.error_code, exc.message)
