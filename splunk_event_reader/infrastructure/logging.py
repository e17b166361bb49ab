"""Structured logging configuration -- structlog + stdlib integration.

:func:`setup_logging` configures **structlog** and the stdlib root logger so
that our own events and those of uvicorn/httpx share one processor chain:
UTC ISO-8601 timestamp, level, logger name, and any values bound through
:mod:`structlog.contextvars` (the API binds ``request_id`` per request).

``json_output=True`` renders one JSON object per line, which is what the
log shipper in the cluster expects.  Otherwise the console renderer is used.
"""
from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "asyncio")


def setup_logging(level: str = "info", json_output: bool = True) -> None:
    """Configure structlog with stdlib logging integration.

    Args:
        level: Log level name (``debug``, ``info``, ``warning``, ...).
        json_output: Render JSON lines instead of coloured console output.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for noisy in _QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info("logging_configured", level=level, json_output=json_output)


def bind_request_id(request_id: str) -> None:
    """Attach ``request_id`` to every log event of the current context."""
    structlog.contextvars.bind_contextvars(request_id=request_id)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = ["setup_logging", "bind_request_id", "clear_request_context"]
