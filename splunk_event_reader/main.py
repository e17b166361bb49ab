"""Process entry point for the ``splunk-event-reader`` console script."""
from __future__ import annotations

import structlog

from .config import get_settings
from .infrastructure.logging import setup_logging
from .presentation.api import create_app

logger = structlog.get_logger(__name__)


def run() -> None:
    import uvicorn

    settings = get_settings()
    setup_logging(settings.log_level, json_output=settings.log_json)
    logger.info("service_starting", port=settings.app_port, app_name=settings.app_name)

    uvicorn.run(
        create_app(settings),
        host="0.0.0.0",
        port=settings.app_port,
        log_config=None,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
