"""TTL-cached Splunk health probe."""
from __future__ import annotations

from datetime import timedelta

import structlog

from ...domain import EventReaderError, HealthStatus
from ..query.builder import QueryBuilder
from ..search.executor import JobExecutor

logger = structlog.get_logger(__name__)


class HealthCache:
    """Answers "is Splunk usable?" without loading it on every health poll.

    A status younger than ``ttl_seconds`` is returned as is.  Real traffic
    refreshes it too, because the executor records every search outcome in
    the same cell.  Concurrent callers that all find the status expired each
    run their own probe.
    """

    def __init__(self, executor: JobExecutor, ttl_seconds: float = 60.0) -> None:
        self._executor = executor
        self._cell = executor.health
        self.ttl = timedelta(seconds=ttl_seconds)

    def read(self) -> HealthStatus:
        return self._cell.read()

    def is_fresh(self, status: HealthStatus) -> bool:
        if status.observed_at is None:
            return False
        return self._cell.clock() < status.observed_at + self.ttl

    async def is_healthy(self) -> HealthStatus:
        status = self._cell.read()
        if self.is_fresh(status):
            return status

        logger.debug("health_probe_started")
        try:
            await self._executor.execute(QueryBuilder.build_health_query())
        except EventReaderError as e:
            # execute() has already stored the failure in the cell
            logger.warning("health_probe_failed", error=str(e))
        return self._cell.read()
