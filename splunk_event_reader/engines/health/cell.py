"""Shared health status cell.

The only mutable state shared between concurrent requests.  Writers are the
search executor (after every execution) and the health cache; readers are
the health endpoints.
"""
from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Callable

from ...domain import HealthStatus

HEALTHY_MESSAGE = "Splunk is ok"
UNHEALTHY_MESSAGE = "Splunk error"
DIAGNOSTICS_MESSAGE = "Splunk is ok, last search reported diagnostics"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthCell:
    """Holds the latest :class:`HealthStatus` behind a mutex."""

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._lock = threading.Lock()
        self._status = HealthStatus(message="Splunk has not been queried yet")
        self.clock = clock

    def read(self) -> HealthStatus:
        with self._lock:
            return self._status

    def update(self, status: HealthStatus) -> None:
        with self._lock:
            self._status = status

    def record(self, message: str, error: Exception | None = None) -> HealthStatus:
        """Store a status stamped with the cell's clock and return it."""
        status = HealthStatus(message=message, error=error, observed_at=self.clock())
        self.update(status)
        return status
