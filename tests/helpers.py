"""Test doubles and row builders shared by the unit tests."""
from __future__ import annotations

from pathlib import Path
from typing import Any

from splunk_event_reader.domain import DispatchState, Job, RenderedQuery, SearchRow
from splunk_event_reader.engines.search import SearchTransport

FIXTURES = Path(__file__).resolve().parent / "fixtures"

SPLUNK_URL = "https://splunk.test:8089"


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


def event_row(
    transaction_id: str,
    event: str = "Mapping",
    content_type: str = "Annotations",
    uuid: str = "",
    time: str = "2017-09-19T15:11:31.795334198Z",
    **kwargs: Any,
) -> SearchRow:
    result = {
        "content_type": content_type,
        "event": event,
        "level": "info",
        "service_name": "annotations-monitoring-service",
        "@time": time,
        "transaction_id": transaction_id,
        "uuid": uuid,
    }
    return SearchRow(result=result, **kwargs)


class FakeTransport(SearchTransport):
    """Scripted in-memory transport.

    Each of ``submits``, ``statuses`` and ``results_`` is a list of outcomes
    consumed one per call; the last outcome repeats once the list is spent.
    An outcome that is an exception instance is raised.
    """

    name = "fake"

    def __init__(
        self,
        submits: list[Any] | None = None,
        statuses: list[Any] | None = None,
        results_: list[Any] | None = None,
        cancel_error: Exception | None = None,
    ) -> None:
        self.submits = submits or ["sid_1"]
        self.statuses = statuses or [DispatchState.DONE]
        self.results_ = results_ or [[]]
        self.calls: dict[str, int] = {"submit": 0, "status": 0, "results": 0}
        self.queries: list[RenderedQuery] = []
        self.cancel_error = cancel_error
        self.cancelled: list[str] = []
        self.closed = False

    @staticmethod
    def _next(outcomes: list[Any], count: int) -> Any:
        outcome = outcomes[min(count, len(outcomes) - 1)]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def submit(self, query: RenderedQuery) -> str:
        self.queries.append(query)
        self.calls["submit"] += 1
        return self._next(self.submits, self.calls["submit"] - 1)

    async def status(self, sid: str) -> Job:
        self.calls["status"] += 1
        outcome = self._next(self.statuses, self.calls["status"] - 1)
        if isinstance(outcome, Job):
            return outcome
        return Job(sid=sid, dispatch_state=outcome)

    async def results(self, sid: str) -> list[SearchRow]:
        self.calls["results"] += 1
        return list(self._next(self.results_, self.calls["results"] - 1))

    async def cancel(self, sid: str) -> None:
        self.cancelled.append(sid)
        if self.cancel_error is not None:
            raise self.cancel_error

    async def close(self) -> None:
        self.closed = True


class SleepRecorder:
    """Stand-in for ``asyncio.sleep`` that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class MutableClock:
    def __init__(self, now) -> None:
        self.now = now

    def __call__(self):
        return self.now
