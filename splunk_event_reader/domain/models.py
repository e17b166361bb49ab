"""Domain models shared by the query builder, search engine and aggregator."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Query:
    """A narrow monitoring query as accepted from the HTTP layer."""

    content_type: str = ""
    earliest_time: str | None = None
    latest_time: str | None = None
    uuids: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        content_type: str = "",
        earliest_time: str | None = None,
        latest_time: str | None = None,
        uuids: Iterable[str] = (),
    ) -> Query:
        return cls(
            content_type=content_type,
            earliest_time=earliest_time or None,
            latest_time=latest_time or None,
            uuids=frozenset(uuids),
        )


@dataclass(frozen=True)
class RenderedQuery:
    """SPL text plus the time-range parameters of one search."""

    search: str
    earliest_time: str
    latest_time: str | None = None

    def to_form(self) -> dict[str, str]:
        form = {"search": self.search, "earliest_time": self.earliest_time}
        if self.latest_time:
            form["latest_time"] = self.latest_time
        return form


# ---------------------------------------------------------------------------
# Search jobs
# ---------------------------------------------------------------------------

class DispatchState(str, Enum):
    QUEUED = "QUEUED"
    PARSING = "PARSING"
    RUNNING = "RUNNING"
    FINALIZING = "FINALIZING"
    PAUSED = "PAUSED"
    DONE = "DONE"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (DispatchState.DONE, DispatchState.FAILED)


@dataclass(frozen=True)
class Job:
    """Snapshot of one asynchronous search job as reported by Splunk."""

    sid: str
    dispatch_state: DispatchState
    messages: tuple[str, ...] = ()

    @property
    def has_diagnostics(self) -> bool:
        return bool(self.messages)


@dataclass(frozen=True)
class SearchRow:
    """One row of a Splunk result stream.

    Intermediate rows carry ``preview=True``; the final row of a stream is
    flagged with ``lastrow``.  ``result`` holds the event fields as sent by
    the backend; it is validated only when decoded into an event.  Search
    errors streamed alongside the results arrive in ``messages``, formatted
    as ``"TYPE: text"``.
    """

    result: Any = None
    preview: bool = False
    offset: int = 0
    lastrow: bool = False
    messages: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Events and transactions
# ---------------------------------------------------------------------------

class PublishEvent(BaseModel):
    """One publish monitoring log line, decoded from a row's ``result``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    content_type: str = ""
    environment: str = ""
    event: str = ""
    is_valid: str = Field("", alias="isValid")
    level: str = ""
    monitoring_event: str = ""
    msg: str = ""
    platform: str = ""
    service_name: str = ""
    time: str = Field("", alias="@time")
    transaction_id: str = ""
    uuid: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(by_alias=True)
        if not data["isValid"]:
            del data["isValid"]
        return data


PUBLISH_START = "PublishStart"
PUBLISH_END = "PublishEnd"


@dataclass
class TransactionAggregate:
    """All events of one publish transaction, folded in arrival order."""

    transaction_id: str
    uuid: str = ""
    closed: bool = False
    event_count: int = 0
    start_time: str | None = None
    events: list[PublishEvent] = field(default_factory=list)

    def add(self, event: PublishEvent) -> None:
        if event.uuid:
            self.uuid = event.uuid
        self.events.append(event)
        self.event_count += 1
        if event.event == PUBLISH_START:
            self.start_time = event.time
        elif event.event == PUBLISH_END:
            self.closed = True

    def has_content_type(self, content_type: str) -> bool:
        wanted = content_type.casefold()
        return any(e.content_type.casefold() == wanted for e in self.events)

    def to_dict(self) -> dict[str, Any]:
        return {
            "transaction_id": self.transaction_id,
            "uuid": self.uuid,
            "closed_txn": self.closed,
            "eventcount": self.event_count,
            "start_time": self.start_time,
            "events": [e.to_dict() for e in self.events],
        }


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HealthStatus:
    message: str
    error: Exception | None = None
    observed_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
