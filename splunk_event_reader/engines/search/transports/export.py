"""Export endpoint transport.

``POST /services/search/jobs/export`` runs the search and streams its rows
in the same response, so there is no job to poll.  The transport buffers
the rows under a locally generated id and reports that "job" as DONE, which
lets the executor drive it through the same lifecycle as the job endpoint.

Search errors arrive in-band as ``{"messages": [...]}`` rows.  They are
reported as the job's messages; a FATAL one marks the job FAILED.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass

import structlog

from ....domain import DecodeError, DispatchState, Job, RenderedQuery, SearchRow
from ..base import HTTPSearchTransport, decode_rows

logger = structlog.get_logger(__name__)

EXPORT_PATH = "/services/search/jobs/export"

FATAL_PREFIX = "FATAL:"


@dataclass
class _ExportResult:
    rows: list[SearchRow]
    messages: tuple[str, ...]


class ExportSearchTransport(HTTPSearchTransport):
    """Transport for Splunk's streaming export API."""

    name = "export"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._buffered: dict[str, _ExportResult] = {}

    async def submit(self, query: RenderedQuery) -> str:
        response = await self._request(
            "POST",
            EXPORT_PATH,
            params={"output_mode": "json"},
            data=query.to_form(),
        )
        rows = decode_rows(response.text)
        messages = tuple(m for row in rows for m in row.messages)
        sid = f"export_{uuid.uuid4().hex[:12]}"
        self._buffered[sid] = _ExportResult(rows, messages)
        logger.debug("export_search_buffered", sid=sid, rows=len(rows), messages=len(messages))
        return sid

    async def status(self, sid: str) -> Job:
        try:
            buffered = self._buffered[sid]
        except KeyError:
            raise DecodeError(f"Unknown export search {sid}") from None
        fatal = any(m.startswith(FATAL_PREFIX) for m in buffered.messages)
        state = DispatchState.FAILED if fatal else DispatchState.DONE
        return Job(sid=sid, dispatch_state=state, messages=buffered.messages)

    async def results(self, sid: str) -> list[SearchRow]:
        try:
            return self._buffered.pop(sid).rows
        except KeyError:
            raise DecodeError(f"Unknown export search {sid}") from None

    async def cancel(self, sid: str) -> None:
        self._buffered.pop(sid, None)
