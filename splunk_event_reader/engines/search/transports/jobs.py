"""Job endpoint transport.

Creates an asynchronous search job, reads its dispatch state from the job
resource and downloads the results once Splunk reports DONE:

* ``POST /services/search/jobs``                -> ``{"sid": ...}``
* ``GET  /services/search/jobs/{sid}``          -> ``entry[0].content``
* ``GET  /services/search/jobs/{sid}/results?count=0``
* ``POST /services/search/jobs/{sid}/control``  (``action=cancel``)
"""
from __future__ import annotations

from typing import Any

import structlog

from ....domain import DecodeError, DispatchState, Job, JobFailedError, RenderedQuery, SearchRow
from ..base import HTTPSearchTransport, decode_rows, format_messages

logger = structlog.get_logger(__name__)

JOBS_PATH = "/services/search/jobs"


class JobSearchTransport(HTTPSearchTransport):
    """Transport for Splunk's job-based search API."""

    name = "jobs"

    async def submit(self, query: RenderedQuery) -> str:
        response = await self._request(
            "POST",
            JOBS_PATH,
            params={"output_mode": "json"},
            data=query.to_form(),
        )
        body = self._json(response)
        sid = body.get("sid") if isinstance(body, dict) else None
        if not sid:
            raise DecodeError("Search job creation response carries no sid")
        logger.debug("search_job_created", sid=sid)
        return str(sid)

    async def status(self, sid: str) -> Job:
        response = await self._request("GET", f"{JOBS_PATH}/{sid}", params={"output_mode": "json"})
        content = self._job_content(self._json(response), sid)
        messages = format_messages(content.get("messages"))
        return Job(
            sid=sid,
            dispatch_state=self._dispatch_state(content, sid, messages),
            messages=messages,
        )

    async def results(self, sid: str) -> list[SearchRow]:
        # count=0 disables Splunk's default 100 row page size.
        response = await self._request(
            "GET",
            f"{JOBS_PATH}/{sid}/results",
            params={"output_mode": "json", "count": 0},
        )
        return decode_rows(response.text)

    async def cancel(self, sid: str) -> None:
        await self._request(
            "POST",
            f"{JOBS_PATH}/{sid}/control",
            params={"output_mode": "json"},
            data={"action": "cancel"},
        )
        logger.debug("search_job_cancelled", sid=sid)

    @staticmethod
    def _job_content(body: Any, sid: str) -> dict[str, Any]:
        try:
            content = body["entry"][0]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise DecodeError(f"Unexpected job status document for {sid}") from e
        if not isinstance(content, dict):
            raise DecodeError(f"Unexpected job status document for {sid}")
        return content

    @staticmethod
    def _dispatch_state(content: dict[str, Any], sid: str, messages: tuple[str, ...]) -> DispatchState:
        raw = str(content.get("dispatchState", "")).upper()
        try:
            return DispatchState(raw)
        except ValueError:
            # Cancellation states (USER_CANCEL, INTERNAL_CANCEL, ...) come
            # with isFailed set.
            if content.get("isFailed"):
                return DispatchState.FAILED
            raise JobFailedError(
                sid,
                raw or "UNKNOWN",
                messages,
                message=f"Search job {sid} reported unknown dispatch state {raw!r}",
            ) from None
