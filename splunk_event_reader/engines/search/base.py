"""Base transport interface for Splunk search backends.

Every wire variant (job endpoint, export endpoint) implements this contract
so the executor can drive any of them through the same
submit / status / results lifecycle.
"""
from __future__ import annotations

import abc
import json
from typing import Any

import httpx
import structlog

from ...domain import (
    BackendStatusError,
    DecodeError,
    Job,
    RenderedQuery,
    SearchRow,
    TransportError,
)

logger = structlog.get_logger(__name__)


class SearchTransport(abc.ABC):
    """Abstract base class for Splunk search transports."""

    name: str = "abstract"

    @abc.abstractmethod
    async def submit(self, query: RenderedQuery) -> str:
        """Create a search job.

        Returns:
            The job id (``sid``) assigned by the backend.
        """

    @abc.abstractmethod
    async def status(self, sid: str) -> Job:
        """Fetch the current dispatch state and diagnostic messages of a job."""

    @abc.abstractmethod
    async def results(self, sid: str) -> list[SearchRow]:
        """Fetch every result row of a finished job."""

    async def cancel(self, sid: str) -> None:
        """Stop a job that will not be read to completion.  No-op by default."""

    async def close(self) -> None:
        """Release any pooled connections."""


class HTTPSearchTransport(SearchTransport):
    """Shared plumbing for transports talking to the Splunk REST API.

    One :class:`httpx.AsyncClient` is kept per transport so concurrent
    searches share its connection pool.  Basic auth is always sent; TLS
    verification is off by default because the cluster endpoint uses an
    internal certificate.
    """

    def __init__(
        self,
        base_url: str,
        user: str = "",
        password: str = "",
        timeout: float = 30.0,
        verify_tls: bool = False,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            auth=(user, password),
            timeout=timeout,
            verify=verify_tls,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.warning("splunk_request_failed", method=method, url=url, error=str(e))
            raise TransportError(f"{method} {url} failed: {e}", context={"url": url}) from e

        if not response.is_success:
            logger.warning("splunk_bad_status", method=method, url=url, status_code=response.status_code)
            raise BackendStatusError(
                response.status_code,
                f"{method} {url} returned HTTP {response.status_code}",
                context={"url": url},
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"Invalid JSON from {response.request.url}: {e}") from e


def format_messages(raw: Any) -> tuple[str, ...]:
    """Normalise Splunk ``messages`` (a dict, or a list of dicts/strings) to ``"TYPE: text"``."""
    if not raw:
        return ()
    if isinstance(raw, dict):
        raw = [raw]
    messages = []
    for m in raw:
        if isinstance(m, dict):
            text = m.get("text", "")
            kind = m.get("type")
            messages.append(f"{kind}: {text}" if kind else str(text))
        else:
            messages.append(str(m))
    return tuple(messages)


def decode_rows(body: str) -> list[SearchRow]:
    """Decode a Splunk JSON result body into rows.

    Accepts a stream of concatenated or newline-delimited row objects
    (``{"preview": .., "offset": .., "lastrow": .., "result": {..}}``) as
    well as the single-document ``{"results": [...]}`` envelope.  Search
    errors reported in-band (``{"messages": [...]}``) are kept on the row.

    Raises:
        DecodeError: If the body is not valid JSON or a row is not an object.
    """
    decoder = json.JSONDecoder()
    rows: list[SearchRow] = []
    pos = 0
    length = len(body)

    while True:
        while pos < length and body[pos].isspace():
            pos += 1
        if pos >= length:
            break
        try:
            obj, pos = decoder.raw_decode(body, pos)
        except json.JSONDecodeError as e:
            raise DecodeError(f"Malformed result row at offset {e.pos}: {e.msg}") from e
        if not isinstance(obj, dict):
            raise DecodeError(f"Expected a JSON object per row, got {type(obj).__name__}")

        messages = format_messages(obj.get("messages"))

        if isinstance(obj.get("results"), list):
            results = obj["results"]
            for i, result in enumerate(results):
                rows.append(SearchRow(result=result, offset=i, lastrow=i == len(results) - 1))
            if messages:
                rows.append(SearchRow(offset=len(results), messages=messages))
            continue

        try:
            offset = int(obj.get("offset") or 0)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Invalid row offset {obj.get('offset')!r}") from e

        rows.append(
            SearchRow(
                result=obj.get("result"),
                preview=bool(obj.get("preview", False)),
                offset=offset,
                lastrow=bool(obj.get("lastrow", False)),
                messages=messages,
            )
        )

    return rows
