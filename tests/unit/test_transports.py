"""Tests for the Splunk HTTP transports using respx to mock httpx."""
from urllib.parse import parse_qs

import httpx
import pytest
import respx

from splunk_event_reader.domain import (
    BackendStatusError,
    DecodeError,
    DispatchState,
    JobFailedError,
    RenderedQuery,
    TransportError,
)
from splunk_event_reader.engines.search import (
    ExportSearchTransport,
    JobSearchTransport,
    decode_rows,
)

from ..helpers import SPLUNK_URL, load_fixture

JOBS = "/services/search/jobs"
QUERY = RenderedQuery(search="search index=heroku", earliest_time="-10m", latest_time="-1m")
FATAL_ROW = (
    '{"preview":false,"lastrow":true,"messages":'
    '[{"type":"FATAL","text":"Error in \'search\' command: Unable to parse the search"}]}'
)


def job_status(state, messages=None, is_failed=False):
    content = {"dispatchState": state, "isFailed": is_failed}
    if messages is not None:
        content["messages"] = messages
    return {"entry": [{"name": "search index=heroku", "content": content}]}


def jobs_transport():
    return JobSearchTransport(SPLUNK_URL, user="reader", password="secret")


class TestDecodeRows:
    def test_newline_delimited(self):
        rows = decode_rows(load_fixture("splunk_response_sample.json"))
        assert len(rows) == 6
        assert [r.offset for r in rows] == [0, 1, 2, 3, 4, 5]
        assert rows[-1].lastrow and not rows[0].lastrow

    def test_concatenated_objects(self):
        body = '{"offset":0,"result":{"a":"1"}}{"offset":1,"lastrow":true,"result":{"a":"2"}}'
        rows = decode_rows(body)
        assert [r.result["a"] for r in rows] == ["1", "2"]
        assert rows[1].lastrow

    def test_preview_flag(self):
        (row,) = decode_rows('{"preview":true,"offset":0,"result":{}}')
        assert row.preview is True

    def test_results_envelope(self):
        rows = decode_rows('{"preview":false,"init_offset":0,"results":[{"a":"1"},{"a":"2"}]}')
        assert [r.result for r in rows] == [{"a": "1"}, {"a": "2"}]
        assert [r.lastrow for r in rows] == [False, True]

    def test_empty_body(self):
        assert decode_rows("") == []
        assert decode_rows("\n  \n") == []

    def test_malformed_json(self):
        with pytest.raises(DecodeError):
            decode_rows('{"offset":0,"result":{"a":')

    def test_non_object_row(self):
        with pytest.raises(DecodeError):
            decode_rows("[1, 2]")

    def test_bad_offset(self):
        with pytest.raises(DecodeError):
            decode_rows('{"offset":"abc","result":{}}')

    def test_in_band_messages_kept(self):
        (row,) = decode_rows(FATAL_ROW)
        assert row.result is None
        assert row.lastrow is True
        assert row.messages == ("FATAL: Error in 'search' command: Unable to parse the search",)

    def test_envelope_messages_kept(self):
        rows = decode_rows('{"results":[],"messages":[{"type":"WARN","text":"Unknown index"}]}')
        assert [r.messages for r in rows] == [("WARN: Unknown index",)]


class TestJobSearchTransport:
    @pytest.mark.asyncio
    async def test_submit_posts_form(self) -> None:
        with respx.mock:
            route = respx.post(path=JOBS).mock(return_value=httpx.Response(201, json={"sid": "1505834000.42"}))
            transport = jobs_transport()
            sid = await transport.submit(QUERY)
            await transport.close()

        assert sid == "1505834000.42"
        request = route.calls.last.request
        assert request.url.params["output_mode"] == "json"
        assert request.headers["Authorization"].startswith("Basic ")
        form = parse_qs(request.content.decode())
        assert form == {
            "search": ["search index=heroku"],
            "earliest_time": ["-10m"],
            "latest_time": ["-1m"],
        }

    @pytest.mark.asyncio
    async def test_submit_without_sid(self) -> None:
        with respx.mock:
            respx.post(path=JOBS).mock(return_value=httpx.Response(201, json={}))
            with pytest.raises(DecodeError):
                await jobs_transport().submit(QUERY)

    @pytest.mark.asyncio
    async def test_submit_non_json(self) -> None:
        with respx.mock:
            respx.post(path=JOBS).mock(return_value=httpx.Response(201, text="<html>"))
            with pytest.raises(DecodeError):
                await jobs_transport().submit(QUERY)

    @pytest.mark.asyncio
    async def test_bad_status_raises(self) -> None:
        with respx.mock:
            respx.post(path=JOBS).mock(return_value=httpx.Response(503))
            with pytest.raises(BackendStatusError) as exc_info:
                await jobs_transport().submit(QUERY)
        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_connection_error_raises_transport_error(self) -> None:
        with respx.mock:
            respx.post(path=JOBS).mock(side_effect=httpx.ConnectError("refused"))
            with pytest.raises(TransportError):
                await jobs_transport().submit(QUERY)

    @pytest.mark.asyncio
    async def test_status_running(self) -> None:
        with respx.mock:
            respx.get(path=f"{JOBS}/sid_1").mock(return_value=httpx.Response(200, json=job_status("RUNNING")))
            job = await jobs_transport().status("sid_1")
        assert job.sid == "sid_1"
        assert job.dispatch_state is DispatchState.RUNNING
        assert job.messages == ()

    @pytest.mark.asyncio
    async def test_status_messages(self) -> None:
        messages = [{"type": "WARN", "text": "Unknown index heroku"}]
        with respx.mock:
            respx.get(path=f"{JOBS}/sid_1").mock(
                return_value=httpx.Response(200, json=job_status("DONE", messages))
            )
            job = await jobs_transport().status("sid_1")
        assert job.dispatch_state is DispatchState.DONE
        assert job.messages == ("WARN: Unknown index heroku",)

    @pytest.mark.asyncio
    async def test_cancelled_job_is_failed(self) -> None:
        with respx.mock:
            respx.get(path=f"{JOBS}/sid_1").mock(
                return_value=httpx.Response(200, json=job_status("USER_CANCEL", is_failed=True))
            )
            job = await jobs_transport().status("sid_1")
        assert job.dispatch_state is DispatchState.FAILED

    @pytest.mark.asyncio
    async def test_unknown_state_is_retryable_job_failure(self) -> None:
        with respx.mock:
            respx.get(path=f"{JOBS}/sid_1").mock(return_value=httpx.Response(200, json=job_status("WEIRD")))
            with pytest.raises(JobFailedError, match="unknown dispatch state") as exc_info:
                await jobs_transport().status("sid_1")
        assert exc_info.value.retryable
        assert exc_info.value.dispatch_state == "WEIRD"
        assert exc_info.value.diagnostic_only is False

    @pytest.mark.asyncio
    async def test_malformed_status_document(self) -> None:
        with respx.mock:
            respx.get(path=f"{JOBS}/sid_1").mock(return_value=httpx.Response(200, json={"entry": []}))
            with pytest.raises(DecodeError):
                await jobs_transport().status("sid_1")

    @pytest.mark.asyncio
    async def test_results_fetches_all_rows(self) -> None:
        with respx.mock:
            route = respx.get(path=f"{JOBS}/sid_1/results").mock(
                return_value=httpx.Response(200, text=load_fixture("splunk_response_sample.json"))
            )
            rows = await jobs_transport().results("sid_1")
        assert len(rows) == 6
        assert route.calls.last.request.url.params["count"] == "0"

    @pytest.mark.asyncio
    async def test_cancel_posts_control_action(self) -> None:
        with respx.mock:
            route = respx.post(path=f"{JOBS}/sid_1/control").mock(return_value=httpx.Response(200, json={}))
            await jobs_transport().cancel("sid_1")
        assert parse_qs(route.calls.last.request.content.decode()) == {"action": ["cancel"]}


class TestExportSearchTransport:
    @pytest.mark.asyncio
    async def test_buffers_rows_as_done_job(self) -> None:
        with respx.mock:
            route = respx.post(path=f"{JOBS}/export").mock(
                return_value=httpx.Response(200, text=load_fixture("splunk_publish_end_sample.json"))
            )
            transport = ExportSearchTransport(SPLUNK_URL, user="reader", password="secret")
            sid = await transport.submit(QUERY)
            job = await transport.status(sid)
            rows = await transport.results(sid)
            await transport.close()

        assert sid.startswith("export_")
        assert job.dispatch_state is DispatchState.DONE
        assert len(rows) == 1
        assert rows[0].result["transaction_id"] == "tid_evjm9gls5a"
        assert route.calls.last.request.url.params["output_mode"] == "json"

    @pytest.mark.asyncio
    async def test_results_consumed_once(self) -> None:
        with respx.mock:
            respx.post(path=f"{JOBS}/export").mock(return_value=httpx.Response(200, text=""))
            transport = ExportSearchTransport(SPLUNK_URL)
            sid = await transport.submit(QUERY)
            assert await transport.results(sid) == []
            with pytest.raises(DecodeError):
                await transport.results(sid)

    @pytest.mark.asyncio
    async def test_unknown_sid(self) -> None:
        with pytest.raises(DecodeError):
            await ExportSearchTransport(SPLUNK_URL).status("export_missing")

    @pytest.mark.asyncio
    async def test_fatal_message_fails_job(self) -> None:
        with respx.mock:
            respx.post(path=f"{JOBS}/export").mock(return_value=httpx.Response(200, text=FATAL_ROW))
            transport = ExportSearchTransport(SPLUNK_URL)
            sid = await transport.submit(QUERY)
            job = await transport.status(sid)
        assert job.dispatch_state is DispatchState.FAILED
        assert job.messages == ("FATAL: Error in 'search' command: Unable to parse the search",)

    @pytest.mark.asyncio
    async def test_warning_reported_on_done_job(self) -> None:
        body = load_fixture("splunk_publish_end_sample.json") + (
            '{"preview":false,"messages":[{"type":"WARN","text":"Search auto-finalized"}]}'
        )
        with respx.mock:
            respx.post(path=f"{JOBS}/export").mock(return_value=httpx.Response(200, text=body))
            transport = ExportSearchTransport(SPLUNK_URL)
            sid = await transport.submit(QUERY)
            job = await transport.status(sid)
        assert job.dispatch_state is DispatchState.DONE
        assert job.has_diagnostics
        assert job.messages == ("WARN: Search auto-finalized",)

    @pytest.mark.asyncio
    async def test_cancel_drops_buffered_rows(self) -> None:
        with respx.mock:
            respx.post(path=f"{JOBS}/export").mock(return_value=httpx.Response(200, text=FATAL_ROW))
            transport = ExportSearchTransport(SPLUNK_URL)
            sid = await transport.submit(QUERY)
        await transport.cancel(sid)
        with pytest.raises(DecodeError):
            await transport.status(sid)
