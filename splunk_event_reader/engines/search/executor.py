"""Search job executor.

Runs one rendered query end to end (submit, poll until terminal, fetch) on a
:class:`SearchTransport`, retrying failed attempts with a capped linear
backoff, and records every outcome in the shared :class:`HealthCell`.
"""
from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable

import structlog

from ...domain import (
    EventReaderError,
    Job,
    JobFailedError,
    RenderedQuery,
    SearchRow,
)
from ..health.cell import DIAGNOSTICS_MESSAGE, HEALTHY_MESSAGE, UNHEALTHY_MESSAGE, HealthCell
from .base import SearchTransport
from .lifecycle import (
    Action,
    Failed,
    JobPhase,
    LifecycleEvent,
    PollBudgetExhausted,
    RowsFetched,
    StatusReported,
    Submitted,
    classify_job,
    transition,
)

logger = structlog.get_logger(__name__)


class JobExecutor:
    """Executes Splunk searches as asynchronous jobs.

    Attempt budget: ``max_attempts`` executions per call; between attempts
    the executor sleeps ``retry_delay * attempt`` seconds, capped at
    ``retry_max_delay``.  Transport, status and job failures are retried;
    decode failures are raised at once.  Within an attempt the job status is
    read at most ``max_polls`` times, ``poll_interval`` seconds apart.  A job
    whose attempt fails is cancelled on a best-effort basis.
    """

    def __init__(
        self,
        transport: SearchTransport,
        health: HealthCell | None = None,
        max_attempts: int = 3,
        retry_delay: float = 1.0,
        retry_max_delay: float = 2.0,
        poll_interval: float = 0.5,
        max_polls: int = 120,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.transport = transport
        self.health = health or HealthCell()
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.retry_max_delay = retry_max_delay
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self._sleep = sleep

    # -- Single steps ---------------------------------------------------------

    async def submit(self, query: RenderedQuery) -> str:
        sid = await self.transport.submit(query)
        logger.info("search_job_submitted", sid=sid, transport=self.transport.name)
        return sid

    async def poll(self, sid: str) -> Job:
        """Read the job status once.

        Raises:
            JobFailedError: If the job failed or finished with diagnostics.
        """
        job = await self.transport.status(sid)
        error = classify_job(job)
        if error is not None:
            raise error
        return job

    async def fetch(self, sid: str) -> list[SearchRow]:
        rows = await self.transport.results(sid)
        logger.debug("search_results_fetched", sid=sid, rows=len(rows))
        return rows

    # -- Full execution -------------------------------------------------------

    async def execute(self, query: RenderedQuery) -> list[SearchRow]:
        """Run *query* with retries and return every result row.

        Raises:
            EventReaderError: The last error once the attempt budget is
                spent, or a non-retryable error immediately.
        """
        last_error: EventReaderError | None = None

        for attempt in range(1, self.max_attempts + 1):
            start = time.perf_counter()
            try:
                rows = await self._run_once(query)
            except EventReaderError as e:
                last_error = e
                if not e.retryable:
                    logger.error("search_failed", error=str(e), error_code=e.error_code, retryable=False)
                    break
                if attempt < self.max_attempts:
                    delay = min(self.retry_delay * attempt, self.retry_max_delay)
                    logger.warning(
                        "search_retry_attempt",
                        attempt=attempt,
                        max_attempts=self.max_attempts,
                        delay=delay,
                        error=str(e),
                    )
                    await self._sleep(delay)
                else:
                    logger.error("search_failed", attempts=self.max_attempts, error=str(e), error_code=e.error_code)
            else:
                elapsed = (time.perf_counter() - start) * 1000
                logger.info("search_completed", attempt=attempt, rows=len(rows), elapsed_ms=round(elapsed, 2))
                self.health.record(HEALTHY_MESSAGE)
                return rows

        assert last_error is not None
        self._record_failure(last_error)
        raise last_error

    async def _run_once(self, query: RenderedQuery) -> list[SearchRow]:
        phase = JobPhase.SUBMITTING
        event: LifecycleEvent = await self._step(self._submitted(query))
        sid = event.sid if isinstance(event, Submitted) else ""
        job: Job | None = None
        polls = 0

        while True:
            step = transition(phase, event)
            phase = step.phase

            if step.action is Action.FAIL:
                if sid:
                    await self._abandon(sid)
                raise step.error
            if step.action is Action.COMPLETE:
                assert isinstance(event, RowsFetched)
                return list(event.rows)

            if step.action is Action.FETCH:
                event = await self._step(self._rows_fetched(sid))
                continue

            if step.action is Action.WAIT:
                if polls >= self.max_polls:
                    event = PollBudgetExhausted(job, polls)
                    continue
                await self._sleep(self.poll_interval)

            polls += 1
            event = await self._step(self._status_reported(sid))
            if isinstance(event, StatusReported):
                job = event.job

    # -- Helpers --------------------------------------------------------------

    async def _submitted(self, query: RenderedQuery) -> Submitted:
        return Submitted(await self.submit(query))

    async def _status_reported(self, sid: str) -> StatusReported:
        return StatusReported(await self.transport.status(sid))

    async def _rows_fetched(self, sid: str) -> RowsFetched:
        return RowsFetched(tuple(await self.fetch(sid)))

    @staticmethod
    async def _step(pending: Awaitable[LifecycleEvent]) -> LifecycleEvent:
        try:
            return await pending
        except EventReaderError as e:
            return Failed(e)

    async def _abandon(self, sid: str) -> None:
        """Best-effort cancel of a job whose attempt failed."""
        try:
            await self.transport.cancel(sid)
        except EventReaderError as e:
            logger.warning("search_job_cancel_failed", sid=sid, error=str(e))

    def _record_failure(self, error: EventReaderError) -> None:
        if isinstance(error, JobFailedError) and error.diagnostic_only:
            # Splunk answered; the data behind this query is the problem.
            self.health.record(DIAGNOSTICS_MESSAGE)
        else:
            self.health.record(UNHEALTHY_MESSAGE, error)
