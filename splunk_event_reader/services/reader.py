"""Event reader service: the operations offered to the HTTP layer."""
from __future__ import annotations

import structlog

from ..config import Settings
from ..domain import HealthStatus, PublishEvent, Query, TransactionAggregate
from ..engines.aggregation import ResultAggregator
from ..engines.health.cache import HealthCache
from ..engines.health.cell import HealthCell
from ..engines.query import QueryBuilder
from ..engines.search import (
    ExportSearchTransport,
    JobExecutor,
    JobSearchTransport,
    SearchTransport,
)

logger = structlog.get_logger(__name__)


class EventReaderService:
    """Reads publish monitoring events for one environment from Splunk."""

    def __init__(
        self,
        executor: JobExecutor,
        environment: str,
        builder: QueryBuilder | None = None,
        aggregator: ResultAggregator | None = None,
        health_ttl_seconds: float = 60.0,
    ) -> None:
        self.executor = executor
        self.environment = environment
        self.builder = builder or QueryBuilder()
        self.aggregator = aggregator or ResultAggregator()
        self.health = HealthCache(executor, ttl_seconds=health_ttl_seconds)

    async def get_transactions(self, query: Query) -> list[TransactionAggregate]:
        rendered = self.builder.build_transactions_query(query, self.environment)
        rows = await self.executor.execute(rendered)
        transactions = self.aggregator.aggregate_transactions(rows, query.content_type)
        logger.info(
            "transactions_read",
            content_type=query.content_type,
            uuids=len(query.uuids),
            transactions=len(transactions),
        )
        return transactions

    async def get_last_event(self, query: Query) -> PublishEvent:
        """Raises :class:`NoResultsError` when no completed publish is found."""
        rendered = self.builder.build_last_event_query(query, self.environment)
        rows = await self.executor.execute(rendered)
        return self.aggregator.latest_event(rows)

    async def is_healthy(self) -> HealthStatus:
        return await self.health.is_healthy()

    async def close(self) -> None:
        await self.executor.transport.close()


def create_transport(settings: Settings) -> SearchTransport:
    transport_cls = ExportSearchTransport if settings.splunk_api_mode == "export" else JobSearchTransport
    return transport_cls(
        settings.splunk_url,
        user=settings.splunk_user,
        password=settings.splunk_password,
        timeout=settings.splunk_timeout_seconds,
        verify_tls=settings.splunk_verify_tls,
    )


def create_reader_service(settings: Settings, transport: SearchTransport | None = None) -> EventReaderService:
    executor = JobExecutor(
        transport or create_transport(settings),
        health=HealthCell(),
        max_attempts=settings.search_max_attempts,
        retry_delay=settings.search_retry_delay_seconds,
        retry_max_delay=settings.search_retry_max_delay_seconds,
        poll_interval=settings.search_poll_interval_seconds,
        max_polls=settings.search_max_polls,
    )
    builder = QueryBuilder(
        index=settings.splunk_index,
        source=settings.splunk_source,
        sourcetype=settings.splunk_sourcetype,
    )
    return EventReaderService(
        executor,
        environment=settings.environment,
        builder=builder,
        health_ttl_seconds=settings.health_cache_seconds,
    )
