"""Folds Splunk publish event rows into transactions.

A publish is spread over several log lines (``PublishStart``, intermediate
steps, ``PublishEnd``) that share a transaction id.  The aggregator groups
them back together and reports the transactions still in flight.
"""
from __future__ import annotations

from typing import Iterable, Iterator

import structlog
from pydantic import ValidationError

from ...domain import DecodeError, NoResultsError, PublishEvent, SearchRow, TransactionAggregate

logger = structlog.get_logger(__name__)


def decode_event(row: SearchRow) -> PublishEvent:
    try:
        return PublishEvent.model_validate(row.result)
    except ValidationError as e:
        raise DecodeError(
            f"Row at offset {row.offset} is not a publish event: {e.error_count()} invalid field(s)",
            context={"offset": row.offset},
        ) from e


def iter_events(rows: Iterable[SearchRow]) -> Iterator[PublishEvent]:
    """Decode rows in order, skipping empty ones and stopping after ``lastrow``."""
    for row in rows:
        if row.result:
            yield decode_event(row)
        if row.lastrow:
            break


class ResultAggregator:
    """Shapes search rows into transaction aggregates or a single event."""

    def aggregate_transactions(
        self,
        rows: Iterable[SearchRow],
        content_type: str,
    ) -> list[TransactionAggregate]:
        """Group events by transaction id and keep the open ones.

        Only transactions without a ``PublishEnd`` event that have at least
        one event of *content_type* (case-insensitive) are returned.

        Raises:
            DecodeError: If any row fails to decode; no partial result.
        """
        transactions: dict[str, TransactionAggregate] = {}
        for event in iter_events(rows):
            tx = transactions.get(event.transaction_id)
            if tx is None:
                tx = transactions[event.transaction_id] = TransactionAggregate(event.transaction_id)
            tx.add(event)

        open_txs = [
            tx for tx in transactions.values()
            if not tx.closed and tx.has_content_type(content_type)
        ]
        logger.debug(
            "transactions_aggregated",
            transactions=len(transactions),
            open=len(open_txs),
            content_type=content_type,
        )
        return open_txs

    def latest_event(self, rows: Iterable[SearchRow]) -> PublishEvent:
        """Return the first event of *rows*.

        Raises:
            NoResultsError: If the rows carry no event at all.
        """
        for event in iter_events(rows):
            return event
        raise NoResultsError("Splunk returned no matching event")
