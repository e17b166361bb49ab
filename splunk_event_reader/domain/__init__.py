"""Domain layer: value objects, search job snapshots, transactions, errors."""

from .exceptions import (
    BackendStatusError,
    DecodeError,
    EventReaderError,
    InvalidRequestError,
    JobFailedError,
    NoResultsError,
    TransportError,
)
from .models import (
    PUBLISH_END,
    PUBLISH_START,
    DispatchState,
    HealthStatus,
    Job,
    PublishEvent,
    Query,
    RenderedQuery,
    SearchRow,
    TransactionAggregate,
)

__all__ = [
    "BackendStatusError",
    "DecodeError",
    "DispatchState",
    "EventReaderError",
    "HealthStatus",
    "InvalidRequestError",
    "Job",
    "JobFailedError",
    "NoResultsError",
    "PUBLISH_END",
    "PUBLISH_START",
    "PublishEvent",
    "Query",
    "RenderedQuery",
    "SearchRow",
    "TransactionAggregate",
    "TransportError",
]
