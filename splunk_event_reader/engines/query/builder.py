"""SPL rendering for the monitoring searches.

Turns a :class:`~splunk_event_reader.domain.Query` into the search text and
time range submitted to Splunk.  Rendering is pure: the same query and
environment always produce the same :class:`RenderedQuery`.
"""
from __future__ import annotations

import re

from ...domain import PUBLISH_END, Query, RenderedQuery

DEFAULT_EARLIEST_TIME = "-10m"
HEALTH_EARLIEST_TIME = "-10s"

EVENT_FIELDS = "content_type, event, isValid, level, service_name, @time, transaction_id, uuid"

# Matches the region suffix of a cluster name, e.g. "-uk" in "upp-prod-uk"
# or "-delivery-eu" in "upp-staging-delivery-eu".
REGION_SUFFIX = re.compile(r"-(?:delivery-|publish-)?(?:eu|uk|us)$")

_TRANSACTIONS_TEMPLATE = (
    'search index="{index}" source="{source}" sourcetype="{sourcetype}" monitoring_event=true '
    '(environment="{environment}" OR environment="pub-{environment_pattern}") '
    '(content_type="{content_type}" OR content_type="") '
    'transaction_id!="SYNTHETIC*" transaction_id!="*carousel*" '
    "| fields {fields}"
)

_LAST_EVENT_TEMPLATE = (
    'search index="{index}" source="{source}" sourcetype="{sourcetype}" monitoring_event=true '
    '(environment="{environment}" OR environment="pub-{environment_pattern}") '
    'content_type="{content_type}" event="{event}" '
    "| fields {fields} | head 1"
)

_HEALTH_SEARCH = "search index=_audit | head 1"


def environment_pattern(environment: str) -> str:
    """Wildcard covering both the primary and the DR cluster of *environment*."""
    return REGION_SUFFIX.sub("*", environment)


class QueryBuilder:
    """Renders monitoring queries against one Splunk index/source."""

    def __init__(
        self,
        index: str = "heroku",
        source: str = "http:upp",
        sourcetype: str = "heroku:drain",
        default_earliest_time: str = DEFAULT_EARLIEST_TIME,
    ) -> None:
        self.index = index
        self.source = source
        self.sourcetype = sourcetype
        self.default_earliest_time = default_earliest_time

    def build_transactions_query(self, query: Query, environment: str) -> RenderedQuery:
        search = _TRANSACTIONS_TEMPLATE.format(
            **self._filters(environment),
            content_type=query.content_type,
            fields=EVENT_FIELDS,
        )
        if query.uuids:
            ids = ", ".join(f'"{uuid}"' for uuid in sorted(query.uuids))
            search += f" uuid IN ({ids})"
        return self._with_time_range(search, query)

    def build_last_event_query(self, query: Query, environment: str) -> RenderedQuery:
        search = _LAST_EVENT_TEMPLATE.format(
            **self._filters(environment),
            content_type=query.content_type,
            event=PUBLISH_END,
            fields=EVENT_FIELDS,
        )
        return self._with_time_range(search, query)

    @staticmethod
    def build_health_query() -> RenderedQuery:
        return RenderedQuery(search=_HEALTH_SEARCH, earliest_time=HEALTH_EARLIEST_TIME)

    def _filters(self, environment: str) -> dict[str, str]:
        return {
            "index": self.index,
            "source": self.source,
            "sourcetype": self.sourcetype,
            "environment": environment,
            "environment_pattern": environment_pattern(environment),
        }

    def _with_time_range(self, search: str, query: Query) -> RenderedQuery:
        return RenderedQuery(
            search=search,
            earliest_time=query.earliest_time or self.default_earliest_time,
            latest_time=query.latest_time or None,
        )
