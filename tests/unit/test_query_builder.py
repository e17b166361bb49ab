"""Unit tests for SPL query rendering."""
import pytest

from splunk_event_reader.domain import Query
from splunk_event_reader.engines.query import (
    DEFAULT_EARLIEST_TIME,
    HEALTH_EARLIEST_TIME,
    QueryBuilder,
    environment_pattern,
)


class TestEnvironmentPattern:
    @pytest.mark.parametrize("environment,expected", [
        ("upp-prod-uk", "upp-prod*"),
        ("upp-prod-eu", "upp-prod*"),
        ("upp-staging-delivery-us", "upp-staging*"),
        ("upp-prod-publish-eu", "upp-prod*"),
        ("xp", "xp"),
        ("pre-prod", "pre-prod"),
    ])
    def test_region_suffix_replaced(self, environment, expected):
        assert environment_pattern(environment) == expected

    def test_suffix_only_at_end(self):
        assert environment_pattern("uk-cluster") == "uk-cluster"


class TestTransactionsQuery:
    def test_renders_filters(self):
        builder = QueryBuilder(index="heroku", source="http:upp", sourcetype="heroku:drain")
        rendered = builder.build_transactions_query(Query.build("annotations"), "upp-prod-uk")
        assert rendered.search.startswith('search index="heroku" source="http:upp" sourcetype="heroku:drain"')
        assert 'monitoring_event=true' in rendered.search
        assert '(environment="upp-prod-uk" OR environment="pub-upp-prod*")' in rendered.search
        assert '(content_type="annotations" OR content_type="")' in rendered.search
        assert 'transaction_id!="SYNTHETIC*"' in rendered.search
        assert 'transaction_id!="*carousel*"' in rendered.search
        assert "| fields content_type, event, isValid" in rendered.search
        assert "uuid IN" not in rendered.search

    def test_default_time_range(self):
        rendered = QueryBuilder().build_transactions_query(Query.build("annotations"), "xp")
        assert rendered.earliest_time == DEFAULT_EARLIEST_TIME == "-10m"
        assert rendered.latest_time is None
        assert "latest_time" not in rendered.to_form()

    def test_explicit_time_range(self):
        query = Query.build("annotations", earliest_time="-1h", latest_time="-5m")
        rendered = QueryBuilder().build_transactions_query(query, "xp")
        assert rendered.to_form() == {
            "search": rendered.search,
            "earliest_time": "-1h",
            "latest_time": "-5m",
        }

    def test_empty_strings_treated_as_absent(self):
        query = Query.build("annotations", earliest_time="", latest_time="")
        rendered = QueryBuilder().build_transactions_query(query, "xp")
        assert rendered.earliest_time == "-10m"
        assert rendered.latest_time is None

    def test_uuid_filter_sorted_without_trailing_comma(self):
        query = Query.build("annotations", uuids=["b-uuid", "a-uuid", "b-uuid"])
        rendered = QueryBuilder().build_transactions_query(query, "xp")
        assert rendered.search.endswith(' uuid IN ("a-uuid", "b-uuid")')

    def test_rendering_is_deterministic(self):
        builder = QueryBuilder()
        q1 = Query.build("annotations", uuids=["x", "y", "z"])
        q2 = Query.build("annotations", uuids=["z", "x", "y"])
        assert builder.build_transactions_query(q1, "xp") == builder.build_transactions_query(q2, "xp")


class TestLastEventQuery:
    def test_filters_publish_end(self):
        rendered = QueryBuilder().build_last_event_query(Query.build("annotations"), "upp-prod-eu")
        assert 'content_type="annotations" event="PublishEnd"' in rendered.search
        assert '(environment="upp-prod-eu" OR environment="pub-upp-prod*")' in rendered.search
        assert rendered.search.endswith("| head 1")

    def test_same_default_window_as_transactions(self):
        builder = QueryBuilder()
        query = Query.build("annotations")
        assert (
            builder.build_last_event_query(query, "xp").earliest_time
            == builder.build_transactions_query(query, "xp").earliest_time
        )

    def test_custom_default_earliest_time(self):
        builder = QueryBuilder(default_earliest_time="-30m")
        assert builder.build_last_event_query(Query.build("annotations"), "xp").earliest_time == "-30m"


class TestHealthQuery:
    def test_audit_index_probe(self):
        rendered = QueryBuilder.build_health_query()
        assert rendered.search == "search index=_audit | head 1"
        assert rendered.earliest_time == HEALTH_EARLIEST_TIME == "-10s"
