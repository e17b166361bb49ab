from .builder import DEFAULT_EARLIEST_TIME, HEALTH_EARLIEST_TIME, QueryBuilder, environment_pattern

__all__ = ["DEFAULT_EARLIEST_TIME", "HEALTH_EARLIEST_TIME", "QueryBuilder", "environment_pattern"]
