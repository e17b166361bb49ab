"""Search engines: query rendering, job execution, aggregation, health."""
