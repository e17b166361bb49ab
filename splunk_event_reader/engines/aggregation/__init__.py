from .aggregator import ResultAggregator, decode_event, iter_events

__all__ = ["ResultAggregator", "decode_event", "iter_events"]
