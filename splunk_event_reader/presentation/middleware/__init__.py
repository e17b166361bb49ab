from .logging import LoggingMiddleware
from .metrics import MetricsMiddleware
from .request_id import RequestIdMiddleware

__all__ = ["LoggingMiddleware", "MetricsMiddleware", "RequestIdMiddleware"]
