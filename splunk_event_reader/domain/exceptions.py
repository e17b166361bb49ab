"""Exception hierarchy for the Splunk event reader.

Every exception carries a machine-readable ``error_code`` and an arbitrary
``context`` dict for structured logging.  The search executor decides which
of these are retryable; the presentation layer maps them to HTTP status
codes via global exception handlers.
"""
from __future__ import annotations

from typing import Any


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class EventReaderError(Exception):
    """Root exception for every event reader failure.

    Attributes:
        message:    Human-readable description.
        error_code: Machine-readable code (e.g. ``"SPLUNK_STATUS"``).
        context:    Arbitrary key-value context for structured logging.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str = "Event reader error",
        error_code: str = "EVENT_READER_ERROR",
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.context: dict[str, Any] = context or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(error_code={self.error_code!r}, message={self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        """Serialise the exception for API error responses."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# ---------------------------------------------------------------------------
# Backend failures (retried by the executor)
# ---------------------------------------------------------------------------

class TransportError(EventReaderError):
    """Raised when Splunk cannot be reached (connection refused, timeout, ...)."""

    retryable = True

    def __init__(self, message: str = "Splunk transport failure", **kwargs: Any) -> None:
        super().__init__(message, error_code=kwargs.pop("error_code", "SPLUNK_TRANSPORT"), **kwargs)


class BackendStatusError(EventReaderError):
    """Raised when Splunk answers with a non-success HTTP status."""

    retryable = True

    def __init__(self, status_code: int, message: str | None = None, **kwargs: Any) -> None:
        self.status_code = status_code
        context = kwargs.pop("context", None) or {}
        context.setdefault("status_code", status_code)
        super().__init__(
            message or f"Splunk responded with HTTP {status_code}",
            error_code=kwargs.pop("error_code", "SPLUNK_STATUS"),
            context=context,
            **kwargs,
        )


class JobFailedError(EventReaderError):
    """Raised when a search job failed or finished with diagnostic messages.

    ``diagnostic_only`` is ``True`` when the job reached DONE but Splunk
    attached messages to it, i.e. the backend is up but the query (or an
    index it touched) is not.
    """

    retryable = True

    def __init__(
        self,
        sid: str,
        dispatch_state: str,
        messages: tuple[str, ...] = (),
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.sid = sid
        self.dispatch_state = dispatch_state
        self.messages = tuple(messages)
        self.diagnostic_only = dispatch_state == "DONE" and bool(self.messages)
        if message is None:
            message = f"Search job {sid} ended in state {dispatch_state}"
            if self.messages:
                message += ": " + "; ".join(self.messages)
        super().__init__(
            message,
            error_code=kwargs.pop("error_code", "SPLUNK_JOB_FAILED"),
            context={"sid": sid, "dispatch_state": dispatch_state, "messages": list(self.messages)},
            **kwargs,
        )


# ---------------------------------------------------------------------------
# Data failures (never retried)
# ---------------------------------------------------------------------------

class DecodeError(EventReaderError):
    """Raised when Splunk returns a row or document that cannot be decoded."""

    def __init__(self, message: str = "Malformed Splunk response", **kwargs: Any) -> None:
        super().__init__(message, error_code=kwargs.pop("error_code", "SPLUNK_DECODE"), **kwargs)


class NoResultsError(EventReaderError):
    """Raised when a well-formed search legitimately returned zero rows."""

    def __init__(self, message: str = "No results", **kwargs: Any) -> None:
        super().__init__(message, error_code=kwargs.pop("error_code", "NO_RESULTS"), **kwargs)


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------

class InvalidRequestError(EventReaderError):
    """Raised when an incoming request parameter fails validation."""

    def __init__(self, message: str = "Invalid request", **kwargs: Any) -> None:
        super().__init__(message, error_code=kwargs.pop("error_code", "INVALID_REQUEST"), **kwargs)


__all__ = [
    "EventReaderError",
    "TransportError",
    "BackendStatusError",
    "JobFailedError",
    "DecodeError",
    "NoResultsError",
    "InvalidRequestError",
]
