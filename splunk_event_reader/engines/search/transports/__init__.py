"""Splunk wire variants behind the :class:`SearchTransport` contract."""

from .export import ExportSearchTransport
from .jobs import JobSearchTransport

__all__ = ["ExportSearchTransport", "JobSearchTransport"]
