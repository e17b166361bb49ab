"""Splunk search execution: transports, job lifecycle, executor."""

from .base import HTTPSearchTransport, SearchTransport, decode_rows
from .executor import JobExecutor
from .lifecycle import Action, JobPhase, Transition, classify_job, transition
from .transports import ExportSearchTransport, JobSearchTransport

__all__ = [
    "Action",
    "ExportSearchTransport",
    "HTTPSearchTransport",
    "JobExecutor",
    "JobPhase",
    "JobSearchTransport",
    "SearchTransport",
    "Transition",
    "classify_job",
    "decode_rows",
    "transition",
]
