"""Shared fixtures for all test suites."""
from __future__ import annotations

import pytest

from splunk_event_reader.config import Settings

from .helpers import SPLUNK_URL, SleepRecorder


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        splunk_url=SPLUNK_URL,
        splunk_user="reader",
        splunk_password="secret",
        environment="test",
        search_retry_delay_seconds=0,
        search_retry_max_delay_seconds=0,
        search_poll_interval_seconds=0,
        search_max_polls=5,
    )
