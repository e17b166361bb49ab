"""Centralized configuration for the Splunk event reader."""
from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Service configuration loaded from environment variables."""

    app_system_code: str = "splunk-event-reader"
    app_name: str = "Splunk Event Reader"
    app_port: int = 8080
    environment: str = "xp"

    # Splunk access
    splunk_url: str = ""
    splunk_user: str = ""
    splunk_password: str = ""
    splunk_index: str = "heroku"
    splunk_source: str = "http:upp"
    splunk_sourcetype: str = "heroku:drain"
    splunk_api_mode: str = "jobs"
    splunk_verify_tls: bool = False
    splunk_timeout_seconds: float = 30.0

    # Search execution
    search_max_attempts: int = 3
    search_retry_delay_seconds: float = 1.0
    search_retry_max_delay_seconds: float = 2.0
    search_poll_interval_seconds: float = 0.5
    search_max_polls: int = 120

    # Health
    health_cache_seconds: float = 60.0

    # Request validation
    content_types: str = "annotations"

    # Logging
    log_level: str = "info"
    log_json: bool = True

    model_config = {"env_file": ".env", "extra": "ignore"}

    @field_validator("splunk_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("splunk_api_mode")
    @classmethod
    def _validate_api_mode(cls, v: str) -> str:
        mode = v.strip().lower()
        if mode not in ("jobs", "export"):
            raise ValueError("splunk_api_mode must be one of: jobs, export")
        return mode

    @field_validator("search_max_attempts", "search_max_polls")
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @property
    def allowed_content_types(self) -> list[str]:
        return [ct.strip() for ct in self.content_types.split(",") if ct.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
