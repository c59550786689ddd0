"""
http_facility.tier0_core.config
─────────────────────────────────
Typed facility configuration with env layering. Reads from .env → environment
variables. All fields are typed via Pydantic.

The dispatcher holds a reference to this object and reads it fresh on every
call, so mutating ``base_url`` / ``timeout`` / ``debug`` / ``qs`` affects only
requests started afterwards.

Minimal stack: pydantic-settings + python-dotenv
Configure via: HTTP_FACILITY_BASE_URL, HTTP_FACILITY_TIMEOUT (ms),
               HTTP_FACILITY_DEBUG, HTTP_FACILITY_QS (JSON object)
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TIMEOUT_MS = 3000


class FacilityConfig(BaseSettings):
    """
    Facility configuration. Every field can be overridden with an
    ``HTTP_FACILITY_`` prefixed environment variable.
    """

    model_config = SettingsConfigDict(
        env_prefix="HTTP_FACILITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    base_url: str = ""
    timeout: int = Field(default=DEFAULT_TIMEOUT_MS, ge=0)  # milliseconds
    debug: bool = False
    qs: dict[str, Any] = Field(default_factory=dict)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache(maxsize=1)
def get_config() -> FacilityConfig:
    """
    Return the singleton facility config. Cached after first call.
    Call _reset_config() in tests to pick up new env vars.
    """
    return FacilityConfig()


def _reset_config() -> None:
    """For tests: clear the config cache."""
    get_config.cache_clear()


__all__ = ["FacilityConfig", "get_config", "DEFAULT_TIMEOUT_MS"]
