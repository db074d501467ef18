"""Environment-driven settings for resilient-db.

Every field can be set through a ``RESILIENT_DB_``-prefixed environment
variable or a ``.env`` file; explicit arguments to the factory functions
always win over settings.

Examples:
    >>> import os
    >>> os.environ["RESILIENT_DB_MAX_ATTEMPTS"] = "5"
    >>> get_settings(_force_reload=True).max_attempts
    5

Tags:
    settings, configuration, pydantic, environment
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ResilientDbSettings(BaseSettings):
    """Settings for the retrying connection and its drivers.

    Fields
    ──────
    database_url     : URL or path handed to ``create_connector``
    max_attempts     : Attempts per ``run_query`` before giving up
    connect_timeout  : Driver connect timeout in seconds
    log_level        : structlog log level
    log_format       : ``json`` or ``console``
    """

    model_config = SettingsConfigDict(
        env_prefix="RESILIENT_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    database_url: str = Field(default="memory")
    connect_timeout: float = Field(default=10.0, gt=0)

    # ── Retry ────────────────────────────────────────────────────
    max_attempts: int = Field(default=3, ge=1)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return value

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in {"json", "console"}:
            raise ValueError(f"log_format must be 'json' or 'console', got {value!r}")
        return value

    @property
    def json_logs(self) -> bool:
        return self.log_format == "json"


_settings_cache: dict[str, ResilientDbSettings] = {}


def get_settings(*, _force_reload: bool = False) -> ResilientDbSettings:
    """Load, validate, and cache a :class:`ResilientDbSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = ResilientDbSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "ResilientDbSettings",
    "get_settings",
    "clear_settings_cache",
]
