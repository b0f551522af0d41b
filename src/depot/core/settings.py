"""
Centralized settings for the metadata depot.

Manifesto:
    One validated, cached settings object covers the substrate connection,
    queue worker schedule and housekeeping retention.  Every value can be
    overridden through ``DEPOT_*`` environment variables or a ``.env`` file.

Tags:
    depot-core, configuration, settings, pydantic, caching, validation

Doc-Types:
    api-reference
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreBackend(str, Enum):
    """Substrate implementation selected at startup."""

    REDIS = "redis"
    MEMORY = "memory"


class DepotSettings(BaseSettings):
    """Depot configuration.

    All fields can be set via ``DEPOT_*`` environment variables (e.g.
    ``DEPOT_REDIS_HOST=redis.internal``) or through a ``.env`` file.

    ``queue_workers`` is deliberately not range-checked here: worker
    registration raises :class:`~depot.core.errors.InvalidConfigError` for
    zero or negative counts so the failure surfaces at startup with the
    depot's own error type.
    """

    model_config = SettingsConfigDict(
        env_prefix="DEPOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Substrate ────────────────────────────────────────────────
    store_backend: StoreBackend = Field(default=StoreBackend.REDIS)
    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379, ge=1, le=65535)
    redis_db: int = Field(default=0, ge=0)
    redis_tracing: bool = Field(default=False, description="Log timing of every substrate call")

    # ── Notification queue ───────────────────────────────────────
    queue_workers: int = Field(default=1, description="Number of queue worker identities")
    queue_delay_seconds: int = Field(default=60)
    queue_interval_seconds: int = Field(default=30)

    # ── Housekeeping ─────────────────────────────────────────────
    housekeeping_delay_seconds: int = Field(default=60)
    housekeeping_interval_seconds: int = Field(default=3600)
    notifications_retention_days: int = Field(default=120, ge=0)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    @property
    def redis_url(self) -> str:
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"


_settings_cache: dict[str, DepotSettings] = {}


def get_settings(*, _force_reload: bool = False) -> DepotSettings:
    """Load, validate, and cache a :class:`DepotSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    settings = DepotSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()
