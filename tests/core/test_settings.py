"""Tests for depot.core.settings."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from depot.core.settings import DepotSettings, StoreBackend, clear_settings_cache, get_settings


class TestDepotSettings:
    def test_defaults(self):
        settings = DepotSettings()
        assert settings.store_backend == StoreBackend.REDIS
        assert settings.redis_url == "redis://localhost:6379/0"
        assert settings.queue_workers == 1
        assert settings.notifications_retention_days == 120
        assert settings.redis_tracing is False

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("DEPOT_REDIS_HOST", "redis.internal")
        monkeypatch.setenv("DEPOT_REDIS_PORT", "6380")
        monkeypatch.setenv("DEPOT_QUEUE_WORKERS", "4")
        monkeypatch.setenv("DEPOT_STORE_BACKEND", "memory")
        settings = DepotSettings()
        assert settings.redis_url == "redis://redis.internal:6380/0"
        assert settings.queue_workers == 4
        assert settings.store_backend == StoreBackend.MEMORY

    def test_port_range_checked(self):
        with pytest.raises(PydanticValidationError):
            DepotSettings(redis_port=0)

    def test_non_positive_workers_accepted_at_load(self):
        # rejected later, when workers are registered
        assert DepotSettings(queue_workers=0).queue_workers == 0


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_force_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("DEPOT_QUEUE_WORKERS", "3")
        assert get_settings() is first
        assert get_settings(_force_reload=True).queue_workers == 3

    def test_clear_cache(self):
        first = get_settings()
        clear_settings_cache()
        assert get_settings() is not first
