"""
Shared pytest fixtures for depot tests.

This module provides:
- An in-memory substrate standing in for Redis Stack
- Deterministic clocks for created/updated stamping
- Settings cache isolation

Usage:
    def test_something(substrate, clock):
        repo = EntitiesRepository(substrate, clock=clock)
"""

import sys
from pathlib import Path

import pytest

# Ensure depot package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from depot.core.settings import clear_settings_cache
from depot.store.memory import InMemorySubstrate


class TickingClock:
    """Epoch-millis clock that advances by ``step`` on every call."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value

    def advance(self, millis: int) -> None:
        self.now += millis


@pytest.fixture
def substrate() -> InMemorySubstrate:
    return InMemorySubstrate()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch):
    """Each test loads settings fresh from its own environment."""
    for name in ("DEPOT_STORE_BACKEND", "DEPOT_QUEUE_WORKERS", "DEPOT_REDIS_TRACING"):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()
