"""Schedule definitions and execution instances.

Tags:
    depot, domain, schedules

Doc-Types:
    data-model
"""

from __future__ import annotations

from dataclasses import dataclass

from depot.domain.base import StoredRecord


@dataclass(kw_only=True, eq=False)
class ScheduleInfo(StoredRecord):
    """A named schedule; names are unique."""

    name: str
    frequency: int | None = None
    disabled: bool = False
    last_executed: int | None = None


@dataclass(kw_only=True, eq=False)
class ScheduleInstance(StoredRecord):
    """One execution of a schedule (append-only)."""

    schedule: str
    expected_run: int | None = None
