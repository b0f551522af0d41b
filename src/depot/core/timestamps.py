"""
Epoch-millisecond timestamp helpers.

All persisted ``created``/``updated``/``lastQueryTime`` values are epoch
milliseconds so they can be indexed as NUMERIC fields and compared with
range conditions.

Tags:
    timestamps, epoch-millis, utc, depot-core

Doc-Types:
    - API Reference
"""

import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

Clock = Callable[[], int]


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def to_millis(dt: datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values are treated as UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp() * 1000)


def from_millis(millis: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(millis / 1000, tz=UTC)


def days_ago_millis(days: int, *, clock: Clock = now_millis) -> int:
    """Epoch millis for ``days`` before the clock's current time."""
    return clock() - int(timedelta(days=days).total_seconds() * 1000)


_suffix_lock = threading.Lock()
_last_suffix = 0


def key_suffix() -> str:
    """High-resolution suffix that keeps append-only keys unique.

    Nanosecond wall-clock time, bumped when two calls in this process land
    on the same value so suffixes are strictly increasing.
    """
    global _last_suffix
    with _suffix_lock:
        value = max(time.time_ns(), _last_suffix + 1)
        _last_suffix = value
    return str(value)
