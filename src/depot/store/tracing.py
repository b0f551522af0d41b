"""
Timing decorator for a substrate.

Wraps any :class:`~depot.store.substrate.DocumentSubstrate` and logs each
call with its duration.  Enabled with ``DEPOT_REDIS_TRACING=true``.

Design:
- Logs at DEBUG on success, WARNING on failure (the error still propagates)
- One log line per substrate call, never inside the caller's loops
- Timer overhead is a pair of perf_counter calls

Tags:
    depot, store, tracing, timing, observability

Doc-Types:
    api-reference
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from depot.core.logging import get_logger
from depot.store.substrate import (
    Aggregation,
    DocumentSubstrate,
    IndexSchema,
    SearchQuery,
    SearchResult,
)

logger = get_logger(__name__)


@dataclass
class CallTiming:
    operation: str
    started_at: float = field(default_factory=time.perf_counter)
    ended_at: float | None = None

    @property
    def duration_ms(self) -> float:
        end = self.ended_at if self.ended_at is not None else time.perf_counter()
        return round((end - self.started_at) * 1000, 3)


@contextmanager
def traced(operation: str, **context: Any) -> Iterator[CallTiming]:
    timing = CallTiming(operation)
    try:
        yield timing
    except Exception as exc:
        timing.ended_at = time.perf_counter()
        logger.warning("substrate_call_failed", operation=operation, duration_ms=timing.duration_ms,
                       error=str(exc), **context)
        raise
    timing.ended_at = time.perf_counter()
    logger.debug("substrate_call", operation=operation, duration_ms=timing.duration_ms, **context)


class TracingSubstrate:
    """Delegates every call to ``inner`` and logs it with its duration."""

    def __init__(self, inner: DocumentSubstrate):
        self._inner = inner

    @property
    def inner(self) -> DocumentSubstrate:
        return self._inner

    def index_exists(self, index: str) -> bool:
        with traced("index_exists", index=index):
            return self._inner.index_exists(index)

    def create_index(self, schema: IndexSchema) -> None:
        with traced("create_index", index=schema.name):
            self._inner.create_index(schema)

    def drop_index(self, index: str) -> None:
        with traced("drop_index", index=index):
            self._inner.drop_index(index)

    def list_indexes(self) -> list[str]:
        with traced("list_indexes"):
            return self._inner.list_indexes()

    def json_set(self, key: str, document: dict[str, Any], *, nx: bool = False, xx: bool = False) -> bool:
        with traced("json_set", key=key, nx=nx, xx=xx):
            return self._inner.json_set(key, document, nx=nx, xx=xx)

    def delete(self, key: str) -> int:
        with traced("delete", key=key):
            return self._inner.delete(key)

    def search(self, index: str, query: SearchQuery) -> SearchResult:
        with traced("search", index=index, query=query.text):
            return self._inner.search(index, query)

    def aggregate(self, index: str, aggregation: Aggregation) -> list[dict[str, Any]]:
        with traced("aggregate", index=index, query=aggregation.query):
            return self._inner.aggregate(index, aggregation)

    def scan_keys(self, prefix: str) -> list[str]:
        with traced("scan_keys", prefix=prefix):
            return self._inner.scan_keys(prefix)
