"""Query metric observations.

Tags:
    depot, domain, metrics

Doc-Types:
    data-model
"""

from __future__ import annotations

from dataclasses import dataclass, field

from depot.core.timestamps import now_millis
from depot.domain.base import StoredRecord


@dataclass(kw_only=True, eq=False)
class VersionQueryMetric(StoredRecord):
    """One observation that a version was queried at ``last_query_time`` (epoch millis)."""

    group_id: str
    artifact_id: str
    version_id: str
    last_query_time: int = field(default_factory=now_millis)
