"""Metadata notification records.

Tags:
    depot, domain, notifications, queue

Doc-Types:
    data-model
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from depot.domain.base import StoredRecord, nested

DEFAULT_PRIORITY = 5
DEFAULT_MAX_RETRIES = 3


class MetadataEventStatus(str, Enum):
    NEW = "NEW"
    IN_PROGRESS = "IN_PROGRESS"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass(kw_only=True, eq=False)
class MetadataNotification(StoredRecord):
    """An event asking for an artifact version to be (re)processed.

    Lower ``event_priority`` numbers are served first.
    """

    group_id: str
    artifact_id: str
    version_id: str
    event_id: str | None = None
    parent_event_id: str | None = None
    event_priority: int = DEFAULT_PRIORITY
    status: MetadataEventStatus = nested(MetadataEventStatus, default=MetadataEventStatus.NEW)
    attempt: int = 0
    max_retries: int = DEFAULT_MAX_RETRIES
    full_update: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def can_retry(self) -> bool:
        return self.attempt < self.max_retries
