"""Artifact file and refresh-status records.

Tags:
    depot, domain, artifacts

Doc-Types:
    data-model
"""

from __future__ import annotations

from dataclasses import dataclass

from depot.domain.base import StoredRecord


@dataclass(kw_only=True, eq=False)
class ArtifactFile(StoredRecord):
    """A downloaded artifact file, unique by path."""

    path: str
    modified: int | None = None
    checksum: str | None = None


@dataclass(kw_only=True, eq=False)
class RefreshStatus(StoredRecord):
    """Marker for an in-flight refresh of one artifact version."""

    group_id: str
    artifact_id: str
    version_id: str
    event_id: str | None = None
    parent_event_id: str | None = None
