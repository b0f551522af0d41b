"""Project and project-version records.

Tags:
    depot, domain, projects, versions

Doc-Types:
    data-model
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from depot.domain.base import Record, StoredRecord, nested


@dataclass(kw_only=True, eq=False)
class ProjectVersion(Record):
    """A version coordinate ``(groupId, artifactId, versionId)``."""

    group_id: str
    artifact_id: str
    version_id: str

    @property
    def gav(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version_id}"


@dataclass(kw_only=True, eq=False)
class StoreProjectData(StoredRecord):
    """A registered project bound to one ``(groupId, artifactId)`` pair."""

    group_id: str
    artifact_id: str
    project_id: str
    default_branch: str | None = None
    latest_version: str | None = None


@dataclass(kw_only=True, eq=False)
class ProjectVersionData(Record):
    excluded: bool = False
    exclusion_reason: str | None = None
    dependencies: list[ProjectVersion] = nested(ProjectVersion, many=True, default_factory=list)
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass(kw_only=True, eq=False)
class StoreProjectVersionData(StoredRecord):
    """A discovered artifact version and its version data."""

    group_id: str
    artifact_id: str
    version_id: str
    version_data: ProjectVersionData = nested(ProjectVersionData, default_factory=ProjectVersionData)

    @property
    def excluded(self) -> bool:
        return self.version_data.excluded
