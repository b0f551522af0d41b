"""Entity records stored per artifact version.

Tags:
    depot, domain, entities

Doc-Types:
    data-model
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from depot.domain.base import Record, StoredRecord, nested


@dataclass(kw_only=True, eq=False)
class EntityDefinition(Record):
    """A model element: its path, classifier and raw content."""

    path: str
    classifier_path: str | None = None
    content: dict[str, Any] = field(default_factory=dict)

    @property
    def package(self) -> str | None:
        package = self.content.get("package")
        if package:
            return package
        if "::" in self.path:
            return self.path.rsplit("::", 1)[0]
        return None


@dataclass(kw_only=True, eq=False)
class StoredEntity(StoredRecord):
    """An entity belonging to one ``(groupId, artifactId, versionId)``."""

    group_id: str
    artifact_id: str
    version_id: str
    entity: EntityDefinition = nested(EntityDefinition)
    versioned_entity: bool = False


@dataclass(kw_only=True, eq=False)
class StoredEntityOverview(Record):
    """Summary projection of a stored entity (no content)."""

    group_id: str
    artifact_id: str
    version_id: str
    versioned_entity: bool
    path: str
    classifier_path: str | None = None
