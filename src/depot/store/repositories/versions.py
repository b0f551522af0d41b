"""Project versions repository.

Key: ``versions:<groupId>:<artifactId>:<versionId>``.  The
``versionData.excluded`` flag is indexed as ``versionData_excluded`` so
excluded versions can be listed or skipped.

Tags:
    depot, store, repository, versions

Doc-Types:
    api-reference
"""

from __future__ import annotations

from depot.core.timestamps import Clock, now_millis
from depot.domain.project import StoreProjectVersionData
from depot.store.engine import DocumentStore
from depot.store.query import QueryBuilder
from depot.store.repositories._helpers import (
    artifact_filter,
    coordinate_fields,
    require_valid_coordinates,
    require_version_id,
    version_filter,
)
from depot.store.substrate import DocumentSubstrate, IndexField, IndexSchema, compound_key

COLLECTION = "versions"
VERSION_DATA_EXCLUDED = "versionData_excluded"

SCHEMA = IndexSchema(
    collection=COLLECTION,
    fields=(*coordinate_fields(), IndexField.tag(VERSION_DATA_EXCLUDED, "$.versionData.excluded")),
)


class ProjectVersionsRepository:
    """Read/write access to the ``versions`` collection."""

    COLLECTION = COLLECTION
    SCHEMA = SCHEMA

    def __init__(self, substrate: DocumentSubstrate, *, clock: Clock = now_millis, build_index: bool = True):
        self._store: DocumentStore[StoreProjectVersionData] = DocumentStore(
            substrate, SCHEMA, StoreProjectVersionData, self, clock=clock, build_index=build_index
        )

    def get_key(self, record: StoreProjectVersionData) -> str:
        return compound_key(COLLECTION, record.group_id, record.artifact_id, record.version_id)

    def get_key_filter(self, record: StoreProjectVersionData) -> str:
        return version_filter(record.group_id, record.artifact_id, record.version_id).build()

    def validate_new_data(self, record: StoreProjectVersionData) -> None:
        require_valid_coordinates(record.group_id, record.artifact_id, record.version_id)

    def create_or_update(self, version: StoreProjectVersionData) -> StoreProjectVersionData:
        return self._store.create_or_update(version, unique=True)

    def get_all(self) -> list[StoreProjectVersionData]:
        return self._store.find_all()

    def find(self, group_id: str, artifact_id: str) -> list[StoreProjectVersionData]:
        return self._store.find(artifact_filter(group_id, artifact_id).build())

    def find_version(self, group_id: str, artifact_id: str, version_id: str) -> StoreProjectVersionData | None:
        """Point lookup; ``version_id`` is mandatory."""
        require_version_id(version_id)
        return self._store.find_one(version_filter(group_id, artifact_id, version_id).build())

    def find_versions(self, excluded: bool) -> list[StoreProjectVersionData]:
        return self._store.find(QueryBuilder().equal(VERSION_DATA_EXCLUDED, excluded).build())

    def get_version_count(self, group_id: str | None = None, artifact_id: str | None = None) -> int:
        if group_id is None or artifact_id is None:
            return self._store.count()
        return self._store.count(artifact_filter(group_id, artifact_id).build())

    def delete(self, group_id: str, artifact_id: str) -> int:
        return self._store.delete_by_query(artifact_filter(group_id, artifact_id).build())

    def delete_by_version_id(self, group_id: str, artifact_id: str, version_id: str) -> int:
        return self._store.delete_by_query(version_filter(group_id, artifact_id, version_id).build())
