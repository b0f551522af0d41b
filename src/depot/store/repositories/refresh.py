"""Refresh status repository: markers for in-flight artifact refreshes.

A marker is inserted when a refresh of ``(groupId, artifactId,
versionId)`` starts and removed when it completes.  Inserts are
conditional on the key ``artifacts-refresh-status:<g>:<a>:<v>`` being
absent, so a second concurrent refresh of the same version fails with
:class:`~depot.core.errors.ConflictError`.

Tags:
    depot, store, repository, artifacts, refresh

Doc-Types:
    api-reference
"""

from __future__ import annotations

from depot.core.timestamps import Clock, now_millis
from depot.domain.artifacts import RefreshStatus
from depot.store.engine import DocumentStore
from depot.store.query import QueryBuilder, exists_expression
from depot.store.repositories._helpers import (
    ARTIFACT_ID,
    EVENT_ID,
    GROUP_ID,
    PARENT_EVENT_ID,
    VERSION_ID,
    coordinate_fields,
    require_valid_coordinates,
    version_filter,
)
from depot.store.substrate import Aggregation, DocumentSubstrate, IndexField, IndexSchema, compound_key

COLLECTION = "artifacts-refresh-status"

SCHEMA = IndexSchema(
    collection=COLLECTION,
    fields=(*coordinate_fields(), IndexField.tag(EVENT_ID), IndexField.tag(PARENT_EVENT_ID)),
)


class RefreshStatusRepository:
    COLLECTION = COLLECTION
    SCHEMA = SCHEMA

    def __init__(self, substrate: DocumentSubstrate, *, clock: Clock = now_millis, build_index: bool = True):
        self._store: DocumentStore[RefreshStatus] = DocumentStore(
            substrate, SCHEMA, RefreshStatus, self, clock=clock, build_index=build_index
        )

    def get_key(self, record: RefreshStatus) -> str:
        return compound_key(COLLECTION, record.group_id, record.artifact_id, record.version_id)

    def get_key_filter(self, record: RefreshStatus) -> str:
        return version_filter(record.group_id, record.artifact_id, record.version_id).build()

    def validate_new_data(self, record: RefreshStatus) -> None:
        require_valid_coordinates(record.group_id, record.artifact_id, record.version_id)

    def insert(self, status: RefreshStatus) -> RefreshStatus:
        return self._store.insert(status, unique=True)

    def get(self, group_id: str, artifact_id: str, version_id: str) -> RefreshStatus | None:
        return self._store.find_one(version_filter(group_id, artifact_id, version_id).build())

    def find(
        self,
        group_id: str | None = None,
        artifact_id: str | None = None,
        version_id: str | None = None,
        event_id: str | None = None,
        parent_event_id: str | None = None,
    ) -> list[RefreshStatus]:
        """Markers matching every given attribute."""
        query = QueryBuilder()
        for field, value in (
            (ARTIFACT_ID, artifact_id),
            (VERSION_ID, version_id),
            (EVENT_ID, event_id),
            (PARENT_EVENT_ID, parent_event_id),
        ):
            if value is not None:
                query.equal(field, value)

        if group_id is not None:
            return self._store.find(query.equal(GROUP_ID, group_id).build())
        return self._store.find_by_aggregation(Aggregation(query.build()).filter(exists_expression(GROUP_ID)))

    def get_all(self) -> list[RefreshStatus]:
        return self._store.find_all()

    def delete(self, group_id: str, artifact_id: str, version_id: str) -> int:
        return self._store.delete_by_query(version_filter(group_id, artifact_id, version_id).build())
