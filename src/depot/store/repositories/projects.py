"""Projects repository: one project identifier per ``(groupId, artifactId)``.

Key: ``project-configurations:<groupId>:<artifactId>``.  Re-registering a
coordinate pair under a different ``projectId`` is rejected with a
:class:`~depot.core.errors.ConflictError`; the stored binding is kept.

Tags:
    depot, store, repository, projects

Doc-Types:
    api-reference
"""

from __future__ import annotations

from depot.core.errors import ConflictError, ValidationError
from depot.core.timestamps import Clock, now_millis
from depot.domain.project import StoreProjectData
from depot.store.engine import DocumentStore
from depot.store.query import QueryBuilder
from depot.store.repositories._helpers import artifact_filter, coordinate_fields, require_valid_coordinates
from depot.store.substrate import DocumentSubstrate, IndexField, IndexSchema, compound_key

COLLECTION = "project-configurations"
PROJECT_ID = "projectId"

SCHEMA = IndexSchema(
    collection=COLLECTION,
    fields=(*coordinate_fields(with_version=False), IndexField.tag(PROJECT_ID)),
)


class ProjectsRepository:
    """Read/write access to the ``project-configurations`` collection."""

    COLLECTION = COLLECTION
    SCHEMA = SCHEMA

    def __init__(self, substrate: DocumentSubstrate, *, clock: Clock = now_millis, build_index: bool = True):
        self._store: DocumentStore[StoreProjectData] = DocumentStore(
            substrate, SCHEMA, StoreProjectData, self, clock=clock, build_index=build_index
        )

    def get_key(self, record: StoreProjectData) -> str:
        return compound_key(COLLECTION, record.group_id, record.artifact_id)

    def get_key_filter(self, record: StoreProjectData) -> str:
        return artifact_filter(record.group_id, record.artifact_id).build()

    def validate_new_data(self, record: StoreProjectData) -> None:
        if not record.project_id:
            raise ValidationError(
                f"invalid project [{record.project_id}] for {record.group_id}:{record.artifact_id}",
                field=PROJECT_ID,
                value=record.project_id,
            )
        require_valid_coordinates(record.group_id, record.artifact_id, check_version=False)

        existing = self.find(record.group_id, record.artifact_id)
        if existing is not None and existing.project_id != record.project_id:
            raise ConflictError(
                f"Duplicate coordinates: Different project {existing.project_id} its already registered "
                f"with this coordinates {record.group_id}-{record.artifact_id}",
                key=self.get_key(record),
            ).with_context(collection=COLLECTION)

    def create_or_update(self, project: StoreProjectData) -> StoreProjectData:
        return self._store.create_or_update(project, unique=True)

    def find(self, group_id: str, artifact_id: str) -> StoreProjectData | None:
        return self._store.find_one(artifact_filter(group_id, artifact_id).build())

    def find_by_project_id(self, project_id: str) -> list[StoreProjectData]:
        return self._store.find(QueryBuilder().equal(PROJECT_ID, project_id).build())

    def get_all(self) -> list[StoreProjectData]:
        return self._store.find_all()

    def get_projects(self, page: int, page_size: int) -> list[StoreProjectData]:
        """A 1-based page of registered projects."""
        return self._store.find_all_by_page(page, page_size)

    def delete(self, group_id: str, artifact_id: str) -> int:
        return self._store.delete_by_query(artifact_filter(group_id, artifact_id).build())
