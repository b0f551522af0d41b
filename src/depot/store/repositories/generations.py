"""File generations repository.

Key: ``file-generations:<groupId>:<artifactId>:<versionId>:<file.path>``.
Lookups by generation element path (``path``), generation ``type`` and
generated file path (``file_path`` <- ``$.file.path``).

Tags:
    depot, store, repository, file-generations

Doc-Types:
    api-reference
"""

from __future__ import annotations

from depot.core.timestamps import Clock, now_millis
from depot.domain.generation import StoredFileGeneration
from depot.store.engine import DocumentStore
from depot.store.repositories._helpers import coordinate_fields, require_valid_coordinates, version_filter
from depot.store.substrate import DocumentSubstrate, IndexField, IndexSchema, compound_key

COLLECTION = "file-generations"
GENERATION_PATH = "path"
GENERATION_TYPE = "type"
FILE_PATH = "file_path"

SCHEMA = IndexSchema(
    collection=COLLECTION,
    fields=(
        *coordinate_fields(),
        IndexField.tag(GENERATION_PATH),
        IndexField.tag(GENERATION_TYPE),
        IndexField.tag(FILE_PATH, "$.file.path"),
    ),
)


class FileGenerationsRepository:
    COLLECTION = COLLECTION
    SCHEMA = SCHEMA

    def __init__(self, substrate: DocumentSubstrate, *, clock: Clock = now_millis, build_index: bool = True):
        self._store: DocumentStore[StoredFileGeneration] = DocumentStore(
            substrate, SCHEMA, StoredFileGeneration, self, clock=clock, build_index=build_index
        )

    def get_key(self, record: StoredFileGeneration) -> str:
        return compound_key(COLLECTION, record.group_id, record.artifact_id, record.version_id, record.file.path)

    def get_key_filter(self, record: StoredFileGeneration) -> str:
        return version_filter(record.group_id, record.artifact_id, record.version_id).equal(
            FILE_PATH, record.file.path
        ).build()

    def validate_new_data(self, record: StoredFileGeneration) -> None:
        require_valid_coordinates(record.group_id, record.artifact_id, record.version_id)

    def create_or_update(self, generation: StoredFileGeneration) -> StoredFileGeneration:
        return self._store.create_or_update(generation, unique=True)

    def get_all(self) -> list[StoredFileGeneration]:
        return self._store.find_all()

    def find(self, group_id: str, artifact_id: str, version_id: str) -> list[StoredFileGeneration]:
        return self._store.find(version_filter(group_id, artifact_id, version_id).build())

    def find_by_element_path(self, group_id: str, artifact_id: str, version_id: str,
                             generation_path: str) -> list[StoredFileGeneration]:
        query = version_filter(group_id, artifact_id, version_id).equal(GENERATION_PATH, generation_path)
        return self._store.find(query.build())

    def find_by_file_path(self, group_id: str, artifact_id: str, version_id: str,
                          file_path: str) -> StoredFileGeneration | None:
        query = version_filter(group_id, artifact_id, version_id).equal(FILE_PATH, file_path)
        return self._store.find_one(query.build())

    def find_by_type(self, group_id: str, artifact_id: str, version_id: str,
                     generation_type: str) -> list[StoredFileGeneration]:
        query = version_filter(group_id, artifact_id, version_id).equal(GENERATION_TYPE, generation_type)
        return self._store.find(query.build())

    def delete(self, group_id: str, artifact_id: str, version_id: str) -> int:
        return self._store.delete_by_query(version_filter(group_id, artifact_id, version_id).build())
