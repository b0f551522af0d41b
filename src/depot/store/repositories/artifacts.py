"""Artifact files repository, unique by path (key ``artifacts-files:<path>``).

Tags:
    depot, store, repository, artifacts

Doc-Types:
    api-reference
"""

from __future__ import annotations

from depot.core.errors import ValidationError
from depot.core.timestamps import Clock, now_millis
from depot.domain.artifacts import ArtifactFile
from depot.store.engine import DocumentStore
from depot.store.query import QueryBuilder
from depot.store.substrate import DocumentSubstrate, IndexField, IndexSchema, compound_key

COLLECTION = "artifacts-files"
PATH = "path"

SCHEMA = IndexSchema(collection=COLLECTION, fields=(IndexField.tag(PATH),))


class ArtifactFilesRepository:
    COLLECTION = COLLECTION
    SCHEMA = SCHEMA

    def __init__(self, substrate: DocumentSubstrate, *, clock: Clock = now_millis, build_index: bool = True):
        self._store: DocumentStore[ArtifactFile] = DocumentStore(
            substrate, SCHEMA, ArtifactFile, self, clock=clock, build_index=build_index
        )

    def get_key(self, record: ArtifactFile) -> str:
        return compound_key(COLLECTION, record.path)

    def get_key_filter(self, record: ArtifactFile) -> str:
        return QueryBuilder().equal(PATH, record.path).build()

    def validate_new_data(self, record: ArtifactFile) -> None:
        if not record.path:
            raise ValidationError("artifact file path cannot be empty", field=PATH, value=record.path)

    def create_or_update(self, artifact_file: ArtifactFile) -> ArtifactFile:
        return self._store.create_or_update(artifact_file, unique=True)

    def find(self, path: str) -> ArtifactFile | None:
        return self._store.find_one(QueryBuilder().equal(PATH, path).build())

    def get_all(self) -> list[ArtifactFile]:
        return self._store.find_all()

    def delete(self, path: str) -> int:
        return self._store.delete_by_query(QueryBuilder().equal(PATH, path).build())
