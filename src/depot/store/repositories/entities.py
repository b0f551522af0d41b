"""Entities repository: model elements stored per artifact version.

Key: ``entities:<groupId>:<artifactId>:<versionId>:<entity.path>``.

Index fields::

    groupId, artifactId, versionId, versionedEntity
    entity_path             <- $.entity.path
    entity_content_package  <- $.entity.content.package
    entity_classifierPath   <- $.entity.classifierPath

Searching by name is a case-insensitive substring match on the entity
path applied after the indexed query returns, because the index has no
regex support.  When a search term is given the limit is therefore
applied after filtering as well.

Tags:
    depot, store, repository, entities

Doc-Types:
    api-reference
"""

from __future__ import annotations

from depot.core.errors import ValidationError
from depot.core.logging import get_logger
from depot.core.timestamps import Clock, now_millis
from depot.domain.entity import EntityDefinition, StoredEntity, StoredEntityOverview
from depot.domain.project import ProjectVersion
from depot.domain.status import StoreOperationResult
from depot.domain.validation import (
    MASTER_SNAPSHOT,
    coordinate_errors,
    is_valid_entity_path,
    is_valid_package_path,
)
from depot.store.engine import DocumentStore
from depot.store.query import QueryBuilder, format_expression
from depot.store.repositories._helpers import (
    ARTIFACT_ID,
    GROUP_ID,
    VERSION_ID,
    artifact_filter,
    coordinate_fields,
    version_filter,
)
from depot.store.substrate import (
    Aggregation,
    DocumentSubstrate,
    IndexField,
    IndexSchema,
    SearchQuery,
    StoredDocument,
    compound_key,
)

logger = get_logger(__name__)

COLLECTION = "entities"

VERSIONED_ENTITY = "versionedEntity"
ENTITY_PATH = "entity_path"
ENTITY_PACKAGE = "entity_content_package"
ENTITY_CLASSIFIER_PATH = "entity_classifierPath"
COORDINATE = "coordinate"

SCHEMA = IndexSchema(
    collection=COLLECTION,
    fields=(
        *coordinate_fields(),
        IndexField.tag(VERSIONED_ENTITY),
        IndexField.tag(ENTITY_PATH, "$.entity.path"),
        IndexField.tag(ENTITY_PACKAGE, "$.entity.content.package"),
        IndexField.tag(ENTITY_CLASSIFIER_PATH, "$.entity.classifierPath"),
    ),
)

EntityRow = StoredEntity | StoredEntityOverview


def entity_errors(entity: StoredEntity) -> list[str]:
    errors = coordinate_errors(entity.group_id, entity.artifact_id, entity.version_id)
    path = entity.entity.path if entity.entity is not None else None
    if not is_valid_entity_path(path):
        errors.append(f"invalid entity path [{path}]")
    return errors


def overview(entity: StoredEntity) -> StoredEntityOverview:
    return StoredEntityOverview(
        group_id=entity.group_id,
        artifact_id=entity.artifact_id,
        version_id=entity.version_id,
        versioned_entity=entity.versioned_entity,
        path=entity.entity.path,
        classifier_path=entity.entity.classifier_path,
    )


def _require_classifier(classifier: str) -> None:
    if not is_valid_entity_path(classifier):
        raise ValidationError(f"invalid classifier path [{classifier}]", field="classifierPath", value=classifier)


class EntitiesRepository:
    """Read/write access to the ``entities`` collection."""

    COLLECTION = COLLECTION
    SCHEMA = SCHEMA

    def __init__(self, substrate: DocumentSubstrate, *, clock: Clock = now_millis, build_index: bool = True):
        self._store: DocumentStore[StoredEntity] = DocumentStore(
            substrate, SCHEMA, StoredEntity, self, clock=clock, build_index=build_index
        )

    # -- key strategy ---------------------------------------------------

    def get_key(self, record: StoredEntity) -> str:
        return compound_key(COLLECTION, record.group_id, record.artifact_id, record.version_id, record.entity.path)

    def get_key_filter(self, record: StoredEntity) -> str:
        return self._path_filter(record.group_id, record.artifact_id, record.version_id, record.entity.path).build()

    def validate_new_data(self, record: StoredEntity) -> None:
        errors = entity_errors(record)
        if errors:
            raise ValidationError(f"invalid data {errors}", errors=errors)

    # -- writes ---------------------------------------------------------

    def create_or_update(self, entities: list[StoredEntity]) -> StoreOperationResult:
        """Upsert a batch; invalid entities are reported, not written."""
        report = StoreOperationResult()
        for entity in entities:
            errors = entity_errors(entity)
            if errors:
                report.errors.extend(errors)
                continue
            _, inserted = self._store.upsert(entity, unique=True)
            if inserted:
                report.inserted_count += 1
            else:
                report.modified_count += 1
        logger.debug("entities_stored", inserted=report.inserted_count, modified=report.modified_count,
                     errors=len(report.errors))
        return report

    def delete(self, group_id: str, artifact_id: str, version_id: str, versioned: bool = False) -> StoreOperationResult:
        query = self._versioned_filter(group_id, artifact_id, version_id, versioned)
        return StoreOperationResult(deleted_count=self._store.delete_by_query(query.build()))

    def delete_all(self, group_id: str, artifact_id: str) -> StoreOperationResult:
        return StoreOperationResult(deleted_count=self._store.delete_by_query(artifact_filter(group_id, artifact_id).build()))

    # -- point lookups --------------------------------------------------

    def get_entity(self, group_id: str, artifact_id: str, version_id: str, path: str) -> EntityDefinition | None:
        stored = self._store.find_one(self._path_filter(group_id, artifact_id, version_id, path).build())
        return stored.entity if stored is not None else None

    def get_stored_entities(self, group_id: str, artifact_id: str, version_id: str | None = None,
                            versioned: bool | None = None) -> list[StoredEntity]:
        query = artifact_filter(group_id, artifact_id)
        if version_id is not None:
            query.equal(VERSION_ID, version_id)
        if versioned is not None:
            query.equal(VERSIONED_ENTITY, versioned)
        return self._store.find(query.build())

    def get_all_entities(self, group_id: str, artifact_id: str, version_id: str,
                         versioned: bool | None = None) -> list[EntityDefinition]:
        return [e.entity for e in self.get_stored_entities(group_id, artifact_id, version_id, versioned)]

    def get_all_stored_entities(self) -> list[StoredEntity]:
        return self._store.find_all()

    def get_entities_by_package(
        self,
        group_id: str,
        artifact_id: str,
        version_id: str,
        package: str,
        *,
        versioned: bool = False,
        classifier_paths: set[str] | None = None,
        include_sub_packages: bool = True,
    ) -> list[EntityDefinition]:
        """Entities in ``package`` (and its sub-packages unless disabled)."""
        if not is_valid_package_path(package):
            raise ValidationError(f"invalid package [{package}]", field="package", value=package)

        query = self._versioned_filter(group_id, artifact_id, version_id, versioned)
        if include_sub_packages:
            query.prefix(ENTITY_PACKAGE, package)
        else:
            query.equal(ENTITY_PACKAGE, package)

        entities = [e.entity for e in self._store.find(query.build())]
        if classifier_paths:
            entities = [e for e in entities if e.classifier_path in classifier_paths]
        return entities

    # -- classifier queries ---------------------------------------------

    def find_released_entities_by_classifier(
        self,
        classifier: str,
        *,
        search: str | None = None,
        project_versions: list[ProjectVersion] | None = None,
        limit: int | None = None,
        summary: bool = False,
        versioned: bool = False,
    ) -> list[EntityRow]:
        """Entities of ``classifier`` outside the latest snapshot.

        With ``project_versions`` the query is restricted to exactly those
        versions instead.
        """
        _require_classifier(classifier)
        query = QueryBuilder().equal(ENTITY_CLASSIFIER_PATH, classifier).equal(VERSIONED_ENTITY, versioned)
        if project_versions:
            query.any_of([version_filter(v.group_id, v.artifact_id, v.version_id) for v in project_versions])
        else:
            query.not_equal(VERSION_ID, MASTER_SNAPSHOT)
        return self._search(query, search, limit, summary)

    def find_latest_entities_by_classifier(
        self,
        classifier: str,
        *,
        search: str | None = None,
        limit: int | None = None,
        summary: bool = False,
        versioned: bool = False,
    ) -> list[EntityRow]:
        """Entities of ``classifier`` in the ``master-SNAPSHOT`` version."""
        _require_classifier(classifier)
        query = (
            QueryBuilder()
            .equal(ENTITY_CLASSIFIER_PATH, classifier)
            .equal(VERSIONED_ENTITY, versioned)
            .equal(VERSION_ID, MASTER_SNAPSHOT)
        )
        return self._search(query, search, limit, summary)

    def find_entities_by_classifier(
        self,
        classifier: str,
        *,
        group_id: str | None = None,
        artifact_id: str | None = None,
        version_id: str | None = None,
        summary: bool = False,
        versioned: bool = False,
    ) -> list[EntityRow]:
        _require_classifier(classifier)
        query = QueryBuilder()
        if group_id is not None and artifact_id is not None:
            query.coordinates(group_id, artifact_id, version_id)
        query.equal(ENTITY_CLASSIFIER_PATH, classifier).equal(VERSIONED_ENTITY, versioned)
        return self._transform(summary, self._store.search(query.build()))

    # -- counts and aggregations ----------------------------------------

    def get_entity_count(self, group_id: str, artifact_id: str) -> int:
        return self._store.count(artifact_filter(group_id, artifact_id).build())

    def get_version_entity_count(self, group_id: str | None = None, artifact_id: str | None = None,
                                 version_id: str | None = None) -> int:
        """Entities in one version, or across every version except the latest snapshot."""
        if group_id is None or artifact_id is None or version_id is None:
            return self._store.count(QueryBuilder().not_equal(VERSION_ID, MASTER_SNAPSHOT).build())
        return self._store.count(version_filter(group_id, artifact_id, version_id).build())

    def get_stored_entities_coordinates(self) -> list[tuple[str, str]]:
        """Distinct ``(groupId, artifactId)`` pairs with stored entities."""
        aggregation = (
            Aggregation()
            .apply(COORDINATE, format_expression(GROUP_ID, ARTIFACT_ID))
            .group(COORDINATE)
        )
        coordinates = []
        for row in self._store.aggregate(aggregation):
            value = row.get(COORDINATE)
            if value:
                group_id, artifact_id = str(value).split(":", 1)
                coordinates.append((group_id, artifact_id))
        return coordinates

    # -- internals ------------------------------------------------------

    def _path_filter(self, group_id: str, artifact_id: str, version_id: str, path: str) -> QueryBuilder:
        return version_filter(group_id, artifact_id, version_id).equal(ENTITY_PATH, path)

    def _versioned_filter(self, group_id: str, artifact_id: str, version_id: str, versioned: bool) -> QueryBuilder:
        return version_filter(group_id, artifact_id, version_id).equal(VERSIONED_ENTITY, versioned)

    def _search(self, query: QueryBuilder, search: str | None, limit: int | None, summary: bool) -> list[EntityRow]:
        request = SearchQuery(query.build())
        if limit and limit > 0 and search is None:
            request.paging(0, limit)

        rows = self._transform(summary, self._store.search(request))
        if search is None:
            return rows

        needle = search.lower()
        matched = [row for row in rows if needle in _path_of(row).lower()]
        if limit and limit > 0:
            matched = matched[:limit]
        return matched

    def _transform(self, summary: bool, documents: list[StoredDocument]) -> list[EntityRow]:
        entities = self._store.convert_documents(documents)
        if not summary:
            return list(entities)
        return [overview(e) for e in entities]


def _path_of(row: EntityRow) -> str:
    if isinstance(row, StoredEntityOverview):
        return row.path
    return row.entity.path
