"""
Index and collection administration.

Manifesto:
    Bootstrapping a fresh substrate and repairing a broken index are the
    same operation: walk the known collections and make sure each one has
    its index.  Which collections are known is an explicit
    :class:`CollectionRegistry` built at process start, never a global.

Architecture:
    ::

        CollectionRegistry            name -> IndexSchema
              │
              ▼
        AdminStore(substrate, registry)
              get_all_collections()   registered names
              get_all_indexes()       indexes present in the substrate
              create_indexes()        idempotent, one per collection
              delete_index(name)      drop "name:index", keep documents
              delete_collection(name) unlink every "name:*" key

Tags:
    depot, store, admin, indexes, bootstrap

Doc-Types:
    api-reference, operations-guide
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from depot.core.errors import ConfigError, ValidationError
from depot.core.logging import get_logger
from depot.store.engine import ensure_index
from depot.store.substrate import DocumentSubstrate, IndexSchema, index_name, key_prefix

logger = get_logger(__name__)


class CollectionRegistry:
    """The collections a process knows about, with their index schemas."""

    def __init__(self, schemas: Iterable[IndexSchema] = ()):
        self._schemas: dict[str, IndexSchema] = {}
        for schema in schemas:
            self.register(schema)

    def register(self, schema: IndexSchema) -> None:
        current = self._schemas.get(schema.collection)
        if current is not None and current != schema:
            raise ConfigError(f"Collection {schema.collection!r} already registered with a different schema")
        self._schemas[schema.collection] = schema

    def schema(self, collection: str) -> IndexSchema:
        try:
            return self._schemas[collection]
        except KeyError:
            raise ValidationError(f"Unknown collection: {collection}", field="collection", value=collection) from None

    def names(self) -> list[str]:
        return list(self._schemas)

    def __contains__(self, collection: object) -> bool:
        return collection in self._schemas

    def __iter__(self) -> Iterator[IndexSchema]:
        return iter(self._schemas.values())

    def __len__(self) -> int:
        return len(self._schemas)


def store_registry() -> CollectionRegistry:
    """Registry of the metadata collections (everything except notifications)."""
    from depot.store.repositories import (
        ArtifactFilesRepository,
        EntitiesRepository,
        FileGenerationsRepository,
        ProjectsRepository,
        ProjectVersionsRepository,
        QueryMetricsRepository,
        RefreshStatusRepository,
        ScheduleInstancesRepository,
        SchedulesRepository,
    )

    return CollectionRegistry(
        repository.SCHEMA
        for repository in (
            ProjectsRepository,
            ProjectVersionsRepository,
            EntitiesRepository,
            FileGenerationsRepository,
            ArtifactFilesRepository,
            RefreshStatusRepository,
            SchedulesRepository,
            ScheduleInstancesRepository,
            QueryMetricsRepository,
        )
    )


def default_registry() -> CollectionRegistry:
    """Metadata collections plus the notification queue and history."""
    from depot.notifications.history import Notifications
    from depot.notifications.queue import NotificationsQueue

    registry = store_registry()
    registry.register(Notifications.SCHEMA)
    registry.register(NotificationsQueue.SCHEMA)
    return registry


class AdminStore:
    """Maintenance operations over every registered collection."""

    def __init__(self, substrate: DocumentSubstrate, registry: CollectionRegistry):
        self._substrate = substrate
        self._registry = registry

    @property
    def registry(self) -> CollectionRegistry:
        return self._registry

    def get_all_collections(self) -> list[str]:
        return self._registry.names()

    def get_all_indexes(self) -> list[str]:
        return self._substrate.list_indexes()

    def create_indexes(self) -> list[str]:
        """Ensure every registered collection has its index; existing ones are left alone."""
        return [ensure_index(self._substrate, schema) for schema in self._registry]

    def delete_index(self, collection: str) -> str:
        """Drop ``collection:index``; the collection's documents are kept."""
        name = index_name(self._registry.schema(collection).collection)
        self._substrate.drop_index(name)
        logger.info("index_dropped", index=name, collection=collection)
        return name

    def delete_collection(self, collection: str) -> int:
        """Delete every document under ``collection:``; the index is kept."""
        prefix = key_prefix(self._registry.schema(collection).collection)
        deleted = sum(self._substrate.delete(key) for key in self._substrate.scan_keys(prefix))
        logger.info("collection_deleted", collection=collection, deleted=deleted)
        return deleted
