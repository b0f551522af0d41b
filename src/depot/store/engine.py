"""
Generic document-store engine shared by every depot collection.

Manifesto:
    Collections differ only in three things: how a row's key is built, how
    the "same" logical row is found again, and what makes a new row valid.
    Everything else (date stamping, conditional writes, counting, bulk
    delete, conversion to records) lives here once.

Architecture:
    ::

        repository ──(implements)──> KeyStrategy[T]
             │                          get_key(record)          -> "coll:g:a:v..."
             │                          get_key_filter(record)   -> "@groupId:{ g } ..."
             │                          validate_new_data(record)   raises on violation
             ▼
        DocumentStore[T](substrate, schema, record_type, keys)
             create_or_update / insert / find / find_one / count
             delete_by_key / delete_by_query / delete_by_aggregation
             ▼
        DocumentSubstrate  (Redis Stack or in-memory)

Concurrency:
    There is no application-level locking.  ``create_or_update`` reads then
    writes, so two writers racing on the same logical row end up
    last-writer-wins on the merged document; only the first insert of a
    unique key is protected by the substrate's conditional write.  Bulk
    deletes remove rows one key at a time and report how many were
    actually removed, which can be fewer than matched.

Guardrails:
    ❌ DON'T: Resolve a multi-row ``find_one`` by picking the first row
    ✅ DO: Let :class:`~depot.core.errors.ConsistencyError` propagate

    ❌ DON'T: Return ``None`` from ``validate_new_data`` for bad input
    ✅ DO: Raise :class:`~depot.core.errors.ValidationError` before any write

Tags:
    depot, store, engine, document-store, upsert, secondary-index

Doc-Types:
    api-reference, architecture
"""

from __future__ import annotations

import dataclasses
from dataclasses import replace
from typing import Any, Generic, Protocol, TypeVar

from depot.core.errors import ConflictError, ConsistencyError
from depot.core.logging import get_logger
from depot.core.timestamps import Clock, now_millis
from depot.domain.base import StoredRecord, from_document, json_name, to_document
from depot.store.query import WILDCARD
from depot.store.substrate import (
    DOCUMENT_FIELD,
    KEY_FIELD,
    Aggregation,
    DocumentSubstrate,
    IndexSchema,
    SearchQuery,
    StoredDocument,
)

logger = get_logger(__name__)

T = TypeVar("T", bound=StoredRecord)
T_contra = TypeVar("T_contra", bound=StoredRecord, contravariant=True)

ID = "id"
CREATED = "created"
UPDATED = "updated"


class KeyStrategy(Protocol[T_contra]):
    """Per-collection key, key-filter and validation logic."""

    def get_key(self, record: T_contra) -> str:
        """Deterministic compound key for ``record``."""
        ...

    def get_key_filter(self, record: T_contra) -> str:
        """Filter matching the stored row that ``record`` would replace."""
        ...

    def validate_new_data(self, record: T_contra) -> None:
        """Raise :class:`~depot.core.errors.ValidationError` when ``record`` is invalid."""
        ...


def ensure_index(substrate: DocumentSubstrate, schema: IndexSchema) -> str:
    """Create the collection's index unless it already exists; returns its name."""
    if substrate.index_exists(schema.name):
        return schema.name
    substrate.create_index(schema)
    logger.info("index_created", index=schema.name, collection=schema.collection)
    return schema.name


class DocumentStore(Generic[T]):
    """CRUD, query and aggregation over one collection of ``T`` records.

    Args:
        substrate: Backend holding the documents and indexes.
        schema: The collection's index definition.
        record_type: Dataclass the stored documents convert to.
        keys: Key strategy, usually the owning repository.
        clock: Epoch-millis clock used for ``created``/``updated``.
        build_index: Create the index on construction when missing.
    """

    def __init__(
        self,
        substrate: DocumentSubstrate,
        schema: IndexSchema,
        record_type: type[T],
        keys: KeyStrategy[T],
        *,
        clock: Clock = now_millis,
        build_index: bool = True,
    ):
        self.substrate = substrate
        self.schema = schema
        self.record_type = record_type
        self.keys = keys
        self.clock = clock
        if build_index:
            ensure_index(substrate, schema)

    @property
    def collection(self) -> str:
        return self.schema.collection

    @property
    def index(self) -> str:
        return self.schema.name

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def create_or_update(self, record: T, *, unique: bool = True, id_required: bool = False) -> T:
        """Insert ``record`` or merge it into the row its key filter finds.

        An existing row keeps its key, ``id`` and original ``created`` stamp
        and is otherwise rewritten from ``record``: a declared field left
        ``None`` is cleared, values outside the record type are kept and
        ``updated`` is refreshed.  A new row is written with a conditional
        write when ``unique`` is set.

        Raises:
            ValidationError: ``record`` failed the collection's validation.
            ConflictError: The conditional insert lost to another writer.
            ConsistencyError: The key filter matched more than one row.
        """
        stored, _ = self.upsert(record, unique=unique, id_required=id_required)
        return stored

    def upsert(self, record: T, *, unique: bool = True, id_required: bool = False) -> tuple[T, bool]:
        """:meth:`create_or_update` that also reports whether a new row was inserted."""
        self.keys.validate_new_data(record)

        existing = self.find_one_document(self.keys.get_key_filter(record))
        if existing is not None:
            stored = dict(existing.properties or {})
            now = self.clock()
            properties = {**self._carried_over(stored), **to_document(record)}
            properties[CREATED] = stored.get(CREATED, now)
            properties[UPDATED] = now
            self.insert_document(existing.key, properties, unique=False, id_required=id_required)
            return from_document(self.record_type, properties), False

        key = self.keys.get_key(record)
        properties = self._stamp(to_document(record))
        self.insert_document(key, properties, unique=unique, id_required=id_required)
        return from_document(self.record_type, properties), True

    def insert(self, record: T, *, key: str | None = None, unique: bool = False,
               id_required: bool = False) -> T:
        """Validate, date-stamp and write ``record`` at ``key`` (default: its compound key)."""
        self.keys.validate_new_data(record)
        key = key or self.keys.get_key(record)
        properties = self._stamp(to_document(record))
        self.insert_document(key, properties, unique=unique, id_required=id_required)
        return from_document(self.record_type, properties)

    def insert_document(self, key: str, properties: dict[str, Any], *, unique: bool = False,
                        id_required: bool = False) -> None:
        """Low-level write of a property map.

        With ``id_required`` the key is copied into ``id`` unless one is
        already set.  With ``unique`` the write only succeeds when ``key``
        is absent.
        """
        if id_required:
            properties.setdefault(ID, key)

        if not self.substrate.json_set(key, properties, nx=unique):
            raise ConflictError(
                f"Error inserting dataset with key: '{key}' - ensure the key is unique",
                key=key,
            ).with_context(collection=self.collection)
        logger.debug("document_written", collection=self.collection, key=key, unique=unique)

    def update_document(self, key: str, properties: dict[str, Any]) -> bool:
        """Overwrite ``key`` only while it still exists; False when it is gone."""
        written = self.substrate.json_set(key, properties, xx=True)
        logger.debug("document_updated", collection=self.collection, key=key, written=written)
        return written

    def _carried_over(self, stored: dict[str, Any]) -> dict[str, Any]:
        """Stored values the new record cannot restate: row identity and substrate-only extras."""
        declared = {json_name(f.name) for f in dataclasses.fields(self.record_type)} - {ID, CREATED}
        return {name: value for name, value in stored.items() if name not in declared}

    def _stamp(self, properties: dict[str, Any]) -> dict[str, Any]:
        now = self.clock()
        properties.setdefault(CREATED, now)
        properties[UPDATED] = now
        return properties

    # ------------------------------------------------------------------ #
    # Deletes
    # ------------------------------------------------------------------ #

    def delete_by_key(self, key: str | None) -> int:
        """Atomically remove one row; 0 when it was already gone."""
        if not key:
            return 0
        deleted = self.substrate.delete(key)
        logger.debug("document_deleted", collection=self.collection, key=key, deleted=deleted)
        return deleted

    def delete_by_query(self, query: str) -> int:
        """Delete every row matching ``query``; the number actually removed."""
        result = self.substrate.search(self.index, SearchQuery(query, no_content=True))
        return sum(self.delete_by_key(document.key) for document in result.documents)

    def delete_by_aggregation(self, aggregation: Aggregation) -> int:
        """Delete the rows an aggregation yields, resolving each row's key."""
        deleted = 0
        for row in self.aggregate(replace(aggregation, load_documents=True)):
            key = row.get(KEY_FIELD) or row.get(ID)
            deleted += self.delete_by_key(key)
        return deleted

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def _search_query(self, query: str | SearchQuery) -> SearchQuery:
        return query if isinstance(query, SearchQuery) else SearchQuery(query)

    def search(self, query: str | SearchQuery) -> list[StoredDocument]:
        return self.substrate.search(self.index, self._search_query(query)).documents

    def find(self, query: str | SearchQuery) -> list[T]:
        return self.convert_documents(self.search(query))

    def find_one_document(self, query: str | SearchQuery) -> StoredDocument | None:
        documents = self.search(query)
        if not documents:
            return None
        if len(documents) > 1:
            text = query.text if isinstance(query, SearchQuery) else query
            raise ConsistencyError(
                f"Found more than one match {text} in collection {self.collection}"
            ).with_context(collection=self.collection, query=text)
        return documents[0]

    def find_one(self, query: str | SearchQuery) -> T | None:
        """The single row matching ``query``, ``None`` when there is none.

        Raises:
            ConsistencyError: More than one row matched.
        """
        document = self.find_one_document(query)
        if document is None:
            return None
        return self.convert(document.properties, key=document.key)

    def find_all(self) -> list[T]:
        return self.find(WILDCARD)

    def find_all_by_page(self, page: int, page_size: int) -> list[T]:
        """One page of the collection; pages are 1-based."""
        return self.find(SearchQuery(WILDCARD).paging(max(page - 1, 0) * page_size, page_size))

    def count(self, query: str = WILDCARD) -> int:
        """Number of rows matching ``query`` without fetching any document body."""
        return self.substrate.search(self.index, SearchQuery(query, no_content=True).paging(0, 0)).total

    def aggregate(self, aggregation: Aggregation) -> list[dict[str, Any]]:
        return self.substrate.aggregate(self.index, aggregation)

    def find_by_aggregation(self, aggregation: Aggregation) -> list[T]:
        """Records from an aggregation, in the aggregation's order."""
        records = []
        for row in self.aggregate(replace(aggregation, load_documents=True)):
            record = self.convert(row.get(DOCUMENT_FIELD), key=row.get(KEY_FIELD))
            if record is not None:
                records.append(record)
        return records

    # ------------------------------------------------------------------ #
    # Conversion
    # ------------------------------------------------------------------ #

    def convert(self, properties: dict[str, Any] | None, *, key: str | None = None) -> T | None:
        """Build a record from a stored document; unreadable rows are logged and skipped."""
        if not properties:
            return None
        try:
            return from_document(self.record_type, properties)
        except (TypeError, ValueError, KeyError, AttributeError) as exc:
            logger.error("document_conversion_failed", collection=self.collection, key=key,
                         record_type=self.record_type.__name__, error=str(exc))
            return None

    def convert_documents(self, documents: list[StoredDocument]) -> list[T]:
        records = []
        for document in documents:
            record = self.convert(document.properties, key=document.key)
            if record is not None:
                records.append(record)
        return records
