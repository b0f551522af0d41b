"""
Substrate protocol: the JSON document store the engine runs against.

Manifesto:
    The engine needs exactly five capabilities from its substrate: per-
    collection secondary indexes, conditional single-key JSON writes, an
    atomic delete that reports how many rows it removed, filtered search
    with paging, and an aggregation pipeline.  Anything satisfying
    :class:`DocumentSubstrate` can host the depot.

Architecture:
    ::

        DocumentStore ──> DocumentSubstrate (Protocol)
                              ├── RedisSubstrate     RedisJSON + RediSearch via redis-py
                              ├── InMemorySubstrate  same query language, in-process
                              └── TracingSubstrate   timing decorator around either

    Naming: the index for collection ``c`` is ``c:index`` and covers every
    key with the prefix ``c:``.

Tags:
    depot, store, substrate, protocol, redisearch

Doc-Types:
    api-reference, architecture
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from depot.store.query import WILDCARD

KEY_DELIMITER = ":"
INDEX_SUFFIX = KEY_DELIMITER + "index"
DEFAULT_SEARCH_LIMIT = 10_000

# Pseudo-fields present in aggregation rows loaded with documents
KEY_FIELD = "__key"
DOCUMENT_FIELD = "$"


def index_name(collection: str) -> str:
    return collection + INDEX_SUFFIX


def key_prefix(collection: str) -> str:
    return collection + KEY_DELIMITER


def compound_key(collection: str, *parts: Any) -> str:
    """``collection:part1:part2...``"""
    return KEY_DELIMITER.join([collection, *(str(p) for p in parts)])


class FieldType(str, Enum):
    TAG = "TAG"
    NUMERIC = "NUMERIC"


@dataclass(frozen=True)
class IndexField:
    """One indexed attribute: a JSON path exposed under a query alias."""

    alias: str
    path: str
    type: FieldType = FieldType.TAG
    sortable: bool = True

    @classmethod
    def tag(cls, alias: str, path: str | None = None) -> IndexField:
        return cls(alias=alias, path=path or f"$.{alias}", type=FieldType.TAG)

    @classmethod
    def numeric(cls, alias: str, path: str | None = None) -> IndexField:
        return cls(alias=alias, path=path or f"$.{alias}", type=FieldType.NUMERIC)


@dataclass(frozen=True)
class IndexSchema:
    """Secondary index definition owned by one collection."""

    collection: str
    fields: tuple[IndexField, ...]

    @property
    def name(self) -> str:
        return index_name(self.collection)

    @property
    def prefix(self) -> str:
        return key_prefix(self.collection)

    def find_field(self, alias: str) -> IndexField | None:
        for f in self.fields:
            if f.alias == alias:
                return f
        return None


@dataclass
class SearchQuery:
    """A filter plus paging, sorting and projection options."""

    text: str = WILDCARD
    offset: int = 0
    limit: int = DEFAULT_SEARCH_LIMIT
    sort_by: str | None = None
    ascending: bool = True
    no_content: bool = False

    def paging(self, offset: int, limit: int) -> SearchQuery:
        self.offset = offset
        self.limit = limit
        return self


@dataclass
class StoredDocument:
    """A search hit: the row key and, unless ``no_content``, its JSON body."""

    key: str
    properties: dict[str, Any] | None = None


@dataclass
class SearchResult:
    total: int = 0
    documents: list[StoredDocument] = field(default_factory=list)


@dataclass
class Aggregation:
    """
    Aggregation pipeline: filter, synthesize fields, filter again, group, sort.

    ``applies`` maps an alias to an expression built with
    :func:`~depot.store.query.format_expression`; ``filters`` hold
    :func:`~depot.store.query.exists_expression` predicates.  When
    ``load_documents`` is set each row also carries ``__key`` and the JSON
    body under ``$``.  ``group_by`` adds a ``count`` reducer.
    """

    query: str = WILDCARD
    applies: dict[str, str] = field(default_factory=dict)
    filters: list[str] = field(default_factory=list)
    group_by: list[str] = field(default_factory=list)
    sort_by: list[tuple[str, bool]] = field(default_factory=list)
    load_documents: bool = False
    limit: int = DEFAULT_SEARCH_LIMIT

    def apply(self, alias: str, expression: str) -> Aggregation:
        self.applies[alias] = expression
        return self

    def filter(self, expression: str) -> Aggregation:
        self.filters.append(expression)
        return self

    def group(self, *fields: str) -> Aggregation:
        self.group_by.extend(fields)
        return self

    def sort(self, field_name: str, ascending: bool = True) -> Aggregation:
        self.sort_by.append((field_name, ascending))
        return self

    def load(self) -> Aggregation:
        self.load_documents = True
        return self


@runtime_checkable
class DocumentSubstrate(Protocol):
    """Operations a document store backend must provide."""

    def index_exists(self, index: str) -> bool: ...

    def create_index(self, schema: IndexSchema) -> None: ...

    def drop_index(self, index: str) -> None: ...

    def list_indexes(self) -> list[str]: ...

    def json_set(self, key: str, document: dict[str, Any], *, nx: bool = False, xx: bool = False) -> bool:
        """Write ``document`` at ``key``; ``nx`` only if absent, ``xx`` only if present. True when written."""
        ...

    def delete(self, key: str) -> int:
        """Atomically remove ``key``; the number of rows removed (0 or 1)."""
        ...

    def search(self, index: str, query: SearchQuery) -> SearchResult: ...

    def aggregate(self, index: str, aggregation: Aggregation) -> list[dict[str, Any]]: ...

    def scan_keys(self, prefix: str) -> list[str]: ...
