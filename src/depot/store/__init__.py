"""Depot storage layer: query builder, substrates, engine, repositories, admin.

Architecture::

    query.py            QueryBuilder and condition helpers
    substrate.py        DocumentSubstrate protocol, IndexSchema, SearchQuery, Aggregation
    redis_substrate.py  RedisJSON + RediSearch backend
    memory.py           in-process backend with the same query language
    tracing.py          timing decorator for any substrate
    connection.py       create_substrate(settings)
    engine.py           DocumentStore[T] and the KeyStrategy protocol
    repositories/       one repository per domain collection
    admin.py            CollectionRegistry and AdminStore
"""

from depot.store.connection import create_substrate
from depot.store.engine import DocumentStore, KeyStrategy, ensure_index
from depot.store.memory import InMemorySubstrate
from depot.store.query import QueryBuilder
from depot.store.redis_substrate import RedisSubstrate
from depot.store.substrate import (
    Aggregation,
    DocumentSubstrate,
    IndexField,
    IndexSchema,
    SearchQuery,
    SearchResult,
    StoredDocument,
)
from depot.store.tracing import TracingSubstrate

__all__ = [
    "Aggregation",
    "DocumentStore",
    "DocumentSubstrate",
    "InMemorySubstrate",
    "IndexField",
    "IndexSchema",
    "KeyStrategy",
    "QueryBuilder",
    "RedisSubstrate",
    "SearchQuery",
    "SearchResult",
    "StoredDocument",
    "TracingSubstrate",
    "create_substrate",
    "ensure_index",
]
