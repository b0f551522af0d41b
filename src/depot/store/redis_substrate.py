"""
Redis Stack substrate (RedisJSON + RediSearch) via redis-py.

Each collection is a set of JSON keys sharing the ``collection:`` prefix,
covered by a RediSearch index named ``collection:index``.  Uniqueness is
enforced at write time with ``JSON.SET ... NX``, since RediSearch has no
unique indexes; claims rely on ``UNLINK`` returning the removed count.

Redis client errors are wrapped in :class:`~depot.core.errors.StoreError`
carrying the key or index that was being accessed.

Examples:
    >>> substrate = RedisSubstrate.from_url("redis://localhost:6379/0")
    >>> substrate.index_exists("entities:index")
    False

Tags:
    depot, store, redis, redisjson, redisearch, substrate

Doc-Types:
    api-reference, infrastructure-guide
"""

from __future__ import annotations

import json
from typing import Any

import redis
from redis.commands.search import reducers
from redis.commands.search.aggregation import AggregateRequest, Asc, Desc
from redis.commands.search.field import NumericField, TagField
from redis.commands.search.index_definition import IndexDefinition, IndexType
from redis.commands.search.query import Query
from redis.exceptions import RedisError, ResponseError

from depot.core.errors import StoreError
from depot.core.logging import get_logger
from depot.store.substrate import (
    DOCUMENT_FIELD,
    KEY_FIELD,
    Aggregation,
    FieldType,
    IndexField,
    IndexSchema,
    SearchQuery,
    SearchResult,
    StoredDocument,
)

logger = get_logger(__name__)

QUERY_DIALECT = 2


def _text(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


def _redis_field(field: IndexField) -> TagField | NumericField:
    if field.type is FieldType.NUMERIC:
        return NumericField(field.path, as_name=field.alias, sortable=field.sortable)
    return TagField(field.path, as_name=field.alias, sortable=field.sortable, case_sensitive=True)


class RedisSubstrate:
    """:class:`~depot.store.substrate.DocumentSubstrate` over a redis-py client."""

    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> RedisSubstrate:
        return cls(redis.Redis.from_url(url, decode_responses=True))

    @property
    def client(self) -> redis.Redis:
        return self._client

    # -- indexes -------------------------------------------------------

    def index_exists(self, index: str) -> bool:
        try:
            self._client.ft(index).info()
        except ResponseError:
            return False
        except RedisError as exc:
            raise StoreError(f"Error reading index info: {index}", cause=exc).with_context(index=index) from exc
        return True

    def create_index(self, schema: IndexSchema) -> None:
        definition = IndexDefinition(prefix=[schema.prefix], index_type=IndexType.JSON)
        try:
            self._client.ft(schema.name).create_index(
                [_redis_field(f) for f in schema.fields],
                definition=definition,
            )
        except RedisError as exc:
            raise StoreError(f"Error creating index: {schema.name}", cause=exc).with_context(index=schema.name) from exc

    def drop_index(self, index: str) -> None:
        try:
            self._client.ft(index).dropindex(delete_documents=False)
        except RedisError as exc:
            raise StoreError(f"Error dropping index: {index}", cause=exc).with_context(index=index) from exc

    def list_indexes(self) -> list[str]:
        try:
            names = self._client.execute_command("FT._LIST")
        except RedisError as exc:
            raise StoreError("Error listing indexes", cause=exc) from exc
        return sorted(_text(n) for n in names or [])

    # -- documents -----------------------------------------------------

    def json_set(self, key: str, document: dict[str, Any], *, nx: bool = False, xx: bool = False) -> bool:
        try:
            status = self._client.json().set(key, "$", document, nx=nx, xx=xx)
        except RedisError as exc:
            raise StoreError(f"Error writing key: '{key}'", key=key, cause=exc) from exc
        return bool(status)

    def delete(self, key: str) -> int:
        try:
            return int(self._client.unlink(key))
        except RedisError as exc:
            raise StoreError(f"Error deleting key: '{key}'", key=key, cause=exc) from exc

    def scan_keys(self, prefix: str) -> list[str]:
        try:
            return sorted(_text(k) for k in self._client.scan_iter(match=prefix + "*"))
        except RedisError as exc:
            raise StoreError(f"Error scanning keys with prefix: '{prefix}'", cause=exc) from exc

    # -- queries -------------------------------------------------------

    def search(self, index: str, query: SearchQuery) -> SearchResult:
        request = Query(query.text).paging(query.offset, query.limit).dialect(QUERY_DIALECT)
        if query.sort_by is not None:
            request = request.sort_by(query.sort_by, asc=query.ascending)
        if query.no_content:
            request = request.no_content()

        try:
            result = self._client.ft(index).search(request)
        except RedisError as exc:
            raise StoreError(f"Error searching index: {index}", cause=exc).with_context(
                index=index, query=query.text
            ) from exc

        documents = []
        for doc in result.docs:
            properties = None
            if not query.no_content:
                raw = getattr(doc, "json", None)
                properties = json.loads(raw) if raw else None
            documents.append(StoredDocument(key=_text(doc.id), properties=properties))
        return SearchResult(total=int(result.total), documents=documents)

    def aggregate(self, index: str, aggregation: Aggregation) -> list[dict[str, Any]]:
        request = AggregateRequest(aggregation.query).dialect(QUERY_DIALECT)
        if aggregation.load_documents:
            request = request.load("@" + KEY_FIELD, DOCUMENT_FIELD)
        if aggregation.applies:
            request = request.apply(**aggregation.applies)
        for expression in aggregation.filters:
            request = request.filter(expression)
        if aggregation.group_by:
            request = request.group_by(
                [f"@{f}" for f in aggregation.group_by],
                reducers.count().alias("count"),
            )
        if aggregation.sort_by:
            request = request.sort_by(
                *(Asc(f"@{f}") if ascending else Desc(f"@{f}") for f, ascending in aggregation.sort_by),
                max=aggregation.limit,
            )
        request = request.limit(0, aggregation.limit)

        try:
            result = self._client.ft(index).aggregate(request)
        except RedisError as exc:
            raise StoreError(f"Error aggregating index: {index}", cause=exc).with_context(
                index=index, query=aggregation.query
            ) from exc

        rows = []
        for raw in result.rows:
            row = {_text(raw[i]): _text(raw[i + 1]) for i in range(0, len(raw) - 1, 2)}
            if DOCUMENT_FIELD in row and isinstance(row[DOCUMENT_FIELD], str):
                row[DOCUMENT_FIELD] = json.loads(row[DOCUMENT_FIELD])
            rows.append(row)
        return rows
