"""
In-process substrate evaluating the depot's query language.

Used for tests and single-process development.  It honours the same
contracts as the Redis substrate: ``json_set(nx=True)`` refuses to
overwrite, ``delete`` reports 0 when the key is already gone, and queries
are evaluated against the JSON paths declared in each collection's
:class:`~depot.store.substrate.IndexSchema`.

Supported query grammar::

    union        := intersection ( "|" intersection )*
    intersection := term*
    term         := "-" term | "*" | "(" union ")" | "@" alias ":" ( tag | range )
    tag          := "{" value ( "|" value )* "}"      value may end in "*" (prefix)
    range        := "[" bound bound "]"               "(" marks an exclusive bound

Aggregation supports ``format('%s:..', @a, ...)`` applies, ``exists(@f)``
filters, group-by with a count reducer and multi-key sorting.

Guardrails:
    ❌ DON'T: Share an InMemorySubstrate between processes
    ✅ DO: Use RedisSubstrate when several workers claim from one queue

Tags:
    depot, store, substrate, in-memory, query-parser

Doc-Types:
    api-reference
"""

from __future__ import annotations

import copy
import re
import threading
from collections.abc import Callable
from typing import Any

from depot.core.errors import StoreError
from depot.core.logging import get_logger
from depot.store.substrate import (
    DOCUMENT_FIELD,
    KEY_FIELD,
    Aggregation,
    FieldType,
    IndexSchema,
    SearchQuery,
    SearchResult,
    StoredDocument,
)

logger = get_logger(__name__)

Row = dict[str, Any]
Predicate = Callable[[Row], bool]

_FORMAT_EXPRESSION = re.compile(r"^format\('([^']*)',\s*(.+)\)$")
_EXISTS_EXPRESSION = re.compile(r"^exists\(@(\w+)\)$")


def resolve_path(document: dict[str, Any], path: str) -> Any:
    """Resolve a ``$.a.b`` JSON path; ``None`` when any segment is missing."""
    value: Any = document
    for segment in path.lstrip("$").strip(".").split("."):
        if not segment:
            continue
        if not isinstance(value, dict):
            return None
        value = value.get(segment)
    return value


def _tag_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# ------------------------------------------------------------------ #
# Query parsing
# ------------------------------------------------------------------ #


class QueryParser:
    """Compiles a filter string into a predicate over indexed rows."""

    def __init__(self, text: str):
        self._text = text
        self._pos = 0

    def parse(self) -> Predicate:
        predicate = self._union()
        self._skip_whitespace()
        if self._pos != len(self._text):
            raise self._error("unexpected input")
        return predicate

    def _error(self, reason: str) -> StoreError:
        return StoreError(f"Invalid query at position {self._pos}: {reason}").with_context(query=self._text)

    def _peek(self) -> str:
        return self._text[self._pos] if self._pos < len(self._text) else ""

    def _skip_whitespace(self) -> None:
        while self._pos < len(self._text) and self._text[self._pos].isspace():
            self._pos += 1

    def _expect(self, char: str) -> None:
        self._skip_whitespace()
        if self._peek() != char:
            raise self._error(f"expected {char!r}")
        self._pos += 1

    def _union(self) -> Predicate:
        branches = [self._intersection()]
        while self._peek() == "|":
            self._pos += 1
            branches.append(self._intersection())
        if len(branches) == 1:
            return branches[0]
        return lambda row: any(branch(row) for branch in branches)

    def _intersection(self) -> Predicate:
        terms: list[Predicate] = []
        while True:
            self._skip_whitespace()
            if self._peek() in ("", "|", ")"):
                break
            terms.append(self._term())
        return lambda row: all(term(row) for term in terms)

    def _term(self) -> Predicate:
        char = self._peek()
        if char == "-":
            self._pos += 1
            inner = self._term()
            return lambda row: not inner(row)
        if char == "*":
            self._pos += 1
            return lambda row: True
        if char == "(":
            self._pos += 1
            group = self._union()
            self._expect(")")
            return group
        if char == "@":
            return self._field_term()
        raise self._error(f"unexpected {char!r}")

    def _field_term(self) -> Predicate:
        self._pos += 1
        start = self._pos
        while self._pos < len(self._text) and (self._text[self._pos].isalnum() or self._text[self._pos] == "_"):
            self._pos += 1
        alias = self._text[start:self._pos]
        if not alias:
            raise self._error("missing field name")
        self._expect(":")
        char = self._peek()
        if char == "{":
            return self._tag(alias)
        if char == "[":
            return self._range(alias)
        raise self._error(f"expected tag or range for @{alias}")

    def _tag(self, alias: str) -> Predicate:
        self._pos += 1
        values: list[list[tuple[str, bool]]] = [[]]
        while True:
            if self._pos >= len(self._text):
                raise self._error("unterminated tag")
            char = self._text[self._pos]
            if char == "\\" and self._pos + 1 < len(self._text):
                values[-1].append((self._text[self._pos + 1], True))
                self._pos += 2
                continue
            self._pos += 1
            if char == "}":
                break
            if char == "|":
                values.append([])
                continue
            values[-1].append((char, False))

        matchers: list[tuple[str, bool]] = []
        for chars in values:
            while chars and not chars[0][1] and chars[0][0].isspace():
                chars.pop(0)
            while chars and not chars[-1][1] and chars[-1][0].isspace():
                chars.pop()
            is_prefix = bool(chars) and chars[-1] == ("*", False)
            if is_prefix:
                chars.pop()
            matchers.append(("".join(c for c, _ in chars), is_prefix))

        def match(row: Row) -> bool:
            value = row.get(alias)
            if value is None:
                return False
            text = _tag_text(value)
            return any(
                text.startswith(expected) if prefix else text == expected
                for expected, prefix in matchers
            )

        return match

    def _range(self, alias: str) -> Predicate:
        self._pos += 1
        end = self._text.find("]", self._pos)
        if end < 0:
            raise self._error("unterminated range")
        bounds = self._text[self._pos:end].split()
        self._pos = end + 1
        if len(bounds) != 2:
            raise self._error("range needs two bounds")
        (low, low_open), (high, high_open) = (self._bound(b) for b in bounds)

        def match(row: Row) -> bool:
            number = _number(row.get(alias))
            if number is None:
                return False
            above = number > low if low_open else number >= low
            below = number < high if high_open else number <= high
            return above and below

        return match

    def _bound(self, token: str) -> tuple[float, bool]:
        exclusive = token.startswith("(")
        token = token.lstrip("(").replace("\\", "")
        if token in ("inf", "+inf"):
            return float("inf"), exclusive
        if token == "-inf":
            return float("-inf"), exclusive
        try:
            return float(token), exclusive
        except ValueError:
            raise self._error(f"invalid numeric bound {token!r}") from None


def compile_query(text: str) -> Predicate:
    return QueryParser(text).parse()


# ------------------------------------------------------------------ #
# Substrate
# ------------------------------------------------------------------ #


class InMemorySubstrate:
    """
    Dictionary-backed substrate guarded by a single lock.

    Each public call is atomic with respect to the others, which gives the
    same single-key guarantees the queue relies on in Redis: of several
    concurrent ``delete(key)`` calls exactly one returns 1.

    Example:
        substrate = InMemorySubstrate()
        entities = EntitiesRepository(substrate)
    """

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}
        self._indexes: dict[str, IndexSchema] = {}
        self._lock = threading.RLock()

    # -- indexes -------------------------------------------------------

    def index_exists(self, index: str) -> bool:
        with self._lock:
            return index in self._indexes

    def create_index(self, schema: IndexSchema) -> None:
        with self._lock:
            if schema.name in self._indexes:
                raise StoreError(f"Index already exists: {schema.name}").with_context(index=schema.name)
            self._indexes[schema.name] = schema

    def drop_index(self, index: str) -> None:
        with self._lock:
            if self._indexes.pop(index, None) is None:
                raise StoreError(f"Unknown index name: {index}").with_context(index=index)

    def list_indexes(self) -> list[str]:
        with self._lock:
            return sorted(self._indexes)

    # -- documents -----------------------------------------------------

    def json_set(self, key: str, document: dict[str, Any], *, nx: bool = False, xx: bool = False) -> bool:
        with self._lock:
            if nx and key in self._documents:
                return False
            if xx and key not in self._documents:
                return False
            self._documents[key] = copy.deepcopy(document)
            return True

    def json_get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            document = self._documents.get(key)
            return copy.deepcopy(document) if document is not None else None

    def delete(self, key: str) -> int:
        with self._lock:
            return 1 if self._documents.pop(key, None) is not None else 0

    def scan_keys(self, prefix: str) -> list[str]:
        with self._lock:
            return sorted(k for k in self._documents if k.startswith(prefix))

    def flush(self) -> None:
        with self._lock:
            self._documents.clear()
            self._indexes.clear()

    # -- queries -------------------------------------------------------

    def _schema(self, index: str) -> IndexSchema:
        schema = self._indexes.get(index)
        if schema is None:
            raise StoreError(f"Unknown index name: {index}").with_context(index=index)
        return schema

    def _rows(self, schema: IndexSchema, text: str) -> list[tuple[str, Row]]:
        predicate = compile_query(text)
        rows = []
        for key in sorted(self._documents):
            if not key.startswith(schema.prefix):
                continue
            document = self._documents[key]
            row = {f.alias: resolve_path(document, f.path) for f in schema.fields}
            if predicate(row):
                rows.append((key, row))
        return rows

    def search(self, index: str, query: SearchQuery) -> SearchResult:
        with self._lock:
            schema = self._schema(index)
            rows = self._rows(schema, query.text)
            if query.sort_by is not None:
                rows.sort(key=lambda item: _sort_key(item[1].get(query.sort_by)), reverse=not query.ascending)
            window = rows[query.offset:query.offset + query.limit] if query.limit > 0 else []
            documents = [
                StoredDocument(key=key, properties=None if query.no_content else copy.deepcopy(self._documents[key]))
                for key, _ in window
            ]
            return SearchResult(total=len(rows), documents=documents)

    def aggregate(self, index: str, aggregation: Aggregation) -> list[dict[str, Any]]:
        with self._lock:
            schema = self._schema(index)
            rows: list[Row] = []
            for key, row in self._rows(schema, aggregation.query):
                if aggregation.load_documents:
                    row[KEY_FIELD] = key
                    row[DOCUMENT_FIELD] = copy.deepcopy(self._documents[key])
                rows.append(row)

        for alias, expression in aggregation.applies.items():
            formatter = _compile_apply(expression)
            for row in rows:
                row[alias] = formatter(row)

        for expression in aggregation.filters:
            matched = _EXISTS_EXPRESSION.match(expression)
            if matched is None:
                raise StoreError(f"Unsupported aggregation filter: {expression}")
            alias = matched.group(1)
            rows = [row for row in rows if row.get(alias) is not None]

        if aggregation.group_by:
            groups: dict[tuple[Any, ...], int] = {}
            for row in rows:
                group_key = tuple(row.get(f) for f in aggregation.group_by)
                groups[group_key] = groups.get(group_key, 0) + 1
            rows = [
                {**dict(zip(aggregation.group_by, group_key)), "count": count}
                for group_key, count in groups.items()
            ]

        # stable sort, least significant key first
        for alias, ascending in reversed(aggregation.sort_by):
            rows.sort(key=lambda row, a=alias: _sort_key(row.get(a)), reverse=not ascending)

        return rows[:aggregation.limit]


def _sort_key(value: Any) -> tuple[int, Any]:
    number = _number(value)
    if number is not None:
        return (0, number)
    if value is None:
        return (2, "")
    return (1, _tag_text(value))


def _compile_apply(expression: str) -> Callable[[Row], str | None]:
    matched = _FORMAT_EXPRESSION.match(expression)
    if matched is None:
        raise StoreError(f"Unsupported aggregation expression: {expression}")
    pattern = matched.group(1)
    aliases = [a.strip().lstrip("@") for a in matched.group(2).split(",")]

    def apply(row: Row) -> str | None:
        values = [row.get(a) for a in aliases]
        if any(v is None for v in values):
            return None
        return pattern % tuple(_tag_text(v) for v in values)

    return apply
