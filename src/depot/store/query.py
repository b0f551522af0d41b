"""
Query condition builder for the secondary-index query language.

Every condition renders to a self-contained fragment followed by a single
space, so fragments concatenate into an implicit AND::

    >>> QueryBuilder().equal("groupId", "com.acme:lib").equal("versionId", "1.0.0").build()
    '@groupId:{ com\\\\.acme\\\\:lib } @versionId:{ 1\\\\.0\\\\.0 } '

Disjunctions are built explicitly with :meth:`QueryBuilder.any_of`, which
parenthesizes each branch and joins them with ``|``.

The builder holds no state beyond the fragments appended to it, so the
same sequence of calls always yields the same string.

Tags:
    depot, store, query-dsl, redisearch, escaping

Doc-Types:
    api-reference
"""

from __future__ import annotations

import re
from typing import Any

WILDCARD = "*"

_SPECIAL_CHARACTERS = re.compile(r"[-:.]")


def escape(value: str) -> str:
    """Backslash-escape the characters the index tokenizes on (``-``, ``:``, ``.``)."""
    return _SPECIAL_CHARACTERS.sub(lambda m: "\\" + m.group(0), value)


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return escape(value)
    return str(value)


def tag_equal(field: str, value: Any) -> str:
    return f"@{field}:{{ {_literal(value)} }} "


def tag_not_equal(field: str, value: Any) -> str:
    return f"-@{field}:{{ {_literal(value)} }} "


def tag_prefix(field: str, prefix: str) -> str:
    return f"@{field}:{{ {_literal(prefix)}*}} "


def less_than(field: str, bound: Any) -> str:
    return f"@{field}:[-inf ({_literal(bound)}] "


def less_than_or_equal(field: str, bound: Any) -> str:
    return f"@{field}:[-inf {_literal(bound)}] "


def greater_than_or_equal(field: str, bound: Any) -> str:
    return f"@{field}:[{_literal(bound)} inf] "


def format_expression(*fields: str) -> str:
    """Aggregation ``APPLY`` expression joining ``fields`` with ``:``."""
    pattern = ":".join("%s" for _ in fields)
    arguments = ", ".join(f"@{f}" for f in fields)
    return f"format('{pattern}', {arguments})"


def exists_expression(field: str) -> str:
    return f"exists(@{field})"


class QueryBuilder:
    """Accumulates conditions into a single filter string."""

    def __init__(self) -> None:
        self._parts: list[str] = []

    def equal(self, field: str, value: Any) -> QueryBuilder:
        self._parts.append(tag_equal(field, value))
        return self

    def not_equal(self, field: str, value: Any) -> QueryBuilder:
        self._parts.append(tag_not_equal(field, value))
        return self

    def prefix(self, field: str, prefix: str) -> QueryBuilder:
        self._parts.append(tag_prefix(field, prefix))
        return self

    def less_than(self, field: str, bound: Any) -> QueryBuilder:
        self._parts.append(less_than(field, bound))
        return self

    def less_than_or_equal(self, field: str, bound: Any) -> QueryBuilder:
        self._parts.append(less_than_or_equal(field, bound))
        return self

    def greater_than_or_equal(self, field: str, bound: Any) -> QueryBuilder:
        self._parts.append(greater_than_or_equal(field, bound))
        return self

    def coordinates(self, group_id: str, artifact_id: str, version_id: str | None = None) -> QueryBuilder:
        """Equality on ``groupId``/``artifactId`` and, when given, ``versionId``."""
        self.equal("groupId", group_id)
        self.equal("artifactId", artifact_id)
        if version_id is not None:
            self.equal("versionId", version_id)
        return self

    def any_of(self, branches: list[QueryBuilder]) -> QueryBuilder:
        """Append ``( ( b1 ) | ( b2 ) ) ``; an empty list appends nothing."""
        if not branches:
            return self
        self._parts.append("( " + "| ".join(f"( {b.build()}) " for b in branches) + ") ")
        return self

    @property
    def empty(self) -> bool:
        return not self._parts

    def build(self) -> str:
        """The filter string, or the match-all wildcard when no condition was added."""
        if not self._parts:
            return WILDCARD
        return "".join(self._parts)

    def __str__(self) -> str:
        return self.build()
