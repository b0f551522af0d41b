"""Record base types and JSON document conversion.

Records are keyword-only dataclasses whose snake_case attributes are
persisted under camelCase JSON names (``group_id`` -> ``groupId``).
Equality and hashing are derived field by field from the declared
dataclass fields; nested records and enums are declared explicitly with
:func:`nested`.

Conversion rules:
    - ``None`` values are omitted from the stored document
    - unknown document keys are ignored on load
    - nested records / lists of records / enums round-trip through ``nested()``

Tags:
    depot, domain, dataclasses, serialization

Doc-Types:
    api-reference, data-model
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

R = TypeVar("R", bound="Record")


def json_name(attribute: str) -> str:
    """camelCase JSON name for a snake_case attribute."""
    head, *rest = attribute.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def nested(type_: type, *, many: bool = False, **kwargs: Any) -> Any:
    """Declare a field holding a nested record (or list of records) or an enum."""
    return field(metadata={"type": type_, "many": many}, **kwargs)


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return tuple(sorted((k, _freeze(v)) for k, v in value.items()))
    if isinstance(value, list | tuple | set):
        return tuple(_freeze(v) for v in value)
    return value


class Record:
    """Field-by-field equality, hashing and JSON conversion for dataclass records."""

    def _field_values(self) -> tuple[Any, ...]:
        return tuple(getattr(self, f.name) for f in dataclasses.fields(self) if f.compare)  # type: ignore[arg-type]

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._field_values() == other._field_values()  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self).__name__, _freeze(self._field_values())))

    def to_document(self) -> dict[str, Any]:
        return to_document(self)

    @classmethod
    def from_document(cls: type[R], document: dict[str, Any]) -> R:
        return from_document(cls, document)


@dataclass(kw_only=True, eq=False)
class StoredRecord(Record):
    """A persisted row: engine-managed identifier and timestamps."""

    id: str | None = None
    created: int | None = None
    updated: int | None = None


def _dump(value: Any) -> Any:
    if isinstance(value, Record):
        return to_document(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list | tuple):
        return [_dump(v) for v in value]
    if isinstance(value, dict):
        return {k: _dump(v) for k, v in value.items()}
    return value


def to_document(record: Record) -> dict[str, Any]:
    """Serialize a record to a JSON-compatible dict, omitting ``None`` values."""
    document: dict[str, Any] = {}
    for f in dataclasses.fields(record):  # type: ignore[arg-type]
        value = getattr(record, f.name)
        if value is None:
            continue
        document[json_name(f.name)] = _dump(value)
    return document


def _load(type_: type, raw: Any) -> Any:
    if raw is None:
        return None
    if isinstance(type_, type) and issubclass(type_, Enum):
        return type_(raw)
    if isinstance(type_, type) and issubclass(type_, Record):
        return from_document(type_, raw)
    return raw


def from_document(cls: type[R], document: dict[str, Any]) -> R:
    """Build a record from a stored document, ignoring unknown keys."""
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(cls):  # type: ignore[arg-type]
        if not f.init:
            continue
        key = json_name(f.name)
        if key not in document:
            continue
        raw = document[key]
        type_ = f.metadata.get("type")
        if type_ is None:
            kwargs[f.name] = raw
        elif f.metadata.get("many"):
            kwargs[f.name] = [_load(type_, item) for item in raw or []]
        else:
            kwargs[f.name] = _load(type_, raw)
    return cls(**kwargs)
