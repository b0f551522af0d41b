"""Shared helpers for repository classes.

Tags:
    depot, store, repository, helpers

Doc-Types:
    api-reference
"""

from __future__ import annotations

from depot.core.errors import ValidationError
from depot.domain.validation import coordinate_errors
from depot.store.query import QueryBuilder
from depot.store.substrate import IndexField

ID = "id"
GROUP_ID = "groupId"
ARTIFACT_ID = "artifactId"
VERSION_ID = "versionId"
EVENT_ID = "eventId"
PARENT_EVENT_ID = "parentEventId"
CREATED = "created"
UPDATED = "updated"


def coordinate_fields(*, with_version: bool = True) -> tuple[IndexField, ...]:
    """Tag fields for ``groupId``, ``artifactId`` and optionally ``versionId``."""
    fields = [IndexField.tag(GROUP_ID), IndexField.tag(ARTIFACT_ID)]
    if with_version:
        fields.append(IndexField.tag(VERSION_ID))
    return tuple(fields)


def artifact_filter(group_id: str, artifact_id: str) -> QueryBuilder:
    return QueryBuilder().coordinates(group_id, artifact_id)


def version_filter(group_id: str, artifact_id: str, version_id: str) -> QueryBuilder:
    return QueryBuilder().coordinates(group_id, artifact_id, version_id)


def require_valid_coordinates(group_id: str | None, artifact_id: str | None, version_id: str | None = None,
                              *, check_version: bool = True) -> None:
    """Raise :class:`ValidationError` listing every coordinate violation."""
    errors = coordinate_errors(group_id, artifact_id, version_id, check_version=check_version)
    if errors:
        raise ValidationError(
            f"invalid data {errors}",
            field="coordinates",
            value=(group_id, artifact_id, version_id),
            errors=errors,
        )


def require_version_id(version_id: str | None) -> str:
    if not version_id:
        raise ValidationError("versionId cannot be null or empty", field=VERSION_ID, value=version_id)
    return version_id
