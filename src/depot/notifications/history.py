"""Notification history: the terminal outcome of processed events.

One row per artifact version at ``notifications:<g>:<a>:<v>``; recording a
newer event for the same version overwrites the previous outcome while
keeping its ``created`` stamp.  Rows carry a NUMERIC ``updated`` field so
time-window queries and age-based purges run against the index.

Tags:
    depot, notifications, history, retention

Doc-Types:
    api-reference
"""

from __future__ import annotations

from dataclasses import replace

from depot.core.logging import get_logger
from depot.core.timestamps import Clock, days_ago_millis, now_millis
from depot.domain.notifications import MetadataEventStatus, MetadataNotification
from depot.store.engine import DocumentStore
from depot.store.query import QueryBuilder
from depot.store.repositories._helpers import (
    ARTIFACT_ID,
    EVENT_ID,
    GROUP_ID,
    ID,
    PARENT_EVENT_ID,
    UPDATED,
    VERSION_ID,
    coordinate_fields,
    require_valid_coordinates,
    version_filter,
)
from depot.store.substrate import DocumentSubstrate, IndexField, IndexSchema, SearchQuery, compound_key

logger = get_logger(__name__)

COLLECTION = "notifications"
STATUS = "status"

SCHEMA = IndexSchema(
    collection=COLLECTION,
    fields=(
        IndexField.tag(ID),
        *coordinate_fields(),
        IndexField.tag(EVENT_ID),
        IndexField.tag(PARENT_EVENT_ID),
        IndexField.tag(STATUS),
        IndexField.numeric(UPDATED),
    ),
)


class Notifications:
    """Read/write access to the ``notifications`` history collection."""

    COLLECTION = COLLECTION
    SCHEMA = SCHEMA

    def __init__(self, substrate: DocumentSubstrate, *, clock: Clock = now_millis, build_index: bool = True):
        self._clock = clock
        self._store: DocumentStore[MetadataNotification] = DocumentStore(
            substrate, SCHEMA, MetadataNotification, self, clock=clock, build_index=build_index
        )

    def get_key(self, record: MetadataNotification) -> str:
        return compound_key(COLLECTION, record.group_id, record.artifact_id, record.version_id)

    def get_key_filter(self, record: MetadataNotification) -> str:
        return version_filter(record.group_id, record.artifact_id, record.version_id).build()

    def validate_new_data(self, record: MetadataNotification) -> None:
        require_valid_coordinates(record.group_id, record.artifact_id, record.version_id)

    def create_or_update(self, event: MetadataNotification) -> MetadataNotification:
        """Record ``event`` as the latest outcome for its version.

        Events claimed from the queue still carry their queue key as ``id``;
        the history row is always identified by its own key.
        """
        return self._store.create_or_update(replace(event, id=None), unique=True, id_required=True)

    def get(self, event_id: str) -> MetadataNotification | None:
        return self._store.find_one(QueryBuilder().equal(EVENT_ID, event_id).build())

    def get_all(self) -> list[MetadataNotification]:
        return self._store.find_all()

    def find(
        self,
        group_id: str | None = None,
        artifact_id: str | None = None,
        version_id: str | None = None,
        event_id: str | None = None,
        parent_event_id: str | None = None,
        success: bool | None = None,
        from_millis: int | None = None,
        to_millis: int | None = None,
    ) -> list[MetadataNotification]:
        """History rows matching every given filter, most recently updated first.

        The window is closed: ``from_millis <= updated <= to_millis``, where
        ``to_millis`` defaults to now and ``from_millis`` is open-ended.
        """
        query = QueryBuilder().less_than_or_equal(UPDATED, to_millis if to_millis is not None else self._clock())
        if from_millis is not None:
            query.greater_than_or_equal(UPDATED, from_millis)

        for field, value in (
            (GROUP_ID, group_id),
            (ARTIFACT_ID, artifact_id),
            (VERSION_ID, version_id),
            (EVENT_ID, event_id),
            (PARENT_EVENT_ID, parent_event_id),
        ):
            if value is not None:
                query.equal(field, value)
        if success is not None:
            status = MetadataEventStatus.SUCCESS if success else MetadataEventStatus.FAILED
            query.equal(STATUS, status.value)

        return self._store.find(SearchQuery(query.build(), sort_by=UPDATED, ascending=False))

    def delete(self, key: str) -> int:
        return self._store.delete_by_key(key)

    def delete_old_notifications(self, days: int) -> int:
        """Purge rows last updated more than ``days`` days ago."""
        cutoff = days_ago_millis(days, clock=self._clock)
        deleted = self._store.delete_by_query(QueryBuilder().less_than(UPDATED, cutoff).build())
        logger.info("old_notifications_deleted", days=days, cutoff=cutoff, deleted=deleted)
        return deleted
