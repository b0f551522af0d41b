"""
Pending notification queue with claim-by-delete dequeue.

Manifesto:
    Workers never lock the queue.  Every worker reads the same pending rows
    and races to delete each one; the substrate's atomic delete returns the
    number of rows it removed, and only the worker that saw ``1`` owns the
    event.  Losers skip the row silently.  Adding a mutex on top would not
    make delivery any more exclusive than the delete already is.

Architecture:
    ::

        push(event)
          ├── event_id set  -> create_or_update, matched on eventId
          └── no event_id   -> NX insert at notifications_queue:g:a:v:<ns>
                               then eventId := key, written only if the row
                               has not been claimed in between

        pull_all()           ordered by (eventPriority asc, created asc)
          for row: delete(key) == 1 ? claim : skip

Guardrails:
    ❌ DON'T: Return a row from ``pull_all`` whose delete reported 0
    ✅ DO: Treat a zero delete count as "another worker has it"

    ❌ DON'T: Re-write a pending row unconditionally after the first insert
    ✅ DO: Use the only-if-present write so a claimed event stays claimed

Tags:
    depot, notifications, queue, claim-by-delete, priority

Doc-Types:
    api-reference, architecture
"""

from __future__ import annotations

from depot.core.logging import get_logger
from depot.core.timestamps import Clock, key_suffix, now_millis
from depot.domain.base import to_document
from depot.domain.notifications import MetadataNotification
from depot.store.engine import DocumentStore
from depot.store.query import QueryBuilder, exists_expression
from depot.store.repositories._helpers import (
    CREATED,
    EVENT_ID,
    GROUP_ID,
    ID,
    coordinate_fields,
    version_filter,
)
from depot.store.substrate import (
    DOCUMENT_FIELD,
    KEY_FIELD,
    Aggregation,
    DocumentSubstrate,
    IndexField,
    IndexSchema,
    compound_key,
)

logger = get_logger(__name__)

COLLECTION = "notifications_queue"
EVENT_PRIORITY = "eventPriority"

SCHEMA = IndexSchema(
    collection=COLLECTION,
    fields=(
        IndexField.tag(ID),
        *coordinate_fields(),
        IndexField.tag(EVENT_ID),
        IndexField.numeric(EVENT_PRIORITY),
        IndexField.numeric(CREATED),
    ),
)


def _queue_order() -> Aggregation:
    return Aggregation().filter(exists_expression(ID)).sort(EVENT_PRIORITY).sort(CREATED).load()


class NotificationsQueue:
    """Pending :class:`MetadataNotification` events awaiting a worker."""

    COLLECTION = COLLECTION
    SCHEMA = SCHEMA

    def __init__(self, substrate: DocumentSubstrate, *, clock: Clock = now_millis, build_index: bool = True):
        self._store: DocumentStore[MetadataNotification] = DocumentStore(
            substrate, SCHEMA, MetadataNotification, self, clock=clock, build_index=build_index
        )

    # -- key strategy ---------------------------------------------------

    def get_key(self, record: MetadataNotification) -> str:
        return compound_key(COLLECTION, record.group_id, record.artifact_id, record.version_id, key_suffix())

    def get_key_filter(self, record: MetadataNotification) -> str:
        if record.event_id is not None:
            return QueryBuilder().equal(EVENT_ID, record.event_id).build()
        return version_filter(record.group_id, record.artifact_id, record.version_id).build()

    def validate_new_data(self, record: MetadataNotification) -> None:
        """Pending events are accepted as given."""

    # -- operations -----------------------------------------------------

    def push(self, event: MetadataNotification) -> str:
        """Enqueue ``event`` and return its event id, assigning one when absent."""
        if event.event_id is not None:
            return self._store.create_or_update(event, unique=True, id_required=True).event_id

        stored = self._store.insert(event, unique=True, id_required=True)
        stored.event_id = stored.id
        if not self._store.update_document(stored.id, to_document(stored)):
            logger.info("notification_claimed_during_push", key=stored.id, group_id=stored.group_id,
                        artifact_id=stored.artifact_id, version_id=stored.version_id)
        logger.debug("notification_pushed", event_id=stored.event_id, priority=stored.event_priority)
        return stored.event_id

    def get_first_in_queue(self) -> MetadataNotification | None:
        """The pending event with the lowest priority number, oldest first."""
        aggregation = _queue_order()
        aggregation.limit = 1
        events = self._store.find_by_aggregation(aggregation)
        return events[0] if events else None

    def pull_all(self) -> list[MetadataNotification]:
        """Claim every pending event this caller manages to delete, in queue order."""
        claimed = []
        for row in self._store.aggregate(_queue_order()):
            if self._store.delete_by_key(row.get(KEY_FIELD)) != 1:
                continue
            event = self._store.convert(row.get(DOCUMENT_FIELD), key=row.get(KEY_FIELD))
            if event is None:
                continue
            if event.event_id is None:
                event.event_id = event.id
            claimed.append(event)

        if claimed:
            logger.info("notifications_claimed", count=len(claimed))
        return claimed

    def size(self) -> int:
        return self._store.count()

    def get(self, event_id: str) -> MetadataNotification | None:
        return self._store.find_one(QueryBuilder().equal(EVENT_ID, event_id).build())

    def get_all(self) -> list[MetadataNotification]:
        return self._store.find_all()

    def delete_all(self) -> int:
        return self._store.delete_by_aggregation(Aggregation().filter(exists_expression(GROUP_ID)))
