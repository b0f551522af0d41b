"""Schedule definitions and their execution instances.

``schedules`` rows are unique by name (key ``schedules:<name>``).
``schedule-instances`` rows are append-only, keyed
``schedule-instances:<schedule>:<suffix>``, and carry their key as ``id``.

Tags:
    depot, store, repository, schedules

Doc-Types:
    api-reference
"""

from __future__ import annotations

from depot.core.errors import ValidationError
from depot.core.timestamps import Clock, key_suffix, now_millis
from depot.domain.schedules import ScheduleInfo, ScheduleInstance
from depot.store.engine import DocumentStore
from depot.store.query import QueryBuilder
from depot.store.repositories._helpers import ID
from depot.store.substrate import DocumentSubstrate, IndexField, IndexSchema, compound_key

SCHEDULES_COLLECTION = "schedules"
INSTANCES_COLLECTION = "schedule-instances"
NAME = "name"
SCHEDULE = "schedule"

SCHEDULES_SCHEMA = IndexSchema(collection=SCHEDULES_COLLECTION, fields=(IndexField.tag(NAME),))
INSTANCES_SCHEMA = IndexSchema(
    collection=INSTANCES_COLLECTION,
    fields=(IndexField.tag(ID), IndexField.tag(SCHEDULE)),
)


class SchedulesRepository:
    COLLECTION = SCHEDULES_COLLECTION
    SCHEMA = SCHEDULES_SCHEMA

    def __init__(self, substrate: DocumentSubstrate, *, clock: Clock = now_millis, build_index: bool = True):
        self._store: DocumentStore[ScheduleInfo] = DocumentStore(
            substrate, SCHEDULES_SCHEMA, ScheduleInfo, self, clock=clock, build_index=build_index
        )

    def get_key(self, record: ScheduleInfo) -> str:
        return compound_key(SCHEDULES_COLLECTION, record.name)

    def get_key_filter(self, record: ScheduleInfo) -> str:
        return QueryBuilder().equal(NAME, record.name).build()

    def validate_new_data(self, record: ScheduleInfo) -> None:
        if not record.name:
            raise ValidationError("schedule name cannot be empty", field=NAME, value=record.name)

    def get(self, name: str) -> ScheduleInfo | None:
        return self._store.find_one(QueryBuilder().equal(NAME, name).build())

    def create_or_update(self, schedule: ScheduleInfo) -> ScheduleInfo:
        return self._store.create_or_update(schedule, unique=True)

    def get_all(self) -> list[ScheduleInfo]:
        return self._store.find_all()

    def delete(self, name: str) -> int:
        return self._store.delete_by_query(QueryBuilder().equal(NAME, name).build())


class ScheduleInstancesRepository:
    COLLECTION = INSTANCES_COLLECTION
    SCHEMA = INSTANCES_SCHEMA

    def __init__(self, substrate: DocumentSubstrate, *, clock: Clock = now_millis, build_index: bool = True):
        self._store: DocumentStore[ScheduleInstance] = DocumentStore(
            substrate, INSTANCES_SCHEMA, ScheduleInstance, self, clock=clock, build_index=build_index
        )

    def get_key(self, record: ScheduleInstance) -> str:
        return compound_key(INSTANCES_COLLECTION, record.schedule, key_suffix())

    def get_key_filter(self, record: ScheduleInstance) -> str:
        return QueryBuilder().equal(SCHEDULE, record.schedule).build()

    def validate_new_data(self, record: ScheduleInstance) -> None:
        if not record.schedule:
            raise ValidationError("schedule name cannot be empty", field=SCHEDULE, value=record.schedule)

    def insert(self, instance: ScheduleInstance | None) -> ScheduleInstance | None:
        """Record one execution; ``id`` is set to the generated key."""
        if instance is None:
            return None
        return self._store.insert(instance, unique=False, id_required=True)

    def find(self, schedule_name: str) -> list[ScheduleInstance]:
        return self._store.find(QueryBuilder().equal(SCHEDULE, schedule_name).build())

    def get_all(self) -> list[ScheduleInstance]:
        return self._store.find_all()

    def delete(self, instance_id: str) -> int:
        return self._store.delete_by_key(instance_id)
