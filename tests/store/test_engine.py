"""Tests for the generic document-store engine."""

from dataclasses import dataclass

import pytest

from depot.core.errors import ConflictError, ConsistencyError, ValidationError
from depot.domain.base import StoredRecord
from depot.store.engine import DocumentStore, ensure_index
from depot.store.query import QueryBuilder
from depot.store.substrate import Aggregation, IndexField, IndexSchema, compound_key

SCHEMA = IndexSchema(
    collection="widgets",
    fields=(IndexField.tag("id"), IndexField.tag("groupId"), IndexField.tag("name"), IndexField.numeric("size")),
)


@dataclass(kw_only=True, eq=False)
class Widget(StoredRecord):
    group_id: str
    name: str
    size: int | None = None
    colour: str | None = None


class WidgetKeys:
    def get_key(self, record: Widget) -> str:
        return compound_key("widgets", record.group_id, record.name)

    def get_key_filter(self, record: Widget) -> str:
        return QueryBuilder().equal("groupId", record.group_id).equal("name", record.name).build()

    def validate_new_data(self, record: Widget) -> None:
        if not record.name:
            raise ValidationError("name required", field="name")


@pytest.fixture
def store(substrate, clock) -> DocumentStore[Widget]:
    return DocumentStore(substrate, SCHEMA, Widget, WidgetKeys(), clock=clock)


class TestEnsureIndex:
    def test_idempotent(self, substrate):
        assert ensure_index(substrate, SCHEMA) == "widgets:index"
        assert ensure_index(substrate, SCHEMA) == "widgets:index"
        assert substrate.list_indexes() == ["widgets:index"]

    def test_build_index_disabled(self, substrate):
        DocumentStore(substrate, SCHEMA, Widget, WidgetKeys(), build_index=False)
        assert substrate.list_indexes() == []


class TestCreateOrUpdate:
    def test_insert_stamps_dates(self, store, substrate):
        stored = store.create_or_update(Widget(group_id="g", name="bolt", size=3))
        assert stored.created == stored.updated
        assert substrate.json_get("widgets:g:bolt")["size"] == 3

    def test_update_keeps_created_and_refreshes_updated(self, store):
        first = store.create_or_update(Widget(group_id="g", name="bolt", size=3))
        second = store.create_or_update(Widget(group_id="g", name="bolt", size=4))
        assert second.created == first.created
        assert second.updated > first.updated
        assert second.size == 4
        assert store.count() == 1

    def test_update_clears_unset_fields(self, store):
        store.create_or_update(Widget(group_id="g", name="bolt", colour="red"))
        updated = store.create_or_update(Widget(group_id="g", name="bolt", size=9))
        assert updated.colour is None
        assert updated.size == 9
        assert store.find_all()[0].colour is None

    def test_update_keeps_id_and_extra_properties(self, store, substrate):
        store.create_or_update(Widget(group_id="g", name="bolt"), id_required=True)
        document = substrate.json_get("widgets:g:bolt")
        substrate.json_set("widgets:g:bolt", {**document, "legacy": "x"})

        store.create_or_update(Widget(group_id="g", name="bolt", size=2))

        document = substrate.json_get("widgets:g:bolt")
        assert document["id"] == "widgets:g:bolt"
        assert document["legacy"] == "x"
        assert document["size"] == 2

    def test_repeated_upsert_is_idempotent(self, store):
        for _ in range(3):
            store.create_or_update(Widget(group_id="g", name="bolt", size=1))
        assert [w.size for w in store.find_all()] == [1]

    def test_upsert_reports_insert(self, store):
        _, inserted = store.upsert(Widget(group_id="g", name="bolt"))
        assert inserted
        _, inserted = store.upsert(Widget(group_id="g", name="bolt"))
        assert not inserted

    def test_id_required_uses_key(self, store):
        stored = store.create_or_update(Widget(group_id="g", name="bolt"), id_required=True)
        assert stored.id == "widgets:g:bolt"

    def test_invalid_record_not_written(self, store):
        with pytest.raises(ValidationError):
            store.create_or_update(Widget(group_id="g", name=""))
        assert store.count() == 0

    def test_update_existing_at_its_stored_key(self, store, substrate):
        store.insert(Widget(group_id="g", name="bolt", size=1), key="widgets:legacy")
        store.create_or_update(Widget(group_id="g", name="bolt", size=2))
        assert substrate.json_get("widgets:legacy")["size"] == 2
        assert substrate.json_get("widgets:g:bolt") is None


class TestInsert:
    def test_unique_conflict(self, store):
        store.insert(Widget(group_id="g", name="bolt"), unique=True)
        with pytest.raises(ConflictError) as exc_info:
            store.insert(Widget(group_id="g", name="bolt"), unique=True)
        assert exc_info.value.message == "Error inserting dataset with key: 'widgets:g:bolt' - ensure the key is unique"
        assert exc_info.value.context.collection == "widgets"

    def test_non_unique_overwrites(self, store):
        store.insert(Widget(group_id="g", name="bolt", size=1))
        store.insert(Widget(group_id="g", name="bolt", size=2))
        assert [w.size for w in store.find_all()] == [2]

    def test_update_document_only_when_present(self, store):
        assert not store.update_document("widgets:g:missing", {"groupId": "g", "name": "missing"})
        assert store.count() == 0


class TestReads:
    def test_find_one_none(self, store):
        assert store.find_one("@name:{ nothing } ") is None

    def test_find_one_multiple_matches(self, store):
        store.insert(Widget(group_id="g", name="bolt"), key="widgets:one")
        store.insert(Widget(group_id="g", name="bolt"), key="widgets:two")
        with pytest.raises(ConsistencyError):
            store.find_one("@name:{ bolt } ")

    def test_count(self, store):
        for name in ("a", "b", "c"):
            store.create_or_update(Widget(group_id="g", name=name))
        store.create_or_update(Widget(group_id="h", name="a"))
        assert store.count() == 4
        assert store.count("@groupId:{ g } ") == 3

    def test_pages_are_one_based(self, store):
        for name in ("a", "b", "c", "d", "e"):
            store.create_or_update(Widget(group_id="g", name=name))
        assert [w.name for w in store.find_all_by_page(1, 2)] == ["a", "b"]
        assert [w.name for w in store.find_all_by_page(3, 2)] == ["e"]
        assert [w.name for w in store.find_all_by_page(0, 2)] == ["a", "b"]

    def test_unreadable_rows_skipped(self, store, substrate):
        store.create_or_update(Widget(group_id="g", name="bolt"))
        substrate.json_set("widgets:broken", {"groupId": "g"})
        assert [w.name for w in store.find_all()] == ["bolt"]

    def test_find_by_aggregation_order(self, store):
        for name, size in (("a", 3), ("b", 1), ("c", 2)):
            store.create_or_update(Widget(group_id="g", name=name, size=size))
        records = store.find_by_aggregation(Aggregation().sort("size"))
        assert [w.name for w in records] == ["b", "c", "a"]

    def test_aggregation_argument_is_not_modified(self, store):
        store.create_or_update(Widget(group_id="g", name="a"), id_required=True)
        aggregation = Aggregation().filter("exists(@id)")

        store.find_by_aggregation(aggregation)
        store.delete_by_aggregation(aggregation)

        assert aggregation.load_documents is False


class TestDeletes:
    def test_delete_by_key(self, store):
        store.create_or_update(Widget(group_id="g", name="bolt"))
        assert store.delete_by_key("widgets:g:bolt") == 1
        assert store.delete_by_key("widgets:g:bolt") == 0
        assert store.delete_by_key(None) == 0

    def test_delete_by_query(self, store):
        for name in ("a", "b"):
            store.create_or_update(Widget(group_id="g", name=name))
        store.create_or_update(Widget(group_id="h", name="a"))
        assert store.delete_by_query("@groupId:{ g } ") == 2
        assert store.count() == 1

    def test_delete_by_aggregation(self, store):
        store.create_or_update(Widget(group_id="g", name="a"), id_required=True)
        store.create_or_update(Widget(group_id="g", name="b"), id_required=True)
        assert store.delete_by_aggregation(Aggregation().filter("exists(@id)")) == 2
        assert store.count() == 0
