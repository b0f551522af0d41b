"""Tests for the in-memory substrate and its query parser."""

import threading

import pytest

from depot.core.errors import StoreError
from depot.store.memory import InMemorySubstrate, compile_query, resolve_path
from depot.store.substrate import Aggregation, IndexField, IndexSchema, SearchQuery

SCHEMA = IndexSchema(
    collection="things",
    fields=(
        IndexField.tag("name"),
        IndexField.tag("kind", "$.meta.kind"),
        IndexField.tag("flag"),
        IndexField.numeric("rank"),
    ),
)


@pytest.fixture
def things(substrate: InMemorySubstrate) -> InMemorySubstrate:
    substrate.create_index(SCHEMA)
    substrate.json_set("things:1", {"name": "alpha", "meta": {"kind": "x"}, "flag": True, "rank": 3})
    substrate.json_set("things:2", {"name": "beta", "meta": {"kind": "y"}, "flag": False, "rank": 1})
    substrate.json_set("things:3", {"name": "alphabet", "meta": {"kind": "x"}, "rank": 2})
    substrate.json_set("other:1", {"name": "alpha"})
    return substrate


def _keys(substrate, text, **kwargs):
    return [d.key for d in substrate.search(SCHEMA.name, SearchQuery(text, **kwargs)).documents]


class TestResolvePath:
    def test_nested(self):
        assert resolve_path({"a": {"b": 1}}, "$.a.b") == 1

    def test_missing_segment(self):
        assert resolve_path({"a": 1}, "$.a.b") is None


class TestQueryParser:
    def test_wildcard(self):
        assert compile_query("*")({})

    def test_negation(self):
        predicate = compile_query("-@a:{ x } ")
        assert predicate({"a": "y"})
        assert predicate({})
        assert not predicate({"a": "x"})

    def test_alternatives_inside_tag(self):
        predicate = compile_query("@a:{ x | y } ")
        assert predicate({"a": "y"})
        assert not predicate({"a": "z"})

    def test_union_of_groups(self):
        predicate = compile_query("( ( @a:{ x } @b:{ 1 } ) | ( @a:{ y } ) ) ")
        assert predicate({"a": "x", "b": "1"})
        assert predicate({"a": "y"})
        assert not predicate({"a": "x", "b": "2"})

    def test_exclusive_and_inclusive_bounds(self):
        assert not compile_query("@n:[-inf (5] ")({"n": 5})
        assert compile_query("@n:[-inf 5] ")({"n": 5})
        assert compile_query("@n:[5 inf] ")({"n": 5})
        assert not compile_query("@n:[5 inf] ")({"n": None})

    @pytest.mark.parametrize("text", ["@a:{ x ", "@a:[1] ", "@:{ x } ", "( @a:{ x } ", "@a:x "])
    def test_invalid_syntax(self, text):
        with pytest.raises(StoreError) as exc_info:
            compile_query(text)
        assert exc_info.value.context.query == text


class TestDocuments:
    def test_nx_refuses_overwrite(self, substrate):
        assert substrate.json_set("k", {"v": 1}, nx=True)
        assert not substrate.json_set("k", {"v": 2}, nx=True)
        assert substrate.json_get("k") == {"v": 1}

    def test_xx_requires_existing(self, substrate):
        assert not substrate.json_set("k", {"v": 1}, xx=True)
        assert substrate.json_get("k") is None
        substrate.json_set("k", {"v": 1})
        assert substrate.json_set("k", {"v": 2}, xx=True)
        assert substrate.json_get("k") == {"v": 2}

    def test_delete_reports_count(self, substrate):
        substrate.json_set("k", {})
        assert substrate.delete("k") == 1
        assert substrate.delete("k") == 0

    def test_stored_documents_are_copies(self, substrate):
        document = {"v": [1]}
        substrate.json_set("k", document)
        document["v"].append(2)
        assert substrate.json_get("k") == {"v": [1]}

    def test_concurrent_deletes_have_one_winner(self, substrate):
        substrate.json_set("k", {})
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(substrate.delete("k"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert sorted(results) == [0] * 7 + [1]


class TestIndexes:
    def test_create_twice_fails(self, substrate):
        substrate.create_index(SCHEMA)
        with pytest.raises(StoreError):
            substrate.create_index(SCHEMA)

    def test_drop_unknown_fails(self, substrate):
        with pytest.raises(StoreError):
            substrate.drop_index("nope:index")

    def test_list(self, substrate):
        substrate.create_index(SCHEMA)
        assert substrate.list_indexes() == ["things:index"]

    def test_search_unknown_index(self, substrate):
        with pytest.raises(StoreError):
            substrate.search("nope:index", SearchQuery("*"))


class TestSearch:
    def test_prefix_scoped_to_collection(self, things):
        assert _keys(things, "@name:{ alpha } ") == ["things:1"]

    def test_nested_path_and_prefix(self, things):
        assert _keys(things, "@kind:{ x } @name:{ alpha*} ") == ["things:1", "things:3"]

    def test_boolean_tags(self, things):
        assert _keys(things, "@flag:{ false } ") == ["things:2"]

    def test_sorting(self, things):
        assert _keys(things, "*", sort_by="rank") == ["things:2", "things:3", "things:1"]
        assert _keys(things, "*", sort_by="rank", ascending=False) == ["things:1", "things:3", "things:2"]

    def test_paging_and_total(self, things):
        result = things.search(SCHEMA.name, SearchQuery("*").paging(1, 1))
        assert result.total == 3
        assert [d.key for d in result.documents] == ["things:2"]

    def test_zero_limit_counts_only(self, things):
        result = things.search(SCHEMA.name, SearchQuery("*", no_content=True).paging(0, 0))
        assert result.total == 3
        assert result.documents == []

    def test_no_content(self, things):
        documents = things.search(SCHEMA.name, SearchQuery("*", no_content=True)).documents
        assert all(d.properties is None for d in documents)


class TestAggregate:
    def test_group_with_count(self, things):
        rows = things.aggregate(SCHEMA.name, Aggregation().group("kind").sort("kind"))
        assert rows == [{"kind": "x", "count": 2}, {"kind": "y", "count": 1}]

    def test_apply_and_exists_filter(self, things):
        aggregation = Aggregation().apply("label", "format('%s:%s', @kind, @flag)").filter("exists(@label)")
        labels = sorted(row["label"] for row in things.aggregate(SCHEMA.name, aggregation))
        assert labels == ["x:true", "y:false"]

    def test_multi_key_sort_with_documents(self, things):
        aggregation = Aggregation().sort("kind").sort("rank", ascending=False).load()
        rows = things.aggregate(SCHEMA.name, aggregation)
        assert [row["__key"] for row in rows] == ["things:1", "things:3", "things:2"]
        assert rows[0]["$"]["name"] == "alpha"

    def test_limit(self, things):
        aggregation = Aggregation().sort("rank")
        aggregation.limit = 1
        assert [row["rank"] for row in things.aggregate(SCHEMA.name, aggregation)] == [1]

    def test_unsupported_expression(self, things):
        with pytest.raises(StoreError):
            things.aggregate(SCHEMA.name, Aggregation().apply("x", "upper(@name)"))
