"""Tests for the query condition builder."""

from depot.store.memory import compile_query
from depot.store.query import (
    WILDCARD,
    QueryBuilder,
    escape,
    exists_expression,
    format_expression,
    greater_than_or_equal,
    less_than,
    less_than_or_equal,
    tag_equal,
    tag_not_equal,
    tag_prefix,
)


class TestEscape:
    def test_special_characters(self):
        assert escape("com.acme:lib-core") == r"com\.acme\:lib\-core"

    def test_plain_value_untouched(self):
        assert escape("model_Person") == "model_Person"


class TestFragments:
    def test_tag_equal(self):
        assert tag_equal("groupId", "com.acme") == r"@groupId:{ com\.acme } "

    def test_tag_not_equal(self):
        assert tag_not_equal("versionId", "master-SNAPSHOT") == r"-@versionId:{ master\-SNAPSHOT } "

    def test_tag_prefix(self):
        assert tag_prefix("entity_content_package", "model") == "@entity_content_package:{ model*} "

    def test_boolean_literal(self):
        assert tag_equal("versionedEntity", True) == "@versionedEntity:{ true } "

    def test_ranges(self):
        assert less_than("updated", 10) == "@updated:[-inf (10] "
        assert less_than_or_equal("updated", 10) == "@updated:[-inf 10] "
        assert greater_than_or_equal("updated", 10) == "@updated:[10 inf] "

    def test_aggregation_expressions(self):
        assert format_expression("groupId", "artifactId") == "format('%s:%s', @groupId, @artifactId)"
        assert exists_expression("id") == "exists(@id)"


class TestQueryBuilder:
    def test_empty_builds_wildcard(self):
        builder = QueryBuilder()
        assert builder.empty
        assert builder.build() == WILDCARD

    def test_conditions_concatenate(self):
        query = QueryBuilder().coordinates("g", "a", "1.0.0").build()
        assert query == r"@groupId:{ g } @artifactId:{ a } @versionId:{ 1\.0\.0 } "

    def test_any_of(self):
        query = QueryBuilder().equal("x", "1").any_of([
            QueryBuilder().equal("a", "p"),
            QueryBuilder().equal("a", "q"),
        ]).build()
        assert query == "@x:{ 1 } ( ( @a:{ p } ) | ( @a:{ q } ) ) "

    def test_any_of_empty_is_noop(self):
        assert QueryBuilder().any_of([]).build() == WILDCARD

    def test_str(self):
        assert str(QueryBuilder().equal("a", "b")) == "@a:{ b } "


class TestEscapedValuesMatch:
    """Escaped literals must match the raw stored values exactly."""

    def test_group_with_separator(self):
        predicate = compile_query(QueryBuilder().equal("groupId", "com.acme:lib").build())
        assert predicate({"groupId": "com.acme:lib"})
        assert not predicate({"groupId": "com.acme"})
        assert not predicate({"groupId": "comXacme:lib"})

    def test_prefix_does_not_match_other_packages(self):
        predicate = compile_query(QueryBuilder().prefix("pkg", "model::a").build())
        assert predicate({"pkg": "model::a::b"})
        assert not predicate({"pkg": "model::b"})
