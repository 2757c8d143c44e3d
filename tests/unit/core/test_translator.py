"""Tests for the Query Translator (paging, sort, filters, meta, text query, aggregations)."""

from __future__ import annotations

import json

import pytest

from searchpress.config.settings import QuerySettings
from searchpress.core.translator import MetaCompare, QueryTranslator, meta_key_path
from searchpress.models.query import ContentQuery, MetaQueryClause


@pytest.fixture
def translator() -> QueryTranslator:
    return QueryTranslator(QuerySettings())


# ── Paging ───────────────────────────────────────────────────────────────────


class TestPaging:
    def test_defaults(self, translator: QueryTranslator) -> None:
        body = translator.translate({})
        assert body["from"] == 0
        assert body["size"] == 10

    def test_unlimited_is_clamped_to_result_window(self, translator: QueryTranslator) -> None:
        assert translator.translate({"posts_per_page": -1})["size"] == 10000

    def test_legacy_post_per_page(self, translator: QueryTranslator) -> None:
        assert translator.translate({"post_per_page": 25})["size"] == 25

    @pytest.mark.parametrize("paged", [0, 1])
    def test_first_pages_start_at_zero(self, translator: QueryTranslator, paged: int) -> None:
        assert translator.translate({"paged": paged, "posts_per_page": 20})["from"] == 0

    def test_third_page(self, translator: QueryTranslator) -> None:
        assert translator.translate({"paged": 3, "posts_per_page": 20})["from"] == 40

    def test_explicit_offset(self, translator: QueryTranslator) -> None:
        assert translator.translate({"offset": 7})["from"] == 7

    def test_paged_uses_clamped_size(self, translator: QueryTranslator) -> None:
        assert translator.translate({"paged": 2, "posts_per_page": -1})["from"] == 10000


# ── Sort ─────────────────────────────────────────────────────────────────────


class TestSort:
    def test_no_term_sorts_by_date_desc(self, translator: QueryTranslator) -> None:
        assert translator.translate({})["sort"] == [{"post_date": {"order": "desc"}}]

    def test_term_sorts_by_score(self, translator: QueryTranslator) -> None:
        assert translator.translate({"s": "solar"})["sort"] == [{"_score": {"order": "desc"}}]

    def test_aliases_and_passthrough(self, translator: QueryTranslator) -> None:
        body = translator.translate({"orderby": "title name relevance menu_order", "order": "asc"})
        assert body["sort"] == [
            {"post_title.sortable": {"order": "asc"}},
            {"post_name.raw": {"order": "asc"}},
            {"_score": {"order": "asc"}},
            {"menu_order": {"order": "asc"}},
        ]

    @pytest.mark.parametrize(("order", "expected"), [("ASC", "asc"), ("asc", "asc"), ("DESC", "desc"), ("x", "desc")])
    def test_parse_order(self, order: str, expected: str) -> None:
        assert QueryTranslator.parse_order(order) == expected


# ── Filters ──────────────────────────────────────────────────────────────────


class TestFilters:
    def test_no_filters_omits_filter_key(self, translator: QueryTranslator) -> None:
        body = translator.translate({"s": "solar", "posts_per_page": 5, "orderby": "date"})
        assert "filter" not in body
        assert "aggs" not in body

    def test_empty_tax_query_adds_no_filter(self, translator: QueryTranslator) -> None:
        body = translator.translate({"tax_query": [{"taxonomy": "category", "terms": []}]})
        assert "filter" not in body

    def test_taxonomy_clause(self, translator: QueryTranslator) -> None:
        body = translator.translate(
            {
                "tax_query": [
                    {"taxonomy": "category", "terms": [1, 2]},
                    {"taxonomy": "post_tag", "field": "name", "terms": "Solar", "operator": "AND"},
                ]
            }
        )
        assert body["filter"] == {
            "and": [
                {
                    "bool": {
                        "must": [
                            {"terms": {"terms.category.term_id": [1, 2]}},
                            {"terms": {"terms.post_tag.name.raw": ["Solar"], "execution": "and"}},
                        ]
                    }
                }
            ]
        }

    def test_include_children_is_ignored(self, translator: QueryTranslator) -> None:
        clause = {"taxonomy": "category", "terms": [1]}
        with_flag = translator.translate({"tax_query": [{**clause, "include_children": False}]})
        assert with_flag == translator.translate({"tax_query": [clause]})

    def test_filter_order(self, translator: QueryTranslator) -> None:
        body = translator.translate(
            {
                "post_type": "page",
                "author": 3,
                "post__in": [1, 2],
                "post__not_in": 9,
                "category_name": "news",
            }
        )
        assert body["filter"]["and"] == [
            {"bool": {"must": {"terms": {"terms.category.slug": ["news"]}}}},
            {"bool": {"must": {"terms": {"post_id": [1, 2]}}}},
            {"bool": {"must_not": {"terms": {"post_id": [9]}}}},
            {"term": {"post_author.id": 3}},
            {"term": {"post_type.raw": "page"}},
        ]

    def test_author_name(self, translator: QueryTranslator) -> None:
        body = translator.translate({"author_name": "jdoe"})
        assert body["filter"]["and"] == [{"term": {"post_author.raw": "jdoe"}}]

    def test_multiple_post_types(self, translator: QueryTranslator) -> None:
        body = translator.translate({"post_type": ["post", "page"]})
        assert body["filter"]["and"] == [{"terms": {"post_type.raw": ["post", "page"]}}]

    def test_any_post_type_is_unrestricted(self, translator: QueryTranslator) -> None:
        assert "filter" not in translator.translate({"post_type": "any"})

    def test_simple_date_filter(self, translator: QueryTranslator) -> None:
        body = translator.translate({"year": 2024, "monthnum": 3})
        assert body["filter"]["and"] == [
            {"bool": {"must": [{"term": {"date_terms.year": 2024}}, {"term": {"date_terms.month": 3}}]}}
        ]

    def test_date_query_filter(self, translator: QueryTranslator) -> None:
        body = translator.translate({"date_query": [{"after": "2024-01-01", "inclusive": True}]})
        assert body["filter"]["and"] == [
            {"bool": {"must": [{"bool": {"must": [{"range": {"post_date": {"gte": "2024-01-01 00:00:00"}}}]}}]}}
        ]


# ── Meta query ───────────────────────────────────────────────────────────────


class TestMetaQuery:
    def test_exists_uses_base_path(self, translator: QueryTranslator) -> None:
        body = translator.translate({"meta_query": [{"key": "price", "compare": "EXISTS", "type": "NUMERIC"}]})
        assert body["filter"]["and"] == [{"bool": {"must": [{"exists": {"field": "meta.price"}}]}}]

    def test_not_exists(self, translator: QueryTranslator) -> None:
        clause = translator.meta_clause(MetaQueryClause(key="price", compare="NOT EXISTS"))
        assert clause == {"bool": {"must_not": [{"exists": {"field": "meta.price"}}]}}

    def test_untyped_gte_uses_double(self, translator: QueryTranslator) -> None:
        clause = translator.meta_clause(MetaQueryClause(key="price", compare=">=", value=10))
        assert clause == {"bool": {"must": [{"range": {"meta.price.double": {"gte": 10}}}]}}

    def test_equality_uses_raw_terms(self, translator: QueryTranslator) -> None:
        clause = translator.meta_clause(MetaQueryClause(key="color", value="red"))
        assert clause == {"terms": {"meta.color.raw": ["red"]}}

    def test_inequality(self, translator: QueryTranslator) -> None:
        clause = translator.meta_clause(MetaQueryClause(key="color", compare="!=", value=["red", "blue"]))
        assert clause == {"bool": {"must_not": [{"terms": {"meta.color.raw": ["red", "blue"]}}]}}

    def test_like_uses_analyzed_value(self, translator: QueryTranslator) -> None:
        clause = translator.meta_clause(MetaQueryClause(key="note", compare="LIKE", value="sun", type="NUMERIC"))
        assert clause == {"query": {"match": {"meta.note.value": "sun"}}}

    def test_declared_type_selects_subfield(self, translator: QueryTranslator) -> None:
        clause = translator.meta_clause(MetaQueryClause(key="when", compare="<", value="2024-01-01", type="DATE"))
        assert clause == {"bool": {"must": [{"range": {"meta.when.date": {"lt": "2024-01-01"}}}]}}

    def test_missing_value_is_dropped(self, translator: QueryTranslator) -> None:
        body = translator.translate({"meta_query": [{"key": "price", "compare": ">"}]})
        assert "filter" not in body

    def test_or_relation(self, translator: QueryTranslator) -> None:
        body = translator.translate(
            {"meta_query": {"relation": "OR", "0": {"key": "a", "value": 1}, "1": {"key": "b", "value": 2}}}
        )
        assert body["filter"]["and"] == [
            {"bool": {"should": [{"terms": {"meta.a.raw": [1]}}, {"terms": {"meta.b.raw": [2]}}]}}
        ]

    @pytest.mark.parametrize(
        ("compare", "value_type", "expected"),
        [
            (MetaCompare.EQ, "numeric", "meta.k.long"),
            (MetaCompare.EQ, "decimal", "meta.k.double"),
            (MetaCompare.GT, "char", "meta.k.raw"),
            (MetaCompare.LTE, "time", "meta.k.time"),
            (MetaCompare.GTE, "unknown", "meta.k.double"),
            (MetaCompare.EXISTS, "datetime", "meta.k"),
        ],
    )
    def test_key_path_table(self, compare: MetaCompare, value_type: str, expected: str) -> None:
        assert meta_key_path("k", compare, value_type) == expected

    def test_unknown_operator_behaves_like_equals(self) -> None:
        assert MetaCompare.parse("BETWEEN") is MetaCompare.EQ


# ── Full text ────────────────────────────────────────────────────────────────


class TestTextQuery:
    def test_default_fields(self, translator: QueryTranslator) -> None:
        query = translator.translate({"s": "solar"})["query"]
        exact, fuzzy = query["bool"]["should"]
        assert exact["multi_match"] == {
            "query": "solar",
            "fields": ["post_title", "post_excerpt", "post_content"],
            "boost": 2,
            "fuzziness": 0,
        }
        assert fuzzy["multi_match"]["fuzziness"] == 2
        assert fuzzy["multi_match"]["operator"] == "or"

    def test_search_fields_override(self, translator: QueryTranslator) -> None:
        body = translator.translate(
            {
                "s": "solar",
                "search_fields": {"0": "post_title", "taxonomies": ["category"], "meta": "price", "1": "author_name"},
            }
        )
        fields = body["query"]["bool"]["should"][0]["multi_match"]["fields"]
        assert fields == ["post_title", "terms.category.name", "meta.price.value", "post_author.login"]

    def test_match_all(self, translator: QueryTranslator) -> None:
        body = translator.translate({"s": "solar", "ep_match_all": True})
        assert body["query"] == {"match_all": {}}

    def test_no_term_no_query(self, translator: QueryTranslator) -> None:
        assert "query" not in translator.translate({"post_type": "post"})

    def test_custom_boost_and_fuzziness(self) -> None:
        translator = QueryTranslator(QuerySettings(match_boost=3, fuzziness="AUTO"))
        should = translator.translate({"s": "x"})["query"]["bool"]["should"]
        assert should[0]["multi_match"]["boost"] == 3
        assert should[1]["multi_match"]["fuzziness"] == "AUTO"


# ── Aggregations ─────────────────────────────────────────────────────────────


class TestAggregations:
    def test_filtered_aggregation_reuses_filter(self, translator: QueryTranslator) -> None:
        body = translator.translate(
            {
                "post_type": "post",
                "aggs": {"name": "facets", "use-filter": True, "aggs": {"tags": {"terms": {"field": "tags"}}}},
            }
        )
        assert body["aggs"] == {
            "facets": {"filter": body["filter"], "aggs": {"tags": {"terms": {"field": "tags"}}}},
        }
        assert body["aggs"]["facets"]["filter"] is not body["filter"]

    def test_unfiltered_aggregation(self, translator: QueryTranslator) -> None:
        body = translator.translate({"aggs": {"aggs": {"n": {"terms": {"field": "x"}}}}})
        assert body["aggs"] == {
            "aggregation_name": {"filter": {"match_all": {}}, "aggs": {"n": {"terms": {"field": "x"}}}},
        }

    def test_empty_aggregation_spec_is_ignored(self, translator: QueryTranslator) -> None:
        assert "aggs" not in translator.translate({"aggs": {"name": "x"}})


class TestDeterminism:
    def test_same_query_same_bytes(self, translator: QueryTranslator) -> None:
        query = ContentQuery.model_validate(
            {
                "s": "solar",
                "tax_query": [{"taxonomy": "category", "terms": [1]}],
                "meta_query": [{"key": "a", "value": 1}],
            }
        )
        first = json.dumps(translator.translate(query))
        second = json.dumps(translator.translate(query))
        assert first == second

    def test_key_order(self, translator: QueryTranslator) -> None:
        body = translator.translate({"s": "x", "post_type": "post", "aggs": {"aggs": {"a": {}}}})
        assert list(body) == ["from", "size", "sort", "query", "filter", "aggs"]
