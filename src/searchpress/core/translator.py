"""Query translator — content query → search-engine request body.

``QueryTranslator.translate`` is a pure function of the query and the
query settings.  The produced body always carries ``from``, ``size`` and
``sort``; ``query``, ``filter`` and ``aggs`` only appear when the query
asks for them.  Filters are collected under a single ``{"and": [...]}``
in a fixed order: taxonomy, category, id include/exclude, author, date,
meta, post type.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from searchpress.config.settings import QuerySettings
from searchpress.core.dates import DateQueryTranslator
from searchpress.models.query import (
    AggregationSpec,
    ContentQuery,
    MetaQuery,
    MetaQueryClause,
    SearchFields,
    TaxQueryClause,
)

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_FIELDS = ("post_title", "post_excerpt", "post_content")


# ═══════════════════════════════════════════════════════════════════════════════
# Meta query dispatch tables
# ═══════════════════════════════════════════════════════════════════════════════


class MetaCompare(str, Enum):
    EQ = "="
    NE = "!="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    LIKE = "like"
    EXISTS = "exists"
    NOT_EXISTS = "not exists"

    @classmethod
    def parse(cls, compare: str | None) -> MetaCompare:
        """Unknown operators behave like ``=``."""
        try:
            return cls((compare or "=").strip().lower())
        except ValueError:
            return cls.EQ


# Declared value type → typed sub-field of ``meta.<key>``.
META_TYPE_SUBFIELDS: dict[str, str] = {
    "numeric": "long",
    "binary": "raw",
    "char": "raw",
    "date": "date",
    "datetime": "datetime",
    "decimal": "double",
    "signed": "long",
    "time": "time",
    "unsigned": "long",
}

# Sub-field used when no (known) type is declared. None means the base path.
UNTYPED_SUBFIELDS: dict[MetaCompare, str | None] = {
    MetaCompare.EQ: "raw",
    MetaCompare.NE: "raw",
    MetaCompare.GT: "double",
    MetaCompare.GTE: "double",
    MetaCompare.LT: "double",
    MetaCompare.LTE: "double",
    MetaCompare.LIKE: "value",
    MetaCompare.EXISTS: None,
    MetaCompare.NOT_EXISTS: None,
}

# Operators whose path never depends on the declared type.
TYPE_INDEPENDENT = frozenset({MetaCompare.EXISTS, MetaCompare.NOT_EXISTS, MetaCompare.LIKE})


def meta_key_path(key: str, compare: MetaCompare, value_type: str | None = None) -> str:
    """Return the field path a meta clause queries."""
    subfield = UNTYPED_SUBFIELDS[compare]
    declared = (value_type or "").lower()
    if compare not in TYPE_INDEPENDENT and declared in META_TYPE_SUBFIELDS:
        subfield = META_TYPE_SUBFIELDS[declared]
    if subfield is None:
        return f"meta.{key}"
    return f"meta.{key}.{subfield}"


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _range(bound: str) -> Callable[[str, Any], dict[str, Any]]:
    def build(path: str, value: Any) -> dict[str, Any]:
        return {"bool": {"must": [{"range": {path: {bound: value}}}]}}

    return build


# Operator → clause builder.
META_CLAUSE_BUILDERS: dict[MetaCompare, Callable[[str, Any], dict[str, Any]]] = {
    MetaCompare.EQ: lambda path, value: {"terms": {path: _as_list(value)}},
    MetaCompare.NE: lambda path, value: {"bool": {"must_not": [{"terms": {path: _as_list(value)}}]}},
    MetaCompare.EXISTS: lambda path, value: {"exists": {"field": path}},
    MetaCompare.NOT_EXISTS: lambda path, value: {"bool": {"must_not": [{"exists": {"field": path}}]}},
    MetaCompare.GT: _range("gt"),
    MetaCompare.GTE: _range("gte"),
    MetaCompare.LT: _range("lt"),
    MetaCompare.LTE: _range("lte"),
    MetaCompare.LIKE: lambda path, value: {"query": {"match": {path: value}}},
}

VALUELESS_OPERATORS = frozenset({MetaCompare.EXISTS, MetaCompare.NOT_EXISTS})


# ═══════════════════════════════════════════════════════════════════════════════
# Translator
# ═══════════════════════════════════════════════════════════════════════════════


class QueryTranslator:
    """Builds request bodies from content queries.

    Args:
        settings: Page size, result window, boost and fuzziness defaults.
        date_translator: Date sub-translator (a default one is created).
    """

    def __init__(
        self,
        settings: QuerySettings | None = None,
        date_translator: DateQueryTranslator | None = None,
    ) -> None:
        self.settings = settings or QuerySettings()
        self.dates = date_translator or DateQueryTranslator()

    def translate(self, query: ContentQuery | Mapping[str, Any]) -> dict[str, Any]:
        """Translate a content query into a request body."""
        if not isinstance(query, ContentQuery):
            query = ContentQuery.model_validate(dict(query))

        size = self._page_size(query)
        body: dict[str, Any] = {
            "from": self._offset(query, size),
            "size": size,
            "sort": self._sort(query),
        }

        filters = self._filters(query)

        if query.s and not query.match_all:
            body["query"] = self._text_query(query.s, self._search_fields(query.search_fields))
        elif query.match_all:
            body["query"] = {"match_all": {}}

        use_filters = bool(filters)
        filter_tree = {"and": filters}
        if use_filters:
            body["filter"] = filter_tree

        if query.aggs is not None and query.aggs.aggs:
            body["aggs"] = self._aggregations(query.aggs, filter_tree if use_filters else None)

        return body

    # ── Paging ──

    def _page_size(self, query: ContentQuery) -> int:
        per_page = query.posts_per_page if query.posts_per_page else query.post_per_page
        if not per_page:
            return self.settings.posts_per_page
        if per_page == -1:
            return self.settings.max_result_window
        if per_page < 0:
            return self.settings.posts_per_page
        return per_page

    @staticmethod
    def _offset(query: ContentQuery, size: int) -> int:
        offset = max(query.offset or 0, 0)
        if query.paged is not None:
            offset = size * (query.paged - 1) if query.paged > 1 else 0
        return offset

    # ── Sort ──

    @staticmethod
    def parse_order(order: str | None) -> str:
        if isinstance(order, str) and order.upper() == "ASC":
            return "asc"
        return "desc"

    @staticmethod
    def parse_orderby(orderby: str, order: str) -> list[dict[str, Any]]:
        """Translate space-separated sort tokens, left to right."""
        aliases = {
            "relevance": "_score",
            "date": "post_date",
            "name": "post_name.raw",
            "title": "post_title.sortable",
        }
        return [{aliases.get(token, token): {"order": order}} for token in orderby.split(" ") if token]

    def _sort(self, query: ContentQuery) -> list[dict[str, Any]]:
        order = self.parse_order(query.order)
        orderby = query.orderby
        if not orderby and not query.s:
            orderby = "date"
        if orderby:
            return self.parse_orderby(orderby, order)
        return [{"_score": {"order": order}}]

    # ── Filters ──

    def _filters(self, query: ContentQuery) -> list[dict[str, Any]]:
        filters: list[dict[str, Any]] = []

        tax_filter = [c for c in (self._tax_clause(clause) for clause in query.tax_query) if c]
        if tax_filter:
            filters.append({"bool": {"must": tax_filter}})

        if query.category_name:
            filters.append({"bool": {"must": {"terms": {"terms.category.slug": [query.category_name]}}}})

        if query.post_in:
            filters.append({"bool": {"must": {"terms": {"post_id": list(query.post_in)}}}})

        if query.post_not_in:
            filters.append({"bool": {"must_not": {"terms": {"post_id": list(query.post_not_in)}}}})

        if query.author:
            filters.append({"term": {"post_author.id": query.author}})
        elif query.author_name:
            filters.append({"term": {"post_author.raw": query.author_name}})

        simple_date = self.dates.simple_filter(query)
        if simple_date:
            filters.append(simple_date)

        if query.date_query is not None:
            date_filter = self.dates.get_filter(query.date_query)
            if "and" in date_filter:
                filters.append(date_filter["and"])

        if query.meta_query is not None:
            meta_filter = self.meta_filter(query.meta_query)
            if meta_filter:
                filters.append(meta_filter)

        post_type = self._post_type_clause(query.post_type)
        if post_type:
            filters.append(post_type)

        return filters

    @staticmethod
    def _tax_clause(clause: TaxQueryClause) -> dict[str, Any] | None:
        if not clause.terms:
            return None
        field = "name.raw" if clause.field == "name" else clause.field
        terms_obj: dict[str, Any] = {f"terms.{clause.taxonomy}.{field}": list(clause.terms)}
        if clause.operator and clause.operator.upper() == "AND":
            terms_obj["execution"] = "and"
        return {"terms": terms_obj}

    def meta_filter(self, meta_query: MetaQuery) -> dict[str, Any] | None:
        """Translate a meta query; clauses missing a key or value are dropped."""
        relation = "should" if meta_query.relation.upper() == "OR" else "must"
        clauses = [c for c in (self.meta_clause(clause) for clause in meta_query.clauses) if c]
        if not clauses:
            return None
        return {"bool": {relation: clauses}}

    @staticmethod
    def meta_clause(clause: MetaQueryClause) -> dict[str, Any] | None:
        if not clause.key:
            return None
        compare = MetaCompare.parse(clause.compare)
        if clause.value is None and compare not in VALUELESS_OPERATORS:
            logger.debug("Dropping meta clause on %s: %s needs a value", clause.key, compare.value)
            return None
        path = meta_key_path(clause.key, compare, clause.type)
        return META_CLAUSE_BUILDERS[compare](path, clause.value)

    @staticmethod
    def _post_type_clause(post_type: str | list[str] | None) -> dict[str, Any] | None:
        if not post_type or post_type == "any":
            return None
        post_types = _as_list(post_type)
        if len(post_types) < 2:
            return {"term": {"post_type.raw": post_types[0]}}
        return {"terms": {"post_type.raw": post_types}}

    # ── Full text ──

    @staticmethod
    def _search_fields(search_fields: SearchFields | None) -> list[str]:
        if search_fields is None:
            return list(DEFAULT_SEARCH_FIELDS)
        extra = [f"terms.{tax}.name" for tax in search_fields.taxonomies]
        extra += [f"meta.{key}.value" for key in search_fields.meta]
        if search_fields.author_name:
            extra.append("post_author.login")
        return list(search_fields.fields) + extra

    def _text_query(self, term: str, fields: list[str]) -> dict[str, Any]:
        return {
            "bool": {
                "should": [
                    {
                        "multi_match": {
                            "query": term,
                            "fields": fields,
                            "boost": self.settings.match_boost,
                            "fuzziness": 0,
                        }
                    },
                    {
                        "multi_match": {
                            "fields": list(fields),
                            "query": term,
                            "fuzziness": self.settings.fuzziness,
                            "operator": "or",
                        }
                    },
                ]
            }
        }

    # ── Aggregations ──

    @staticmethod
    def _aggregations(spec: AggregationSpec, filter_tree: dict[str, Any] | None) -> dict[str, Any]:
        if spec.use_filter and filter_tree is not None:
            bucket_filter = copy.deepcopy(filter_tree)
        else:
            bucket_filter = {"match_all": {}}
        return {spec.name: {"filter": bucket_filter, "aggs": copy.deepcopy(spec.aggs)}}
