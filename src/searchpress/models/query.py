"""Content query models — the filter-rich request the translator consumes.

Field aliases mirror the query-var names content repositories already
use (``post__in``, ``use-filter`` ...), so a plain dict of query vars can
be validated directly with ``ContentQuery.model_validate(args)``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

_FROZEN = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class TaxQueryClause(BaseModel):
    """Restrict results to posts carrying the given terms of one taxonomy."""

    model_config = _FROZEN

    taxonomy: str = Field(description="Taxonomy name")
    terms: list[Any] = Field(default_factory=list, description="Term values to match")
    field: str = Field(default="term_id", description="Term field to match on: term_id, slug or name")
    operator: str | None = Field(default=None, description="'AND' requires every term; anything else is any-match")

    @model_validator(mode="before")
    @classmethod
    def _coerce_terms(cls, data: Any) -> Any:
        if isinstance(data, dict) and "terms" in data and not isinstance(data["terms"], (list, tuple)):
            data = {**data, "terms": [data["terms"]]}
        if isinstance(data, dict) and not data.get("field"):
            data = {k: v for k, v in data.items() if k != "field"}
        return data


class MetaQueryClause(BaseModel):
    """A single meta-field comparison."""

    model_config = _FROZEN

    key: str | None = Field(default=None, description="Meta key")
    value: Any = Field(default=None, description="Value or list of values to compare against")
    compare: str = Field(default="=", description="=, !=, >, >=, <, <=, LIKE, EXISTS, NOT EXISTS")
    type: str | None = Field(default=None, description="Declared value type (NUMERIC, DATE, CHAR, ...)")


class MetaQuery(BaseModel):
    """A list of meta clauses joined by a relation."""

    model_config = _FROZEN

    relation: str = Field(default="AND", description="AND or OR")
    clauses: list[MetaQueryClause] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _from_query_vars(cls, data: Any) -> Any:
        """Accept a bare list of clauses or a dict mixing 'relation' with clauses."""
        if isinstance(data, (list, tuple)):
            return {"clauses": list(data)}
        if isinstance(data, dict) and "clauses" not in data:
            clauses = [v for k, v in data.items() if k != "relation" and isinstance(v, dict)]
            return {"relation": data.get("relation") or "AND", "clauses": clauses}
        return data


class DateQueryClause(BaseModel):
    """One clause of a structured date query.

    ``after`` / ``before`` accept a date string or a mapping with
    ``year``/``month``/``day``.  The remaining integer fields match
    individual calendar components of ``column``.
    """

    model_config = _FROZEN

    after: str | dict[str, int] | None = None
    before: str | dict[str, int] | None = None
    inclusive: bool = False
    column: str = "post_date"
    year: int | None = None
    month: int | None = None
    week: int | None = None
    dayofyear: int | None = None
    day: int | None = None
    dayofweek: int | None = None
    dayofweek_iso: int | None = None
    hour: int | None = None
    minute: int | None = None
    second: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _aliases(cls, data: Any) -> Any:
        if isinstance(data, dict):
            renamed = {"monthnum": "month", "w": "week"}
            data = {renamed.get(k, k): v for k, v in data.items()}
        return data


class DateQuery(BaseModel):
    """Structured date query: clauses joined by a relation."""

    model_config = _FROZEN

    relation: str = Field(default="AND", description="AND or OR")
    clauses: list[DateQueryClause] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _from_query_vars(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            return {"clauses": list(data)}
        if isinstance(data, dict) and "clauses" not in data:
            clauses = [v for k, v in data.items() if k != "relation" and isinstance(v, dict)]
            if not clauses and any(k in data for k in ("after", "before", "year", "month", "monthnum", "day")):
                clauses = [{k: v for k, v in data.items() if k != "relation"}]
            return {"relation": data.get("relation") or "AND", "clauses": clauses}
        return data


class SearchFields(BaseModel):
    """Override of the fields the full-text query runs against."""

    model_config = _FROZEN

    fields: list[str] = Field(default_factory=list, description="Document fields searched as-is")
    taxonomies: list[str] = Field(default_factory=list, description="Taxonomies whose term names are searched")
    meta: list[str] = Field(default_factory=list, description="Meta keys whose values are searched")
    author_name: bool = Field(default=False, description="Search the author login")

    @model_validator(mode="before")
    @classmethod
    def _from_query_vars(cls, data: Any) -> Any:
        """Accept ``['post_title', 'author_name']`` or ``{'taxonomies': [...], 0: 'post_title'}``."""
        if isinstance(data, (list, tuple)):
            data = dict(enumerate(data))
        if not isinstance(data, dict) or "fields" in data:
            return data
        fields: list[str] = []
        author_name = bool(data.get("author_name"))
        for key, value in data.items():
            if key in ("taxonomies", "meta", "author_name"):
                continue
            if value == "author_name":
                author_name = True
            elif isinstance(value, str):
                fields.append(value)
        taxonomies = data.get("taxonomies") or []
        meta = data.get("meta") or []
        return {
            "fields": fields,
            "taxonomies": [taxonomies] if isinstance(taxonomies, str) else list(taxonomies),
            "meta": [meta] if isinstance(meta, str) else list(meta),
            "author_name": author_name,
        }


class AggregationSpec(BaseModel):
    """Aggregations to compute alongside the hits."""

    model_config = _FROZEN

    name: str = Field(default="aggregation_name", description="Bucket name in the response")
    use_filter: bool = Field(default=False, alias="use-filter", description="Restrict buckets by the query filter")
    aggs: dict[str, Any] = Field(default_factory=dict, description="Sub-aggregation definitions")

    @model_validator(mode="before")
    @classmethod
    def _default_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name"):
            data = {k: v for k, v in data.items() if k != "name"}
        return data


class ContentQuery(BaseModel):
    """Immutable content query (the caller-facing search arguments).

    Every key is optional; unknown keys are ignored.
    """

    model_config = _FROZEN

    s: str | None = Field(default=None, description="Full-text search term")
    posts_per_page: int | None = Field(default=None, description="Page size; -1 means unlimited")
    post_per_page: int | None = Field(default=None, description="Deprecated spelling of posts_per_page")
    paged: int | None = Field(default=None, description="1-based page number")
    offset: int | None = Field(default=None, description="Explicit result offset")
    order: str | None = Field(default=None, description="ASC or DESC")
    orderby: str | None = Field(default=None, description="Space-separated sort tokens")
    tax_query: list[TaxQueryClause] = Field(default_factory=list)
    category_name: str | None = Field(default=None, description="Category slug")
    post_in: list[Any] = Field(default_factory=list, alias="post__in", description="Only these ids")
    post_not_in: list[Any] = Field(default_factory=list, alias="post__not_in", description="Never these ids")
    author: int | None = Field(default=None, description="Author id")
    author_name: str | None = Field(default=None, description="Author login")
    year: int | None = None
    monthnum: int | None = None
    w: int | None = Field(default=None, description="Week of the year")
    day: int | None = None
    m: str | None = Field(default=None, description="YYYYMM or YYYYMMDD")
    date_query: DateQuery | None = None
    meta_query: MetaQuery | None = None
    post_type: str | list[str] | None = None
    search_fields: SearchFields | None = None
    ep_match_all: bool = Field(default=False, description="Match every document (no scoring)")
    ep_integrate: bool = Field(default=False, description="Route through the cluster and match everything")
    aggs: AggregationSpec | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalise(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("post__in", "post__not_in", "post_in", "post_not_in"):
            if key in data and data[key] is not None and not isinstance(data[key], (list, tuple)):
                data[key] = [data[key]]
        if data.get("m") is not None:
            data["m"] = str(data["m"])
        if isinstance(data.get("tax_query"), dict):
            data["tax_query"] = [v for k, v in data["tax_query"].items() if k != "relation" and isinstance(v, dict)]
        return data

    @property
    def match_all(self) -> bool:
        return self.ep_match_all or self.ep_integrate
