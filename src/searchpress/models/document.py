"""Content objects read from the repository and the documents built from them."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_serializer

# ── Repository objects ───────────────────────────────────────────────────────


class ContentUser(BaseModel):
    """Author of a content object."""

    id: int
    login: str = ""
    display_name: str = ""


class ContentTerm(BaseModel):
    """A taxonomy term."""

    term_id: int
    slug: str = ""
    name: str = ""
    parent: int = 0
    taxonomy: str = ""


class ContentTaxonomy(BaseModel):
    """A taxonomy registered for a content type."""

    name: str
    public: bool = True
    hierarchical: bool = False


class ContentObject(BaseModel):
    """A repository-managed item (post, page, custom item).

    Dates are the repository's ``YYYY-MM-DD HH:MM:SS`` strings; a zero or
    unparsable date is tolerated here and handled during preparation.
    """

    id: int
    author_id: int = 0
    date: str | None = None
    date_gmt: str | None = None
    modified: str | None = None
    modified_gmt: str | None = None
    title: str = ""
    excerpt: str = ""
    content: str = ""
    status: str = "publish"
    name: str = Field(default="", description="Slug")
    parent: int = 0
    type: str = "post"
    mime_type: str = ""
    guid: str = ""
    menu_order: int = 0
    comment_count: int = 0
    comment_status: str = "open"
    ping_status: str = "open"


# ── Indexable document ───────────────────────────────────────────────────────


class AuthorData(BaseModel):
    """Author sub-object stored on each document."""

    raw: str = ""
    login: str = ""
    display_name: str = ""
    id: int | str = ""


class TermData(BaseModel):
    """Term entry stored under ``terms.<taxonomy>``."""

    term_id: int
    slug: str
    name: str
    parent: int


class DateTerms(BaseModel):
    """Calendar decomposition of the publish date."""

    year: int
    month: int
    week: int
    dayofyear: int
    day: int
    dayofweek: int
    dayofweek_iso: int
    hour: int
    minute: int
    second: int
    m: int = Field(description="Year and month as YYYYMM")


class TypedMetaValue(BaseModel):
    """One meta value projected onto every type the index can filter by.

    ``value``, ``raw`` and ``boolean`` are always present.  ``long`` and
    ``double`` are only set for numeric values, the date projections only
    for strings; unset projections are left out of the serialized form.
    """

    value: Any
    raw: Any
    boolean: bool
    long: int | None = None
    double: float | None = None
    date: str | None = None
    datetime: str | None = None
    time: str | None = None

    def to_source(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class IndexableDocument(BaseModel):
    """Flattened content object, ready to be sent to the index."""

    post_id: int
    post_author: AuthorData = Field(default_factory=AuthorData)
    post_date: str | None = None
    post_date_gmt: str | None = None
    post_title: str = ""
    post_excerpt: str = ""
    post_content: str = ""
    post_status: str = ""
    post_name: str = ""
    post_modified: str | None = None
    post_modified_gmt: str | None = None
    post_parent: int = 0
    post_type: str = ""
    post_mime_type: str = ""
    permalink: str = ""
    terms: dict[str, list[TermData]] = Field(default_factory=dict)
    post_meta: dict[str, list[Any]] = Field(default_factory=dict)
    date_terms: DateTerms | None = None
    comment_count: int = 0
    comment_status: str = ""
    ping_status: str = ""
    menu_order: int = 0
    guid: str = ""
    meta: dict[str, list[TypedMetaValue]] = Field(default_factory=dict)

    @field_serializer("meta")
    def _serialize_meta(self, meta: dict[str, list[TypedMetaValue]]) -> dict[str, list[dict[str, Any]]]:
        return {key: [typed.to_source() for typed in values] for key, values in meta.items()}

    def to_source(self) -> dict[str, Any]:
        """Return the JSON-ready ``_source`` body."""
        return self.model_dump(mode="json")
