"""Content repository interface — what the preparer needs from the host platform."""

from __future__ import annotations

from typing import Any, Protocol

from searchpress.models.document import ContentObject, ContentTaxonomy, ContentTerm, ContentUser


class ContentRepository(Protocol):
    """Read access to content objects, their authors, taxonomies and metadata.

    Lookups return None (or an empty collection) when nothing is found.
    """

    def get_post(self, post_id: int) -> ContentObject | None: ...

    def get_user(self, user_id: int) -> ContentUser | None: ...

    def get_object_taxonomies(self, post_type: str) -> list[ContentTaxonomy]: ...

    def get_object_terms(self, post_id: int, taxonomy: str) -> list[ContentTerm]: ...

    def get_term(self, term_id: int, taxonomy: str) -> ContentTerm | None: ...

    def get_post_meta(self, post_id: int) -> dict[str, list[Any]]: ...

    def get_permalink(self, post_id: int) -> str: ...

    def render_content(self, post: ContentObject) -> str: ...
