"""Shared test fixtures and configuration."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from searchpress.config.settings import Settings
from searchpress.models.document import ContentObject, ContentTaxonomy, ContentTerm, ContentUser


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance with a primary and one backup host."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        cluster={
            "host": "http://primary:9200",
            "backup_hosts": ["http://backup:9200"],
            "index_prefix": "searchpress",
            "site_id": 1,
        },
    )


# ── Content repository ───────────────────────────────────────────────────────


class InMemoryRepository:
    """Content repository backed by plain dicts."""

    def __init__(self) -> None:
        self.posts: dict[int, ContentObject] = {}
        self.users: dict[int, ContentUser] = {}
        self.taxonomies: dict[str, list[ContentTaxonomy]] = {}
        self.object_terms: dict[tuple[int, str], list[ContentTerm]] = {}
        self.terms: dict[tuple[int, str], ContentTerm] = {}
        self.meta: dict[int, dict[str, list[Any]]] = {}
        self.term_lookups: list[int] = []

    def get_post(self, post_id: int) -> ContentObject | None:
        return self.posts.get(post_id)

    def get_user(self, user_id: int) -> ContentUser | None:
        return self.users.get(user_id)

    def get_object_taxonomies(self, post_type: str) -> list[ContentTaxonomy]:
        return self.taxonomies.get(post_type, [])

    def get_object_terms(self, post_id: int, taxonomy: str) -> list[ContentTerm]:
        return self.object_terms.get((post_id, taxonomy), [])

    def get_term(self, term_id: int, taxonomy: str) -> ContentTerm | None:
        self.term_lookups.append(term_id)
        return self.terms.get((term_id, taxonomy))

    def get_post_meta(self, post_id: int) -> dict[str, list[Any]]:
        return self.meta.get(post_id, {})

    def get_permalink(self, post_id: int) -> str:
        return f"https://example.com/?p={post_id}"

    def render_content(self, post: ContentObject) -> str:
        return post.content

    def add_term(self, term: ContentTerm) -> ContentTerm:
        self.terms[(term.term_id, term.taxonomy)] = term
        return term


@pytest.fixture
def repository() -> InMemoryRepository:
    """A repository holding post 42 by user 7, with a category and two meta keys."""
    repo = InMemoryRepository()
    repo.users[7] = ContentUser(id=7, login="jdoe", display_name="Jane Doe")
    repo.posts[42] = ContentObject(
        id=42,
        author_id=7,
        date="2024-03-15 10:30:45",
        date_gmt="2024-03-15 09:30:45",
        modified="2024-03-16 08:00:00",
        modified_gmt="0000-00-00 00:00:00",
        title="Solar nowcasting",
        excerpt="Short",
        content="Body text",
        name="solar-nowcasting",
        comment_count=3,
    )
    repo.taxonomies["post"] = [
        ContentTaxonomy(name="category", hierarchical=True),
        ContentTaxonomy(name="internal_flag", public=False),
    ]
    news = repo.add_term(ContentTerm(term_id=5, slug="news", name="News", parent=0, taxonomy="category"))
    repo.object_terms[(42, "category")] = [news, news]
    repo.object_terms[(42, "internal_flag")] = [ContentTerm(term_id=99, slug="x", name="X", taxonomy="internal_flag")]
    repo.meta[42] = {"price": ["19.5"], "_edit_lock": ["123:1"]}
    return repo


# ── Fake cluster ─────────────────────────────────────────────────────────────


class RecordingTransport(httpx.MockTransport):
    """``httpx.MockTransport`` that remembers every request it handled."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)

    @property
    def hosts(self) -> list[str]:
        return [request.url.host for request in self.requests]


@pytest.fixture
def make_transport() -> Callable[[Callable[[httpx.Request], httpx.Response]], RecordingTransport]:
    """Factory for a recording mock transport."""
    return RecordingTransport
