"""Document preparer — content object → indexable document.

Preparation steps:
  1. Flatten scalar fields and the author sub-object.
  2. Null out invalid or zero dates (unless strict dates are configured).
  3. Collect public taxonomy terms, optionally with every ancestor term.
  4. Collect eligible meta and project each value onto its typed variants.
"""

from __future__ import annotations

import json
import logging
import math
import re
from datetime import datetime
from typing import Any

from searchpress.config.settings import IndexingSettings
from searchpress.core.dates import parse_date
from searchpress.core.hooks import HookPoint, Hooks
from searchpress.core.repository import ContentRepository
from searchpress.models.document import (
    AuthorData,
    ContentObject,
    ContentTerm,
    DateTerms,
    IndexableDocument,
    TermData,
    TypedMetaValue,
)

logger = logging.getLogger(__name__)

MAX_LONG = 9223372036854775807
MIN_LONG = -9223372036854775808

DEFAULT_META_DATE = "1971-01-01"
DEFAULT_META_DATETIME = "1971-01-01 00:00:01"
DEFAULT_META_TIME = "00:00:01"

_NUMERIC_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")
_INTEGER_RE = re.compile(r"^\s*[+-]?\d+\s*$")
_TRUE_STRINGS = frozenset({"1", "true", "on", "yes"})


class DocumentPreparer:
    """Builds ``IndexableDocument`` objects from repository content.

    Args:
        repository: Content repository collaborator.
        settings: Date strictness, term hierarchy and meta key rules.
        hooks: Extension points (``PRE_PREPARE``, ``PREPARED_ARGS``, ``POST_PREPARE``).
    """

    def __init__(
        self,
        repository: ContentRepository,
        settings: IndexingSettings | None = None,
        hooks: Hooks | None = None,
    ) -> None:
        self.repository = repository
        self.settings = settings or IndexingSettings()
        self._hooks = hooks or Hooks()

    def prepare(self, post: int | ContentObject) -> IndexableDocument | None:
        """Prepare a post (by id or object); returns None if it does not exist."""
        if isinstance(post, int):
            found = self.repository.get_post(post)
            if found is None:
                logger.warning("Cannot prepare post %d: not found", post)
                return None
            post = found

        post = self._hooks.apply(HookPoint.PRE_PREPARE, post)

        post_date = self._checked_date(post.date)
        document = IndexableDocument(
            post_id=post.id,
            post_author=self._author(post.author_id),
            post_date=post_date,
            post_date_gmt=self._checked_date(post.date_gmt),
            post_title=post.title,
            post_excerpt=post.excerpt,
            post_content=self.repository.render_content(post),
            post_status=post.status,
            post_name=post.name,
            post_modified=self._checked_date(post.modified),
            post_modified_gmt=self._checked_date(post.modified_gmt),
            post_parent=post.parent,
            post_type=post.type,
            post_mime_type=post.mime_type,
            permalink=self.repository.get_permalink(post.id),
            terms=self.prepare_terms(post),
            post_meta=self.prepare_meta(post),
            date_terms=self.prepare_date_terms(post_date),
            comment_count=max(post.comment_count, 0),
            comment_status=post.comment_status,
            ping_status=post.ping_status,
            menu_order=max(post.menu_order, 0),
            guid=post.guid,
        )

        document = self._hooks.apply(HookPoint.PREPARED_ARGS, document, post.id)
        document.meta = self.prepare_meta_types(document.post_meta)
        return self._hooks.apply(HookPoint.POST_PREPARE, document, post.id)

    # ── Scalars ──

    def _author(self, user_id: int) -> AuthorData:
        user = self.repository.get_user(user_id) if user_id else None
        if user is None:
            return AuthorData()
        return AuthorData(raw=user.login, login=user.login, display_name=user.display_name, id=user.id)

    def _checked_date(self, value: str | None) -> str | None:
        if not self.settings.ignore_invalid_dates:
            return value
        return value if parse_date(value) is not None else None

    @staticmethod
    def prepare_date_terms(post_date: str | None) -> DateTerms:
        """Decompose a date into calendar components (epoch when missing)."""
        moment = parse_date(post_date) or datetime(1970, 1, 1)
        return DateTerms(
            year=moment.year,
            month=moment.month,
            week=moment.isocalendar()[1],
            dayofyear=moment.timetuple().tm_yday - 1,
            day=moment.day,
            dayofweek=moment.isoweekday() % 7,
            dayofweek_iso=moment.isoweekday(),
            hour=moment.hour,
            minute=moment.minute,
            second=moment.second,
            m=moment.year * 100 + moment.month,
        )

    # ── Terms ──

    def prepare_terms(self, post: ContentObject) -> dict[str, list[TermData]]:
        """Collect terms of every public taxonomy, deduplicated by term id."""
        taxonomies = [t for t in self.repository.get_object_taxonomies(post.type) if t.public]
        terms: dict[str, list[TermData]] = {}

        for taxonomy in taxonomies:
            object_terms = self.repository.get_object_terms(post.id, taxonomy.name)
            if not object_terms:
                continue

            by_id: dict[int, TermData] = {}
            for term in object_terms:
                if term.term_id in by_id:
                    continue
                by_id[term.term_id] = _term_data(term)
                if self.settings.allow_term_hierarchy:
                    self._add_ancestors(by_id, term, taxonomy.name)
            terms[taxonomy.name] = list(by_id.values())

        return terms

    def _add_ancestors(self, by_id: dict[int, TermData], term: ContentTerm, taxonomy: str) -> None:
        """Walk up the parent chain, stopping at a root, a missing parent or a cycle."""
        visited = {term.term_id}
        current = term
        while current.parent and current.parent not in visited:
            parent = self.repository.get_term(current.parent, taxonomy)
            if parent is None:
                logger.debug("Parent term %d of %d not found in %s", current.parent, current.term_id, taxonomy)
                break
            visited.add(parent.term_id)
            by_id.setdefault(parent.term_id, _term_data(parent))
            current = parent

    # ── Meta ──

    def prepare_meta(self, post: ContentObject) -> dict[str, list[Any]]:
        """Return the eligible meta of a post, with serialized values decoded."""
        meta = self.repository.get_post_meta(post.id)
        if not meta:
            return {}

        prepared: dict[str, list[Any]] = {}
        for key, values in meta.items():
            if not self._is_indexable_key(key):
                continue
            if not isinstance(values, (list, tuple)):
                values = [values]
            prepared[key] = [maybe_unserialize(value) for value in values]
        return prepared

    def _is_indexable_key(self, key: str) -> bool:
        if key.startswith("_"):
            allowed = self.settings.allowed_protected_keys
            return allowed is True or (isinstance(allowed, list) and key in allowed)
        excluded = self.settings.excluded_public_keys
        return excluded is not True and not (isinstance(excluded, list) and key in excluded)

    def prepare_meta_types(self, post_meta: dict[str, list[Any]]) -> dict[str, list[TypedMetaValue]]:
        meta: dict[str, list[TypedMetaValue]] = {}
        for key, values in post_meta.items():
            if not isinstance(values, (list, tuple)):
                values = [values]
            meta[key] = [self.prepare_meta_value_types(value) for value in values]
        return meta

    @staticmethod
    def prepare_meta_value_types(meta_value: Any) -> TypedMetaValue:
        """Project one meta value onto the raw, numeric, boolean and date types."""
        if isinstance(meta_value, (list, tuple, dict)):
            meta_value = json.dumps(meta_value)

        projections: dict[str, Any] = {
            "value": meta_value,
            "raw": meta_value,
            "boolean": parse_boolean(meta_value),
        }

        if is_numeric(meta_value):
            projections["long"] = to_long(meta_value)
            projections["double"] = to_double(meta_value)

        if isinstance(meta_value, str):
            moment = parse_date(meta_value)
            if moment is None:
                projections.update(date=DEFAULT_META_DATE, datetime=DEFAULT_META_DATETIME, time=DEFAULT_META_TIME)
            else:
                projections.update(
                    date=moment.strftime("%Y-%m-%d"),
                    datetime=moment.strftime("%Y-%m-%d %H:%M:%S"),
                    time=moment.strftime("%H:%M:%S"),
                )

        return TypedMetaValue(**projections)


# ═══════════════════════════════════════════════════════════════════════════════
# Value helpers
# ═══════════════════════════════════════════════════════════════════════════════


def _term_data(term: ContentTerm) -> TermData:
    return TermData(term_id=term.term_id, slug=term.slug, name=term.name, parent=term.parent)


def maybe_unserialize(value: Any) -> Any:
    """Decode a JSON-serialized array or object; other values pass through."""
    if not isinstance(value, str):
        return value
    text = value.strip()
    if len(text) < 2 or (text[0], text[-1]) not in {("[", "]"), ("{", "}")}:
        return value
    try:
        return json.loads(text)
    except ValueError:
        return value


def is_numeric(value: Any) -> bool:
    """True for ints, floats and numeric strings (booleans excluded)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and bool(_NUMERIC_RE.match(value))


def to_long(value: Any) -> int:
    """Integer part of a numeric value, clamped to the signed 64-bit range."""
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    elif isinstance(value, str) and _INTEGER_RE.match(value):
        number = int(value)
    else:
        as_float = float(value)
        if math.isnan(as_float):
            return 0
        if math.isinf(as_float):
            return MAX_LONG if as_float > 0 else MIN_LONG
        number = int(as_float)
    return max(MIN_LONG, min(MAX_LONG, number))


def to_double(value: Any) -> float:
    """Float value of a numeric value; 0.0 when it is not finite or does not fit a float."""
    try:
        double = float(value)
    except OverflowError:
        return 0.0
    return double if math.isfinite(double) else 0.0


def parse_boolean(value: Any) -> bool:
    """Best-effort boolean: true only for 1, "1", "true", "on" and "yes"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False
