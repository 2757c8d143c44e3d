"""Response mapper — raw search response → ``ResultSet``."""

from __future__ import annotations

import logging
import re
from typing import Any

from searchpress.core.hooks import HookPoint, Hooks
from searchpress.models.response import ResultSet

logger = logging.getLogger(__name__)

_SITE_ID_RE = re.compile(r"^.*-([0-9]+)$")


def is_empty_search(response: Any) -> bool:
    """True when a response is not usable as a search result.

    That is: not a mapping, an error body, or one without a ``hits`` object.
    """
    if not isinstance(response, dict):
        return True
    if "error" in response:
        return True
    hits = response.get("hits")
    return not hits or not isinstance(hits, dict)


def parse_site_id(index_name: str | None) -> int:
    """Extract the trailing site id from an index name (``foo-7`` → 7, else 0)."""
    if not index_name or not isinstance(index_name, str):
        return 0
    match = _SITE_ID_RE.match(index_name)
    return int(match.group(1)) if match else 0


def _total(hits: dict[str, Any]) -> int:
    total = hits.get("total", 0)
    if isinstance(total, dict):
        total = total.get("value", 0)
    try:
        return int(total)
    except (TypeError, ValueError):
        return 0


class ResponseMapper:
    """Maps a decoded search response onto posts, totals and aggregations.

    Args:
        hooks: Extension points (``RETRIEVE_HIT``, ``AGGREGATIONS``, ``SEARCH_RESULTS``).
    """

    def __init__(self, hooks: Hooks | None = None) -> None:
        self._hooks = hooks or Hooks()

    def map(self, response: Any) -> ResultSet:
        if is_empty_search(response):
            logger.debug("Search response has no hits, returning an empty result set")
            return ResultSet.empty()

        hits = response["hits"]
        posts: list[dict[str, Any]] = []
        raw_hits = hits.get("hits")
        for hit in raw_hits if isinstance(raw_hits, list) else []:
            if not isinstance(hit, dict):
                continue
            source = hit.get("_source") or {}
            if not isinstance(source, dict):
                logger.debug("Skipping hit without a source object: %r", hit.get("_id"))
                continue
            post = dict(source)
            post["site_id"] = parse_site_id(hit.get("_index"))
            posts.append(self._hooks.apply(HookPoint.RETRIEVE_HIT, post, hit))

        aggregations = response.get("aggregations")
        if not isinstance(aggregations, dict):
            aggregations = {}
        if aggregations:
            self._hooks.notify(HookPoint.AGGREGATIONS, aggregations, response)

        results = ResultSet(found_posts=_total(hits), posts=posts, aggregations=aggregations)
        return self._hooks.apply(HookPoint.SEARCH_RESULTS, results, response)
