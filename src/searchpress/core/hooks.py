"""Extension points — explicit pre/post callbacks around each core stage.

A ``Hooks`` instance is handed to the facade (and through it to the
mapper and request client).  Filter callbacks receive the current value
plus stage-specific context and return the value to continue with;
``observe`` callbacks only look.

Example::

    hooks = Hooks()
    hooks.add_filter(HookPoint.POST_TRANSLATE, lambda body, query: {**body, "min_score": 0.5})
    hooks.add_observer(HookPoint.AGGREGATIONS, lambda aggs, query: print(aggs))
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

_V = TypeVar("_V")


class HookPoint(str, Enum):
    """Named extension points."""

    PRE_INDEX = "pre_index"  # (document_source, post_id) -> document_source
    PRE_TRANSLATE = "pre_translate"  # (query) -> query
    POST_TRANSLATE = "post_translate"  # (body, query) -> body
    PRE_PREPARE = "pre_prepare"  # (content_object) -> content_object
    PREPARED_ARGS = "prepared_args"  # (document, post_id) -> document, before meta typing
    POST_PREPARE = "post_prepare"  # (document, post_id) -> document
    SEARCH_ARGS = "search_args"  # (body, scope) -> body
    RAW_RESPONSE = "raw_response"  # observe (response, path)
    RETRIEVE_HIT = "retrieve_hit"  # (post, hit) -> post
    AGGREGATIONS = "aggregations"  # observe (aggregations, raw_response)
    SEARCH_RESULTS = "search_results"  # (result_set, raw_response) -> result_set
    REQUEST_HEADERS = "request_headers"  # (headers) -> headers
    MAPPING = "mapping"  # (mapping) -> mapping


class Hooks:
    """Registry of filter and observer callbacks, run in registration order."""

    def __init__(self) -> None:
        self._filters: dict[HookPoint, list[Callable[..., Any]]] = defaultdict(list)
        self._observers: dict[HookPoint, list[Callable[..., Any]]] = defaultdict(list)

    def add_filter(self, point: HookPoint, callback: Callable[..., Any]) -> None:
        self._filters[point].append(callback)

    def add_observer(self, point: HookPoint, callback: Callable[..., Any]) -> None:
        self._observers[point].append(callback)

    def remove(self, point: HookPoint, callback: Callable[..., Any]) -> None:
        for registry in (self._filters, self._observers):
            if callback in registry[point]:
                registry[point].remove(callback)

    def has(self, point: HookPoint) -> bool:
        return bool(self._filters[point] or self._observers[point])

    def apply(self, point: HookPoint, value: _V, *context: Any) -> _V:
        """Pass ``value`` through every filter registered for ``point``."""
        for callback in self._filters[point]:
            value = callback(value, *context)
        return value

    def notify(self, point: HookPoint, *args: Any) -> None:
        """Call every observer registered for ``point``.

        Observer failures are logged and do not interrupt the operation.
        """
        for callback in self._observers[point]:
            try:
                callback(*args)
            except Exception:
                logger.warning("Observer for %s failed", point.value, exc_info=True)
