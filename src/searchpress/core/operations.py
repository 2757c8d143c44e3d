"""Index operations facade — the single entry point for callers.

``IndexOperations`` composes the request client, query translator,
document preparer and response mapper.  All collaborators are injected;
``IndexOperations.from_settings`` wires the default ones.

No operation raises for cluster or network failures: each returns either
its typed result or a ``TransportError`` / ``BackendError`` / ``ApiStatus``
value describing the failure.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Literal

import httpx

from searchpress.config.settings import Settings
from searchpress.core.hooks import HookPoint, Hooks
from searchpress.core.mapper import ResponseMapper
from searchpress.core.mapping import build_mapping
from searchpress.core.preparer import DocumentPreparer
from searchpress.core.repository import ContentRepository
from searchpress.core.translator import QueryTranslator
from searchpress.exceptions import ConfigurationError
from searchpress.models.document import IndexableDocument
from searchpress.models.query import ContentQuery
from searchpress.models.response import ApiStatus, BackendError, ResultSet, TransportError, TransportResponse
from searchpress.observability.request_log import MemoryRequestLog, NullRequestLog, RequestLogEntry
from searchpress.transport.client import RequestClient

logger = logging.getLogger(__name__)

Scope = Literal["current", "all"] | int | Sequence[int]

HOST_UNAVAILABLE_MSG = "Search host is not available."
INVALID_RESPONSE_MSG = "Invalid response from the search server. Please contact your administrator."
NOT_INDEXED_MSG = "Site not indexed. Please run: searchpress index --setup"


class IndexOperations:
    """Index, search and cluster-management operations for one site.

    Args:
        settings: Application settings (index naming, timeouts, mapping overrides).
        client: Request client used for every call to the cluster.
        translator: Query translator.
        mapper: Search response mapper.
        preparer: Document preparer. Only needed by ``prepare_post`` and ``sync_post``.
        hooks: Extension points shared with the collaborators.
    """

    def __init__(
        self,
        settings: Settings,
        client: RequestClient,
        translator: QueryTranslator,
        mapper: ResponseMapper,
        preparer: DocumentPreparer | None = None,
        hooks: Hooks | None = None,
    ) -> None:
        self.settings = settings
        self.client = client
        self.translator = translator
        self.mapper = mapper
        self.preparer = preparer
        self.hooks = hooks or Hooks()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        repository: ContentRepository | None = None,
        hooks: Hooks | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> IndexOperations:
        """Build the facade and its default collaborators from settings.

        The in-memory request log is only enabled when ``observability.debug`` is set.
        """
        hooks = hooks or Hooks()
        request_log = MemoryRequestLog() if settings.observability.debug else NullRequestLog()
        client = RequestClient(settings.cluster, request_log=request_log, hooks=hooks, transport=transport)
        preparer = DocumentPreparer(repository, settings.indexing, hooks) if repository is not None else None
        return cls(
            settings,
            client=client,
            translator=QueryTranslator(settings.query),
            mapper=ResponseMapper(hooks),
            preparer=preparer,
            hooks=hooks,
        )

    def close(self) -> None:
        self.client.close()

    # ── Naming ──

    @property
    def index_name(self) -> str:
        return self.settings.cluster.index_name()

    def index_for_scope(self, scope: Scope = "current") -> str:
        """Resolve a search scope to an index expression.

        ``"all"`` is the network alias, a site id is that site's index and a
        list of site ids is a comma-separated list of their indexes.
        """
        cluster = self.settings.cluster
        if scope == "all":
            return cluster.network_alias
        if isinstance(scope, bool):
            return cluster.index_name()
        if isinstance(scope, int):
            return cluster.index_name(scope)
        if isinstance(scope, Sequence) and not isinstance(scope, str):
            return ",".join(cluster.index_name(site_id) for site_id in scope)
        return cluster.index_name()

    # ── Documents ──

    def prepare_post(self, post_id: int) -> IndexableDocument | None:
        """Build the indexable document for a post, or None if it does not exist."""
        if self.preparer is None:
            raise ConfigurationError("A content repository is required to prepare posts")
        return self.preparer.prepare(post_id)

    def sync_post(self, post_id: int, blocking: bool = True) -> Any:
        """Prepare a post and index it. Returns None when the post does not exist."""
        document = self.prepare_post(post_id)
        if document is None:
            return None
        return self.index_post(document, blocking=blocking)

    def index_post(self, document: IndexableDocument | Mapping[str, Any], blocking: bool = True) -> Any:
        """Index (create or replace) one document.

        Returns:
            The decoded cluster response (None for non-blocking calls), or a
            ``TransportError``.
        """
        source = document.to_source() if isinstance(document, IndexableDocument) else dict(document)
        post_id = source.get("post_id")
        source = self.hooks.apply(HookPoint.PRE_INDEX, source, post_id)

        path = f"{self.index_name}/post/{source['post_id']}"
        result = self.client.send(
            path,
            method="PUT",
            body=source,
            blocking=blocking,
            timeout=self.settings.cluster.write_timeout,
        )
        self.hooks.notify(HookPoint.RAW_RESPONSE, result, path)

        if isinstance(result, TransportError):
            logger.error("Failed to index post %s: %s", post_id, result.message)
            return result
        return result.json_body()

    @staticmethod
    def build_bulk_body(documents: Iterable[IndexableDocument | Mapping[str, Any]]) -> str:
        """Serialize documents as a newline-delimited bulk ``index`` stream."""
        lines: list[str] = []
        for document in documents:
            source = document.to_source() if isinstance(document, IndexableDocument) else dict(document)
            lines.append(json.dumps({"index": {"_id": source["post_id"]}}))
            lines.append(json.dumps(source))
        return "\n".join(lines) + "\n" if lines else ""

    def bulk_index_posts(self, body: str | Iterable[IndexableDocument | Mapping[str, Any]]) -> Any:
        """Send a bulk request.

        Args:
            body: A ready NDJSON body, or documents to serialize.

        Returns:
            The decoded bulk response, or a ``TransportError`` (kind
            ``http_status`` with the status code and reason for non-200 answers).
        """
        if not isinstance(body, str):
            body = self.build_bulk_body(body)

        path = f"{self.index_name}/post/_bulk"
        result = self.client.send(path, method="POST", body=body, timeout=self.settings.cluster.bulk_timeout)
        if isinstance(result, TransportError):
            return result
        if result.status_code != 200:
            logger.error("Bulk request rejected with HTTP %d %s", result.status_code, result.reason)
            return TransportError(
                kind="http_status",
                message=result.reason or f"HTTP {result.status_code}",
                status_code=result.status_code,
                host=result.host,
                response=result,
            )
        return result.json_body()

    def get_post(self, post_id: int) -> dict[str, Any] | TransportError | None:
        """Fetch a document's source from the index; None when it is not there."""
        result = self.client.send(f"{self.index_name}/post/{post_id}", method="GET")
        if isinstance(result, TransportError):
            return result
        response = result.json_body()
        if isinstance(response, dict) and (response.get("exists") or response.get("found")):
            return response.get("_source")
        return None

    def delete_post(self, post_id: int, blocking: bool = True) -> bool:
        result = self.client.send(
            f"{self.index_name}/post/{post_id}",
            method="DELETE",
            blocking=blocking,
            timeout=self.settings.cluster.write_timeout,
        )
        if isinstance(result, TransportError):
            return False
        response = result.json_body()
        return isinstance(response, dict) and bool(response.get("found"))

    # ── Search ──

    def format_args(self, query: ContentQuery | Mapping[str, Any]) -> dict[str, Any]:
        """Translate a content query into a request body, running the translate hooks."""
        if not isinstance(query, ContentQuery):
            query = ContentQuery.model_validate(dict(query))
        query = self.hooks.apply(HookPoint.PRE_TRANSLATE, query)
        body = self.translator.translate(query)
        return self.hooks.apply(HookPoint.POST_TRANSLATE, body, query)

    def search(self, query: ContentQuery | Mapping[str, Any], scope: Scope = "current") -> ResultSet | TransportError:
        """Run a content query against the scoped index (or indexes).

        Error bodies and malformed responses map to an empty ``ResultSet``;
        only a request that never got an answer returns ``TransportError``.
        """
        body = self.hooks.apply(HookPoint.SEARCH_ARGS, self.format_args(query), scope)
        path = f"{self.index_for_scope(scope)}/post/_search"

        result = self.client.send(path, method="POST", body=body)
        self.hooks.notify(HookPoint.RAW_RESPONSE, result, path)
        if isinstance(result, TransportError):
            logger.error("Search on %s failed: %s", path, result.message)
            return result
        return self.mapper.map(result.json_body())

    def is_search_enabled(self, query: ContentQuery | Mapping[str, Any]) -> bool:
        """True when a query should be served by the search cluster.

        That is a full-text search, or a query carrying the match-all or
        integrate flag.
        """
        if not isinstance(query, ContentQuery):
            query = ContentQuery.model_validate(dict(query))
        return bool(query.s) or query.match_all

    # ── Index management ──

    def refresh_index(self) -> bool:
        result = self.client.send("_refresh", method="POST")
        return isinstance(result, TransportResponse) and result.status_code == 200

    def put_mapping(self) -> dict[str, Any] | BackendError | TransportError:
        """Create the current index with the built-in mapping document."""
        mapping = self.hooks.apply(HookPoint.MAPPING, build_mapping(self.settings.cluster))
        result = self.client.send(self.index_name, method="PUT", body=mapping)
        if isinstance(result, TransportError):
            return result
        if result.status_code != 200:
            return _backend_error(result)
        return result.json_body() or {}

    def delete_index(self, index_name: str | None = None) -> dict[str, Any] | BackendError | TransportError:
        """Delete an index. A missing index (404) also counts as done."""
        result = self.client.send(index_name or self.index_name, method="DELETE")
        if isinstance(result, TransportError):
            return result
        if result.status_code not in (200, 404):
            return _backend_error(result)
        return result.json_body() or {}

    def index_exists(self, index_name: str | None = None) -> bool:
        result = self.client.send(index_name or self.index_name, method="HEAD")
        return isinstance(result, TransportResponse) and result.status_code == 200

    def process_site_mappings(self) -> bool:
        """Recreate the current index: delete it, then put the mapping."""
        deleted = self.delete_index()
        if not isinstance(deleted, dict):
            logger.warning("Could not delete index %s before putting the mapping", self.index_name)
        return isinstance(self.put_mapping(), dict)

    def create_network_alias(self, indexes: Iterable[str]) -> dict[str, Any] | BackendError | TransportError:
        """Point the network alias at the given indexes."""
        alias = self.settings.cluster.network_alias
        body = {"actions": [{"add": {"index": index, "alias": alias}} for index in indexes]}
        result = self.client.send("_aliases", method="POST", body=body)
        if isinstance(result, TransportError):
            return result
        if not result.ok:
            return _backend_error(result)
        return result.json_body() or {}

    def delete_network_alias(self) -> dict[str, Any] | BackendError | TransportError:
        result = self.client.send(f"*/_alias/{self.settings.cluster.network_alias}", method="DELETE")
        if isinstance(result, TransportError):
            return result
        if not result.ok:
            return _backend_error(result)
        return result.json_body() or {}

    # ── Cluster status ──

    def is_alive(self, host: str | None = None) -> bool:
        return self.client.is_alive(host)

    def _host_unavailable(self) -> bool:
        return isinstance(self.client.resolver.resolve(), TransportError)

    def get_cluster_status(self) -> Any:
        """Return the cluster stats document, or an unsuccessful ``ApiStatus``."""
        if self._host_unavailable():
            return ApiStatus(status=False, msg=HOST_UNAVAILABLE_MSG)
        result = self.client.send("_cluster/stats", method="GET")
        if isinstance(result, TransportError):
            return ApiStatus(status=False, msg=result.message)
        return result.json_body()

    def get_index_status(self, scope: Scope = "current") -> ApiStatus:
        """Indexing statistics of the scoped index."""
        return self._stats(scope, "indexing")

    def get_search_status(self, scope: Scope = "current") -> ApiStatus:
        """Search statistics of the scoped index."""
        return self._stats(scope, "search")

    def _stats(self, scope: Scope, section: str) -> ApiStatus:
        if self._host_unavailable():
            return ApiStatus(status=False, msg=HOST_UNAVAILABLE_MSG)
        result = self.client.send(f"{self.index_for_scope(scope)}/_stats/{section}/", method="GET")
        if isinstance(result, TransportError):
            return ApiStatus(status=False, msg=result.message)
        return self.parse_api_response(result.json_body(), section)

    @staticmethod
    def parse_api_response(response: Any, section: str = "indexing") -> ApiStatus:
        """Interpret a stats response.

        Args:
            response: Decoded response body (None when it did not decode).
            section: Statistics section under ``_all.primaries``.
        """
        if response is None:
            return ApiStatus(status=False, msg=INVALID_RESPONSE_MSG)

        error = response.get("error") if isinstance(response, dict) else None
        if error is not None:
            if _is_missing_index(error):
                return ApiStatus(status=False, msg=NOT_INDEXED_MSG)
            return ApiStatus(status=False, msg=_error_message(error))

        try:
            return ApiStatus(status=True, data=response["_all"]["primaries"][section])
        except (KeyError, TypeError):
            return ApiStatus(status=False, msg=INVALID_RESPONSE_MSG)

    def get_plugins(self) -> dict[str, str] | ApiStatus:
        """Return the plugins installed on the first node that reports any."""
        if self._host_unavailable():
            return ApiStatus(status=False, msg=HOST_UNAVAILABLE_MSG)
        result = self.client.send("_nodes?plugin=true", method="GET")
        if isinstance(result, TransportError):
            return ApiStatus(status=False, msg=result.message)

        plugins: dict[str, str] = {}
        response = result.json_body()
        nodes = response.get("nodes") if isinstance(response, dict) else None
        for node in (nodes or {}).values():
            if isinstance(node.get("plugins"), list):
                for plugin in node["plugins"]:
                    plugins[plugin["name"]] = plugin.get("version", "")
                break
        return plugins

    # ── Diagnostics ──

    def get_query_log(self) -> list[RequestLogEntry]:
        """Request log entries recorded so far (empty unless debug logging is on)."""
        return self.client.request_log.entries()


# ═══════════════════════════════════════════════════════════════════════════════
# Error body helpers
# ═══════════════════════════════════════════════════════════════════════════════


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("reason") or error.get("type") or error)
    return str(error)


def _is_missing_index(error: Any) -> bool:
    if isinstance(error, str):
        return "indexmissingexception" in error.lower()
    if isinstance(error, dict):
        if error.get("type") in ("index_not_found_exception", "IndexMissingException"):
            return True
        return "no such index" in str(error.get("reason", "")).lower()
    return False


def _backend_error(response: TransportResponse) -> BackendError:
    """Turn a rejected response into a ``BackendError`` with a hint where one applies."""
    body = response.json_body()
    error = body.get("error") if isinstance(body, dict) else None
    if error is None:
        return BackendError(message=response.reason or f"HTTP {response.status_code}", status_code=response.status_code)
    return BackendError(
        message=_error_message(error),
        hint=NOT_INDEXED_MSG if _is_missing_index(error) else None,
        status_code=response.status_code,
    )
