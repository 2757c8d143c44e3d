"""Index mapping document for the ``post`` type.

The mapping mirrors ``IndexableDocument``: sortable/raw sub-fields for the
fields the translator sorts or filters on, and a dynamic template that
gives every ``meta.<key>`` the typed sub-fields produced by the preparer.
"""

from __future__ import annotations

import copy
from typing import Any

from searchpress.config.settings import ClusterSettings

_RAW = {"type": "string", "index": "not_analyzed"}

_ANALYSIS: dict[str, Any] = {
    "analyzer": {
        "default": {
            "tokenizer": "standard",
            "filter": ["standard", "searchpress_word_delimiter", "lowercase", "stop", "searchpress_snowball"],
            "language": "English",
        },
        "shingle_analyzer": {
            "type": "custom",
            "tokenizer": "standard",
            "filter": ["lowercase", "shingle_filter"],
        },
        "lowercase_keyword": {"type": "custom", "tokenizer": "keyword", "filter": ["lowercase"]},
    },
    "filter": {
        "shingle_filter": {"type": "shingle", "min_shingle_size": 2, "max_shingle_size": 5},
        "searchpress_word_delimiter": {"type": "word_delimiter", "preserve_original": True},
        "searchpress_snowball": {"type": "snowball", "language": "English"},
    },
}

_META_TEMPLATE: dict[str, Any] = {
    "template_meta": {
        "path_match": "post_meta.*",
        "mapping": {
            "type": "multi_field",
            "path": "full",
            "fields": {
                "{name}": {"type": "string", "index": "analyzed"},
                "raw": {"type": "string", "index": "not_analyzed", "include_in_all": False},
            },
        },
    }
}

_META_TYPES_TEMPLATE: dict[str, Any] = {
    "template_meta_types": {
        "path_match": "meta.*",
        "mapping": {
            "type": "object",
            "path": "full",
            "properties": {
                "value": {
                    "type": "string",
                    "fields": {"sortable": {"type": "string", "analyzer": "lowercase_keyword", "include_in_all": False}},
                },
                "raw": {"type": "string", "index": "not_analyzed", "include_in_all": False},
                "long": {"type": "long", "index": "not_analyzed"},
                "double": {"type": "double", "index": "not_analyzed"},
                "boolean": {"type": "boolean", "index": "not_analyzed"},
                "date": {"type": "date", "format": "yyyy-MM-dd", "index": "not_analyzed"},
                "datetime": {"type": "date", "format": "yyyy-MM-dd HH:mm:ss", "index": "not_analyzed"},
                "time": {"type": "date", "format": "HH:mm:ss", "index": "not_analyzed"},
            },
        },
    }
}

_TERMS_TEMPLATE: dict[str, Any] = {
    "template_terms": {
        "path_match": "terms.*",
        "mapping": {
            "type": "object",
            "path": "full",
            "properties": {
                "name": {"type": "string", "fields": {"raw": _RAW}},
                "term_id": {"type": "long"},
                "parent": {"type": "long"},
                "slug": {"type": "string", "index": "not_analyzed"},
            },
        },
    }
}

_DATE = {"type": "date", "format": "YYYY-MM-dd HH:mm:ss"}

_POST_PROPERTIES: dict[str, Any] = {
    "post_id": {"type": "long", "index": "not_analyzed", "include_in_all": False},
    "post_author": {
        "type": "object",
        "properties": {
            "display_name": {"type": "string", "fields": {"raw": _RAW}},
            "login": {"type": "string", "fields": {"raw": _RAW}},
            "id": {"type": "long", "index": "not_analyzed"},
            "raw": _RAW,
        },
    },
    "post_date": _DATE,
    "post_date_gmt": _DATE,
    "post_title": {
        "type": "string",
        "fields": {
            "post_title": {"type": "string", "analyzer": "standard"},
            "raw": _RAW,
            "sortable": {"type": "string", "analyzer": "lowercase_keyword"},
        },
    },
    "post_excerpt": {"type": "string"},
    "post_content": {"type": "string", "analyzer": "default"},
    "post_status": _RAW,
    "post_name": {"type": "string", "fields": {"post_name": {"type": "string"}, "raw": _RAW}},
    "post_modified": _DATE,
    "post_modified_gmt": _DATE,
    "post_parent": {"type": "long", "index": "not_analyzed"},
    "post_type": {"type": "string", "fields": {"post_type": {"type": "string"}, "raw": _RAW}},
    "post_mime_type": {"type": "string", "index": "not_analyzed", "include_in_all": False},
    "permalink": {"type": "string"},
    "terms": {"type": "object"},
    "post_meta": {"type": "object"},
    "meta": {"type": "object"},
    "date_terms": {
        "type": "object",
        "properties": {
            name: {"type": "integer"}
            for name in (
                "year",
                "month",
                "week",
                "dayofyear",
                "day",
                "dayofweek",
                "dayofweek_iso",
                "hour",
                "minute",
                "second",
                "m",
            )
        },
    },
    "comment_count": {"type": "long"},
    "comment_status": _RAW,
    "ping_status": _RAW,
    "menu_order": {"type": "integer"},
    "guid": {"type": "string", "index": "not_analyzed"},
}


def build_mapping(cluster: ClusterSettings | None = None) -> dict[str, Any]:
    """Return a fresh mapping document, with shard/replica overrides applied."""
    settings: dict[str, Any] = {
        "index.mapping.total_fields.limit": 5000,
        "index.max_result_window": 1000000,
        "analysis": copy.deepcopy(_ANALYSIS),
    }

    if cluster is not None:
        index: dict[str, int] = {}
        if cluster.number_of_shards is not None:
            index["number_of_shards"] = cluster.number_of_shards
        if cluster.number_of_replicas is not None:
            index["number_of_replicas"] = cluster.number_of_replicas
        if index:
            settings["index"] = index

    return {
        "settings": settings,
        "mappings": {
            "post": {
                "date_detection": False,
                "dynamic_templates": [
                    copy.deepcopy(_META_TEMPLATE),
                    copy.deepcopy(_META_TYPES_TEMPLATE),
                    copy.deepcopy(_TERMS_TEMPLATE),
                ],
                "_all": {"analyzer": "simple"},
                "properties": copy.deepcopy(_POST_PROPERTIES),
            }
        },
    }
