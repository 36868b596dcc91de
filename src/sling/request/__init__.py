"""sling request execution.

* **RequestDefinition** -- a template bound to a transport and a
  single-slot response cache.
* **DataAccessor** -- extracts a JSON value from a definition's response
  for use in another template's slot.
* **ResponseCache** -- TTL policy for the cached response.
* **parse_json_path** -- the dot/bracket path syntax accessors accept.
"""
from __future__ import annotations

from sling.request.jsonpath import PathSegment, parse_json_path, walk_json_path
from sling.request.cache import CacheEntry, ResponseCache
from sling.request.accessor import DataAccessor
from sling.request.builder import build_request
from sling.request.definition import RequestDefinition

__all__ = [
    "PathSegment",
    "parse_json_path",
    "walk_json_path",
    "CacheEntry",
    "ResponseCache",
    "DataAccessor",
    "build_request",
    "RequestDefinition",
]
