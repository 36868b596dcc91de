"""sling HTTP grammar.

This subpackage turns a resolved request template into an AST:

* **segment_template** -- indentation-aware split into logical lines.
* **parse_http_request** -- request line, headers and body, with
  grammar problems embedded as ``ErrorNode`` values.
* **parse_http_method** -- cheap extraction of the method token from raw
  template text.
* **render_document** -- display-view (or execution-view) text of a
  parsed document.
"""
from __future__ import annotations

from sling.http.nodes import (
    ALLOWED_PROTOCOLS,
    BodyNode,
    ErrorNode,
    FixId,
    HeaderNode,
    HttpDocument,
    MaskedNode,
    Metadata,
    ProtocolNode,
    RequestNode,
    TextNode,
    ValuesNode,
)
from sling.http.segmenter import Position, TemplatePart, segment_template
from sling.http.parser import (
    HTTP_METHODS,
    parse_headers,
    parse_http_request,
    resolve_compound_node,
)
from sling.http.method import MethodError, MethodToken, parse_http_method
from sling.http.render import body_text, render_document, value_text

__all__ = [
    "ALLOWED_PROTOCOLS",
    "HTTP_METHODS",
    "BodyNode",
    "ErrorNode",
    "FixId",
    "HeaderNode",
    "HttpDocument",
    "MaskedNode",
    "Metadata",
    "ProtocolNode",
    "RequestNode",
    "TextNode",
    "ValuesNode",
    "Position",
    "TemplatePart",
    "segment_template",
    "parse_headers",
    "parse_http_request",
    "resolve_compound_node",
    "MethodError",
    "MethodToken",
    "parse_http_method",
    "body_text",
    "render_document",
    "value_text",
]
