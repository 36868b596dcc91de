"""Build the body node of a request from its flattened parts."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sling.body.lexer import lex_json
from sling.body.nodes import JsonDocument
from sling.body.parser import JsonSyntaxError, parse_json_tokens
from sling.core.types import to_text
from sling.http.nodes import BodyNode, MaskedNode, Metadata, TextNode, ValuesNode
from sling.masking.mask import Masked

logger = logging.getLogger(__name__)

DEFAULT_TEXT_CONTENT_TYPE = "text/plain"


def media_type(content_type: str | None) -> str | None:
    """Return the lower-cased media type of *content_type* without parameters."""
    if content_type is None:
        return None
    return content_type.split(";", 1)[0].strip().lower()


def is_json_content_type(content_type: str | None) -> bool:
    """Return ``True`` for ``application/json`` and ``+json`` media types."""
    media = media_type(content_type)
    if not media:
        return False
    return media == "application/json" or media.endswith("+json")


def parse_http_body(metadata: Metadata, parts: Sequence[Any]) -> BodyNode | None:
    """Return the body node for *parts*, or ``None`` for an empty body.

    JSON content types are parsed into a :class:`JsonDocument`; when that
    fails the body silently falls back to text and masked segments.
    Masked values are registered in *metadata* exactly once.
    """
    if not any(isinstance(part, Masked) or to_text(part) for part in parts):
        return None

    if is_json_content_type(metadata.content_type):
        document = _parse_json(metadata, parts)
        if document is not None:
            return BodyNode(metadata.content_type or "application/json", document)

    return _text_body(metadata, parts)


def _parse_json(metadata: Metadata, parts: Sequence[Any]) -> JsonDocument | None:
    pending: list[Masked[Any]] = []
    base = len(metadata.masked_values)

    def register(value: Masked[Any]) -> int:
        pending.append(value)
        return base + len(pending) - 1

    try:
        nodes = parse_json_tokens(lex_json(parts), register)
    except JsonSyntaxError as exc:
        logger.debug("Body is not valid JSON, falling back to text: %s", exc)
        return None

    for value in pending:
        metadata.append_masked_value(value)
    return JsonDocument(tuple(nodes))


def _text_body(metadata: Metadata, parts: Sequence[Any]) -> BodyNode:
    nodes: list[TextNode | MaskedNode] = []
    for part in parts:
        if isinstance(part, Masked):
            nodes.append(MaskedNode(metadata.append_masked_value(part), part.display_text))
            continue
        text = to_text(part)
        if not text:
            continue
        if nodes and isinstance(nodes[-1], TextNode):
            nodes[-1] = TextNode(nodes[-1].value + text)
        else:
            nodes.append(TextNode(text))

    content_type = metadata.content_type or DEFAULT_TEXT_CONTENT_TYPE
    if len(nodes) == 1:
        return BodyNode(content_type, nodes[0])
    return BodyNode(content_type, ValuesNode(tuple(nodes)))
