"""Build the display view of a request template.

The display view is what logs, UIs and serialized forms are allowed to
see.  It is produced by flattening the preview-resolved template with a
sentinel in place of every masked value, parsing that text with the
regular grammar, and then mapping sentinels back:

* a header value or JSON leaf that *is* a sentinel becomes a masked
  reference carrying the registry index and display text;
* text that merely *contains* a sentinel gets the display text spliced
  in.

The real value of a masked ``Content-Type`` header is still used to pick
between JSON and text handling for the body.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from sling.body.builder import is_json_content_type, media_type
from sling.body.lexer import lex_json
from sling.body.nodes import (
    JsonArray,
    JsonAstNode,
    JsonComment,
    JsonComposite,
    JsonDocument,
    JsonMasked,
    JsonObject,
    JsonString,
    JsonUnknown,
)
from sling.body.parser import JsonSyntaxError, parse_json_tokens
from sling.core.config import DEFAULT_DEFERRED_PLACEHOLDER
from sling.core.errors import NodeError
from sling.core.types import to_text
from sling.http.nodes import MaskedNode, Metadata, TextNode
from sling.http.parser import parse_http_request
from sling.http.render import body_text, json_text, value_text
from sling.masking.mask import Masked
from sling.masking.sentinel import SENTINEL_PATTERN, SentinelCodec
from sling.resolve import preview
from sling.template import Template

BodyAstNode = Union[JsonDocument, TextNode, MaskedNode]


@dataclass(frozen=True, slots=True)
class MaskedReference:
    """A header value that is entirely one masked value."""

    index: int
    mask: str


@dataclass(frozen=True, slots=True)
class DisplayRequest:
    """Redacted view of a request: no field holds a real masked value."""

    method: str
    url: str
    http_version: str
    headers: dict[str, str | MaskedReference] = field(default_factory=dict)
    body: list[BodyAstNode] | None = None
    content_type: str | None = None

    def to_text(self) -> str:
        """Render the request as HTTP text."""
        lines = [f"{self.method} {self.url} HTTP/{self.http_version}"]
        for name, value in self.headers.items():
            shown = value.mask if isinstance(value, MaskedReference) else value
            lines.append(f"{name}: {shown}")
        if self.body is not None:
            lines.append("")
            empty = Metadata()
            lines.append(
                "".join(
                    json_text(node, empty, reveal=False)
                    if isinstance(node, JsonDocument)
                    else value_text(node, empty, reveal=False)
                    for node in self.body
                )
            )
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Sentinel mapping
# ---------------------------------------------------------------------------

def _unsentinel_json(node: Any, codec: SentinelCodec, registry: list[Masked[Any]]) -> Any:
    if isinstance(node, JsonDocument):
        return JsonDocument(tuple(_unsentinel_json(child, codec, registry) for child in node.value))
    if isinstance(node, JsonObject):
        return JsonObject(tuple(_unsentinel_json(child, codec, registry) for child in node.children))
    if isinstance(node, JsonArray):
        return JsonArray(tuple(_unsentinel_json(item, codec, registry) for item in node.items))
    if isinstance(node, (JsonString, JsonUnknown)):
        decoded = codec.decode(node.value)
        if decoded is not None:
            index, display = decoded
            masked = JsonMasked(index, display, registry[index].value_type)
            # A quoted sentinel keeps its quotes, as in the execution view.
            return JsonComposite("string", (masked,)) if isinstance(node, JsonString) else masked
        if codec.contains_sentinel(node.value):
            return type(node)(codec.substitute(node.value))
        return node
    if isinstance(node, JsonComment):
        return JsonComment(node.variant, codec.substitute(node.value))
    return node


def _display_body(
    source: str,
    routing_content_type: str | None,
    codec: SentinelCodec,
    registry: list[Masked[Any]],
) -> list[BodyAstNode]:
    if is_json_content_type(routing_content_type):
        try:
            nodes: list[JsonAstNode] = parse_json_tokens(
                lex_json([source]), Metadata().append_masked_value
            )
        except JsonSyntaxError:
            pass
        else:
            return [_unsentinel_json(JsonDocument(tuple(nodes)), codec, registry)]
    return list(codec.split(source))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def parse_template_display(
    template: Template, placeholder: str = DEFAULT_DEFERRED_PLACEHOLDER
) -> DisplayRequest:
    """Return the :class:`DisplayRequest` for *template*.

    Raises
    ------
    StructuralParseError
        If the template is empty.
    NodeError
        If the request line or a header has a grammar error.
    """
    resolved = preview(template, placeholder)

    registry: list[Masked[Any]] = []
    indexes: dict[int, int] = {}
    pieces = [resolved.strings[0]]
    for slot, literal in zip(resolved.slots, resolved.strings[1:]):
        value = slot.value
        if isinstance(value, Masked):
            if id(value) not in indexes:
                indexes[id(value)] = len(registry)
                registry.append(value)
            pieces.append(SentinelCodec.encode(indexes[id(value)]))
        elif value is not None:
            pieces.append(to_text(value))
        pieces.append(literal)

    document = parse_http_request(Template.of(["".join(pieces)]))
    errors = document.errors
    if errors:
        raise NodeError(errors[0])
    # Without errors the start line is a RequestNode with valid children.
    start = document.start_line

    codec = SentinelCodec(registry)
    metadata = document.metadata

    headers: dict[str, str | MaskedReference] = {}
    routing_content_type: str | None = None
    display_content_type: str | None = None
    for header in document.headers or ():
        name = header.name.value
        raw = value_text(header.value, metadata, reveal=False)
        decoded = codec.decode(raw)
        shown: str | MaskedReference = (
            MaskedReference(*decoded) if decoded is not None else codec.substitute(raw)
        )
        if name in headers:
            previous = headers[name]
            previous_text = previous.mask if isinstance(previous, MaskedReference) else previous
            shown = f"{previous_text}, {shown.mask if isinstance(shown, MaskedReference) else shown}"
        headers[name] = shown

        if name == "content-type":
            display_content_type = media_type(codec.substitute(raw))
            routing_content_type = SENTINEL_PATTERN.sub(
                lambda match: to_text(registry[int(match.group(1))].unmask()), raw
            )

    body = None
    if document.body is not None:
        source = body_text(document.body, metadata, reveal=False)
        body = _display_body(source, routing_content_type, codec, registry)

    return DisplayRequest(
        method=start.method.value,
        url=codec.substitute(value_text(start.url, metadata, reveal=False)),
        http_version=start.protocol.version,
        headers=headers,
        body=body,
        content_type=display_content_type,
    )
