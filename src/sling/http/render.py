"""Render AST nodes back to text.

Every function takes a ``reveal`` flag.  With ``reveal=False`` masked
nodes render as their display text, which is the only form allowed in
logs.  ``reveal=True`` is reserved for building the execution-view
request.
"""
from __future__ import annotations

from sling.body.nodes import (
    JsonArray,
    JsonAstNode,
    JsonBoolean,
    JsonComment,
    JsonComposite,
    JsonDocument,
    JsonMasked,
    JsonNull,
    JsonNumber,
    JsonObject,
    JsonString,
)
from sling.core.types import to_text
from sling.http.nodes import (
    BodyNode,
    ErrorNode,
    HttpDocument,
    MaskedNode,
    Metadata,
    TextNode,
    ValuesNode,
)


def _masked_text(reference: int, mask: str, metadata: Metadata, reveal: bool) -> str:
    if not reveal:
        return mask
    return to_text(metadata.masked_values[reference].unmask())


def value_text(
    node: TextNode | MaskedNode | ValuesNode, metadata: Metadata, *, reveal: bool
) -> str:
    """Render a URL, header value or text body node."""
    if isinstance(node, TextNode):
        return node.value
    if isinstance(node, MaskedNode):
        return _masked_text(node.reference, node.mask, metadata, reveal)
    return "".join(value_text(child, metadata, reveal=reveal) for child in node.values)


def json_text(
    node: JsonAstNode | JsonDocument,
    metadata: Metadata,
    *,
    reveal: bool,
    strip_comments: bool = False,
) -> str:
    """Render a body AST node as JSON source text."""

    def render(current: JsonAstNode | JsonDocument) -> str:
        if isinstance(current, JsonDocument):
            return "".join(render(child) for child in current.value)
        if isinstance(current, JsonObject):
            return "{" + "".join(render(child) for child in current.children) + "}"
        if isinstance(current, JsonArray):
            return "[" + "".join(render(item) for item in current.items) + "]"
        if isinstance(current, JsonString):
            return f'"{current.value}"'
        if isinstance(current, JsonComposite):
            inner = "".join(
                part.value if isinstance(part, JsonString) else render(part)
                for part in current.parts
            )
            return f'"{inner}"' if current.kind == "string" else inner
        if isinstance(current, JsonMasked):
            return _masked_text(current.reference, current.mask, metadata, reveal)
        if isinstance(current, JsonNumber):
            return current.raw
        if isinstance(current, JsonBoolean):
            return "true" if current.value else "false"
        if isinstance(current, JsonNull):
            return "null"
        if isinstance(current, JsonComment) and strip_comments:
            return ""
        return current.value

    return render(node)


def body_text(
    body: BodyNode, metadata: Metadata, *, reveal: bool, strip_comments: bool = False
) -> str:
    """Render a body node.  Comments are only stripped from JSON bodies."""
    if isinstance(body.value, JsonDocument):
        return json_text(body.value, metadata, reveal=reveal, strip_comments=strip_comments)
    return value_text(body.value, metadata, reveal=reveal)


def render_document(document: HttpDocument, *, reveal: bool = False) -> str:
    """Render a whole request as HTTP text, by default in its display view."""
    metadata = document.metadata
    start = document.start_line
    if isinstance(start, ErrorNode):
        lines = [f"<{start.reason}>"]
    else:
        method = (
            f"<{start.method.reason}>" if isinstance(start.method, ErrorNode) else start.method.value
        )
        url = (
            f"<{start.url.reason}>"
            if isinstance(start.url, ErrorNode)
            else value_text(start.url, metadata, reveal=reveal)
        )
        protocol = start.protocol
        version = (
            f"<{protocol.reason}>"
            if isinstance(protocol, ErrorNode)
            else f"{protocol.value}/{protocol.version}"
        )
        lines = [f"{method} {url} {version}"]

    for header in document.headers or ():
        if isinstance(header, ErrorNode):
            lines.append(f"<{header.reason}>")
            continue
        name = f"<{header.name.reason}>" if isinstance(header.name, ErrorNode) else header.name.value
        if isinstance(header.value, ErrorNode):
            lines.append(f"{name}: <{header.value.reason}>")
        else:
            lines.append(f"{name}: {value_text(header.value, metadata, reveal=reveal)}")

    if document.body is not None:
        lines.append("")
        lines.append(body_text(document.body, metadata, reveal=reveal))
    return "\n".join(lines)
