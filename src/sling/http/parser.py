"""Request grammar parser.

:func:`parse_http_request` turns a resolved :class:`~sling.template.Template`
into an :class:`~sling.http.nodes.HttpDocument`.  It raises only for a
structurally empty template; every other problem is reported as an
:class:`~sling.http.nodes.ErrorNode` inside the tree, or as a warning in
``metadata.errors``.

Grammar::

    <blank lines>
    METHOD URL HTTP/1.1
    Header-Name: value
    ...
    <blank line>
    body
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from sling.body.builder import parse_http_body
from sling.core.errors import StructuralParseError
from sling.core.types import to_text
from sling.http.nodes import (
    ALLOWED_PROTOCOLS,
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
from sling.http.segmenter import Position, TemplateLine, TemplatePart, segment_template
from sling.masking.mask import Masked

if TYPE_CHECKING:
    from sling.template import Template

HTTP_METHODS: frozenset[str] = frozenset(
    {"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "TRACE", "CONNECT"}
)

HEADER_NAME_PATTERN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")

_LEADING_NEWLINE = re.compile(r"^\s*\n")
_TRAILING_NEWLINE = re.compile(r"\n\s*$")
_WORD = re.compile(r"\S+")


# ---------------------------------------------------------------------------
# Value resolution
# ---------------------------------------------------------------------------

def resolve_single_node(part: TemplatePart, metadata: Metadata) -> TextNode | MaskedNode:
    """Return the node for one part, registering it if masked."""
    if isinstance(part.value, Masked):
        return MaskedNode(metadata.append_masked_value(part.value), part.value.display_text)
    return TextNode(to_text(part.value))


def resolve_compound_node(
    parts: Sequence[TemplatePart], metadata: Metadata
) -> TextNode | MaskedNode | ValuesNode:
    """Collapse *parts* into a single node.

    No parts give an empty text node, one part gives its own node and
    several parts give a :class:`ValuesNode`.
    """
    if not parts:
        return TextNode("")
    if len(parts) == 1:
        return resolve_single_node(parts[0], metadata)
    return ValuesNode(tuple(resolve_single_node(part, metadata) for part in parts))


def _real_text(node: TextNode | MaskedNode | ValuesNode, metadata: Metadata) -> str:
    if isinstance(node, TextNode):
        return node.value
    if isinstance(node, MaskedNode):
        return to_text(metadata.masked_values[node.reference].unmask())
    return "".join(_real_text(child, metadata) for child in node.values)


# ---------------------------------------------------------------------------
# Request line
# ---------------------------------------------------------------------------

def _tokenize_request_line(parts: TemplateLine) -> list[TemplatePart]:
    tokens: list[TemplatePart] = []
    for part in parts:
        if not part.is_literal:
            tokens.append(part)
            continue
        for match in _WORD.finditer(part.value):
            position = Position(part.position.line, part.position.column + match.start())
            tokens.append(TemplatePart(match.group(), position))
    return tokens


def _parse_method(part: TemplatePart) -> TextNode | ErrorNode:
    method = part.value
    if method in HTTP_METHODS:
        return TextNode(method)
    suggestions: tuple[FixId, ...] = ()
    if method.upper() in HTTP_METHODS:
        suggestions = (FixId.UPPERCASE_METHOD,)
    return ErrorNode(
        f'Unsupported method: "{method}"',
        suggestions=suggestions,
        position=part.position,
    )


def _parse_protocol(part: TemplatePart) -> ProtocolNode | ErrorNode:
    if not part.is_literal:
        return ErrorNode(
            "Protocol must be a literal string (e.g., HTTP/1.1)",
            position=part.position,
        )
    name, _, version = part.value.strip().partition("/")
    if not name or (name.upper(), version) not in ALLOWED_PROTOCOLS:
        return ErrorNode(
            f'Unsupported protocol: "{name}". Expected HTTP/1.1.',
            suggestions=(FixId.USE_HTTP_1_1,),
            position=part.position,
        )
    return ProtocolNode(name.upper(), version)


def parse_request_line(parts: TemplateLine, metadata: Metadata) -> RequestNode | ErrorNode:
    """Parse ``METHOD URL PROTOCOL``; slots are atomic tokens."""
    tokens = _tokenize_request_line(parts)
    first_position = parts[0].position if parts else None

    if len(tokens) < 3:
        return ErrorNode(
            "Invalid request line. Expected: Method URL Protocol",
            suggestions=(FixId.CHECK_SPACING,),
            position=first_position,
        )

    method_part, url_parts, protocol_part = tokens[0], tokens[1:-1], tokens[-1]
    if not method_part.is_literal:
        return ErrorNode("Method must be a static string", position=method_part.position)

    method = _parse_method(method_part)
    url = resolve_compound_node(url_parts, metadata)
    protocol = _parse_protocol(protocol_part)
    if isinstance(protocol, ErrorNode):
        return protocol
    return RequestNode(method, url, protocol)


# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------

def _is_blank(line: TemplateLine) -> bool:
    return all(part.is_literal and not part.value.strip() for part in line)


def parse_headers(
    lines: Sequence[TemplateLine], metadata: Metadata
) -> tuple[HeaderNode | ErrorNode, ...] | None:
    """Parse header lines; returns ``None`` when there are none."""
    headers: list[HeaderNode | ErrorNode] = []

    for line in lines:
        if not line or _is_blank(line):
            continue
        while line[0].is_literal and not line[0].value:
            line = line[1:]

        first = line[0]
        if not first.is_literal:
            headers.append(
                ErrorNode("Header name must be a literal string.", position=first.position)
            )
            continue

        raw_name, colon, remainder = first.value.partition(":")
        if not colon:
            headers.append(
                ErrorNode(
                    "Header must contain a colon separator (name: value)",
                    suggestions=(FixId.APPEND_HEADER_KEY,),
                    position=first.position,
                )
            )
            continue

        name = raw_name.strip()
        if not name:
            headers.append(ErrorNode("Empty header name", position=first.position))
            continue
        if not HEADER_NAME_PATTERN.fullmatch(name):
            headers.append(
                ErrorNode("Illegal header name, invalid characters", position=first.position)
            )
            continue

        value_parts: list[TemplatePart] = []
        suffix = remainder.lstrip()
        if suffix:
            offset = len(first.value) - len(suffix)
            value_parts.append(
                TemplatePart(
                    suffix,
                    Position(first.position.line, first.position.column + offset),
                )
            )
        value_parts.extend(line[1:])

        name_node = TextNode(name.lower())
        value_node = resolve_compound_node(value_parts, metadata)
        headers.append(HeaderNode(name_node, value_node))

        if name_node.value == "content-type":
            metadata.content_type = _real_text(value_node, metadata).strip()

    return tuple(headers) if headers else None


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

def _flatten_body(lines: Sequence[TemplateLine]) -> list[Any]:
    parts: list[Any] = []
    for index, line in enumerate(lines):
        if index:
            parts.append("\n")
        parts.extend(part.value for part in line)
    return parts


def parse_http_request(template: Template) -> HttpDocument:
    """Parse a resolved template into an :class:`HttpDocument`.

    Raises
    ------
    StructuralParseError
        If the template has no slots and no literal content.
    TypeError
        If the template still holds deferred slots.
    """
    if not template.slots and not "".join(template.strings).strip():
        raise StructuralParseError()

    metadata = Metadata()
    starts_with_newline = _LEADING_NEWLINE.match(template.strings[0]) is not None
    ends_with_newline = _TRAILING_NEWLINE.search(template.strings[-1]) is not None

    lines = segment_template(template)
    start_parts = lines.pop(0) if lines else []
    start_line = parse_request_line(start_parts, metadata)

    separator = next((i for i, line in enumerate(lines) if _is_blank(line)), None)
    header_lines = lines if separator is None else lines[:separator]
    body_lines = [] if separator is None else lines[separator + 1:]
    if ends_with_newline and body_lines:
        body_lines = body_lines[:-1]

    if not starts_with_newline:
        metadata.add_warning(
            ErrorNode(
                "HTTP request template should start with a newline.",
                auto_fix=FixId.INSERT_LEADING_NEWLINE,
            )
        )
    if not ends_with_newline:
        metadata.add_warning(
            ErrorNode(
                "HTTP request template should end with a newline.",
                auto_fix=FixId.INSERT_TRAILING_NEWLINE,
            )
        )

    headers = parse_headers(header_lines, metadata)
    body = parse_http_body(metadata, _flatten_body(body_lines))

    return HttpDocument(start_line=start_line, metadata=metadata, headers=headers, body=body)
