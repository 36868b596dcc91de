"""HTTP request AST nodes and the per-parse metadata side table.

Every node is a frozen dataclass tagged with a ``type`` class constant.
Grammar problems are represented by :class:`ErrorNode` values that sit
in the tree where the broken construct would have been; the parser
never raises for them.

Masked values never appear in the tree.  A :class:`MaskedNode` only
carries the display text and an index into :attr:`Metadata.masked_values`.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Union

if TYPE_CHECKING:
    from sling.body.nodes import JsonDocument
    from sling.http.segmenter import Position
    from sling.masking.mask import Masked


class FixId(enum.StrEnum):
    """Identifiers of the automatic fixes an editor may offer."""

    INITIAL_FORMAT = "initial_format"
    INSERT_LEADING_NEWLINE = "insert_leading_newline"
    INSERT_TRAILING_NEWLINE = "insert_trailing_newline"
    CHECK_SPACING = "check_spacing"
    USE_HTTP_1_1 = "use_http_1_1"
    APPEND_HEADER_KEY = "append_header_key"
    UPPERCASE_METHOD = "uppercase_method"


ALLOWED_PROTOCOLS: tuple[tuple[str, str], ...] = (("HTTP", "1.1"),)
"""``(protocol, version)`` pairs accepted on the request line."""


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

class Metadata:
    """Side table produced by a single parse.

    Attributes
    ----------
    masked_values:
        Registry of every masked value encountered, in discovery order.
        The list index is the ``reference`` stored in masked nodes.
    content_type:
        Value of the ``content-type`` header, if any.
    errors:
        Non-fatal warnings (for example a missing leading newline).
    """

    __slots__ = ("masked_values", "content_type", "errors")

    def __init__(self) -> None:
        self.masked_values: list[Masked[Any]] = []
        self.content_type: str | None = None
        self.errors: list[ErrorNode] = []

    def append_masked_value(self, value: Masked[Any]) -> int:
        """Register *value* and return its reference index."""
        self.masked_values.append(value)
        return len(self.masked_values) - 1

    def add_warning(self, node: ErrorNode) -> None:
        self.errors.append(node)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Metadata):
            return NotImplemented
        return (
            [m.display_text for m in self.masked_values]
            == [m.display_text for m in other.masked_values]
            and self.content_type == other.content_type
            and self.errors == other.errors
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"Metadata(masked_values={self.masked_values!r}, "
            f"content_type={self.content_type!r}, errors={len(self.errors)})"
        )


# ---------------------------------------------------------------------------
# Leaf nodes
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ErrorNode:
    """A recoverable grammar problem embedded in the AST."""

    type: ClassVar[str] = "error"

    reason: str
    suggestions: tuple[FixId, ...] = ()
    auto_fix: FixId | None = None
    position: Position | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class TextNode:
    type: ClassVar[str] = "text"

    value: str


@dataclass(frozen=True, slots=True)
class MaskedNode:
    """Reference to a registered masked value, shown as :attr:`mask`."""

    type: ClassVar[str] = "masked"

    reference: int
    mask: str


ValueNode = Union[TextNode, MaskedNode]


@dataclass(frozen=True, slots=True)
class ValuesNode:
    """Ordered text and masked fragments forming one logical value."""

    type: ClassVar[str] = "values"

    values: tuple[ValueNode, ...]


# ---------------------------------------------------------------------------
# Structural nodes
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ProtocolNode:
    type: ClassVar[str] = "protocol"

    value: str
    version: str


@dataclass(frozen=True, slots=True)
class RequestNode:
    type: ClassVar[str] = "request"

    method: TextNode | ErrorNode
    url: TextNode | MaskedNode | ValuesNode | ErrorNode
    protocol: ProtocolNode | ErrorNode


@dataclass(frozen=True, slots=True)
class HeaderNode:
    type: ClassVar[str] = "header"

    name: TextNode | ErrorNode
    value: TextNode | MaskedNode | ValuesNode | ErrorNode


@dataclass(frozen=True, slots=True)
class BodyNode:
    """Request body together with the content type it was parsed for."""

    type: ClassVar[str] = "body"

    content_type: str
    value: JsonDocument | TextNode | MaskedNode | ValuesNode


@dataclass(frozen=True, slots=True)
class HttpDocument:
    """Root of a parsed request template."""

    type: ClassVar[str] = "http"

    start_line: RequestNode | ErrorNode
    metadata: Metadata
    headers: tuple[HeaderNode | ErrorNode, ...] | None = None
    body: BodyNode | None = None

    @property
    def errors(self) -> list[ErrorNode]:
        """Every grammar error in the tree, warnings excluded."""
        found: list[ErrorNode] = []
        start = self.start_line
        if isinstance(start, ErrorNode):
            found.append(start)
        else:
            for child in (start.method, start.url, start.protocol):
                if isinstance(child, ErrorNode):
                    found.append(child)
        for header in self.headers or ():
            if isinstance(header, ErrorNode):
                found.append(header)
        return found

    @property
    def is_valid(self) -> bool:
        return not self.errors
