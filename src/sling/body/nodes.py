"""JSON/JSONC body AST.

The tree is lossless: whitespace, comments and punctuation are kept as
trivia nodes so the body can be redisplayed exactly as written.  Number
and string leaves keep their source text.
"""
from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass
from typing import ClassVar, Literal, Union


@dataclass(frozen=True, slots=True)
class JsonNull:
    type: ClassVar[str] = "null"


@dataclass(frozen=True, slots=True)
class JsonBoolean:
    type: ClassVar[str] = "boolean"

    value: bool


@dataclass(frozen=True, slots=True)
class JsonNumber:
    """A number leaf.  ``raw`` is the source text, e.g. ``"1e3"``."""

    type: ClassVar[str] = "number"

    raw: str

    @property
    def value(self) -> int | float:
        return json.loads(self.raw)


@dataclass(frozen=True, slots=True)
class JsonString:
    """A string leaf.  ``value`` is the source text between the quotes."""

    type: ClassVar[str] = "string"

    value: str


@dataclass(frozen=True, slots=True)
class JsonMasked:
    """A masked value used as (part of) a JSON leaf."""

    type: ClassVar[str] = "masked"

    reference: int
    mask: str
    value_type: str = "string"


@dataclass(frozen=True, slots=True)
class JsonComposite:
    """One JSON atom assembled from literal and masked fragments.

    ``kind`` is ``"string"`` for ``"Bearer {token}"`` and ``"number"``
    for adjacent fragments outside quotes such as ``1{exponent}``.
    """

    type: ClassVar[str] = "composite"

    kind: Literal["string", "number"]
    parts: tuple[JsonString | JsonNumber | JsonMasked, ...]


@dataclass(frozen=True, slots=True)
class JsonUnknown:
    """A literal that is not ``true``, ``false``, ``null`` or a number."""

    type: ClassVar[str] = "unknown"

    value: str


# -- trivia ---------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class JsonWhitespace:
    type: ClassVar[str] = "whitespace"

    value: str


@dataclass(frozen=True, slots=True)
class JsonComment:
    """A JSONC comment, including its delimiters."""

    type: ClassVar[str] = "comment"

    variant: Literal["line", "block"]
    value: str


@dataclass(frozen=True, slots=True)
class JsonPunctuation:
    type: ClassVar[str] = "punctuation"

    value: Literal[",", ":"]


TRIVIA = (JsonWhitespace, JsonComment, JsonPunctuation)


# -- containers -----------------------------------------------------------

@dataclass(frozen=True, slots=True)
class JsonArray:
    """An array.  ``items`` keeps trivia in source order."""

    type: ClassVar[str] = "array"

    items: tuple[JsonAstNode, ...]

    def values(self) -> list[JsonAstNode]:
        return [item for item in self.items if not isinstance(item, TRIVIA)]


@dataclass(frozen=True, slots=True)
class JsonObject:
    """An object.  ``children`` keeps keys, values and trivia in source order."""

    type: ClassVar[str] = "object"

    children: tuple[JsonAstNode, ...]

    def entries(self) -> Iterator[tuple[JsonAstNode, JsonAstNode]]:
        """Yield ``(key, value)`` pairs, skipping trivia."""
        key: JsonAstNode | None = None
        expecting_value = False
        for child in self.children:
            if isinstance(child, JsonPunctuation):
                if child.value == ":":
                    expecting_value = key is not None
                else:
                    key, expecting_value = None, False
                continue
            if isinstance(child, (JsonWhitespace, JsonComment)):
                continue
            if expecting_value and key is not None:
                yield key, child
                key, expecting_value = None, False
            else:
                key = child


@dataclass(frozen=True, slots=True)
class JsonDocument:
    type: ClassVar[str] = "document"

    value: tuple[JsonAstNode, ...]


JsonAstNode = Union[
    JsonNull,
    JsonBoolean,
    JsonNumber,
    JsonString,
    JsonMasked,
    JsonComposite,
    JsonUnknown,
    JsonWhitespace,
    JsonComment,
    JsonPunctuation,
    JsonArray,
    JsonObject,
]
