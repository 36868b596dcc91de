"""Sentinel tokens standing in for masked values inside flattened text.

To re-parse a whole template as HTTP (and its body as JSON) it has to be
flattened into a single string first.  Inlining the display text of a
masked value at that point could break the grammar (a bullet mask inside
a JSON number, a ``{NAME}`` mask that looks like an object), so each
masked slot is rendered as::

    \\uFDD0<index>\\uFDD1

The delimiters are Unicode noncharacters, which never occur in real
request text.  After parsing, a leaf that *is* a sentinel becomes a
masked node; a leaf that merely *contains* one has it replaced with the
display text.

Sentinels rely on the noncharacters surviving every text operation
between :meth:`SentinelCodec.encode` and :meth:`SentinelCodec.decode`.
A layer that applies Unicode normalization or strips noncharacters would
corrupt them.  They must never leave the parsing pipeline unresolved.
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from sling.http.nodes import MaskedNode, TextNode
from sling.masking.mask import Masked

SENTINEL_PREFIX = "\uFDD0"
SENTINEL_SUFFIX = "\uFDD1"
SENTINEL_PATTERN = re.compile(f"{SENTINEL_PREFIX}(\\d+){SENTINEL_SUFFIX}")


class SentinelCodec:
    """Encode and decode sentinels against a masked-value registry.

    Parameters
    ----------
    registry:
        The masked values, indexed the same way as the sentinels.
    """

    def __init__(self, registry: Sequence[Masked[Any]]) -> None:
        self._registry = registry

    @staticmethod
    def encode(index: int) -> str:
        """Return the sentinel for registry slot *index*."""
        if index < 0:
            raise ValueError("Sentinel index must not be negative")
        return f"{SENTINEL_PREFIX}{index}{SENTINEL_SUFFIX}"

    def decode(self, token: str) -> tuple[int, str] | None:
        """Return ``(index, display_text)`` if *token* is exactly one sentinel."""
        match = SENTINEL_PATTERN.fullmatch(token)
        if match is None:
            return None
        index = int(match.group(1))
        if index >= len(self._registry):
            return None
        return index, self._registry[index].display_text

    @staticmethod
    def is_sentinel(text: str) -> bool:
        return SENTINEL_PATTERN.fullmatch(text) is not None

    @staticmethod
    def contains_sentinel(text: str) -> bool:
        return SENTINEL_PATTERN.search(text) is not None

    def substitute(self, text: str) -> str:
        """Replace every embedded sentinel with its display text."""
        return SENTINEL_PATTERN.sub(
            lambda match: self._registry[int(match.group(1))].display_text, text
        )

    def split(self, text: str) -> list[TextNode | MaskedNode]:
        """Split *text* into ordered text and masked segments.

        Empty text between adjacent sentinels is omitted.
        """
        segments: list[TextNode | MaskedNode] = []
        last = 0
        for match in SENTINEL_PATTERN.finditer(text):
            if match.start() > last:
                segments.append(TextNode(text[last:match.start()]))
            index = int(match.group(1))
            segments.append(MaskedNode(index, self._registry[index].display_text))
            last = match.end()
        if last < len(text):
            segments.append(TextNode(text[last:]))
        return segments
