"""Tests for sentinel tokens.

1. **Encoding** -- reserved delimiters, unique per index.
2. **Decoding** -- exact match only, registry bounds.
3. **Substitution and splitting** -- display text spliced into text.
"""
from __future__ import annotations

import pytest

from sling.http.nodes import MaskedNode, TextNode
from sling.masking import SENTINEL_PATTERN, SentinelCodec, mask


@pytest.fixture
def codec() -> SentinelCodec:
    return SentinelCodec([mask("a", "<A>"), mask("b", "<B>")])


class TestEncoding:
    def test_uses_noncharacter_delimiters(self) -> None:
        assert SentinelCodec.encode(3) == "\uFDD03\uFDD1"

    def test_unique_per_index(self) -> None:
        tokens = {SentinelCodec.encode(index) for index in range(100)}
        assert len(tokens) == 100

    def test_negative_index_rejected(self) -> None:
        with pytest.raises(ValueError):
            SentinelCodec.encode(-1)

    def test_pattern_matches_encoded(self) -> None:
        assert SENTINEL_PATTERN.fullmatch(SentinelCodec.encode(12))


class TestDecoding:
    def test_exact_sentinel(self, codec: SentinelCodec) -> None:
        assert codec.decode(SentinelCodec.encode(1)) == (1, "<B>")

    def test_round_trip_every_index(self) -> None:
        registry = [mask(index, f"<{index}>") for index in range(64)]
        codec = SentinelCodec(registry)
        for index, value in enumerate(registry):
            assert codec.decode(SentinelCodec.encode(index)) == (index, value.display_text)

    def test_embedded_sentinel_is_not_exact(self, codec: SentinelCodec) -> None:
        token = "Bearer " + SentinelCodec.encode(0)
        assert codec.decode(token) is None
        assert SentinelCodec.contains_sentinel(token)
        assert not SentinelCodec.is_sentinel(token)

    def test_out_of_range(self, codec: SentinelCodec) -> None:
        assert codec.decode(SentinelCodec.encode(5)) is None

    def test_plain_text(self, codec: SentinelCodec) -> None:
        assert codec.decode("plain") is None
        assert not SentinelCodec.contains_sentinel("plain")


class TestSubstitution:
    def test_substitute(self, codec: SentinelCodec) -> None:
        text = f"x={SentinelCodec.encode(0)}&y={SentinelCodec.encode(1)}"
        assert codec.substitute(text) == "x=<A>&y=<B>"

    def test_split(self, codec: SentinelCodec) -> None:
        text = f"Bearer {SentinelCodec.encode(0)}{SentinelCodec.encode(1)}!"
        assert codec.split(text) == [
            TextNode("Bearer "),
            MaskedNode(0, "<A>"),
            MaskedNode(1, "<B>"),
            TextNode("!"),
        ]

    def test_split_without_sentinels(self, codec: SentinelCodec) -> None:
        assert codec.split("plain") == [TextNode("plain")]
