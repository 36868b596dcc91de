"""Tests for the JSON/JSONC body AST.

1. **Lexer** -- state transitions, escapes, masked tokens.
2. **Parser** -- leaves, composites, trivia, unbalanced input.
3. **Builder** -- content-type routing, text fallback, mask registration.
"""
from __future__ import annotations

import pytest

from sling.body import (
    JsonArray,
    JsonBoolean,
    JsonComment,
    JsonComposite,
    JsonDocument,
    JsonMasked,
    JsonNull,
    JsonNumber,
    JsonObject,
    JsonString,
    JsonSyntaxError,
    JsonUnknown,
    TokenKind,
    closes_string,
    is_json_content_type,
    lex_json,
    parse_http_body,
    parse_json_tokens,
    parse_literal,
)
from sling.http import MaskedNode, Metadata, TextNode, ValuesNode, body_text
from sling.http.render import json_text
from sling.masking import mask, secret


def _parse(*parts: object) -> list:
    metadata = Metadata()
    return parse_json_tokens(lex_json(parts), metadata.append_masked_value)


def _json_metadata() -> Metadata:
    metadata = Metadata()
    metadata.content_type = "application/json"
    return metadata


# ---------------------------------------------------------------------------
# Lexer
# ---------------------------------------------------------------------------

class TestLexer:
    def test_structure_tokens(self) -> None:
        kinds = [token.kind for token in lex_json(['{"a": [1, true]}'])]
        assert kinds == [
            TokenKind.LBRACE,
            TokenKind.QUOTE,
            TokenKind.STRING_CONTENT,
            TokenKind.QUOTE,
            TokenKind.COLON,
            TokenKind.WHITESPACE,
            TokenKind.LBRACKET,
            TokenKind.LITERAL,
            TokenKind.COMMA,
            TokenKind.WHITESPACE,
            TokenKind.LITERAL,
            TokenKind.RBRACKET,
            TokenKind.RBRACE,
            TokenKind.EOF,
        ]

    def test_escaped_quote_stays_in_string(self) -> None:
        tokens = lex_json(['"a\\"b"'])
        assert [token.value for token in tokens if token.kind is TokenKind.STRING_CONTENT] == [
            'a\\"b'
        ]

    def test_escaped_backslash_closes_string(self) -> None:
        tokens = lex_json(['"a\\\\"x'])
        assert tokens[1].value == "a\\\\"
        assert tokens[2].kind is TokenKind.QUOTE
        assert tokens[3].kind is TokenKind.LITERAL

    @pytest.mark.parametrize(("run", "closes"), [(0, True), (1, False), (2, True), (3, False)])
    def test_closes_string(self, run: int, closes: bool) -> None:
        assert closes_string(run) is closes

    def test_comment_delimiters_in_string_are_text(self) -> None:
        kinds = [token.kind for token in lex_json(['"http://x/*y*/"'])]
        assert kinds == [
            TokenKind.QUOTE,
            TokenKind.STRING_CONTENT,
            TokenKind.QUOTE,
            TokenKind.EOF,
        ]

    def test_masked_part_is_atomic(self) -> None:
        token = secret('a"b')
        tokens = lex_json(['"', token, '"'])
        assert [t.kind for t in tokens] == [
            TokenKind.QUOTE,
            TokenKind.MASKED,
            TokenKind.QUOTE,
            TokenKind.EOF,
        ]
        assert tokens[1].value is token

    def test_line_comment_ends_at_newline(self) -> None:
        kinds = [token.kind for token in lex_json(["// note\n1"])]
        assert kinds == [
            TokenKind.LINE_COMMENT_START,
            TokenKind.COMMENT_BODY,
            TokenKind.WHITESPACE,
            TokenKind.LITERAL,
            TokenKind.EOF,
        ]


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class TestParser:
    @pytest.mark.parametrize(
        ("text", "node"),
        [
            ("true", JsonBoolean(True)),
            ("false", JsonBoolean(False)),
            ("null", JsonNull()),
            ("undefined", JsonNull()),
            ("-1.5e3", JsonNumber("-1.5e3")),
            ("0", JsonNumber("0")),
            ("01", JsonUnknown("01")),
            ("NaN", JsonUnknown("NaN")),
        ],
    )
    def test_literals(self, text: str, node: object) -> None:
        assert parse_literal(text) == node

    def test_number_value(self) -> None:
        assert JsonNumber("1e3").value == 1000.0

    def test_object_entries(self) -> None:
        (node,) = _parse('{"a": 1, "b": [true, null]}')
        assert isinstance(node, JsonObject)
        entries = list(node.entries())
        assert entries[0] == (JsonString("a"), JsonNumber("1"))
        key, value = entries[1]
        assert key == JsonString("b")
        assert isinstance(value, JsonArray)
        assert value.values() == [JsonBoolean(True), JsonNull()]

    def test_masked_string_value(self) -> None:
        (node,) = _parse('{"token": "', secret("abc"), '"}')
        (_, value) = next(node.entries())
        assert value == JsonComposite("string", (JsonMasked(0, "●●●●●", "string"),))

    def test_masked_inside_string(self) -> None:
        (node,) = _parse('"Bearer ', secret("abc"), '"')
        assert node == JsonComposite(
            "string", (JsonString("Bearer "), JsonMasked(0, "●●●●●", "string"))
        )

    def test_masked_number(self) -> None:
        (node,) = _parse("[", mask(42, "<n>"), "]")
        assert node.values() == [JsonMasked(0, "<n>", "number")]

    def test_composite_number(self) -> None:
        (node,) = _parse("1", mask(3, "<exp>"))
        assert node == JsonComposite("number", (JsonNumber("1"), JsonMasked(0, "<exp>", "number")))

    def test_comments_kept_as_trivia(self) -> None:
        nodes = _parse("/* head */ 1 // tail")
        assert nodes[0] == JsonComment("block", "/* head */")
        assert nodes[-1] == JsonComment("line", "// tail")

    def test_masked_in_comment_shows_display_text(self) -> None:
        metadata = Metadata()
        nodes = parse_json_tokens(
            lex_json(["// token ", secret("abc"), "\n1"]), metadata.append_masked_value
        )
        assert nodes[0] == JsonComment("line", "// token ●●●●●")
        assert metadata.masked_values == []

    @pytest.mark.parametrize(
        "text",
        ['{"a": 1', "[1, 2", '"open', "/* open", "]", '{"a": [1}'],
    )
    def test_unbalanced_input(self, text: str) -> None:
        with pytest.raises(JsonSyntaxError):
            _parse(text)

    def test_lossless_render(self) -> None:
        source = '{\n  // comment\n  "a": [1, 2.50, "x"],\n  "b": null\n}'
        document = JsonDocument(tuple(_parse(source)))
        metadata = Metadata()
        assert json_text(document, metadata, reveal=False) == source
        assert "// comment" not in json_text(
            document, metadata, reveal=False, strip_comments=True
        )


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

class TestBuilder:
    @pytest.mark.parametrize(
        ("content_type", "expected"),
        [
            ("application/json", True),
            ("application/json; charset=utf-8", True),
            ("Application/JSON", True),
            ("application/vnd.api+json", True),
            ("text/plain", False),
            (None, False),
        ],
    )
    def test_is_json_content_type(self, content_type: str | None, expected: bool) -> None:
        assert is_json_content_type(content_type) is expected

    def test_empty_body(self) -> None:
        assert parse_http_body(Metadata(), ["", ""]) is None

    def test_json_body(self) -> None:
        metadata = _json_metadata()
        token = secret("abc")
        body = parse_http_body(metadata, ['{"t": "', token, '"}'])
        assert body.content_type == "application/json"
        assert isinstance(body.value, JsonDocument)
        assert metadata.masked_values == [token]
        assert body_text(body, metadata, reveal=True) == '{"t": "abc"}'
        assert body_text(body, metadata, reveal=False) == '{"t": "●●●●●"}'

    def test_unbalanced_json_falls_back_to_text(self) -> None:
        metadata = _json_metadata()
        token = secret("abc")
        body = parse_http_body(metadata, ['{"t": ', token])
        assert body.value == ValuesNode((TextNode('{"t": '), MaskedNode(0, "●●●●●")))
        assert metadata.masked_values == [token]

    def test_text_content_type_not_parsed(self) -> None:
        metadata = Metadata()
        metadata.content_type = "text/plain"
        body = parse_http_body(metadata, ['{"a": 1}'])
        assert body.value == TextNode('{"a": 1}')

    def test_registration_continues_after_header_masks(self) -> None:
        metadata = _json_metadata()
        metadata.append_masked_value(secret("header"))
        body = parse_http_body(metadata, ["[", mask(1, "<n>"), "]"])
        (array,) = body.value.value
        assert array.values() == [JsonMasked(1, "<n>", "number")]
        assert len(metadata.masked_values) == 2
