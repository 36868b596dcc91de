"""Recursive-descent parser turning lexer tokens into the body AST.

Unbalanced input (an unterminated string, array, object or block
comment, or a stray closing bracket) raises :class:`JsonSyntaxError`;
the body builder catches it and falls back to plain text.  Everything
else is tolerated: unknown literals become :class:`JsonUnknown` leaves
and ``undefined`` is read as ``null``.
"""
from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

from sling.body.lexer import Token, TokenKind
from sling.body.nodes import (
    JsonArray,
    JsonAstNode,
    JsonBoolean,
    JsonComment,
    JsonComposite,
    JsonMasked,
    JsonNull,
    JsonNumber,
    JsonObject,
    JsonPunctuation,
    JsonString,
    JsonUnknown,
    JsonWhitespace,
)
from sling.masking.mask import Masked

_NUMBER = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")

MaskRegistrar = Callable[[Masked[Any]], int]


class JsonSyntaxError(ValueError):
    """The token stream is structurally unbalanced."""


def parse_literal(text: str) -> JsonAstNode:
    """Interpret a bare literal token."""
    if text == "true":
        return JsonBoolean(True)
    if text == "false":
        return JsonBoolean(False)
    if text in ("null", "undefined"):
        return JsonNull()
    if _NUMBER.fullmatch(text):
        return JsonNumber(text)
    return JsonUnknown(text)


class JsonParser:
    """Parse a token list.

    Parameters
    ----------
    tokens:
        Output of :func:`sling.body.lexer.lex_json`.
    register:
        Called once per masked token, in source order; returns the
        registry index stored in the masked leaf.
    """

    def __init__(self, tokens: list[Token], register: MaskRegistrar) -> None:
        self._tokens = tokens
        self._cursor = 0
        self._register = register

    def parse(self) -> list[JsonAstNode]:
        nodes: list[JsonAstNode] = []
        while self._peek().kind is not TokenKind.EOF:
            token = self._peek()
            if token.kind in (TokenKind.RBRACE, TokenKind.RBRACKET):
                raise JsonSyntaxError(f"Unexpected {token.value!r}")
            nodes.append(self._parse_node())
        return nodes

    # -- cursor ---------------------------------------------------------

    def _peek(self) -> Token:
        return self._tokens[self._cursor]

    def _advance(self) -> Token:
        token = self._tokens[self._cursor]
        if token.kind is not TokenKind.EOF:
            self._cursor += 1
        return token

    # -- grammar --------------------------------------------------------

    def _parse_node(self) -> JsonAstNode:
        token = self._peek()
        kind = token.kind
        if kind is TokenKind.WHITESPACE:
            self._advance()
            return JsonWhitespace(token.value)
        if kind in (TokenKind.LINE_COMMENT_START, TokenKind.BLOCK_COMMENT_START):
            return self._parse_comment()
        if kind is TokenKind.LBRACE:
            return self._parse_object()
        if kind is TokenKind.LBRACKET:
            return self._parse_array()
        if kind is TokenKind.QUOTE:
            return self._parse_string()
        if kind in (TokenKind.LITERAL, TokenKind.MASKED):
            return self._parse_atom()
        if kind in (TokenKind.COLON, TokenKind.COMMA):
            self._advance()
            return JsonPunctuation(token.value)
        raise JsonSyntaxError(f"Unexpected {token.value!r}")

    def _parse_container(self, closer: TokenKind, name: str) -> list[JsonAstNode]:
        self._advance()
        children: list[JsonAstNode] = []
        while True:
            token = self._peek()
            if token.kind is closer:
                self._advance()
                return children
            if token.kind is TokenKind.EOF:
                raise JsonSyntaxError(f"Unterminated {name}")
            if token.kind in (TokenKind.RBRACE, TokenKind.RBRACKET):
                raise JsonSyntaxError(f"Unexpected {token.value!r} in {name}")
            children.append(self._parse_node())

    def _parse_object(self) -> JsonObject:
        return JsonObject(tuple(self._parse_container(TokenKind.RBRACE, "object")))

    def _parse_array(self) -> JsonArray:
        return JsonArray(tuple(self._parse_container(TokenKind.RBRACKET, "array")))

    def _masked(self, value: Masked[Any]) -> JsonMasked:
        return JsonMasked(self._register(value), value.display_text, value.value_type)

    def _parse_string(self) -> JsonString | JsonComposite:
        self._advance()
        parts: list[JsonString | JsonMasked] = []
        while True:
            token = self._advance()
            if token.kind is TokenKind.QUOTE:
                break
            if token.kind is TokenKind.EOF:
                raise JsonSyntaxError("Unterminated string")
            if token.kind is TokenKind.STRING_CONTENT:
                parts.append(JsonString(token.value))
            elif token.kind is TokenKind.MASKED:
                parts.append(self._masked(token.value))

        if not parts:
            return JsonString("")
        if len(parts) == 1 and isinstance(parts[0], JsonString):
            return parts[0]
        return JsonComposite("string", tuple(parts))

    def _parse_atom(self) -> JsonAstNode:
        # Adjacent literal and masked tokens form one atom, e.g. 1{exponent}.
        fragments: list[str | Masked[Any]] = []
        while self._peek().kind in (TokenKind.LITERAL, TokenKind.MASKED):
            token = self._advance()
            if token.kind is TokenKind.LITERAL and fragments and isinstance(fragments[-1], str):
                fragments[-1] += token.value
            else:
                fragments.append(token.value)

        if len(fragments) == 1:
            only = fragments[0]
            return parse_literal(only) if isinstance(only, str) else self._masked(only)
        return JsonComposite(
            "number",
            tuple(
                JsonNumber(fragment) if isinstance(fragment, str) else self._masked(fragment)
                for fragment in fragments
            ),
        )

    def _parse_comment(self) -> JsonComment:
        start = self._advance()
        variant = "line" if start.kind is TokenKind.LINE_COMMENT_START else "block"
        text = [start.value]
        while self._peek().kind in (TokenKind.COMMENT_BODY, TokenKind.MASKED):
            token = self._advance()
            # Comments never reach the wire, so masked values are not registered.
            text.append(token.value.display_text if token.kind is TokenKind.MASKED else token.value)
        if variant == "block":
            if self._peek().kind is not TokenKind.BLOCK_COMMENT_END:
                raise JsonSyntaxError("Unterminated block comment")
            text.append(self._advance().value)
        return JsonComment(variant, "".join(text))


def parse_json_tokens(tokens: list[Token], register: MaskRegistrar) -> list[JsonAstNode]:
    """Parse *tokens* into top-level body nodes.

    Raises
    ------
    JsonSyntaxError
        If the token stream is unbalanced.
    """
    return JsonParser(tokens, register).parse()
