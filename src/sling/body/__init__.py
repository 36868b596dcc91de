"""sling request body AST.

* **lex_json** -- finite-state JSONC tokenizer; masked values are atomic
  tokens.
* **parse_json_tokens** -- recursive-descent parser producing a lossless
  tree (trivia included).
* **parse_http_body** -- picks JSON or text handling from the content
  type and falls back to text when the JSON is unbalanced.
"""
from __future__ import annotations

from sling.body.builder import is_json_content_type, media_type, parse_http_body
from sling.body.lexer import LexerState, Token, TokenKind, closes_string, lex_json
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
    JsonPunctuation,
    JsonString,
    JsonUnknown,
    JsonWhitespace,
)
from sling.body.parser import JsonSyntaxError, parse_json_tokens, parse_literal

__all__ = [
    "is_json_content_type",
    "media_type",
    "parse_http_body",
    "LexerState",
    "Token",
    "TokenKind",
    "closes_string",
    "lex_json",
    "JsonArray",
    "JsonAstNode",
    "JsonBoolean",
    "JsonComment",
    "JsonComposite",
    "JsonDocument",
    "JsonMasked",
    "JsonNull",
    "JsonNumber",
    "JsonObject",
    "JsonPunctuation",
    "JsonString",
    "JsonUnknown",
    "JsonWhitespace",
    "JsonSyntaxError",
    "parse_json_tokens",
    "parse_literal",
]
