"""Tokenizer for JSON bodies with comments (JSONC).

The lexer is a finite-state machine with four named states.  Mode
changes are driven by :data:`TRANSITIONS`, keyed by ``(state, trigger)``:

=============  =========  =============  ======================
state          trigger    next state     emitted token
=============  =========  =============  ======================
STRUCTURE      ``"``      STRING         QUOTE
STRUCTURE      ``//``     LINE_COMMENT   LINE_COMMENT_START
STRUCTURE      ``/*``     BLOCK_COMMENT  BLOCK_COMMENT_START
STRING         ``"``      STRUCTURE      QUOTE (if unescaped)
LINE_COMMENT   ``\\n``     STRUCTURE      (none, newline kept)
BLOCK_COMMENT  ``*/``     STRUCTURE      BLOCK_COMMENT_END
=============  =========  =============  ======================

A masked part is always emitted as a single MASKED token, whatever the
current state, and leaves the state unchanged.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sling.core.types import to_text
from sling.masking.mask import Masked

if TYPE_CHECKING:
    from collections.abc import Iterable


class LexerState(enum.StrEnum):
    STRUCTURE = "structure"
    STRING = "string"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"


class TokenKind(enum.StrEnum):
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    COLON = ":"
    COMMA = ","
    QUOTE = '"'
    LINE_COMMENT_START = "//"
    BLOCK_COMMENT_START = "/*"
    BLOCK_COMMENT_END = "*/"
    WHITESPACE = "whitespace"
    LITERAL = "literal"
    STRING_CONTENT = "string_content"
    COMMENT_BODY = "comment_body"
    MASKED = "masked"
    EOF = "eof"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    value: Any = None


TRANSITIONS: dict[tuple[LexerState, str], tuple[LexerState, TokenKind | None]] = {
    (LexerState.STRUCTURE, '"'): (LexerState.STRING, TokenKind.QUOTE),
    (LexerState.STRUCTURE, "//"): (LexerState.LINE_COMMENT, TokenKind.LINE_COMMENT_START),
    (LexerState.STRUCTURE, "/*"): (LexerState.BLOCK_COMMENT, TokenKind.BLOCK_COMMENT_START),
    (LexerState.STRING, '"'): (LexerState.STRUCTURE, TokenKind.QUOTE),
    (LexerState.LINE_COMMENT, "\n"): (LexerState.STRUCTURE, None),
    (LexerState.BLOCK_COMMENT, "*/"): (LexerState.STRUCTURE, TokenKind.BLOCK_COMMENT_END),
}

_TRIGGERS: dict[LexerState, tuple[str, ...]] = {
    state: tuple(
        sorted((trigger for (s, trigger) in TRANSITIONS if s is state), key=len, reverse=True)
    )
    for state in LexerState
}

_PUNCTUATION = {
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    ":": TokenKind.COLON,
    ",": TokenKind.COMMA,
}

_CONTENT_KIND = {
    LexerState.STRING: TokenKind.STRING_CONTENT,
    LexerState.LINE_COMMENT: TokenKind.COMMENT_BODY,
    LexerState.BLOCK_COMMENT: TokenKind.COMMENT_BODY,
}


def closes_string(backslash_run: int) -> bool:
    """Return ``True`` if a quote preceded by *backslash_run* backslashes ends a string.

    Each pair of backslashes is an escaped backslash, so only an even run
    leaves the quote unescaped.
    """
    return backslash_run % 2 == 0


def _is_literal_end(text: str, index: int) -> bool:
    char = text[index]
    return (
        char.isspace()
        or char in _PUNCTUATION
        or char == '"'
        or text.startswith("//", index)
        or text.startswith("/*", index)
    )


class JsonLexer:
    """Incremental lexer fed with text and masked parts."""

    def __init__(self) -> None:
        self.state = LexerState.STRUCTURE
        self.tokens: list[Token] = []
        self._buffer: list[str] = []
        self._backslashes = 0

    def feed(self, part: Any) -> None:
        if isinstance(part, Masked):
            self._flush()
            self._backslashes = 0
            self.tokens.append(Token(TokenKind.MASKED, part))
            return
        self._scan(to_text(part))

    def finish(self) -> list[Token]:
        self._flush()
        self.tokens.append(Token(TokenKind.EOF))
        return self.tokens

    # -- internals ------------------------------------------------------

    def _flush(self) -> None:
        if self._buffer:
            self.tokens.append(Token(_CONTENT_KIND[self.state], "".join(self._buffer)))
            self._buffer.clear()

    def _transition_at(
        self, text: str, index: int
    ) -> tuple[str, tuple[LexerState, TokenKind | None]] | None:
        for trigger in _TRIGGERS[self.state]:
            if not text.startswith(trigger, index):
                continue
            if self.state is LexerState.STRING and not closes_string(self._backslashes):
                continue
            return trigger, TRANSITIONS[(self.state, trigger)]
        return None

    def _scan(self, text: str) -> None:
        index = 0
        while index < len(text):
            transition = self._transition_at(text, index)
            if transition is not None:
                trigger, (next_state, kind) = transition
                self._flush()
                if kind is not None:
                    self.tokens.append(Token(kind, trigger))
                    index += len(trigger)
                self.state = next_state
                self._backslashes = 0
                continue

            if self.state is LexerState.STRUCTURE:
                index = self._scan_structure(text, index)
                continue

            char = text[index]
            if self.state is LexerState.STRING:
                self._backslashes = self._backslashes + 1 if char == "\\" else 0
            self._buffer.append(char)
            index += 1

    def _scan_structure(self, text: str, index: int) -> int:
        char = text[index]
        if char.isspace():
            end = index
            while end < len(text) and text[end].isspace():
                end += 1
            self.tokens.append(Token(TokenKind.WHITESPACE, text[index:end]))
            return end
        if char in _PUNCTUATION:
            self.tokens.append(Token(_PUNCTUATION[char], char))
            return index + 1
        end = index + 1
        while end < len(text) and not _is_literal_end(text, end):
            end += 1
        self.tokens.append(Token(TokenKind.LITERAL, text[index:end]))
        return end


def lex_json(parts: Iterable[Any]) -> list[Token]:
    """Tokenize *parts* (text fragments and masked values)."""
    lexer = JsonLexer()
    for part in parts:
        lexer.feed(part)
    return lexer.finish()
