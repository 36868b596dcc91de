"""Locate the HTTP method in raw template text.

This does not run the full grammar.  Editors and linters use it to find
the method token (for example to place a "send" action) cheaply.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

_WORD = re.compile(r"\S+")


@dataclass(frozen=True, slots=True)
class MethodToken:
    """The method token and its character span in the raw text."""

    value: str
    offset: int
    length: int


@dataclass(frozen=True, slots=True)
class MethodError:
    reason: str


def parse_http_method(template_text: str) -> MethodToken | MethodError:
    """Return the first token after the template's leading newline.

    >>> parse_http_method("\\n  GET https://example.com HTTP/1.1\\n")
    MethodToken(value='GET', offset=3, length=3)
    """
    newline = template_text.find("\n")
    if newline == -1:
        return MethodError("Template must start with a newline")

    match = _WORD.search(template_text, newline + 1)
    if match is None:
        return MethodError("No HTTP method found")
    return MethodToken(match.group(), match.start(), len(match.group()))
