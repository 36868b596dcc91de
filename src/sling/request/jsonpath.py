"""Minimal JSON path support for data accessors.

Only plain navigation is supported: dot-separated member names and
``[n]`` array indexes, optionally prefixed with ``$``::

    data.users[0].id
    $.items[2]
    [0].name

Wildcards, recursive descent, filters and slices are rejected.
"""
from __future__ import annotations

import re
from typing import Any, Union

from sling.core.errors import InvalidJsonPathError

PathSegment = Union[str, int]

_NAME = r"[^.\[\]\s*?@$()'\"]+"
_PATH_SYNTAX = re.compile(
    rf"(?:{_NAME}|\[\d+\])(?:\.{_NAME}|\[\d+\])*"
)
_SEGMENT = re.compile(rf"({_NAME})|\[(\d+)\]")


def parse_json_path(path: str) -> tuple[PathSegment, ...]:
    """Split *path* into member names (``str``) and array indexes (``int``).

    Raises
    ------
    InvalidJsonPathError
        If *path* is empty or uses unsupported syntax.
    """
    body = path.strip()
    if body.startswith("$"):
        body = body[1:]
        if body.startswith("."):
            body = body[1:]
    if not body:
        raise InvalidJsonPathError(path, "JSON path is empty")
    if not _PATH_SYNTAX.fullmatch(body):
        raise InvalidJsonPathError(path, f"Unsupported JSON path syntax: {path!r}")

    segments: list[PathSegment] = []
    for match in _SEGMENT.finditer(body):
        name, index = match.groups()
        segments.append(name if name is not None else int(index))
    return tuple(segments)


def walk_json_path(data: Any, path: str, segments: tuple[PathSegment, ...]) -> Any:
    """Follow *segments* into *data*.

    Raises
    ------
    InvalidJsonPathError
        If a segment does not exist in the data.
    """
    current = data
    for depth, segment in enumerate(segments):
        if isinstance(segment, int):
            if not isinstance(current, list) or segment >= len(current):
                raise InvalidJsonPathError(
                    path, f"Index [{segment}] not found at segment {depth}"
                )
            current = current[segment]
        else:
            if not isinstance(current, dict) or segment not in current:
                raise InvalidJsonPathError(
                    path, f"Member {segment!r} not found at segment {depth}"
                )
            current = current[segment]
    return current
