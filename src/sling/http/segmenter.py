"""Split a resolved template into logical lines.

The request grammar is line oriented while slots may sit anywhere, so
the template is first turned into a list of lines, each an ordered list
of :class:`TemplatePart` objects.

Rules:

* Literal strings are split on ``\\n``.
* The first non-blank line that starts a *new* line fixes the
  indentation baseline; that much leading whitespace is removed from
  every following new line.  Literal text that directly follows a slot
  on the same line is a continuation and is never dedented, otherwise
  ``https://{host}.com`` would lose adjacency.
* Blank lines before the baseline is known are dropped.
* A slot whose value is ``None`` or ``""`` produces no part.  ``0`` and
  ``False`` are real values and are kept.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sling.core.types import PrimitiveValue
    from sling.masking.mask import Masked
    from sling.template import Template


@dataclass(frozen=True, slots=True)
class Position:
    """Location in the original template text.

    ``line`` is 1-based and ``column`` is 0-based.  Slots are zero-width.
    """

    line: int
    column: int


@dataclass(frozen=True, slots=True)
class TemplatePart:
    value: PrimitiveValue | Masked[Any]
    position: Position

    @property
    def is_literal(self) -> bool:
        """``True`` for string parts, which the grammar may split and inspect."""
        return isinstance(self.value, str)


TemplateLine = list[TemplatePart]


def _leading_whitespace(text: str) -> int:
    return len(text) - len(text.lstrip())


def segment_template(template: Template) -> list[TemplateLine]:
    """Return the logical lines of *template*.

    Raises
    ------
    TypeError
        If the template still holds deferred slots; resolve it with
        :func:`sling.resolve.preview` or :func:`sling.resolve.execute` first.
    """
    lines: list[TemplateLine] = [[]]
    line, column = 1, 0
    indent = -1

    for index, literal in enumerate(template.strings):
        chunks = literal.split("\n")
        for chunk_index, raw in enumerate(chunks):
            if chunk_index > 0:
                line += 1
                column = 0
            is_new_line = index == 0 or chunk_index > 0

            if indent < 0 and is_new_line and raw.strip():
                indent = _leading_whitespace(raw)

            text = raw
            if is_new_line:
                if indent < 0 and not raw.strip():
                    continue
                strip = min(indent, _leading_whitespace(raw)) if indent > 0 else 0
                text = raw[strip:]
                column += strip

            lines[-1].append(TemplatePart(text, Position(line, column)))
            column += len(text)

            if chunk_index < len(chunks) - 1:
                lines.append([])

        if index < len(template.slots):
            slot = template.slots[index]
            if slot.is_deferred:
                raise TypeError("Template contains unresolved deferred slots")
            if slot.value is None or slot.value == "":
                continue
            lines[-1].append(TemplatePart(slot.value, Position(line, column)))

    return lines
