"""Request templates: literal fragments interleaved with typed slots.

A :class:`Template` is immutable.  It holds ``n + 1`` literal strings and
``n`` :class:`Slot` objects; slot *i* sits between ``strings[i]`` and
``strings[i + 1]``.  Each slot is classified exactly once, when the
template is built, so downstream code branches on :attr:`Slot.kind`.

Templates are authored in one of two ways::

    Template.of(["\\nGET https://", "/users HTTP/1.1\\n"], host)

    Template.format(
        '''
        GET https://{host}/users HTTP/1.1
        Authorization: Bearer {token}
        ''',
        host="api.example.com",
        token=secret(token),
    )
"""
from __future__ import annotations

import enum
import string
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from sling.core.interfaces import DeferredValue
from sling.core.types import is_primitive
from sling.masking.mask import Masked, MaskedAccessor


class SlotKind(enum.StrEnum):
    """The closed set of values a slot can hold."""

    PRIMITIVE = "primitive"
    MASKED = "masked"
    ACCESSOR = "accessor"
    MASKED_ACCESSOR = "masked_accessor"


@dataclass(frozen=True, slots=True)
class Slot:
    """A classified interpolation value."""

    kind: SlotKind
    value: Any

    @classmethod
    def classify(cls, value: Any) -> Slot:
        """Wrap *value* in a slot of the matching kind.

        Raises
        ------
        TypeError
            If *value* is not a primitive, ``None``, a masked value or a
            deferred accessor.
        """
        if isinstance(value, Slot):
            return value
        if isinstance(value, Masked):
            return cls(SlotKind.MASKED, value)
        if isinstance(value, MaskedAccessor):
            return cls(SlotKind.MASKED_ACCESSOR, value)
        if value is None or is_primitive(value):
            return cls(SlotKind.PRIMITIVE, value)
        if isinstance(value, DeferredValue):
            return cls(SlotKind.ACCESSOR, value)
        raise TypeError(
            f"Unsupported template value of type {type(value).__name__}; "
            "expected str, int, float, bool, None, a masked value or a data accessor"
        )

    @property
    def is_deferred(self) -> bool:
        """``True`` when resolving the slot requires running another request."""
        return self.kind in (SlotKind.ACCESSOR, SlotKind.MASKED_ACCESSOR)

    def __repr__(self) -> str:
        # Masked values redact themselves; primitives are shown by type only.
        if self.kind is SlotKind.PRIMITIVE:
            return f"Slot({self.kind.value}, {type(self.value).__name__})"
        return f"Slot({self.kind.value}, {self.value!r})"


class Template:
    """Immutable sequence of literal strings and slots."""

    __slots__ = ("_strings", "_slots")

    def __init__(self, strings: Sequence[str], slots: Sequence[Slot]) -> None:
        if len(strings) != len(slots) + 1:
            raise ValueError(
                f"A template with {len(slots)} slots needs {len(slots) + 1} strings, "
                f"got {len(strings)}"
            )
        self._strings: tuple[str, ...] = tuple(strings)
        self._slots: tuple[Slot, ...] = tuple(slots)

    # -- construction ---------------------------------------------------

    @classmethod
    def of(cls, strings: Sequence[str], *values: Any) -> Template:
        """Build a template from explicit literal strings and slot values."""
        return cls(strings, [Slot.classify(value) for value in values])

    @classmethod
    def format(cls, text: str, /, **values: Any) -> Template:
        """Build a template from ``str.format`` style text with named fields.

        ``{{`` and ``}}`` produce literal braces, which JSON bodies need.
        Format specs and conversions are not supported because the slot
        value is not rendered here.

        Raises
        ------
        KeyError
            If a field has no matching keyword argument.
        ValueError
            If a field is positional or carries a format spec or conversion.
        """
        strings: list[str] = [""]
        slots: list[Slot] = []
        for literal, field_name, format_spec, conversion in string.Formatter().parse(text):
            strings[-1] += literal
            if field_name is None:
                continue
            if not field_name or field_name.isdigit():
                raise ValueError("Template fields must be named, e.g. {token}")
            if format_spec or conversion:
                raise ValueError(f"Field {{{field_name}}} must not use a format spec or conversion")
            if field_name not in values:
                raise KeyError(field_name)
            slots.append(Slot.classify(values[field_name]))
            strings.append("")
        return cls(strings, slots)

    # -- accessors ------------------------------------------------------

    @property
    def strings(self) -> tuple[str, ...]:
        return self._strings

    @property
    def slots(self) -> tuple[Slot, ...]:
        return self._slots

    @property
    def values(self) -> tuple[Any, ...]:
        return tuple(slot.value for slot in self._slots)

    @property
    def masked_values(self) -> list[Masked[Any]]:
        """Masked slot values in slot order."""
        return [slot.value for slot in self._slots if slot.kind is SlotKind.MASKED]

    @property
    def has_deferred(self) -> bool:
        return any(slot.is_deferred for slot in self._slots)

    def with_values(self, values: Sequence[Any]) -> Template:
        """Return a copy with every slot replaced by the given values."""
        if len(values) != len(self._slots):
            raise ValueError(f"Expected {len(self._slots)} values, got {len(values)}")
        return Template.of(self._strings, *values)

    def __len__(self) -> int:
        return len(self._slots)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Template):
            return NotImplemented
        return self._strings == other._strings and self._slots == other._slots

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Template(strings={len(self._strings)}, slots={list(self._slots)!r})"
