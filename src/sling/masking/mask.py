"""Masked values -- real values paired with a safe display text.

A :class:`Masked` value stores its real value *obfuscated* (a reversible
XOR over the JSON encoding) so that no default inspection path reveals
it: ``str()``, ``repr()``, ``format()``, ``logging``, pickling and
``json.dumps`` all either show the display text or refuse outright.  The
real value is only recovered through the explicit :meth:`Masked.unmask`
call, which the execute pass performs just before building the
execution-view request.

A :class:`MaskedAccessor` wraps a :class:`~sling.request.accessor.DataAccessor`
whose value is not known until the dependency request has run.

Helpers:

* :func:`mask` -- arbitrary display text.
* :func:`named_mask` -- display text ``{NAME}``.
* :func:`secret` -- constant bullet display, independent of length.
* :func:`sensitive` -- leading characters visible, the rest filled.
"""
from __future__ import annotations

import base64
import json
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic_core import core_schema

from sling.core.errors import SlingError
from sling.core.types import json_type_name, to_slot_value, to_text
from sling.core.interfaces import DeferredValue

if TYPE_CHECKING:
    from pydantic import GetCoreSchemaHandler

    from sling.core.types import CancellationSignal, PrimitiveValue

T = TypeVar("T")

BULLET_MASK = "●●●●●"
"""Display text used by :func:`secret`."""

SENSITIVE_FILL = "*"
DEFAULT_VISIBLE_CHARS = 6

SERIALIZABLE_TAG = "__s"
MASKED_ENVELOPE_TAG = "masked"

_OBFUSCATION_KEY = 0x5F


def _obfuscate(value: Any) -> bytes:
    data = bytearray(json.dumps(value, default=str).encode("utf-8"))
    obfuscated = bytes(byte ^ _OBFUSCATION_KEY for byte in data)
    data[:] = bytes(len(data))
    return obfuscated


def _reveal(obfuscated: bytes) -> Any:
    return json.loads(bytes(byte ^ _OBFUSCATION_KEY for byte in obfuscated).decode("utf-8"))


# ---------------------------------------------------------------------------
# Masked -- primitive values
# ---------------------------------------------------------------------------

class Masked(Generic[T]):
    """A value that is displayed as :attr:`display_text` everywhere.

    Create instances with :func:`mask`, :func:`secret`, :func:`sensitive`
    or :func:`named_mask` rather than calling the constructor.
    """

    __slots__ = ("_display", "_inspect", "_data", "_value_type")

    def __init__(
        self,
        display_text: str,
        obfuscated: bytes,
        *,
        value_type: str,
        inspect_text: str | None = None,
    ) -> None:
        self._display = display_text
        self._inspect = inspect_text or f"[Masked] {display_text}"
        self._data = obfuscated
        self._value_type = value_type

    @classmethod
    def wrap(
        cls,
        value: T,
        display_text: str,
        inspect_text: str | None = None,
    ) -> Masked[T]:
        """Obfuscate *value* and pair it with *display_text*."""
        return cls(
            display_text,
            _obfuscate(value),
            value_type=json_type_name(value),
            inspect_text=inspect_text,
        )

    @property
    def display_text(self) -> str:
        """The text shown in place of the real value."""
        return self._display

    @property
    def inspect_text(self) -> str:
        """The text shown by ``repr()`` and debuggers."""
        return self._inspect

    @property
    def value_type(self) -> str:
        """JSON type name of the real value, known without unmasking."""
        return self._value_type

    def unmask(self) -> T:
        """Explicitly reveal the real value.  Use with caution."""
        return _reveal(self._data)

    # -- persistence ----------------------------------------------------

    def to_envelope(self) -> dict[str, str]:
        """Return the tagged envelope used to persist this value.

        The real value only appears obfuscated and base64-encoded.
        """
        return {
            SERIALIZABLE_TAG: MASKED_ENVELOPE_TAG,
            "display": self._display,
            "type": self._value_type,
            "data": base64.b64encode(self._data).decode("ascii"),
            "fallback": self._inspect,
        }

    @classmethod
    def from_envelope(cls, envelope: dict[str, Any]) -> Masked[Any]:
        """Rebuild a functioning :class:`Masked` from :meth:`to_envelope` output.

        Raises
        ------
        ValueError
            If *envelope* is not a masked-value envelope.
        """
        if not is_tagged_envelope(envelope, MASKED_ENVELOPE_TAG):
            raise ValueError("Not a masked value envelope")
        return cls(
            str(envelope["display"]),
            base64.b64decode(envelope["data"]),
            value_type=str(envelope.get("type", "string")),
            inspect_text=envelope.get("fallback"),
        )

    # -- redaction ------------------------------------------------------

    def __str__(self) -> str:
        return self._display

    def __repr__(self) -> str:
        return self._inspect

    def __format__(self, format_spec: str) -> str:
        return format(self._display, format_spec)

    def __reduce__(self) -> Any:
        raise TypeError("Masked values cannot be pickled; use to_envelope() instead")

    def __copy__(self) -> Masked[T]:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> Masked[T]:
        return self

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.is_instance_schema(
            cls,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda value: value.display_text
            ),
        )


# ---------------------------------------------------------------------------
# MaskedAccessor -- deferred values
# ---------------------------------------------------------------------------

class MaskedAccessor:
    """A data accessor whose extracted value is masked once resolved."""

    __slots__ = ("_accessor", "_display", "_inspect")

    def __init__(
        self,
        accessor: DeferredValue,
        display_text: str,
        inspect_text: str | None = None,
    ) -> None:
        self._accessor = accessor
        self._display = display_text
        self._inspect = inspect_text or f"[Masked DataAccessor] {display_text}"

    @property
    def display_text(self) -> str:
        return self._display

    @property
    def accessor(self) -> DeferredValue:
        return self._accessor

    async def unmask(self, *, signal: CancellationSignal | None = None) -> Any:
        """Run the dependency and return its value or error-as-value."""
        return await self._accessor.value(signal=signal)

    async def resolve(
        self, *, signal: CancellationSignal | None = None
    ) -> Masked[PrimitiveValue] | None:
        """Resolve to a :class:`Masked` primitive carrying the same display text.

        Raises
        ------
        HttpError, InvalidJsonPathError
            When the dependency returned an error value.
        """
        result = await self.unmask(signal=signal)
        if isinstance(result, SlingError):
            raise result
        slot_value = to_slot_value(result)
        if slot_value is None:
            return None
        return Masked.wrap(slot_value, self._display, self._inspect)

    def __str__(self) -> str:
        return self._display

    def __repr__(self) -> str:
        return self._inspect


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def create_mask(
    value: Any,
    display_text: str,
    inspect_text: str | None = None,
) -> Masked[Any] | MaskedAccessor:
    """Mask *value*, dispatching on whether it is a deferred accessor.

    Mask creation is total: any JSON-encodable value is accepted, other
    objects are stored by their ``str()``.
    """
    if isinstance(value, DeferredValue):
        return MaskedAccessor(value, display_text, inspect_text)
    return Masked.wrap(value, display_text, inspect_text)


def mask(value: Any, display_text: str) -> Masked[Any] | MaskedAccessor:
    """Mask *value*; it will be displayed as *display_text*."""
    return create_mask(value, display_text)


def named_mask(name: str, value: Any) -> Masked[Any] | MaskedAccessor:
    """Mask *value* under a name; it will be displayed as ``{name}``.

    Example::

        token = named_mask("TOKEN", os.environ["TOKEN"])
    """
    inspect = f"[{name}]"
    if isinstance(value, DeferredValue):
        return MaskedAccessor(value, f"{{{name}}}", f"[Masked DataAccessor] {inspect}")
    return Masked.wrap(value, f"{{{name}}}", inspect)


def secret(value: Any) -> Masked[Any] | MaskedAccessor:
    """Mark a value as secret.  It is displayed as ``●●●●●``.

    The display text does not depend on the value, so not even its
    length is revealed.
    """
    return create_mask(value, BULLET_MASK)


def sensitive(value: PrimitiveValue, visible_chars: int = DEFAULT_VISIBLE_CHARS) -> Masked[Any]:
    """Mark a value as sensitive: the first characters stay visible.

    The remaining characters are replaced by ``*``, so the length of the
    value is visible on purpose::

        sensitive("marvin@example.com", 3).display_text
        # 'mar***************'

    At least one character is always filled, so the display text never
    equals the real value.  An empty value is shown as a single ``*``.
    """
    text = to_text(value)
    visible = max(0, min(visible_chars, len(text) - 1))
    display = text[:visible] + SENSITIVE_FILL * max(1, len(text) - visible)
    return Masked.wrap(value, display)


def is_tagged_envelope(value: object, tag: str) -> bool:
    """Return ``True`` if *value* is a serialized envelope tagged *tag*."""
    return isinstance(value, dict) and value.get(SERIALIZABLE_TAG) == tag
