"""sling shared value types.

Key design decisions:

* ``PrimitiveValue`` is the closed set of scalar values a slot may hold.
  :func:`to_text` renders them the way an HTTP/JSON author expects
  (``true``/``false`` for booleans, integral floats without ``.0``).
* :class:`ParsedHttpRequest` is the *execution view*.  It carries real
  secret values, so its header values and body are excluded from
  ``repr()``.
* :class:`CancellationSignal` is a plain class (not Pydantic) wrapping an
  :class:`asyncio.Event`; it is threaded from the caller through slot
  resolution down to the transport.
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

from sling.core.errors import RequestCancelled

# ---------------------------------------------------------------------------
# Primitive values
# ---------------------------------------------------------------------------

PrimitiveValue = Union[str, int, float, bool]
"""Scalar values accepted by template slots."""

PRIMITIVE_TYPES: tuple[type, ...] = (str, int, float, bool)


def is_primitive(value: object) -> bool:
    """Return ``True`` if *value* is a :data:`PrimitiveValue`."""
    return isinstance(value, PRIMITIVE_TYPES)


def to_text(value: PrimitiveValue) -> str:
    """Render a primitive as HTTP/JSON source text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def json_type_name(value: object) -> str:
    """Return the JSON type name of *value* (``"string"``, ``"number"``, ...)."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    return "object"


def to_slot_value(value: Any) -> PrimitiveValue | None:
    """Coerce an extracted JSON value into something a slot can hold.

    Primitives pass through, ``None`` stays ``None`` (the slot is elided)
    and arrays/objects are JSON-encoded.
    """
    if value is None or is_primitive(value):
        return value
    return json.dumps(value, separators=(",", ":"))


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------

class CancellationSignal:
    """Caller-owned cancellation flag for one or more executions.

    Usage::

        signal = CancellationSignal()
        task = asyncio.create_task(definition.execute(ExecuteOptions(signal=signal)))
        signal.cancel("user pressed escape")
    """

    __slots__ = ("_event", "_reason")

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        """Return ``True`` once :meth:`cancel` has been called."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Request cancellation.  Idempotent; the first reason wins."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    async def wait(self) -> None:
        """Block until cancellation is requested."""
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        """Raise :class:`RequestCancelled` if cancellation was requested."""
        if self._event.is_set():
            raise RequestCancelled(
                f"Request execution was cancelled: {self._reason}"
                if self._reason
                else None
            )

    def __repr__(self) -> str:
        return f"CancellationSignal(cancelled={self.cancelled})"


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------

class ParsedHttpRequest(BaseModel):
    """Execution view of a request: every slot resolved to its real value.

    Instances exist only while a request is being executed.  Header values
    and the body are hidden from ``repr()`` because they may contain
    unmasked secrets.
    """

    model_config = ConfigDict(strict=True, frozen=True)

    method: str
    url: str = Field(repr=False)
    http_version: str = "1.1"
    headers: dict[str, str] = Field(default_factory=dict, repr=False)
    body: str | None = Field(default=None, repr=False)

    @property
    def sends_body(self) -> bool:
        """``True`` when the body should be attached to the transport call."""
        return self.body is not None and self.method not in ("GET", "HEAD")


class SlingResponse(BaseModel):
    """The response of an executed request definition."""

    model_config = ConfigDict(strict=True, frozen=True)

    status: int
    status_text: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    body: str = ""
    duration_ms: float = Field(default=0.0, ge=0.0)

    @property
    def ok(self) -> bool:
        """``True`` for 2xx status codes."""
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str | None:
        for name, value in self.headers.items():
            if name.lower() == "content-type":
                return value
        return None

    def json(self) -> Any:
        """Parse the body as JSON.

        Raises
        ------
        json.JSONDecodeError
            If the body is not valid JSON.
        """
        return json.loads(self.body)


class ExecuteOptions(BaseModel):
    """Options accepted by :meth:`RequestDefinition.execute`."""

    model_config = ConfigDict(strict=True, frozen=True, arbitrary_types_allowed=True)

    read_cache: bool = Field(
        default=True,
        description="Return a live cached response instead of performing I/O.",
    )
    signal: CancellationSignal | None = Field(
        default=None,
        description="Cancellation signal threaded through resolution and transport.",
    )
    verbose: bool = Field(
        default=False,
        description="Log the redacted request and the response status at INFO level.",
    )
