"""Slot resolution for previews and executions.

Both passes walk the same template through :func:`resolve_slot`, which
branches on :attr:`Slot.kind` and hands the value to a
:class:`SlotStrategy`:

* :class:`PreviewStrategy` is synchronous and never performs I/O.
  Deferred slots become a placeholder (``"<deferred>"`` by default).
* :class:`ExecuteStrategy` is asynchronous.  Deferred slots run their
  dependency request; an error returned by the accessor is raised so the
  whole execution fails.

Each slot is resolved at most once per pass, in slot order.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from sling.core.config import DEFAULT_DEFERRED_PLACEHOLDER
from sling.core.errors import SlingError
from sling.core.types import to_slot_value, to_text
from sling.masking.mask import Masked, MaskedAccessor
from sling.template import Slot, SlotKind, Template

if TYPE_CHECKING:
    from sling.core.interfaces import DeferredValue
    from sling.core.types import CancellationSignal

logger = logging.getLogger(__name__)

R = TypeVar("R", covariant=True)


class SlotStrategy(Protocol[R]):
    """Resolves one slot value of each kind."""

    def primitive(self, value: Any) -> R: ...

    def masked(self, value: Masked[Any]) -> R: ...

    def accessor(self, value: DeferredValue) -> R: ...

    def masked_accessor(self, value: MaskedAccessor) -> R: ...


def resolve_slot(slot: Slot, strategy: SlotStrategy[R]) -> R:
    """Dispatch *slot* to the strategy method for its kind."""
    if slot.kind is SlotKind.PRIMITIVE:
        return strategy.primitive(slot.value)
    if slot.kind is SlotKind.MASKED:
        return strategy.masked(slot.value)
    if slot.kind is SlotKind.ACCESSOR:
        return strategy.accessor(slot.value)
    return strategy.masked_accessor(slot.value)


# ---------------------------------------------------------------------------
# Preview
# ---------------------------------------------------------------------------

class PreviewStrategy:
    """Resolve without I/O; deferred values become *placeholder*."""

    def __init__(self, placeholder: str = DEFAULT_DEFERRED_PLACEHOLDER) -> None:
        self.placeholder = placeholder

    def primitive(self, value: Any) -> Any:
        return value

    def masked(self, value: Masked[Any]) -> Masked[Any]:
        return value

    def accessor(self, value: DeferredValue) -> str:
        return self.placeholder

    def masked_accessor(self, value: MaskedAccessor) -> Masked[str]:
        return Masked.wrap(self.placeholder, value.display_text)


def preview(template: Template, placeholder: str = DEFAULT_DEFERRED_PLACEHOLDER) -> Template:
    """Return *template* with every deferred slot replaced by *placeholder*."""
    strategy = PreviewStrategy(placeholder)
    return template.with_values([resolve_slot(slot, strategy) for slot in template.slots])


def render_display_text(
    template: Template, placeholder: str = DEFAULT_DEFERRED_PLACEHOLDER
) -> str:
    """Flatten *template* using display texts only.  Safe to log."""
    resolved = preview(template, placeholder)
    pieces = [resolved.strings[0]]
    for slot, literal in zip(resolved.slots, resolved.strings[1:]):
        value = slot.value
        if isinstance(value, Masked):
            pieces.append(value.display_text)
        elif value is not None:
            pieces.append(to_text(value))
        pieces.append(literal)
    return "".join(pieces)


def assemble(template: Template) -> Template:
    """Merge primitive slot values into the surrounding literal text.

    Only masked slots stay slots, so a newline inside a primitive value
    starts a new line exactly as it does in the display view.  ``None``
    contributes nothing.

    Raises
    ------
    TypeError
        If *template* still holds a deferred slot.
    """
    strings = [template.strings[0]]
    values: list[Masked[Any]] = []
    for slot, literal in zip(template.slots, template.strings[1:]):
        if slot.is_deferred:
            raise TypeError("Deferred slots must be resolved before assembling")
        value = slot.value
        if isinstance(value, Masked):
            values.append(value)
            strings.append(literal)
            continue
        if value is not None:
            strings[-1] += to_text(value)
        strings[-1] += literal
    return Template.of(strings, *values)


# ---------------------------------------------------------------------------
# Execute
# ---------------------------------------------------------------------------

class ExecuteStrategy:
    """Resolve every slot to a primitive or masked primitive."""

    def __init__(self, signal: CancellationSignal | None = None) -> None:
        self.signal = signal

    async def primitive(self, value: Any) -> Any:
        return value

    async def masked(self, value: Masked[Any]) -> Masked[Any]:
        return value

    async def accessor(self, value: DeferredValue) -> Any:
        result = await value.try_value(signal=self.signal)
        if isinstance(result, SlingError):
            raise result
        return to_slot_value(result)

    async def masked_accessor(self, value: MaskedAccessor) -> Masked[Any] | None:
        return await value.resolve(signal=self.signal)


async def execute(template: Template, signal: CancellationSignal | None = None) -> Template:
    """Resolve every slot of *template*, running dependencies as needed.

    Raises
    ------
    HttpError, InvalidJsonPathError
        If a dependency returned an error value.
    RequestCancelled
        If *signal* is cancelled while a dependency is running.
    """
    strategy = ExecuteStrategy(signal)
    values: list[Any] = []
    for slot in template.slots:
        if signal is not None:
            signal.raise_if_cancelled()
        values.append(await resolve_slot(slot, strategy))
    deferred = sum(1 for slot in template.slots if slot.is_deferred)
    logger.debug("Resolved %d slots (%d deferred)", len(values), deferred)
    return template.with_values(values)
