"""sling abstract interfaces and in-memory implementations.

This module defines the *structural* interface (``typing.Protocol``) for
the transport consumed by request definitions, plus a lightweight
in-memory implementation suitable for testing and local development.

In-memory implementations are **not** thread-safe.
"""
from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable, Iterable
from typing import Any, Protocol, runtime_checkable

from sling.core.errors import RequestCancelled, TransportFailure
from sling.core.types import CancellationSignal, ParsedHttpRequest, SlingResponse

# ===================================================================
# Protocol (interface) definitions
# ===================================================================

@runtime_checkable
class Transport(Protocol):
    """Performs the real network call for an execution-view request.

    Implementations MUST omit the body for ``GET`` and ``HEAD`` requests,
    MUST abort the in-flight call when *signal* is cancelled (raising
    :class:`RequestCancelled`), and SHOULD wrap library errors in
    :class:`TransportFailure`.
    """

    async def send(
        self,
        request: ParsedHttpRequest,
        *,
        signal: CancellationSignal | None = None,
    ) -> SlingResponse:
        """Send *request* and return the response."""
        ...


@runtime_checkable
class DeferredValue(Protocol):
    """A slot value that is only known after another request has run.

    :class:`~sling.request.accessor.DataAccessor` is the implementation
    used for request chaining.  Both methods return errors as values.
    """

    async def value(self, *, signal: CancellationSignal | None = None) -> Any:
        """Return the extracted value, or an error instance."""
        ...

    async def try_value(self, *, signal: CancellationSignal | None = None) -> Any:
        """Like :meth:`value`, but path misses yield ``None``."""
        ...


# ===================================================================
# In-memory implementations
# ===================================================================

ResponseFactory = Callable[[ParsedHttpRequest], SlingResponse]


class InMemoryTransport:
    """Scripted transport for testing and development.

    Responses are served from a queue; when the queue holds a single
    entry it is reused for every call.  Every request is recorded in
    :attr:`calls` (execution view, so only use this with test secrets).

    Parameters
    ----------
    responses:
        Responses or callables producing a response from the request.
    delay:
        Seconds to wait before answering, to exercise cancellation and
        concurrency.
    """

    def __init__(
        self,
        responses: Iterable[SlingResponse | ResponseFactory] | None = None,
        *,
        delay: float = 0.0,
    ) -> None:
        self._responses: deque[SlingResponse | ResponseFactory] = deque(responses or [])
        self._delay = delay
        self.calls: list[ParsedHttpRequest] = []

    # -- mutation helpers (not part of the Protocol) --------------------

    def enqueue(self, response: SlingResponse | ResponseFactory) -> None:
        """Append a scripted response (test helper)."""
        self._responses.append(response)

    @property
    def call_count(self) -> int:
        return len(self.calls)

    # -- Protocol implementation ---------------------------------------

    async def send(
        self,
        request: ParsedHttpRequest,
        *,
        signal: CancellationSignal | None = None,
    ) -> SlingResponse:
        """Record *request* and answer with the next scripted response."""
        if signal is not None:
            signal.raise_if_cancelled()
        self.calls.append(request)

        if self._delay:
            await self._sleep(signal)

        if not self._responses:
            raise TransportFailure(
                "No scripted response available",
                details={"method": request.method},
            )
        entry = self._responses[0] if len(self._responses) == 1 else self._responses.popleft()
        return entry(request) if callable(entry) else entry

    async def _sleep(self, signal: CancellationSignal | None) -> None:
        if signal is None:
            await asyncio.sleep(self._delay)
            return
        sleeper = asyncio.ensure_future(asyncio.sleep(self._delay))
        waiter = asyncio.ensure_future(signal.wait())
        done, pending = await asyncio.wait(
            {sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        if waiter in done:
            raise RequestCancelled()
