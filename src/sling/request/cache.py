"""Single-slot response cache owned by a request definition.

TTL policy (milliseconds):

* ``None`` or ``True`` -- cache for the lifetime of the process;
* ``False`` or ``0`` -- caching disabled;
* ``N > 0`` -- an entry is live while it is younger than ``N`` ms.

The clock is :func:`time.monotonic` unless another one is injected.
Not thread-safe; meant for use from a single event loop.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from sling.core.types import SlingResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CacheEntry:
    response: SlingResponse
    timestamp: float


class ResponseCache:
    """Holds at most one response and expires it by TTL."""

    def __init__(
        self,
        ttl_ms: int | bool | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_ms is not None and not isinstance(ttl_ms, bool) and ttl_ms < 0:
            raise ValueError(f"Cache TTL must not be negative, got {ttl_ms}")
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._entry: CacheEntry | None = None

    @property
    def enabled(self) -> bool:
        return self._ttl_ms is None or self._ttl_ms is True or (
            self._ttl_ms is not False and self._ttl_ms > 0
        )

    @property
    def ttl_ms(self) -> int | bool | None:
        return self._ttl_ms

    def _is_live(self, entry: CacheEntry) -> bool:
        if self._ttl_ms is None or self._ttl_ms is True:
            return True
        age_ms = (self._clock() - entry.timestamp) * 1000
        return age_ms < self._ttl_ms

    def get(self) -> CacheEntry | None:
        """Return the live entry, clearing it first if it has expired."""
        entry = self._entry
        if entry is None:
            logger.debug("Response cache miss")
            return None
        if not self._is_live(entry):
            logger.debug("Response cache entry expired")
            self._entry = None
            return None
        logger.debug("Response cache hit")
        return entry

    def put(self, response: SlingResponse) -> CacheEntry | None:
        """Store *response* unless caching is disabled."""
        if not self.enabled:
            return None
        self._entry = CacheEntry(response, self._clock())
        logger.debug("Stored response with status %d", response.status)
        return self._entry

    def clear(self) -> None:
        self._entry = None

    def __repr__(self) -> str:
        return f"ResponseCache(ttl_ms={self._ttl_ms!r}, filled={self._entry is not None})"
