"""sling transports.

* **HttpxTransport** -- the default :class:`~sling.core.interfaces.Transport`
  over ``httpx``.
"""
from __future__ import annotations

from sling.wire.transport import HttpxTransport

__all__ = ["HttpxTransport"]
