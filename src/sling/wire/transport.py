"""Default HTTP transport backed by ``httpx``.

* **HttpxTransport** -- sends an execution-view request with
  :class:`httpx.AsyncClient`, races it against the caller's cancellation
  signal and wraps ``httpx`` failures in
  :class:`~sling.core.errors.TransportFailure`.

Error messages name the failing exception type only; ``httpx`` messages
can contain the request URL, which may hold revealed secrets.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

import httpx

from sling.core.config import SlingConfig
from sling.core.errors import RequestCancelled, TransportFailure
from sling.core.types import SlingResponse

if TYPE_CHECKING:
    from sling.core.types import CancellationSignal, ParsedHttpRequest

logger = logging.getLogger(__name__)


class HttpxTransport:
    """Transport implementation over :class:`httpx.AsyncClient`.

    Parameters
    ----------
    config:
        Timeout, redirect and TLS settings.  Defaults to ``SlingConfig()``.
    client:
        A shared client owned by the caller.  When omitted, a client is
        created for each request.
    transport:
        Low-level ``httpx`` transport for per-request clients, e.g.
        :class:`httpx.MockTransport` in tests.
    """

    def __init__(
        self,
        config: SlingConfig | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or SlingConfig()
        self._client = client
        self._transport = transport

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._config.timeout_seconds,
            follow_redirects=self._config.follow_redirects,
            verify=self._config.verify_tls,
            transport=self._transport,
        )

    async def _request(self, request: ParsedHttpRequest) -> httpx.Response:
        content = request.body if request.sends_body else None
        if self._client is not None:
            return await self._client.request(
                request.method, request.url, headers=request.headers, content=content
            )
        async with self._new_client() as client:
            return await client.request(
                request.method, request.url, headers=request.headers, content=content
            )

    async def send(
        self,
        request: ParsedHttpRequest,
        *,
        signal: CancellationSignal | None = None,
    ) -> SlingResponse:
        """Send *request*.

        Raises
        ------
        RequestCancelled
            If *signal* fires before the response arrives.
        TransportFailure
            If ``httpx`` raised an error.
        """
        if signal is not None:
            signal.raise_if_cancelled()

        started = time.perf_counter()
        try:
            if signal is None:
                response = await self._request(request)
            else:
                response = await self._race(request, signal)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.debug("%s request failed with %s", request.method, type(exc).__name__)
            raise TransportFailure(
                f"{type(exc).__name__} while sending {request.method} request",
                details={"method": request.method, "error": type(exc).__name__},
            ) from exc
        duration_ms = (time.perf_counter() - started) * 1000

        return SlingResponse(
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=dict(response.headers),
            body=response.text,
            duration_ms=duration_ms,
        )

    async def _race(
        self, request: ParsedHttpRequest, signal: CancellationSignal
    ) -> httpx.Response:
        sender = asyncio.ensure_future(self._request(request))
        waiter = asyncio.ensure_future(signal.wait())
        done, pending = await asyncio.wait(
            {sender, waiter}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        if sender in done:
            return sender.result()
        raise RequestCancelled(
            f"Request execution was cancelled: {signal.reason}" if signal.reason else None
        )
