"""Request definitions: a template bound to a transport and a cache.

A :class:`RequestDefinition` is what authors hold on to.  It can be
previewed and displayed without I/O, executed, and used as the source of
:class:`~sling.request.accessor.DataAccessor` slots in other templates.

Execution pipeline::

    cache read -> resolve slots -> assemble -> parse -> build request -> transport -> cache write

Logging only ever uses the display view.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Iterable

from sling.core.config import SlingConfig
from sling.core.interfaces import Transport
from sling.core.types import ExecuteOptions, SlingResponse
from sling.display import DisplayRequest, parse_template_display
from sling.http.nodes import HttpDocument, Metadata
from sling.http.parser import parse_http_request
from sling.http.render import render_document
from sling.request.accessor import DataAccessor
from sling.request.builder import build_request
from sling.request.cache import ResponseCache
from sling.resolve import assemble, execute, preview
from sling.template import Template

logger = logging.getLogger(__name__)


class RequestDefinition:
    """An executable, cacheable request template.

    Parameters
    ----------
    template:
        The request template.
    transport:
        Performs the network call.
    config:
        Shared configuration; defaults to ``SlingConfig()``.
    cache:
        Response cache; defaults to one using ``config.cache_ttl_ms``.

    Raises
    ------
    StructuralParseError
        If *template* is empty.
    """

    def __init__(
        self,
        template: Template,
        *,
        transport: Transport,
        config: SlingConfig | None = None,
        cache: ResponseCache | None = None,
    ) -> None:
        self._template = template
        self._transport = transport
        self._config = config or SlingConfig()
        self._cache = cache if cache is not None else ResponseCache(self._config.cache_ttl_ms)
        self._preview = parse_http_request(
            assemble(preview(template, self._config.deferred_placeholder))
        )

    @property
    def template(self) -> Template:
        return self._template

    @property
    def config(self) -> SlingConfig:
        return self._config

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def preview(self) -> HttpDocument:
        """The template parsed with deferred slots replaced by a placeholder."""
        return self._preview

    @property
    def metadata(self) -> Metadata:
        return self._preview.metadata

    def display(self) -> DisplayRequest:
        """Return the redacted display view.

        Raises
        ------
        NodeError
            If the request line or a header has a grammar error.
        """
        return parse_template_display(self._template, self._config.deferred_placeholder)

    async def execute(self, options: ExecuteOptions | None = None) -> SlingResponse:
        """Run the request, or return the live cached response.

        Raises
        ------
        NodeError
            If the resolved request has a grammar error.
        HttpError, InvalidJsonPathError
            If a dependency slot failed.
        RequestCancelled
            If ``options.signal`` was cancelled.  The cache is not written.
        TransportFailure
            If the transport could not complete the call.
        """
        options = options or ExecuteOptions()
        signal = options.signal

        if options.read_cache:
            entry = self._cache.get()
            if entry is not None:
                return entry.response

        if signal is not None:
            signal.raise_if_cancelled()

        resolved = await execute(self._template, signal)
        document = parse_http_request(assemble(resolved))
        request = build_request(document)

        verbose = options.verbose or self._config.log_requests
        if verbose:
            logger.info("-> %s", render_document(document).partition("\n")[0])

        started = time.perf_counter()
        response = await self._transport.send(request, signal=signal)
        if signal is not None:
            signal.raise_if_cancelled()

        if verbose:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info("<- %d %s (%.0f ms)", response.status, response.status_text, elapsed_ms)

        self._cache.put(response)
        return response

    def data_accessor(
        self, path: str, valid_response_codes: Iterable[int] | None = None
    ) -> DataAccessor:
        """Return an accessor reading *path* from this request's JSON response."""
        return DataAccessor(self, path, valid_response_codes)

    def clear_cache(self) -> None:
        self._cache.clear()

    def __repr__(self) -> str:
        start = self._preview.start_line
        label = getattr(getattr(start, "method", None), "value", "?")
        return f"RequestDefinition(method={label!r}, slots={len(self._template)})"
