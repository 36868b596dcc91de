"""Data accessors: pull a value out of another request's JSON response.

A :class:`DataAccessor` is placed in a template slot to chain requests.
It (re)uses its owning definition's cache, so a dependency runs at most
once while its cached response is live.

Failures are *returned*, not raised::

    result = await accessor.value()
    if isinstance(result, HttpError):
        ...

Cancellation (:class:`~sling.core.errors.RequestCancelled`) and template
errors of the dependency still propagate.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from sling.core.errors import (
    HttpError,
    InvalidJsonPathError,
    SlingError,
    TransportError,
)
from sling.core.types import ExecuteOptions
from sling.request.jsonpath import parse_json_path, walk_json_path

if TYPE_CHECKING:
    from sling.core.types import CancellationSignal, SlingResponse
    from sling.request.definition import RequestDefinition

logger = logging.getLogger(__name__)


class DataAccessor:
    """Extracts the value at *path* from its definition's JSON response.

    Parameters
    ----------
    definition:
        The request whose response is read.
    path:
        Dot/bracket JSON path, see :func:`~sling.request.jsonpath.parse_json_path`.
    valid_response_codes:
        Status codes accepted as success.  Defaults to any 2xx status.
    """

    def __init__(
        self,
        definition: RequestDefinition,
        path: str,
        valid_response_codes: Iterable[int] | None = None,
    ) -> None:
        self._definition = definition
        self.path = path
        self.valid_response_codes: frozenset[int] | None = (
            frozenset(valid_response_codes) if valid_response_codes is not None else None
        )
        try:
            self._segments: tuple[str | int, ...] | None = parse_json_path(path)
            self._path_error: InvalidJsonPathError | None = None
        except InvalidJsonPathError as exc:
            self._segments = None
            self._path_error = exc

    @property
    def definition(self) -> RequestDefinition:
        return self._definition

    def _accepts(self, status: int) -> bool:
        if self.valid_response_codes is not None:
            return status in self.valid_response_codes
        return 200 <= status < 300

    async def _response(self, signal: CancellationSignal | None) -> SlingResponse | HttpError:
        try:
            return await self._definition.execute(ExecuteOptions(signal=signal))
        except HttpError as exc:
            return exc
        except TransportError as exc:
            return HttpError(f"Dependency request failed: {exc.message}", cause=exc)

    async def value(self, *, signal: CancellationSignal | None = None) -> Any:
        """Return the extracted value, or an :class:`HttpError` /
        :class:`InvalidJsonPathError` instance."""
        if self._path_error is not None:
            return self._path_error

        response = await self._response(signal)
        if isinstance(response, HttpError):
            return response
        if not self._accepts(response.status):
            logger.debug("Dependency returned unexpected status %d", response.status)
            return HttpError(
                f"Unexpected response status {response.status}",
                status=response.status,
                status_text=response.status_text,
            )

        try:
            data = response.json()
        except json.JSONDecodeError:
            return InvalidJsonPathError(self.path, "Response body is not valid JSON")

        try:
            return walk_json_path(data, self.path, self._segments or ())
        except InvalidJsonPathError as exc:
            return exc

    async def try_value(self, *, signal: CancellationSignal | None = None) -> Any:
        """Like :meth:`value`, but path problems yield ``None``."""
        result = await self.value(signal=signal)
        if isinstance(result, InvalidJsonPathError):
            return None
        return result

    async def validate(self, *, signal: CancellationSignal | None = None) -> bool:
        """Return ``True`` when :meth:`value` would not return an error."""
        return not isinstance(await self.value(signal=signal), SlingError)

    def __repr__(self) -> str:
        return f"DataAccessor(path={self.path!r})"
