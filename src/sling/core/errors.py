"""sling error-code hierarchy.

Only truly unrecoverable conditions are raised.  Everything the parser or
the data accessors anticipate is modelled as data instead: grammar
problems become :class:`~sling.http.nodes.ErrorNode` values embedded in
the AST, and accessor failures are *returned* as :class:`HttpError` /
:class:`InvalidJsonPathError` instances so callers can branch without a
``try`` block.

Hierarchy
---------
::

    SlingError
    +-- TemplateError     (SLING-E1xx)
    +-- ExecutionError    (SLING-E2xx)
    +-- TransportError    (SLING-E3xx)

Usage
-----
Raise concrete subclasses directly::

    raise StructuralParseError()

Catch by category::

    try:
        await definition.execute()
    except ExecutionError:
        # handles HttpError, InvalidJsonPathError, RequestCancelled
        ...

Error messages MUST NOT contain secret values; only display-view text
is allowed in ``message`` and ``details``.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sling.http.nodes import ErrorNode

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class SlingError(Exception):
    """Base exception for all sling errors.

    Attributes
    ----------
    code : str
        Error code, e.g. ``"SLING-E100"``.
    message : str
        Human-readable description (MUST NOT contain secret values).
    details : dict[str, Any]
        Machine-readable context specific to the error instance.
    resolution : str
        Suggested action for the caller.
    """

    code: str = "SLING-E000"
    message: str = "Unknown sling error"
    resolution: str = ""

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        resolution: str | None = None,
    ) -> None:
        self.details: dict[str, Any] = details or {}
        if message is not None:
            self.message = message
        if resolution is not None:
            self.resolution = resolution
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialise the error to a plain ``{"error": {...}}`` payload."""
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["detail"] = self.details
        if self.resolution:
            payload["resolution"] = self.resolution
        return {"error": payload}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


# ===================================================================
# Category base classes
# ===================================================================

class TemplateError(SlingError):
    """SLING-E1xx -- Template authoring and grammar errors."""

    code = "SLING-E1XX"


class ExecutionError(SlingError):
    """SLING-E2xx -- Errors while resolving or executing a request."""

    code = "SLING-E2XX"


class TransportError(SlingError):
    """SLING-E3xx -- Errors raised by the network transport."""

    code = "SLING-E3XX"


# ===================================================================
# SLING-E1xx  Template Errors
# ===================================================================

class StructuralParseError(TemplateError):
    """SLING-E100 -- The template has no slots and no literal content.

    This is the only condition under which parsing raises; every other
    grammar problem is embedded in the AST.
    """

    code = "SLING-E100"
    message = "HTTP requests cannot be empty string"
    resolution = "Start the template with a request line, e.g. 'GET https://example.com HTTP/1.1'."
    auto_fix = "initial_format"


class NodeError(TemplateError):
    """SLING-E101 -- A grammar :class:`ErrorNode` raised as an exception.

    Used by call sites that need throw semantics, such as building the
    execution-view request from a document that contains error nodes.
    """

    code = "SLING-E101"
    message = "The request template contains a grammar error"

    def __init__(self, error_node: ErrorNode) -> None:
        self.error_node = error_node
        details: dict[str, Any] = {}
        if error_node.suggestions:
            details["suggestions"] = list(error_node.suggestions)
        if error_node.auto_fix:
            details["auto_fix"] = error_node.auto_fix
        super().__init__(error_node.reason, details=details)


class RequiredParameterMissing(TemplateError):
    """SLING-E102 -- A required parameter was not loaded by any plugin."""

    code = "SLING-E102"
    message = "Required parameter was not loaded"
    resolution = "Add the parameter to the active environment's configuration."


# ===================================================================
# SLING-E2xx  Execution Errors
# ===================================================================

class HttpError(ExecutionError):
    """SLING-E200 -- Transport or status failure during data extraction.

    Data accessors *return* this error instead of raising it.  The
    execute pass raises it when a dependency slot resolves to it.

    Attributes
    ----------
    status : int | None
        HTTP status code, or ``None`` when no response was received.
    status_text : str
        Reason phrase of the response, if any.
    cause : BaseException | None
        The underlying transport error, if any.
    """

    code = "SLING-E200"
    message = "HTTP request failed"
    resolution = "Inspect the status code and the response of the dependency request."

    def __init__(
        self,
        message: str | None = None,
        *,
        status: int | None = None,
        status_text: str = "",
        cause: BaseException | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.status = status
        self.status_text = status_text
        self.cause = cause
        merged: dict[str, Any] = dict(details or {})
        if status is not None:
            merged.setdefault("status", status)
        if cause is not None:
            merged.setdefault("cause", type(cause).__name__)
        super().__init__(message, details=merged)


class InvalidJsonPathError(ExecutionError):
    """SLING-E201 -- A JSON path did not match the response body."""

    code = "SLING-E201"
    message = "JSON path does not match the response body"
    resolution = "Check the path against the actual response structure."

    def __init__(self, path: str, message: str | None = None) -> None:
        self.path = path
        super().__init__(message, details={"path": path})


class RequestCancelled(ExecutionError):
    """SLING-E202 -- Execution was aborted through its cancellation signal."""

    code = "SLING-E202"
    message = "Request execution was cancelled"


# ===================================================================
# SLING-E3xx  Transport Errors
# ===================================================================

class TransportFailure(TransportError):
    """SLING-E300 -- The transport could not complete the request."""

    code = "SLING-E300"
    message = "The HTTP transport failed to complete the request"
    resolution = "Check network connectivity and the request URL."


# ---------------------------------------------------------------------------
# Lookup helper
# ---------------------------------------------------------------------------

_CODE_MAP: dict[str, type[SlingError]] = {
    cls.code: cls
    for cls in [
        # E1xx
        StructuralParseError,
        RequiredParameterMissing,
        # E2xx
        RequestCancelled,
        # E3xx
        TransportFailure,
    ]
}


def error_from_code(code: str, message: str | None = None) -> SlingError:
    """Instantiate the exception class registered for *code*.

    Only errors without required constructor arguments are registered.

    Raises
    ------
    KeyError
        If *code* is not a recognised error code.
    """
    cls = _CODE_MAP[code]
    return cls(message) if message else cls()
