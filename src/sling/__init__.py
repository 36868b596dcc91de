"""sling -- redacting HTTP request-template compiler.

Request templates are compiled into two views of the same request: the
*execution view* sent over the network, and the *display view* used for
every log line and UI.  Masked values never reach the display view.

Layers
------
1. Masking (:mod:`sling.masking`)
2. Templates and slot resolution (:mod:`sling.template`, :mod:`sling.resolve`)
3. Request grammar (:mod:`sling.http`) and body AST (:mod:`sling.body`)
4. Display view (:mod:`sling.display`)
5. Execution, caching and chaining (:mod:`sling.request`)
6. Transport (:mod:`sling.wire`)
7. Authoring surface (:mod:`sling.factory`, :mod:`sling.plugins`)
"""
from __future__ import annotations

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Level 0 -- Core types, errors, config, interfaces
# ---------------------------------------------------------------------------
from sling.core.config import SlingConfig
from sling.core.errors import (
    ExecutionError,
    HttpError,
    InvalidJsonPathError,
    NodeError,
    RequestCancelled,
    RequiredParameterMissing,
    SlingError,
    StructuralParseError,
    TemplateError,
    TransportError,
    TransportFailure,
)
from sling.core.interfaces import DeferredValue, InMemoryTransport, Transport
from sling.core.types import (
    CancellationSignal,
    ExecuteOptions,
    ParsedHttpRequest,
    SlingResponse,
)

# ---------------------------------------------------------------------------
# Level 1 -- Masking
# ---------------------------------------------------------------------------
from sling.masking import (
    Masked,
    MaskedAccessor,
    mask,
    named_mask,
    secret,
    sensitive,
)

# ---------------------------------------------------------------------------
# Level 2 -- Templates and resolution
# ---------------------------------------------------------------------------
from sling.template import Slot, SlotKind, Template
from sling.resolve import execute, preview, render_display_text

# ---------------------------------------------------------------------------
# Level 3 -- Grammar
# ---------------------------------------------------------------------------
from sling.http import (
    ErrorNode,
    FixId,
    HttpDocument,
    parse_http_method,
    parse_http_request,
    render_document,
)

# ---------------------------------------------------------------------------
# Level 4 -- Display view
# ---------------------------------------------------------------------------
from sling.display import DisplayRequest, MaskedReference, parse_template_display

# ---------------------------------------------------------------------------
# Level 5 -- Execution
# ---------------------------------------------------------------------------
from sling.request import DataAccessor, RequestDefinition, ResponseCache, parse_json_path

# ---------------------------------------------------------------------------
# Level 6 -- Transport
# ---------------------------------------------------------------------------
from sling.wire import HttpxTransport

# ---------------------------------------------------------------------------
# Level 7 -- Authoring surface
# ---------------------------------------------------------------------------
from sling.parameters import SlingParameters
from sling.plugins import SlingContext, SlingPlugin, use_config
from sling.factory import Sling

__all__ = [
    "__version__",
    # Core
    "SlingConfig",
    "ExecutionError",
    "HttpError",
    "InvalidJsonPathError",
    "NodeError",
    "RequestCancelled",
    "RequiredParameterMissing",
    "SlingError",
    "StructuralParseError",
    "TemplateError",
    "TransportError",
    "TransportFailure",
    "DeferredValue",
    "InMemoryTransport",
    "Transport",
    "CancellationSignal",
    "ExecuteOptions",
    "ParsedHttpRequest",
    "SlingResponse",
    # Masking
    "Masked",
    "MaskedAccessor",
    "mask",
    "named_mask",
    "secret",
    "sensitive",
    # Templates
    "Slot",
    "SlotKind",
    "Template",
    "execute",
    "preview",
    "render_display_text",
    # Grammar
    "ErrorNode",
    "FixId",
    "HttpDocument",
    "parse_http_method",
    "parse_http_request",
    "render_document",
    # Display
    "DisplayRequest",
    "MaskedReference",
    "parse_template_display",
    # Execution
    "DataAccessor",
    "RequestDefinition",
    "ResponseCache",
    "parse_json_path",
    "HttpxTransport",
    # Authoring
    "SlingParameters",
    "SlingContext",
    "SlingPlugin",
    "use_config",
    "Sling",
]
