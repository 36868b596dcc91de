"""Turn a parsed document into the execution-view request."""
from __future__ import annotations

from sling.core.errors import NodeError
from sling.core.types import ParsedHttpRequest
from sling.http.nodes import HttpDocument
from sling.http.render import body_text, value_text


def build_request(document: HttpDocument) -> ParsedHttpRequest:
    """Reveal every masked value of *document* into a :class:`ParsedHttpRequest`.

    Repeated header names are joined with ``", "``.  Comments are removed
    from JSON bodies.

    Raises
    ------
    NodeError
        For the first grammar error in the document.
    """
    errors = document.errors
    if errors:
        raise NodeError(errors[0])

    metadata = document.metadata
    start = document.start_line

    headers: dict[str, str] = {}
    for header in document.headers or ():
        name = header.name.value
        value = value_text(header.value, metadata, reveal=True)
        headers[name] = f"{headers[name]}, {value}" if name in headers else value

    body = None
    if document.body is not None:
        body = body_text(document.body, metadata, reveal=True, strip_comments=True)

    return ParsedHttpRequest(
        method=start.method.value,
        url=value_text(start.url, metadata, reveal=True),
        http_version=start.protocol.version,
        headers=headers,
        body=body,
    )
