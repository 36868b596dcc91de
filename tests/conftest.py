"""Shared fixtures for the sling test suite."""
from __future__ import annotations

import json
from typing import Any

import pytest

from sling.core.config import SlingConfig
from sling.core.interfaces import InMemoryTransport
from sling.core.types import SlingResponse
from sling.request.definition import RequestDefinition
from sling.template import Template


def json_response(data: Any, status: int = 200, status_text: str = "OK") -> SlingResponse:
    """A JSON response as the transport would return it."""
    return SlingResponse(
        status=status,
        status_text=status_text,
        headers={"content-type": "application/json"},
        body=json.dumps(data),
    )


def define(
    text: str,
    transport: InMemoryTransport,
    config: SlingConfig | None = None,
    **values: Any,
) -> RequestDefinition:
    """Build a definition from format-style template text."""
    return RequestDefinition(
        Template.format(text, **values), transport=transport, config=config
    )


@pytest.fixture
def config() -> SlingConfig:
    return SlingConfig()


@pytest.fixture
def login_transport() -> InMemoryTransport:
    """Answers every call with a login payload."""
    return InMemoryTransport(
        [json_response({"token": "tok-123", "user": {"id": 7, "roles": ["admin", "dev"]}})]
    )


@pytest.fixture
def echo_transport() -> InMemoryTransport:
    """Answers with the received method, URL, headers and body."""

    def echo(request: Any) -> SlingResponse:
        return json_response(
            {
                "method": request.method,
                "url": request.url,
                "headers": request.headers,
                "body": request.body,
            }
        )

    return InMemoryTransport([echo])
