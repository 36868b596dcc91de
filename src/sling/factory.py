"""The authoring entry point.

Usage::

    from sling import Sling, secret, use_config

    api = Sling(use_config({"dev": {"token": "dev-token"}}))

    get_user = api.request(
        '''
        GET https://api.example.com/users/{user} HTTP/1.1
        Authorization: Bearer {token}
        ''',
        user=42,
        token=secret(api.parameters.get_required("token")),
    )

    response = await get_user.execute()
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Sequence
from typing import Any

from sling.core.config import SlingConfig
from sling.core.interfaces import Transport
from sling.parameters import SlingParameters
from sling.plugins import SlingContext, SlingPlugin
from sling.request.definition import RequestDefinition
from sling.template import Template
from sling.wire.transport import HttpxTransport

logger = logging.getLogger(__name__)


class Sling:
    """A configured factory for request definitions.

    Parameters
    ----------
    *plugins:
        Configuration plugins, set up in order.
    config:
        Shared by every definition this instance creates.
    transport:
        Defaults to :class:`~sling.wire.transport.HttpxTransport`.
    """

    def __init__(
        self,
        *plugins: SlingPlugin,
        config: SlingConfig | None = None,
        transport: Transport | None = None,
    ) -> None:
        self.config = config or SlingConfig()
        self.transport: Transport = transport or HttpxTransport(self.config)
        self.context = SlingContext()
        self.plugins = plugins

        self._pending: list[Awaitable[None]] = []
        for plugin in plugins:
            result = plugin.setup(self.context)
            if inspect.isawaitable(result):
                self._pending.append(result)
        logger.debug(
            "Set up %d plugins (%d pending)", len(plugins), len(self._pending)
        )

    @property
    def is_ready(self) -> bool:
        """``False`` while asynchronous plugin setups are still pending."""
        return not self._pending

    async def ready(self) -> Sling:
        """Await every asynchronous plugin setup."""
        pending, self._pending = self._pending, []
        if pending:
            await asyncio.gather(*pending)
        return self

    @property
    def parameters(self) -> SlingParameters:
        """Parameters of the active environment (empty if there is none)."""
        active = self.context.active_environment
        if active is None or active not in self.context.env_sets:
            return SlingParameters()
        return SlingParameters(self.context.env_sets[active])

    @property
    def environments(self) -> list[str]:
        return list(self.context.environments)

    def use_environment(self, name: str) -> None:
        """Switch the active environment.

        Raises
        ------
        KeyError
            If no plugin registered *name*.
        """
        if name not in self.context.env_sets:
            raise KeyError(f"Unknown environment: {name!r}")
        self.context.active_environment = name

    def _define(self, template: Template) -> RequestDefinition:
        return RequestDefinition(template, transport=self.transport, config=self.config)

    def request(self, text: str, /, **values: Any) -> RequestDefinition:
        """Define a request from ``str.format``-style text with named fields."""
        return self._define(Template.format(text, **values))

    def template(self, strings: Sequence[str], *values: Any) -> RequestDefinition:
        """Define a request from explicit literal strings and slot values."""
        return self._define(Template.of(strings, *values))

    def __repr__(self) -> str:
        return (
            f"Sling(environments={self.context.environments!r}, "
            f"active={self.context.active_environment!r})"
        )
