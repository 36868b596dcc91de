"""Configuration plugins.

A plugin receives the shared :class:`SlingContext` once, when the
:class:`~sling.factory.Sling` instance is created.  ``setup`` may be a
plain function or a coroutine; coroutine setups are awaited by
:meth:`Sling.ready`.
"""
from __future__ import annotations

from collections.abc import Awaitable, Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from sling.parameters import ParameterValue


@dataclass
class SlingContext:
    """Environment state shared by every plugin of a sling instance.

    Attributes
    ----------
    env_sets:
        Parameters per environment name.
    environments:
        Environment names in registration order.
    active_environment:
        Name of the environment whose parameters are exposed.
    """

    env_sets: dict[str, dict[str, ParameterValue | None]] = field(default_factory=dict)
    environments: list[str] = field(default_factory=list)
    active_environment: str | None = None


@runtime_checkable
class SlingPlugin(Protocol):
    """Hook into a sling instance's configuration."""

    name: str

    def setup(self, context: SlingContext) -> Awaitable[None] | None: ...


class StaticConfigPlugin:
    """Load fixed parameters for one or more environments."""

    name = "static-config"

    def __init__(self, environments: Mapping[str, Mapping[str, ParameterValue]]) -> None:
        self._environments = {name: dict(values) for name, values in environments.items()}

    def setup(self, context: SlingContext) -> None:
        for environment, values in self._environments.items():
            merged = dict(context.env_sets.get(environment, {}))
            merged.update(values)
            context.env_sets[environment] = merged
            if environment not in context.environments:
                context.environments.append(environment)

        if self._environments and context.active_environment is None:
            context.active_environment = next(iter(self._environments))


def use_config(environments: Mapping[str, Mapping[str, ParameterValue]]) -> StaticConfigPlugin:
    """Provide static parameters per environment.

    Values are merged over those of earlier plugins.  The first listed
    environment becomes active unless an earlier plugin chose one::

        Sling(use_config({
            "dev": {"host": "localhost:8080"},
            "staging": {"host": "staging.example.com"},
        }))
    """
    return StaticConfigPlugin(environments)
