"""Read-only parameters of the active environment."""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Optional, Union

from sling.core.errors import RequiredParameterMissing

ParameterValue = Union[str, int, float, bool]


class SlingParameters(Mapping[str, Optional[ParameterValue]]):
    """Parameters loaded by plugins for one environment.

    ``None`` and the empty string count as *not loaded* for :meth:`get`
    and :meth:`get_required`.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, ParameterValue | None] | None = None) -> None:
        self._values: dict[str, ParameterValue | None] = dict(values or {})

    def __getitem__(self, key: str) -> ParameterValue | None:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def get(  # type: ignore[override]
        self, key: str, default: ParameterValue | None = None
    ) -> ParameterValue | None:
        value = self._values.get(key)
        if value is None or value == "":
            return default
        return value

    def get_required(self, key: str) -> ParameterValue:
        """Return the parameter *key*.

        Raises
        ------
        RequiredParameterMissing
            If no plugin loaded a value for *key*.
        """
        value = self.get(key)
        if value is None:
            raise RequiredParameterMissing(
                f"Required parameter '{key}' was not loaded.",
                details={"parameter": key},
            )
        return value

    def __repr__(self) -> str:
        # Values may be credentials.
        return f"SlingParameters(keys={sorted(self._values)!r})"
