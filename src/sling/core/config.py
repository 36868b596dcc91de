"""sling configuration.

Defines the validated configuration model shared by the request
definitions, the resolver and the default transport.  A bare
``SlingConfig()`` is sufficient for development.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DEFERRED_PLACEHOLDER = "<deferred>"


class SlingConfig(BaseModel):
    """Configuration for a :class:`~sling.factory.Sling` instance.

    Every :class:`~sling.request.definition.RequestDefinition` created by
    the factory reads from the same instance.
    """

    model_config = ConfigDict(strict=True, frozen=True)

    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Transport timeout in seconds.",
    )
    follow_redirects: bool = Field(
        default=False,
        description="Whether the default transport follows redirects.",
    )
    verify_tls: bool = Field(
        default=True,
        description="Whether the default transport verifies TLS certificates.",
    )
    cache_ttl_ms: int | bool | None = Field(
        default=None,
        description=(
            "Default response cache policy for definitions: ``None`` caches "
            "for the process lifetime, ``False`` or ``0`` disables caching, "
            "a positive integer is a TTL in milliseconds."
        ),
    )
    deferred_placeholder: str = Field(
        default=DEFAULT_DEFERRED_PLACEHOLDER,
        min_length=1,
        description="Text shown in previews for slots that are not resolved yet.",
    )
    log_requests: bool = Field(
        default=False,
        description=(
            "When True, every executed request is logged at INFO level in "
            "its redacted display view."
        ),
    )
