"""sling masking engine.

* **Masked** -- a value paired with its display text; the real value is
  stored obfuscated and only revealed by ``unmask()``.
* **MaskedAccessor** -- the same for a value produced by another request.
* **mask / named_mask / secret / sensitive** -- the authoring helpers.
* **SentinelCodec** -- placeholder tokens that keep masked values
  identifiable while a template is flattened and re-parsed.
"""
from __future__ import annotations

from sling.masking.mask import (
    BULLET_MASK,
    MASKED_ENVELOPE_TAG,
    Masked,
    MaskedAccessor,
    create_mask,
    is_tagged_envelope,
    mask,
    named_mask,
    secret,
    sensitive,
)
from sling.masking.sentinel import SENTINEL_PATTERN, SentinelCodec

__all__ = [
    "BULLET_MASK",
    "MASKED_ENVELOPE_TAG",
    "Masked",
    "MaskedAccessor",
    "create_mask",
    "is_tagged_envelope",
    "mask",
    "named_mask",
    "secret",
    "sensitive",
    "SENTINEL_PATTERN",
    "SentinelCodec",
]
