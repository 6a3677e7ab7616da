"""Base model for hotpush data.

Every manifest model inherits from :class:`HotPushBaseModel` which
provides:

* frozen instances, so a manifest snapshot cannot change under a
  running check cycle.
* ``extra="ignore"`` so publishers may add keys without breaking
  older clients.
* A ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class HotPushBaseModel(BaseModel):
    """Base for models parsed from manifest payloads."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, repr=False, exclude=True)
    """Original payload dict."""

    @model_validator(mode="before")
    @classmethod
    def _stash_raw(cls, values: Any) -> Any:
        """Stash the raw payload unless the caller passed one explicitly."""
        if not isinstance(values, dict):
            return values
        if "raw" in values:
            return values
        return {**values, "raw": dict(values)}
