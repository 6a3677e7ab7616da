"""Payloads carried by the lifecycle events."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hotpush.models.manifest import ProgressState


class ProgressEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    progress: float
    status: ProgressState | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _known_status(cls, value: Any) -> ProgressState | None:
        # Services may report states this client does not know about.
        if value is None:
            return None
        try:
            return ProgressState(value)
        except (TypeError, ValueError):
            return None


class CompleteEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    local_path: str = Field(alias="localPath")


class ErrorEvent(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    detail: str
    error: Exception | None = None

    @classmethod
    def from_exception(cls, exc: Exception) -> ErrorEvent:
        return cls(detail=str(exc) or type(exc).__name__, error=exc)


def describe_error(detail: Any) -> str:
    """Flatten whatever a transfer service reports as an error into text."""
    if isinstance(detail, str):
        return detail
    if isinstance(detail, dict):
        for key in ("detail", "message", "error"):
            value = detail.get(key)
            if isinstance(value, str) and value:
                return value
    if isinstance(detail, BaseException):
        return str(detail) or type(detail).__name__
    return repr(detail)
