"""Helpers for safe debug logging.

Manifest requests may carry credentials in their headers (``Authorization``,
cookies, API keys). This module redacts them before emitting DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_SENSITIVE_HEADER_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "proxy-authorization",
        "cookie",
        "set-cookie",
        "x-api-key",
        "x-auth-token",
        "token",
    }
)


def redact_for_log(value: Any, *, max_string: int = 256) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if key.lower() in _SENSITIVE_HEADER_KEYS:
                redacted[key] = "<redacted>"
            else:
                redacted[key] = redact_for_log(v, max_string=max_string)
        return redacted

    if isinstance(value, (int, float, bool)):
        return value

    return repr(value)
