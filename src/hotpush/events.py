"""Lifecycle event bus.

The bus has a closed set of topics. Handlers run synchronously on the
publisher's call stack, in registration order. A handler that raises
stops the fan-out for that publish call and the exception reaches the
publisher.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Any

_logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


class EventKind(StrEnum):
    PROGRESS = "progress"
    CANCEL = "cancel"
    ERROR = "error"
    COMPLETE = "complete"


def _coerce_kind(topic: EventKind | str) -> EventKind | None:
    try:
        return EventKind(topic)
    except ValueError:
        return None


class EventBus:
    """Fixed-topic publish/subscribe channel."""

    def __init__(self) -> None:
        self._handlers: dict[EventKind, list[Handler]] = {kind: [] for kind in EventKind}

    def register(self, topic: EventKind | str, handler: Handler) -> None:
        """Append *handler* to *topic*. Unknown topics are ignored."""
        kind = _coerce_kind(topic)
        if kind is None:
            _logger.debug("Ignoring handler for unknown topic %r", topic)
            return
        self._handlers[kind].append(handler)

    def publish(self, topic: EventKind | str, *args: Any) -> bool:
        """Call every handler of *topic* with *args*.

        Returns ``False`` for an unknown topic, ``True`` otherwise (even
        when nobody is listening).
        """
        kind = _coerce_kind(topic)
        if kind is None:
            return False
        # Snapshot: a handler registering another handler must not extend this fan-out.
        for handler in list(self._handlers[kind]):
            handler(*args)
        return True

    def handlers(self, topic: EventKind | str) -> list[Handler]:
        kind = _coerce_kind(topic)
        if kind is None:
            return []
        return list(self._handlers[kind])
