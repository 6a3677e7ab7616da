"""Single-resolution futures raced against a cancellable timer.

Whichever of the real completion and the timer fires first settles the
result. The later one is ignored: :meth:`SettleOnce.settle` returns
``False`` and changes nothing.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Generic, TypeVar

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class SettleOnce(Generic[T]):
    """A future that only accepts its first settlement."""

    def __init__(self, *, name: str = "") -> None:
        self._name = name
        self._loop = asyncio.get_running_loop()
        self._future: asyncio.Future[T] = self._loop.create_future()
        self._timer: asyncio.TimerHandle | None = None
        self.timed_out = False

    @property
    def done(self) -> bool:
        return self._future.done()

    def settle(self, value: T) -> bool:
        """Resolve with *value*; ``False`` if already settled."""
        if self._future.done():
            _logger.debug("Ignoring late settlement of %s", self._name or "future")
            return False
        self._cancel_timer()
        self._future.set_result(value)
        return True

    def fail(self, exc: BaseException) -> bool:
        """Resolve with an exception; ``False`` if already settled."""
        if self._future.done():
            _logger.debug("Ignoring late failure of %s: %s", self._name or "future", exc)
            return False
        self._cancel_timer()
        self._future.set_exception(exc)
        return True

    def settle_after(self, delay: float, value: T) -> None:
        """Arm a timer that settles with *value* after *delay* seconds."""
        self._cancel_timer()
        self._timer = self._loop.call_later(delay, self._on_timer, value)

    def _on_timer(self, value: T) -> None:
        self._timer = None
        if self.settle(value):
            self.timed_out = True

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def wait(self) -> T:
        try:
            return await asyncio.shield(self._future)
        finally:
            if self._future.done():
                self._cancel_timer()


async def race_timeout(work: Awaitable[T], timeout: float, default: T, *, name: str = "") -> tuple[T, bool]:
    """Await *work* but settle with *default* if it takes longer than *timeout*.

    Returns ``(value, timed_out)``. When the timer wins, the work task is
    cancelled and whatever it produces later is dropped. An exception
    raised by *work* before the timer fires is re-raised.
    """
    settled: SettleOnce[T] = SettleOnce(name=name)
    task = asyncio.ensure_future(work)

    def _on_done(fut: asyncio.Future[T]) -> None:
        if fut.cancelled():
            return
        exc = fut.exception()
        if exc is not None:
            settled.fail(exc)
        else:
            settled.settle(fut.result())

    task.add_done_callback(_on_done)
    settled.settle_after(timeout, default)
    try:
        value = await settled.wait()
    finally:
        if not task.done():
            task.cancel()
    return value, settled.timed_out
