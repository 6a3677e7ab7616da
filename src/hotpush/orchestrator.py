"""Update orchestration.

Owns the sync state machine::

    IDLE -> DECIDING -> NO_UPDATE
                     -> SYNCING -> COMPLETE | ERRORED | CANCELLED

The actual download and extraction is done by an external content
transfer service. The orchestrator opens at most one transfer, relays
its notifications on the event bus and owns cancellation. Once
cancelled, or once a terminal state is reached, late notifications from
the transfer are dropped.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import ValidationError

from hotpush.config import HotPushConfig, UpdateType
from hotpush.events import EventBus, EventKind
from hotpush.exceptions import (
    HotPushError,
    InvalidTransitionError,
    StrategyNotImplementedError,
    TransferError,
)
from hotpush.models.events import CompleteEvent, ErrorEvent, ProgressEvent, describe_error
from hotpush.models.manifest import Manifest
from hotpush.resolver import Resolution, ResolutionOutcome

_logger = logging.getLogger(__name__)


class TransferHandle(Protocol):
    """One running transfer of the external content-transfer service."""

    def on(self, topic: str, callback: Callable[[Any], None]) -> None:
        ...

    def cancel(self) -> None:
        ...


class ContentTransfer(Protocol):
    """External service that downloads and extracts a content archive."""

    def transfer(
        self,
        *,
        source: str,
        id: str,  # noqa: A002
        headers: Mapping[str, str] | None = None,
    ) -> TransferHandle:
        ...


Reloader = Callable[[CompleteEvent], None]


class SyncState(enum.Enum):
    IDLE = "idle"
    DECIDING = "deciding"
    NO_UPDATE = "no_update"
    SYNCING = "syncing"
    COMPLETE = "complete"
    ERRORED = "errored"
    CANCELLED = "cancelled"


_TRANSITIONS: dict[SyncState, frozenset[SyncState]] = {
    SyncState.IDLE: frozenset({SyncState.DECIDING, SyncState.CANCELLED}),
    SyncState.DECIDING: frozenset(
        {SyncState.NO_UPDATE, SyncState.SYNCING, SyncState.ERRORED, SyncState.CANCELLED}
    ),
    SyncState.SYNCING: frozenset({SyncState.COMPLETE, SyncState.ERRORED, SyncState.CANCELLED}),
    SyncState.NO_UPDATE: frozenset(),
    SyncState.COMPLETE: frozenset(),
    SyncState.ERRORED: frozenset(),
    SyncState.CANCELLED: frozenset(),
}

TERMINAL_STATES: frozenset[SyncState] = frozenset(
    state for state, targets in _TRANSITIONS.items() if not targets
)


def can_transition(current: SyncState, target: SyncState) -> bool:
    return target in _TRANSITIONS[current]


@dataclass
class SyncSession:
    """One update attempt. Holds at most one in-flight transfer."""

    strategy: UpdateType
    remote: Manifest | None = None
    handles: list[TransferHandle] = field(default_factory=list)
    cancelled: bool = False


class SyncOrchestrator:
    """Turn a resolver decision into (at most) one content transfer."""

    def __init__(
        self,
        config: HotPushConfig,
        *,
        bus: EventBus,
        transfer: ContentTransfer,
        reloader: Reloader | None = None,
    ) -> None:
        self._config = config
        self._bus = bus
        self._transfer = transfer
        self._reloader = reloader
        self._state = SyncState.IDLE
        self._session: SyncSession | None = None
        self._cancelled = False
        self._decided = False

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def session(self) -> SyncSession | None:
        return self._session

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def decided(self) -> bool:
        """Whether a resolver decision has reached this orchestrator."""
        return self._decided

    def _transition(self, target: SyncState) -> None:
        if not can_transition(self._state, target):
            raise InvalidTransitionError(self._state.value, target.value)
        _logger.debug("Sync state %s -> %s", self._state.value, target.value)
        self._state = target

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    def decide(self, resolution: Resolution) -> SyncState:
        """Act on a resolver decision and return the resulting state."""
        self._decided = True
        if self._cancelled:
            _logger.debug("Cancelled before deciding, ignoring %s", resolution.outcome.value)
            return self._state
        self._transition(SyncState.DECIDING)
        if resolution.outcome is ResolutionOutcome.UPDATE_NEEDED:
            assert resolution.remote is not None  # noqa: S101
            self.start(self._config.type, resolution.remote)
        else:
            self._transition(SyncState.NO_UPDATE)
        return self._state

    def start(self, strategy: UpdateType | str, remote: Manifest) -> SyncSession:
        """Open the update session for *strategy*.

        If the transfer service refuses to start, the session ends
        ``ERRORED`` and the failure is published as an ``error`` event.

        Raises
        ------
        StrategyNotImplementedError
            *strategy* is ``merge``. No transfer is attempted.
        HotPushError
            The orchestrator was cancelled, or the configuration lacks
            an archive URL.
        """
        if self._cancelled:
            raise HotPushError("Sync was cancelled")
        if self._state is SyncState.IDLE:
            self._transition(SyncState.DECIDING)

        strategy = UpdateType(strategy)
        if strategy is UpdateType.MERGE:
            self._transition(SyncState.ERRORED)
            raise StrategyNotImplementedError("The merge update type is not implemented yet")

        archive_url = self._config.archive_url
        if not archive_url:
            self._transition(SyncState.ERRORED)
            raise HotPushError("No archive_url configured for a replace update")

        self._transition(SyncState.SYNCING)
        session = SyncSession(strategy=strategy, remote=remote)
        self._session = session

        _logger.info("Starting %s update to version %s from %s", strategy.value, remote.timestamp, archive_url)
        try:
            handle = self._transfer.transfer(
                source=archive_url,
                id=self._config.transfer_id,
                headers=self._config.headers,
            )
        except Exception as exc:
            self._fail(describe_error(exc), cause=exc)
            return session
        session.handles.append(handle)
        handle.on("progress", self._on_progress)
        handle.on("complete", self._on_complete)
        handle.on("error", self._on_error)
        return session

    # ------------------------------------------------------------------
    # Transfer notifications
    # ------------------------------------------------------------------

    def _accepting(self, topic: str) -> bool:
        if self._cancelled or self._state is not SyncState.SYNCING:
            _logger.debug("Dropping %s notification in state %s", topic, self._state.value)
            return False
        return True

    def _on_progress(self, data: Any) -> None:
        if not self._accepting("progress"):
            return
        payload = data if isinstance(data, Mapping) else {"progress": data}
        try:
            event = ProgressEvent.model_validate(dict(payload))
        except ValidationError:
            _logger.warning("Ignoring malformed progress notification: %r", data)
            return
        _logger.debug("Transfer progress %s", event.progress)
        self._bus.publish(EventKind.PROGRESS, event)

    def _on_complete(self, data: Any) -> None:
        if not self._accepting("complete"):
            return
        payload = data if isinstance(data, Mapping) else {"localPath": str(data)}
        try:
            event = CompleteEvent.model_validate(dict(payload))
        except ValidationError as exc:
            self._fail(f"Malformed complete notification: {data!r}", cause=exc)
            return
        self._transition(SyncState.COMPLETE)
        _logger.info("Update extracted to %s", event.local_path)
        self._release_handles()
        self._bus.publish(EventKind.COMPLETE, event)
        if self._reloader is not None:
            self._reloader(event)

    def _on_error(self, detail: Any) -> None:
        if not self._accepting("error"):
            return
        self._fail(describe_error(detail))

    def _fail(self, message: str, *, cause: BaseException | None = None) -> None:
        """Abort the running transfer and report *message* as an ``error`` event."""
        self._transition(SyncState.ERRORED)
        _logger.error("Transfer failed: %s", message)
        self._abort_handles()
        error = TransferError(message)
        error.__cause__ = cause
        self._bus.publish(EventKind.ERROR, ErrorEvent(detail=message, error=error))

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel(self) -> bool:
        """Cancel the update.

        Only the first call has an effect: it requests cancellation of
        every active transfer, moves a running sync to ``CANCELLED`` and
        emits one ``cancel`` event. Returns ``False`` on later calls.
        """
        if self._cancelled:
            return False
        self._cancelled = True
        if self._session is not None:
            self._session.cancelled = True
        self._abort_handles()
        if self._state not in TERMINAL_STATES:
            self._transition(SyncState.CANCELLED)
        self._bus.publish(EventKind.CANCEL)
        return True

    def _abort_handles(self) -> None:
        session = self._session
        if session is None:
            return
        handles, session.handles = session.handles, []
        for handle in handles:
            try:
                handle.cancel()
            except Exception:
                # best effort, the transfer may already be gone
                _logger.debug("Transfer cancel failed", exc_info=True)

    def _release_handles(self) -> None:
        if self._session is not None:
            self._session.handles = []
