"""High-level async client for hot pushing content updates."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import aiohttp

from hotpush._local import FileManifestChannel, LocalManifestChannel
from hotpush._transport import HttpTransport, Transport
from hotpush.config import HotPushConfig
from hotpush.events import EventBus, EventKind, Handler
from hotpush.exceptions import HotPushError, LocalManifestMissingError
from hotpush.loader import AssetInjector, StagedAssetLoader
from hotpush.models.events import ErrorEvent
from hotpush.models.manifest import Manifest, Wave
from hotpush.orchestrator import ContentTransfer, Reloader, SyncOrchestrator, SyncState
from hotpush.resolver import Resolution, ResolutionOutcome, VersionResolver

_logger = logging.getLogger(__name__)


class HotPush:
    """Check for newer content and apply it in place.

    Usage::

        async with HotPush(config, transfer=service, injector=injector) as hot_push:
            hot_push.on("progress", lambda event: print(event.progress))
            hot_push.on("complete", lambda event: print(event.local_path))
            await hot_push.check()
    """

    def __init__(
        self,
        config: HotPushConfig,
        *,
        transfer: ContentTransfer,
        injector: AssetInjector,
        reloader: Reloader | None = None,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        channel: LocalManifestChannel | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transfer = transfer
        self._reloader = reloader
        self._transport = transport
        self._channel: LocalManifestChannel = channel if channel is not None else FileManifestChannel()
        self._bus = EventBus()
        self._loader = StagedAssetLoader(
            injector,
            wave_interval=config.wave_interval,
            cache_bust=config.cache_bust,
        )
        self._resolver: VersionResolver | None = None
        self._orchestrator: SyncOrchestrator | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> HotPush:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._http_session, timeout=self._config.request_timeout)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._orchestrator is not None and self._orchestrator.state is SyncState.SYNCING:
            self._orchestrator.cancel()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._transport = None
        self._resolver = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_resolver(self) -> VersionResolver:
        if self._resolver is None:
            if self._transport is None:
                raise HotPushError("Client not initialized. Use 'async with HotPush(...) as hot_push:'")
            self._resolver = VersionResolver(self._config, transport=self._transport, channel=self._channel)
        return self._resolver

    def _new_orchestrator(self) -> SyncOrchestrator:
        previous = self._orchestrator
        if previous is not None and previous.state is SyncState.SYNCING:
            raise HotPushError("An update is already running")
        if previous is not None and previous.cancelled and not previous.decided:
            # cancelled ahead of any decision: the next check inherits it
            return previous
        orchestrator = SyncOrchestrator(
            self._config,
            bus=self._bus,
            transfer=self._transfer,
            reloader=self._reloader,
        )
        self._orchestrator = orchestrator
        return orchestrator

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def config(self) -> HotPushConfig:
        return self._config

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def state(self) -> SyncState:
        if self._orchestrator is None:
            return SyncState.IDLE
        return self._orchestrator.state

    def on(self, topic: EventKind | str, handler: Handler) -> None:
        """Listen for ``progress``, ``cancel``, ``error`` or ``complete``."""
        self._bus.register(topic, handler)

    async def check(self) -> Resolution:
        """Check for a newer version and start the update if there is one.

        A missing local manifest is reported through the ``error``
        event. Raises :class:`~hotpush.exceptions.StrategyNotImplementedError`
        when an update is needed and the configured type is ``merge``.
        """
        resolver = self._require_resolver()
        if resolver.checking:
            raise HotPushError("A version check is already in progress")
        orchestrator = self._new_orchestrator()
        resolution = await resolver.check()

        if resolution.outcome is ResolutionOutcome.LOAD_LOCAL:
            error = LocalManifestMissingError(
                f"No {self._config.version_jsonp_file_name} in "
                f"{self._config.documents_path} nor in {self._config.bundle_path}"
            )
            _logger.error("%s", error)
            self._bus.publish(EventKind.ERROR, ErrorEvent.from_exception(error))
            # Plain-load path; a missing manifest loads nothing.
            await self._loader.load_all(resolution.local, resolver.local_base_path)

        orchestrator.decide(resolution)
        return resolution

    async def load_from_local(self) -> list[Wave]:
        """Load the assets listed in the installed manifest.

        Uses the documents copy when present, else the bundle. Returns the
        waves that were loaded; an empty list when no local manifest
        exists, which is also reported through the ``error`` event.
        """
        resolver = self._require_resolver()
        manifest = await resolver.load_from_local()
        if manifest is None:
            error = LocalManifestMissingError(f"No {self._config.version_jsonp_file_name} to load from")
            self._bus.publish(EventKind.ERROR, ErrorEvent.from_exception(error))
            return []
        return await self.load_manifest(manifest, resolver.local_base_path)

    async def load_manifest(self, manifest: Manifest, base_path: Path) -> list[Wave]:
        return await self._loader.load_all(manifest, base_path)

    def cancel(self) -> None:
        """Cancel the hot push.

        The ``cancel`` event is emitted once, whether or not a transfer
        was running. A cancel issued before any check applies to the next
        check, which then resolves versions but starts no transfer.
        """
        orchestrator = self._orchestrator
        if orchestrator is None:
            orchestrator = self._new_orchestrator()
        orchestrator.cancel()
