"""Local/remote version reconciliation.

A check cycle reads the installed manifest and the published manifest
concurrently. The two reads settle a join counter in any order and the
comparison runs exactly once, when both have settled. Every way a read
can end counts as one settlement: success, explicit absence, timeout,
and failure.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from pathlib import Path

from hotpush._local import LocalManifestChannel
from hotpush._settle import SettleOnce, race_timeout
from hotpush._transport import Transport
from hotpush.config import HotPushConfig
from hotpush.exceptions import HotPushError, HotPushTransportError, ManifestError
from hotpush.models.manifest import Manifest

_logger = logging.getLogger(__name__)


class ManifestSource(enum.Enum):
    LOCAL = "local"
    REMOTE = "remote"


class ResolutionOutcome(enum.Enum):
    UPDATE_NEEDED = "update_needed"
    UP_TO_DATE = "up_to_date"
    REMOTE_UNAVAILABLE = "remote_unavailable"
    LOAD_LOCAL = "load_local"


@dataclass(frozen=True)
class Resolution:
    """Result of one check cycle."""

    outcome: ResolutionOutcome
    local: Manifest | None
    remote: Manifest | None
    fetch_from_bundle: bool = False


@dataclass
class VersionState:
    """Join state of one check cycle."""

    local: Manifest | None = None
    remote: Manifest | None = None
    fetch_from_bundle: bool = False
    pending_fetches: int = 2
    local_settled: bool = False
    remote_settled: bool = False

    def is_settled(self, source: ManifestSource) -> bool:
        if source is ManifestSource.LOCAL:
            return self.local_settled
        return self.remote_settled

    def mark_settled(self, source: ManifestSource, manifest: Manifest | None) -> None:
        if source is ManifestSource.LOCAL:
            self.local = manifest
            self.local_settled = True
        else:
            self.remote = manifest
            self.remote_settled = True
        self.pending_fetches = max(0, self.pending_fetches - 1)


def compare(local: Manifest | None, remote: Manifest | None, *, fetch_from_bundle: bool = False) -> Resolution:
    """Decide what a settled cycle leads to."""
    if local is None:
        return Resolution(ResolutionOutcome.LOAD_LOCAL, None, remote, fetch_from_bundle)
    if remote is None:
        return Resolution(ResolutionOutcome.REMOTE_UNAVAILABLE, local, None, fetch_from_bundle)
    if local.same_version(remote):
        return Resolution(ResolutionOutcome.UP_TO_DATE, local, remote, fetch_from_bundle)
    return Resolution(ResolutionOutcome.UPDATE_NEEDED, local, remote, fetch_from_bundle)


class VersionResolver:
    """Fetch both manifests, join them once and compare."""

    def __init__(
        self,
        config: HotPushConfig,
        *,
        transport: Transport,
        channel: LocalManifestChannel,
    ) -> None:
        self._config = config
        self._transport = transport
        self._channel = channel
        self._state = VersionState()
        self._join: SettleOnce[Resolution] | None = None
        self._compare_count = 0

    @property
    def state(self) -> VersionState:
        return self._state

    @property
    def checking(self) -> bool:
        return self._join is not None and not self._join.done

    @property
    def compare_count(self) -> int:
        """How many times a comparison ran over the resolver's lifetime."""
        return self._compare_count

    # ------------------------------------------------------------------
    # Check cycle
    # ------------------------------------------------------------------

    async def check(self) -> Resolution:
        """Run one reconciliation cycle and return its resolution.

        Raises
        ------
        HotPushError
            A cycle is already outstanding.
        """
        if self.checking:
            raise HotPushError("A version check is already in progress")

        self._state = VersionState()
        join: SettleOnce[Resolution] = SettleOnce(name="version join")
        self._join = join

        tasks = [
            asyncio.create_task(self.load_local(), name="hotpush-local-manifest"),
            asyncio.create_task(self.load_remote(), name="hotpush-remote-manifest"),
        ]
        try:
            return await join.wait()
        finally:
            if self._join is join and not join.done:
                self._join = None
            for task in tasks:
                if not task.done():
                    task.cancel()

    def _settle(self, state: VersionState, source: ManifestSource, manifest: Manifest | None) -> None:
        if state is not self._state:
            _logger.debug("Ignoring %s settlement from a previous cycle", source.value)
            return
        if state.is_settled(source):
            _logger.debug("Ignoring repeated %s settlement", source.value)
            return
        state.mark_settled(source, manifest)
        _logger.debug("%s manifest settled, %d pending", source.value, state.pending_fetches)
        if state.pending_fetches == 0:
            self._compare()

    def _compare(self) -> None:
        join = self._join
        if join is None or join.done:
            return
        self._compare_count += 1
        state = self._state
        resolution = compare(state.local, state.remote, fetch_from_bundle=state.fetch_from_bundle)
        if resolution.outcome is ResolutionOutcome.UPDATE_NEEDED:
            assert resolution.local is not None and resolution.remote is not None  # noqa: S101
            _logger.info(
                "Not the last version, %s != %s",
                resolution.local.timestamp,
                resolution.remote.timestamp,
            )
        elif resolution.outcome is ResolutionOutcome.UP_TO_DATE:
            _logger.info("All good, last version running")
        elif resolution.outcome is ResolutionOutcome.REMOTE_UNAVAILABLE:
            _logger.info("Remote version unavailable, keeping local content")
        join.settle(resolution)

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    async def load_local(self) -> None:
        """Read the local manifest (with bundle fallback) and settle it."""
        state = self._state
        manifest: Manifest | None = None
        try:
            manifest = await self.read_local()
        except Exception:
            _logger.exception("Local manifest read failed")
        finally:
            self._settle(state, ManifestSource.LOCAL, manifest)

    async def load_remote(self) -> None:
        """Fetch the remote manifest and settle it.

        Failures are logged and settle the remote source as absent.
        """
        state = self._state
        manifest: Manifest | None = None
        url = self._config.remote_manifest_url
        try:
            payload = await self._transport.get_json(url, self._config.headers)
            manifest = Manifest.from_payload(payload)
        except HotPushTransportError as exc:
            _logger.warning("Nothing on the remote (%s), keeping local content", exc)
        except ManifestError as exc:
            _logger.warning("Remote manifest at %s is invalid: %s", url, exc)
        except Exception:
            _logger.exception("Remote manifest fetch from %s failed", url)
        finally:
            self._settle(state, ManifestSource.REMOTE, manifest)

    async def read_local(self) -> Manifest | None:
        """Read the local manifest, trying the bundle once if the documents copy is absent.

        Sets ``fetch_from_bundle`` on the cycle state when the bundle was
        consulted. Returns ``None`` when both locations are absent.
        """
        state = self._state
        state.fetch_from_bundle = False
        manifest = await self._read_local_once(self._config.documents_path)
        if manifest is None and not state.fetch_from_bundle:
            _logger.debug("No manifest in documents, searching the bundle")
            state.fetch_from_bundle = True
            manifest = await self._read_local_once(self._config.bundle_path)
        if manifest is None:
            _logger.warning("No local manifest found in documents nor in bundle")
        return manifest

    async def _read_local_once(self, base: Path) -> Manifest | None:
        path = base / self._config.version_jsonp_file_name
        try:
            manifest, timed_out = await race_timeout(
                self._channel.read(path),
                self._config.local_timeout,
                None,
                name=f"local manifest {path}",
            )
        except ManifestError as exc:
            _logger.warning("Unreadable local manifest %s: %s", path, exc)
            return None
        if timed_out:
            _logger.debug("Local manifest read of %s timed out", path)
        return manifest

    async def load_from_local(self) -> Manifest | None:
        """Read the local manifest for a plain load, outside any check cycle."""
        if self.checking:
            raise HotPushError("A version check is already in progress")
        self._state = VersionState()
        return await self.read_local()

    def local_path(self, filename: str) -> Path:
        """Where *filename* lives for the manifest that was read last."""
        return self.local_base_path / filename

    @property
    def local_base_path(self) -> Path:
        return self._config.bundle_path if self._state.fetch_from_bundle else self._config.documents_path
