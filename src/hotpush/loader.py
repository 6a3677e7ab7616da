"""Staged (re)loading of local assets.

Files are grouped into waves by their ``position`` tier. Wave ``k``
starts ``k * wave_interval`` seconds after the load begins; the spacing
stands in for "the previous wave had time to finish". Callers that need
strict sequencing should inject assets whose ``inject`` only returns once
the asset is live.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Protocol

from hotpush._constants import WAVE_INTERVAL
from hotpush.models.manifest import Asset, FileKind, Manifest, Wave

_logger = logging.getLogger(__name__)


class AssetInjector(Protocol):
    """Puts one stylesheet or script into the running content."""

    async def inject(self, asset: Asset) -> None:
        ...


def group_waves(manifest: Manifest) -> Iterator[Wave]:
    """Yield one wave per position, starting at 0.

    Probing stops at the first position with no files, so tiers after a
    gap are never reached.
    """
    position = 0
    while True:
        entries = tuple(entry for entry in manifest.files if entry.position == position)
        if not entries:
            break
        yield Wave(position=position, entries=entries)
        position += 1

    unreached = sorted({entry.position for entry in manifest.files if entry.position > position})
    if unreached:
        _logger.warning("No files at position %d, positions %s are not loaded", position, unreached)


class StagedAssetLoader:
    """Decide what to load and in which wave; injection is delegated."""

    def __init__(
        self,
        injector: AssetInjector,
        *,
        wave_interval: float = WAVE_INTERVAL,
        cache_bust: bool = True,
    ) -> None:
        self._injector = injector
        self._wave_interval = wave_interval
        self._cache_bust = cache_bust

    def _asset(self, name: str, kind: FileKind, position: int, base_path: Path, stamp: int) -> Asset:
        path = str(base_path / name)
        url = f"{path}?{stamp}" if self._cache_bust else path
        return Asset(name=name, kind=kind, path=path, url=url, position=position)

    def plan(self, waves: Iterable[Wave], base_path: Path) -> list[list[Asset]]:
        """Assets per wave, unknown file kinds dropped."""
        stamp = int(time.time() * 1000)
        planned: list[list[Asset]] = []
        for wave in waves:
            assets: list[Asset] = []
            for entry in wave.entries:
                kind = entry.kind
                if kind is None:
                    _logger.warning("Skipping %s: not a stylesheet or script", entry.name)
                    continue
                assets.append(self._asset(entry.name, kind, wave.position, base_path, stamp))
            planned.append(assets)
        return planned

    async def load_all(self, manifest: Manifest | None, base_path: Path) -> list[Wave]:
        """Load every wave of *manifest* from *base_path*.

        Returns the waves that were scheduled. A missing manifest loads
        nothing. A file that fails to inject is logged at ERROR and does
        not stop the rest of its wave or the waves after it.
        """
        if manifest is None:
            _logger.debug("No manifest, nothing to load")
            return []

        waves = list(group_waves(manifest))
        planned = self.plan(waves, base_path)
        tasks = [
            asyncio.create_task(self._run_wave(index, assets), name=f"hotpush-wave-{index}")
            for index, assets in enumerate(planned)
        ]
        try:
            if tasks:
                await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
        return waves

    async def _run_wave(self, index: int, assets: list[Asset]) -> None:
        if index:
            await asyncio.sleep(index * self._wave_interval)
        _logger.debug("Loading wave %d (%d files)", index, len(assets))
        results = await asyncio.gather(
            *(self._injector.inject(asset) for asset in assets),
            return_exceptions=True,
        )
        for asset, result in zip(assets, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                _logger.error("Loading %s failed: %s", asset.url, result, exc_info=result)
