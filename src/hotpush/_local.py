"""Local version manifest channel.

The installed version is described by a JSONP file stored next to the
content, either in the writable documents directory or in the bundle
shipped with the application. Reading it is an explicit async operation
that returns the manifest or ``None`` for explicit absence.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol

from hotpush.exceptions import ManifestError
from hotpush.models.manifest import Manifest

_logger = logging.getLogger(__name__)


class LocalManifestChannel(Protocol):
    """Reads the local version file at *path*."""

    async def read(self, path: Path) -> Manifest | None:
        ...


class FileManifestChannel:
    """Read the local version file from the filesystem off the event loop."""

    def __init__(self, *, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    def _read_text(self, path: Path) -> str | None:
        try:
            return path.read_text(encoding=self._encoding)
        except FileNotFoundError:
            return None

    async def read(self, path: Path) -> Manifest | None:
        """Return the manifest at *path*, or ``None`` when the file is missing.

        Raises
        ------
        ManifestError
            The file exists but cannot be read or parsed.
        """
        loop = asyncio.get_running_loop()
        try:
            text = await loop.run_in_executor(None, self._read_text, path)
        except OSError as exc:
            raise ManifestError(f"Cannot read {path}: {exc}") from exc
        if text is None:
            _logger.debug("No local manifest at %s", path)
            return None
        return Manifest.from_jsonp(text)
