"""Version manifest models.

A manifest is one snapshot of the content version: a ``timestamp`` that
identifies it and the ordered list of files that make it up. Each file
carries a ``position`` tier; files on the same tier may load together and
a lower tier is attempted before the next one starts.
"""

from __future__ import annotations

import enum
import json
import re
from pathlib import PurePosixPath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hotpush._constants import JSONP_CALLBACK
from hotpush.exceptions import ManifestError
from hotpush.models._base import HotPushBaseModel

_JSONP_RE = re.compile(r"^\s*([A-Za-z_$][\w$.]*)\s*\((?P<body>.*)\)\s*;?\s*$", re.DOTALL)


class FileKind(enum.Enum):
    """Kind of a content file, decided once from its suffix."""

    STYLESHEET = "stylesheet"
    SCRIPT = "script"

    @classmethod
    def from_name(cls, name: str) -> FileKind | None:
        """Return the kind for *name*, or ``None`` for unsupported suffixes."""
        return _SUFFIX_KINDS.get(PurePosixPath(name.split("?", 1)[0]).suffix.lower())


_SUFFIX_KINDS: dict[str, FileKind] = {
    ".css": FileKind.STYLESHEET,
    ".js": FileKind.SCRIPT,
}


class ProgressState(enum.IntEnum):
    """Maps the numeric ``status`` a transfer may report with its progress."""

    STOPPED = 0
    DOWNLOADING = 1
    EXTRACTING = 2
    COMPLETE = 3


class FileEntry(HotPushBaseModel):
    """One file of a manifest and its load tier."""

    name: str
    position: int = Field(ge=0)

    @field_validator("name")
    @classmethod
    def _non_empty_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("file name must be non-empty")
        return name

    @property
    def kind(self) -> FileKind | None:
        return FileKind.from_name(self.name)


class Manifest(HotPushBaseModel):
    """A version snapshot, either installed (local) or published (remote)."""

    timestamp: int
    files: list[FileEntry] = Field(default_factory=list)

    def same_version(self, other: Manifest) -> bool:
        return self.timestamp == other.timestamp

    @classmethod
    def from_jsonp(cls, text: str) -> Manifest | None:
        """Parse a local version file.

        Accepts ``hotPushJSONP({...});`` as well as a bare JSON object.
        ``null``, an empty body or an empty callback call mean the
        version is explicitly absent and return ``None``.

        Raises
        ------
        ManifestError
            The text is neither JSONP nor JSON, or does not describe a
            manifest.
        """
        body = text.strip()
        match = _JSONP_RE.match(body)
        if match is not None:
            if match.group(1) != JSONP_CALLBACK:
                raise ManifestError(f"Unexpected JSONP callback {match.group(1)!r}")
            body = match.group("body").strip()
        if not body or body == "null":
            return None
        try:
            payload: Any = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ManifestError(f"Local manifest is not JSON: {body[:64]}") from exc
        if payload is None:
            return None
        return cls.from_payload(payload)

    @classmethod
    def from_payload(cls, payload: Any) -> Manifest:
        """Validate a decoded JSON payload into a manifest."""
        if not isinstance(payload, dict):
            raise ManifestError(f"Manifest must be a JSON object, got {type(payload).__name__}")
        try:
            return cls.model_validate(payload)
        except ValueError as exc:
            raise ManifestError(f"Invalid manifest: {exc}") from exc


class Asset(BaseModel):
    """A file resolved for injection into the running content."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: FileKind
    path: str
    url: str
    position: int = 0


class Wave(BaseModel):
    """Files sharing one ``position`` tier. Derived on demand, never stored."""

    model_config = ConfigDict(frozen=True)

    position: int
    entries: tuple[FileEntry, ...]

    def __len__(self) -> int:
        return len(self.entries)
