"""Data models for hotpush manifests and lifecycle events."""

from hotpush.models._base import HotPushBaseModel
from hotpush.models.events import CompleteEvent, ErrorEvent, ProgressEvent, describe_error
from hotpush.models.manifest import Asset, FileEntry, FileKind, Manifest, ProgressState, Wave

__all__ = [
    "Asset",
    "CompleteEvent",
    "ErrorEvent",
    "FileEntry",
    "FileKind",
    "HotPushBaseModel",
    "Manifest",
    "ProgressEvent",
    "ProgressState",
    "Wave",
    "describe_error",
]
