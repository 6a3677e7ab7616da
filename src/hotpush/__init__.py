"""hotpush - Async over-the-air content updates for deployed applications."""

from importlib.metadata import PackageNotFoundError, version
from typing import Any

try:
    __version__ = version("hotpush")
except PackageNotFoundError:
    __version__ = "0+local"
from hotpush.client import HotPush
from hotpush.config import HotPushConfig, UpdateType
from hotpush.events import EventBus, EventKind
from hotpush.exceptions import (
    HotPushConfigError,
    HotPushError,
    HotPushTransportError,
    InvalidTransitionError,
    LocalManifestMissingError,
    ManifestError,
    StrategyNotImplementedError,
    TransferError,
)
from hotpush.loader import AssetInjector, StagedAssetLoader, group_waves
from hotpush.models import (
    Asset,
    CompleteEvent,
    ErrorEvent,
    FileEntry,
    FileKind,
    Manifest,
    ProgressEvent,
    ProgressState,
    Wave,
)
from hotpush.orchestrator import ContentTransfer, SyncOrchestrator, SyncState, TransferHandle
from hotpush.resolver import Resolution, ResolutionOutcome, VersionResolver


def sync(config: HotPushConfig, **kwargs: Any) -> HotPush:
    """Create a new :class:`HotPush` for *config*.

    Keyword arguments are passed to the constructor (``transfer`` and
    ``injector`` are required).
    """
    return HotPush(config, **kwargs)


__all__ = [
    "__version__",
    "Asset",
    "AssetInjector",
    "CompleteEvent",
    "ContentTransfer",
    "ErrorEvent",
    "EventBus",
    "EventKind",
    "FileEntry",
    "FileKind",
    "HotPush",
    "HotPushConfig",
    "HotPushConfigError",
    "HotPushError",
    "HotPushTransportError",
    "InvalidTransitionError",
    "LocalManifestMissingError",
    "Manifest",
    "ManifestError",
    "ProgressEvent",
    "ProgressState",
    "Resolution",
    "ResolutionOutcome",
    "StagedAssetLoader",
    "StrategyNotImplementedError",
    "SyncOrchestrator",
    "SyncState",
    "TransferError",
    "TransferHandle",
    "UpdateType",
    "VersionResolver",
    "Wave",
    "group_waves",
    "sync",
]
