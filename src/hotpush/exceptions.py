"""Custom exception hierarchy for hotpush."""

from __future__ import annotations


class HotPushError(Exception):
    """Base exception for all hotpush errors."""


class HotPushConfigError(HotPushError):
    """Invalid or missing configuration."""


class HotPushTransportError(HotPushError):
    """HTTP-level failure (network, unexpected status, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class ManifestError(HotPushError):
    """A version manifest could not be read or parsed."""


class LocalManifestMissingError(ManifestError):
    """No local manifest in the documents directory nor in the bundle.

    Without a local manifest there is nothing to compare against and
    nothing to load, so the check cycle reports this through the
    ``error`` event instead of stalling.
    """


class StrategyNotImplementedError(HotPushError, NotImplementedError):
    """The selected update strategy has no implementation (``merge``)."""


class InvalidTransitionError(HotPushError):
    """The sync state machine was asked for a move it does not allow."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Invalid sync transition {current} -> {target}")


class TransferError(HotPushError):
    """The content-transfer service reported a failure."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)
