"""Client configuration for hotpush."""

from __future__ import annotations

import dataclasses
import json
import os
from collections.abc import Mapping
from enum import StrEnum
from pathlib import Path
from typing import Any

from hotpush._constants import (
    DEFAULT_TRANSFER_ID,
    LOCAL_MANIFEST_TIMEOUT,
    REQUEST_TIMEOUT,
    WAVE_INTERVAL,
)
from hotpush.exceptions import HotPushConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def default_bundle_path() -> Path:
    """Content shipped with the application (``<cwd>/www``)."""
    return Path.cwd() / "www"


def default_documents_path() -> Path:
    """Writable per-user location where updated content is extracted."""
    data_home = os.environ.get("XDG_DATA_HOME")
    base = Path(data_home) if data_home else Path.home() / ".local" / "share"
    return base / "hotpush" / "Documents"


class UpdateType(StrEnum):
    """How new content is applied.

    ``replace`` removes the existing content and copies the new archive.
    ``merge`` would only fetch what changed; it is declared but not
    implemented.
    """

    REPLACE = "replace"
    MERGE = "merge"


@dataclasses.dataclass(frozen=True)
class HotPushConfig:
    """Client configuration.

    Parameters
    ----------
    src : str
        Base URL of the hot push endpoint. The remote manifest is fetched
        from ``src + version_json_file_name``.
    version_jsonp_file_name : str
        Name of the local JSONP file holding the installed version.
    version_json_file_name : str
        Name of the remote JSON file holding the published version.
    type : UpdateType
        Update strategy. Defaults to ``replace``.
    archive_url : str or None
        URL of the archive with the new content. Required when
        ``type`` is ``replace``.
    headers : Mapping[str, str] or None
        Extra headers sent with the remote manifest request and passed
        on to the transfer service.
    bundle_path : Path
        Directory of the content shipped with the application.
    documents_path : Path
        Directory where updated content lives.
    local_timeout : float
        Seconds the local manifest read may take before it counts as
        absent.
    wave_interval : float
        Seconds between the start of two consecutive asset waves.
    request_timeout : float
        Total timeout for the remote manifest request.
    transfer_id : str
        Stable id under which the transfer service stores the content.
    cache_bust : bool
        Append ``?<epoch-ms>`` to asset URLs so stale copies are not reused.
    """

    src: str
    version_jsonp_file_name: str
    version_json_file_name: str
    type: UpdateType = UpdateType.REPLACE
    archive_url: str | None = None
    headers: Mapping[str, str] | None = None
    bundle_path: Path = dataclasses.field(default_factory=default_bundle_path)
    documents_path: Path = dataclasses.field(default_factory=default_documents_path)
    local_timeout: float = LOCAL_MANIFEST_TIMEOUT
    wave_interval: float = WAVE_INTERVAL
    request_timeout: float = REQUEST_TIMEOUT
    transfer_id: str = DEFAULT_TRANSFER_ID
    cache_bust: bool = True

    def __post_init__(self) -> None:
        for name in ("src", "version_jsonp_file_name", "version_json_file_name"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise HotPushConfigError(f"The {name} option is required.")

        try:
            update_type = UpdateType(self.type)
        except ValueError as exc:
            raise HotPushConfigError(f"Unknown update type: {self.type!r}") from exc
        # Frozen dataclass: normalise plain strings to the enum in place.
        object.__setattr__(self, "type", update_type)

        if update_type == UpdateType.REPLACE and not self.archive_url:
            raise HotPushConfigError("The archive_url option is required when type is replace.")

        object.__setattr__(self, "bundle_path", Path(self.bundle_path))
        object.__setattr__(self, "documents_path", Path(self.documents_path))

        if self.local_timeout <= 0:
            raise HotPushConfigError("local_timeout must be positive")
        if self.wave_interval < 0:
            raise HotPushConfigError("wave_interval must not be negative")
        if self.request_timeout <= 0:
            raise HotPushConfigError("request_timeout must be positive")

    @property
    def remote_manifest_url(self) -> str:
        return f"{self.src}{self.version_json_file_name}"

    @classmethod
    def from_env(cls, **overrides: Any) -> HotPushConfig:
        """Create configuration from environment variables.

        Reads ``HOTPUSH_SRC``, ``HOTPUSH_VERSION_JSONP_FILE_NAME``,
        ``HOTPUSH_VERSION_JSON_FILE_NAME`` and the optional ``HOTPUSH_*``
        variables below. Explicit keyword arguments override environment
        values.

        ``HOTPUSH_HEADERS`` holds a JSON object.

        Returns
        -------
        HotPushConfig
            Populated configuration.

        Raises
        ------
        HotPushConfigError
            A required value is missing or a value cannot be parsed.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "HOTPUSH_SRC": "src",
            "HOTPUSH_VERSION_JSONP_FILE_NAME": "version_jsonp_file_name",
            "HOTPUSH_VERSION_JSON_FILE_NAME": "version_json_file_name",
            "HOTPUSH_TYPE": "type",
            "HOTPUSH_ARCHIVE_URL": "archive_url",
            "HOTPUSH_BUNDLE_PATH": "bundle_path",
            "HOTPUSH_DOCUMENTS_PATH": "documents_path",
            "HOTPUSH_TRANSFER_ID": "transfer_id",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # numeric values, handle separately
        _ENV_FLOAT_MAP = {
            "HOTPUSH_LOCAL_TIMEOUT": "local_timeout",
            "HOTPUSH_WAVE_INTERVAL": "wave_interval",
            "HOTPUSH_REQUEST_TIMEOUT": "request_timeout",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                try:
                    config_kwargs[field_name] = float(val)
                except ValueError as exc:
                    raise HotPushConfigError(f"{env_key} is not a number: {val!r}") from exc

        headers_env = env.get("HOTPUSH_HEADERS")
        if headers_env is not None and "headers" not in overrides:
            try:
                headers = json.loads(headers_env)
            except json.JSONDecodeError as exc:
                raise HotPushConfigError("HOTPUSH_HEADERS is not valid JSON") from exc
            if not isinstance(headers, dict):
                raise HotPushConfigError("HOTPUSH_HEADERS must be a JSON object")
            config_kwargs["headers"] = {str(k): str(v) for k, v in headers.items()}

        if "cache_bust" not in overrides:
            config_kwargs["cache_bust"] = _env_bool(env.get("HOTPUSH_CACHE_BUST"), True)

        config_kwargs.update(overrides)

        try:
            return cls(**config_kwargs)
        except TypeError as exc:
            # missing positional fields
            raise HotPushConfigError(str(exc)) from exc
