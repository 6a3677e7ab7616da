from __future__ import annotations

from pathlib import Path

import pytest

from hotpush.config import HotPushConfig, UpdateType
from hotpush.exceptions import HotPushConfigError

_BASE = {
    "src": "https://updates.example.com/app/",
    "version_jsonp_file_name": "version.jsonp",
    "version_json_file_name": "version.json",
}


def test_replace_is_default_and_requires_archive_url() -> None:
    with pytest.raises(HotPushConfigError, match="archive_url"):
        HotPushConfig(**_BASE)

    config = HotPushConfig(**_BASE, archive_url="https://updates.example.com/app/content.zip")
    assert config.type is UpdateType.REPLACE
    assert config.headers is None
    assert config.remote_manifest_url == "https://updates.example.com/app/version.json"


def test_merge_does_not_need_archive_url() -> None:
    config = HotPushConfig(**_BASE, type="merge")
    assert config.type is UpdateType.MERGE


@pytest.mark.parametrize("missing", ["src", "version_jsonp_file_name", "version_json_file_name"])
def test_required_options_fail_fast(missing: str) -> None:
    kwargs = {**_BASE, missing: "", "archive_url": "https://x/content.zip"}
    with pytest.raises(HotPushConfigError, match=missing):
        HotPushConfig(**kwargs)


def test_unknown_type_rejected() -> None:
    with pytest.raises(HotPushConfigError, match="update type"):
        HotPushConfig(**_BASE, type="patch")


def test_paths_are_normalised() -> None:
    config = HotPushConfig(**_BASE, type="merge", bundle_path="/opt/app/www", documents_path="/tmp/docs")
    assert config.bundle_path == Path("/opt/app/www")
    assert config.documents_path == Path("/tmp/docs")


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOTPUSH_SRC", "https://cdn.example.com/")
    monkeypatch.setenv("HOTPUSH_VERSION_JSONP_FILE_NAME", "v.jsonp")
    monkeypatch.setenv("HOTPUSH_VERSION_JSON_FILE_NAME", "v.json")
    monkeypatch.setenv("HOTPUSH_ARCHIVE_URL", "https://cdn.example.com/www.zip")
    monkeypatch.setenv("HOTPUSH_HEADERS", '{"Authorization": "Bearer abc"}')
    monkeypatch.setenv("HOTPUSH_LOCAL_TIMEOUT", "0.5")
    monkeypatch.setenv("HOTPUSH_CACHE_BUST", "off")

    config = HotPushConfig.from_env(transfer_id="www")

    assert config.src == "https://cdn.example.com/"
    assert config.headers == {"Authorization": "Bearer abc"}
    assert config.local_timeout == 0.5
    assert config.cache_bust is False
    assert config.transfer_id == "www"


def test_from_env_missing_required(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("HOTPUSH_SRC", "HOTPUSH_VERSION_JSONP_FILE_NAME", "HOTPUSH_VERSION_JSON_FILE_NAME"):
        monkeypatch.delenv(key, raising=False)
    with pytest.raises(HotPushConfigError):
        HotPushConfig.from_env()


def test_from_env_rejects_bad_headers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOTPUSH_HEADERS", "[1, 2]")
    with pytest.raises(HotPushConfigError, match="HOTPUSH_HEADERS"):
        HotPushConfig.from_env(**_BASE, type="merge")
