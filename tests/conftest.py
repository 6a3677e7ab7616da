from __future__ import annotations

from pathlib import Path

import pytest
from fakes import FakeTransfer, RecordingInjector

from hotpush.config import HotPushConfig
from hotpush.exceptions import HotPushTransportError


@pytest.fixture
def config(tmp_path: Path) -> HotPushConfig:
    return HotPushConfig(
        src="https://updates.example.com/app/",
        version_jsonp_file_name="version.jsonp",
        version_json_file_name="version.json",
        archive_url="https://updates.example.com/app/content.zip",
        bundle_path=tmp_path / "bundle",
        documents_path=tmp_path / "documents",
        local_timeout=0.05,
        wave_interval=0.01,
    )


@pytest.fixture
def transfer() -> FakeTransfer:
    return FakeTransfer()


@pytest.fixture
def injector() -> RecordingInjector:
    return RecordingInjector()


@pytest.fixture
def unavailable() -> HotPushTransportError:
    return HotPushTransportError("HTTP 404", status_code=404, url="https://updates.example.com/app/version.json")
