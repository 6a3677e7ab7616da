from __future__ import annotations

import pytest

from hotpush.exceptions import ManifestError
from hotpush.models import CompleteEvent, ErrorEvent, FileEntry, FileKind, Manifest, ProgressEvent, ProgressState
from hotpush.models.events import describe_error

_PAYLOAD = {
    "timestamp": 1700000000,
    "files": [
        {"name": "css/app.css", "position": 0},
        {"name": "js/vendor.js", "position": 0},
        {"name": "js/app.js", "position": 1},
    ],
    "builder": "ci-42",
}


def test_manifest_parses_and_keeps_raw() -> None:
    manifest = Manifest.model_validate(_PAYLOAD)

    assert manifest.timestamp == 1700000000
    assert [f.name for f in manifest.files] == ["css/app.css", "js/vendor.js", "js/app.js"]
    assert manifest.raw["builder"] == "ci-42"


def test_manifest_from_jsonp_wrapper() -> None:
    text = 'hotPushJSONP({"timestamp": 5, "files": [{"name": "a.js", "position": 0}]});\n'
    manifest = Manifest.from_jsonp(text)

    assert manifest is not None
    assert manifest.timestamp == 5
    assert manifest.files[0].kind is FileKind.SCRIPT


@pytest.mark.parametrize("text", ["hotPushJSONP(null);", "hotPushJSONP()", "null", "   "])
def test_manifest_from_jsonp_explicit_absence(text: str) -> None:
    assert Manifest.from_jsonp(text) is None


def test_manifest_from_plain_json() -> None:
    manifest = Manifest.from_jsonp('{"timestamp": 9, "files": []}')
    assert manifest is not None
    assert manifest.files == []


@pytest.mark.parametrize(
    "text",
    [
        "otherCallback({})",
        "hotPushJSONP({not json})",
        "[1, 2, 3]",
        '{"files": []}',
        '{"timestamp": 1, "files": [{"name": "a.js", "position": -1}]}',
    ],
)
def test_manifest_from_jsonp_rejects_garbage(text: str) -> None:
    with pytest.raises(ManifestError):
        Manifest.from_jsonp(text)


def test_same_version_compares_timestamps_only() -> None:
    a = Manifest(timestamp=1, files=[FileEntry(name="a.js", position=0)])
    b = Manifest(timestamp=1, files=[])
    c = Manifest(timestamp=2, files=[])

    assert a.same_version(b)
    assert not a.same_version(c)


@pytest.mark.parametrize(
    ("name", "kind"),
    [
        ("style.css", FileKind.STYLESHEET),
        ("lib/App.CSS", FileKind.STYLESHEET),
        ("main.js", FileKind.SCRIPT),
        ("main.js?v=3", FileKind.SCRIPT),
        ("image.png", None),
        ("main.json", None),
        ("jsfile", None),
        ("app.css.map", None),
    ],
)
def test_file_kind_from_suffix(name: str, kind: FileKind | None) -> None:
    assert FileKind.from_name(name) is kind


def test_progress_event_maps_known_status() -> None:
    event = ProgressEvent.model_validate({"progress": 42, "status": 1})
    assert event.status is ProgressState.DOWNLOADING

    unknown = ProgressEvent.model_validate({"progress": 1, "status": 99})
    assert unknown.status is None


def test_complete_event_accepts_transfer_key() -> None:
    event = CompleteEvent.model_validate({"localPath": "/data/assets"})
    assert event.local_path == "/data/assets"


def test_error_event_from_exception() -> None:
    exc = ManifestError("broken")
    event = ErrorEvent.from_exception(exc)
    assert event.detail == "broken"
    assert event.error is exc


def test_describe_error() -> None:
    assert describe_error("timeout") == "timeout"
    assert describe_error({"message": "disk full"}) == "disk full"
    assert describe_error(RuntimeError("boom")) == "boom"
    assert describe_error(3) == "3"
