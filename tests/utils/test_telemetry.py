from __future__ import annotations

from pathlib import Path

import jsonschema
import pytest

from corecache.utils import telemetry
from tests._helpers import make_runtime_settings


def test_record_and_summarize(tmp_path: Path) -> None:
    settings = make_runtime_settings(tmp_path)
    telemetry.record_event(settings, "archive.check", {"path": "a.zip"}, status="ok")
    telemetry.record_event(settings, "archive.check", {"path": "b.zip"}, status="invalid")
    telemetry.record_event(settings, "manifest.stamp", {"root": "/opt/avr"})

    summary = telemetry.summarize(telemetry.iter_events(settings))

    assert summary["total"] == 3
    assert summary["by_event"] == {"archive.check": 2, "manifest.stamp": 1}
    assert summary["by_status"] == {"ok": 1, "invalid": 1, "unknown": 1}


def test_disabled_telemetry_writes_nothing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    settings = make_runtime_settings(tmp_path)
    monkeypatch.setenv("CORECACHE_TELEMETRY", "off")

    telemetry.record_event(settings, "archive.check", {})

    assert not settings.telemetry_log.exists()


def test_invalid_records_are_rejected(tmp_path: Path) -> None:
    settings = make_runtime_settings(tmp_path)
    with pytest.raises(ValueError):
        telemetry.record_structured_event(settings, "archive.check", level="debug")
    with pytest.raises(jsonschema.ValidationError):
        telemetry.record_structured_event(settings, "archive.check", correlation_id=7)  # type: ignore[arg-type]


def test_timed_event_records_errors_and_reraises(tmp_path: Path) -> None:
    settings = make_runtime_settings(tmp_path)

    with pytest.raises(RuntimeError):
        with telemetry.timed_event(settings, "manifest.verify", {"root": "/opt/avr"}, component="manifest"):
            raise RuntimeError("boom")

    (event,) = list(telemetry.iter_events(settings))
    assert event["level"] == "error"
    assert event["status"] == "error"
    assert event["component"] == "manifest"
    assert event["payload"] == {"root": "/opt/avr", "error": "RuntimeError"}


def test_clear_removes_log(tmp_path: Path) -> None:
    settings = make_runtime_settings(tmp_path)
    telemetry.record_event(settings, "archive.check", {})
    telemetry.clear(settings)
    assert list(telemetry.iter_events(settings)) == []


def test_summary_groups_components_and_tracks_slowest(tmp_path: Path) -> None:
    settings = make_runtime_settings(tmp_path)
    telemetry.record_structured_event(settings, "archive.check", status="ok", component="archive", duration_ms=4.0)
    telemetry.record_structured_event(settings, "archive.check", status="ok", component="archive", duration_ms=12.5)
    telemetry.record_structured_event(settings, "manifest.verify", status="mismatch", component="manifest", duration_ms=30.0)
    with settings.telemetry_log.open("a", encoding="utf-8") as fh:
        fh.write('{"event": "archive.ch\n')

    summary = telemetry.summarize(telemetry.iter_events(settings))

    assert summary["total"] == 3
    assert summary["by_component"] == {"archive": 2, "manifest": 1}
    assert summary["slowest_ms"] == {"archive.check": 12.5, "manifest.verify": 30.0}
