from __future__ import annotations

from pathlib import Path

import pytest

from corecache import settings as settings_module
from corecache.settings import apply_overrides
from tests._helpers import make_runtime_settings


def test_load_settings_honours_home_and_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    home = tmp_path / "home"
    home.mkdir()
    (home / "config.yaml").write_text(
        f"cache_dir: {tmp_path / 'shared-cache'}\nmanifest_policy: strict\n", encoding="utf-8"
    )
    monkeypatch.setenv("CORECACHE_HOME", str(home))
    monkeypatch.delenv("CORECACHE_CACHE_DIR", raising=False)
    monkeypatch.delenv("CORECACHE_MANIFEST_POLICY", raising=False)

    settings = settings_module.load_settings()

    assert settings.home_dir == home
    assert settings.cache_dir == tmp_path / "shared-cache"
    assert settings.manifest_policy == "strict"
    assert settings.telemetry_log == home / "logs" / "telemetry.jsonl"


def test_load_settings_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CORECACHE_HOME", str(tmp_path))
    monkeypatch.delenv("CORECACHE_CACHE_DIR", raising=False)
    monkeypatch.delenv("CORECACHE_MANIFEST_POLICY", raising=False)

    settings = settings_module.load_settings()

    assert settings.cache_dir == tmp_path / "cache" / "packages"
    assert settings.manifest_policy == "lenient"


def test_environment_wins_over_config(tmp_path: Path) -> None:
    base = make_runtime_settings(tmp_path)
    updated = apply_overrides(
        base,
        {"cache_dir": "/from/config", "manifest_policy": "strict"},
        {"CORECACHE_CACHE_DIR": str(tmp_path / "env-cache"), "CORECACHE_MANIFEST_POLICY": "LENIENT"},
    )

    assert updated.cache_dir == tmp_path / "env-cache"
    assert updated.manifest_policy == "lenient"


def test_invalid_policy_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="manifest policy"):
        apply_overrides(make_runtime_settings(tmp_path), {}, {"CORECACHE_MANIFEST_POLICY": "sometimes"})


def test_config_must_be_mapping(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "config.yaml").write_text("- just\n- a list\n", encoding="utf-8")
    monkeypatch.setenv("CORECACHE_HOME", str(tmp_path))

    with pytest.raises(ValueError, match="mapping"):
        settings_module.load_settings()


def test_malformed_config_raises_value_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "config.yaml").write_text("manifest_policy: [strict\n", encoding="utf-8")
    monkeypatch.setenv("CORECACHE_HOME", str(tmp_path))

    with pytest.raises(ValueError, match="cannot read"):
        settings_module.load_settings()


def test_importing_settings_does_not_load_environment() -> None:
    assert not hasattr(settings_module, "SETTINGS")
