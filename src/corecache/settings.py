"""Runtime settings for corecache."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from corecache import __version__

HOME_ENV = "CORECACHE_HOME"
CACHE_DIR_ENV = "CORECACHE_CACHE_DIR"
POLICY_ENV = "CORECACHE_MANIFEST_POLICY"
CONFIG_FILENAME = "config.yaml"
MANIFEST_POLICIES = ("lenient", "strict")


@dataclass(frozen=True)
class RuntimeSettings:
    home_dir: Path
    cache_dir: Path
    state_dir: Path
    log_dir: Path
    manifest_policy: str = "lenient"
    cli_version: str = __version__

    @property
    def telemetry_log(self) -> Path:
        return self.log_dir / "telemetry.jsonl"

    @property
    def config_file(self) -> Path:
        return self.home_dir / CONFIG_FILENAME


def _default_home_dir() -> Path:
    override = os.environ.get(HOME_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".corecache"


def _validate_policy(value: str) -> str:
    normalized = value.strip().lower()
    if normalized not in MANIFEST_POLICIES:
        raise ValueError(f"manifest policy must be one of {', '.join(MANIFEST_POLICIES)}, got '{value}'")
    return normalized


def _load_config(path: Path) -> Mapping[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ValueError(f"cannot read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping")
    return data


def apply_overrides(settings: RuntimeSettings, config: Mapping[str, Any], env: Mapping[str, str]) -> RuntimeSettings:
    """Layer config file values, then environment variables, over ``settings``."""
    cache_dir = settings.cache_dir
    policy = settings.manifest_policy
    if config.get("cache_dir"):
        cache_dir = Path(str(config["cache_dir"])).expanduser()
    if config.get("manifest_policy"):
        policy = _validate_policy(str(config["manifest_policy"]))
    if env.get(CACHE_DIR_ENV):
        cache_dir = Path(env[CACHE_DIR_ENV]).expanduser()
    if env.get(POLICY_ENV):
        policy = _validate_policy(env[POLICY_ENV])
    return replace(settings, cache_dir=cache_dir, manifest_policy=policy)


def load_settings() -> RuntimeSettings:
    base = _default_home_dir()
    settings = RuntimeSettings(
        home_dir=base,
        cache_dir=base / "cache" / "packages",
        state_dir=base / "state",
        log_dir=base / "logs",
    )
    return apply_overrides(settings, _load_config(settings.config_file), os.environ)

