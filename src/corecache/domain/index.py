"""Package index model: cores and their versioned releases."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import yaml
from packaging.version import InvalidVersion, Version

from corecache.resources import iter_schema_errors

from .errors import FilesystemError, IndexFormatError
from .resource import DownloadResource

INDEX_SCHEMA = "package_index.schema.json"


@dataclass(frozen=True)
class Release:
    version: str
    archive_file_name: str
    checksum: str
    size: int
    url: str = ""
    boards: Tuple[str, ...] = ()

    def resource(self, cache_dir: Path) -> DownloadResource:
        return DownloadResource(
            url=self.url,
            archive_file_name=self.archive_file_name,
            checksum=self.checksum,
            size=self.size,
            cache_dir=cache_dir,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Release":
        return cls(
            version=str(data["version"]),
            archive_file_name=data["archiveFileName"],
            checksum=data["checksum"],
            size=int(data["size"]),
            url=data.get("url", ""),
            boards=tuple(board["name"] for board in data.get("boards", [])),
        )


@dataclass
class Core:
    """A core package (one packager + architecture) with its releases."""

    packager: str
    name: str
    architecture: str
    category: str = ""
    releases: Dict[str, Release] = field(default_factory=dict)

    @property
    def core_id(self) -> str:
        return f"{self.packager}:{self.architecture}"

    def get_version(self, version: str) -> Optional[Release]:
        return self.releases.get(version)

    def versions(self) -> List[Version]:
        """Parsed release versions; entries that are not valid versions are skipped."""
        parsed: List[Version] = []
        for release in self.releases.values():
            try:
                parsed.append(Version(release.version))
            except InvalidVersion:
                continue
        return parsed

    def latest(self) -> Optional[Release]:
        versions = self.versions()
        if not versions:
            return None
        newest = max(versions)
        for release in self.releases.values():
            if _version_sort_key(release.version) == (1, newest):
                return release
        return None


@dataclass
class PackageIndex:
    cores: List[Core] = field(default_factory=list)
    source: Optional[Path] = None

    def find(self, core_id: str) -> Optional[Core]:
        for core in self.cores:
            if core.core_id == core_id:
                return core
        return None

    def iter_releases(self) -> Iterator[Tuple[Core, Release]]:
        for core in self.cores:
            for version in sorted(core.releases, key=_version_sort_key):
                yield core, core.releases[version]

    @classmethod
    def from_dict(cls, payload: Dict[str, Any], *, source: Optional[Path] = None) -> "PackageIndex":
        issues = [f"{path or '<root>'}: {message}" for path, message in iter_schema_errors(INDEX_SCHEMA, payload)]
        if issues:
            raise IndexFormatError("invalid package index: " + "; ".join(issues), path=source)

        cores: Dict[str, Core] = {}
        for package in payload.get("packages", []):
            packager = package["name"]
            for platform in package.get("platforms", []):
                key = f"{packager}:{platform['architecture']}"
                core = cores.get(key)
                if core is None:
                    core = Core(
                        packager=packager,
                        name=platform["name"],
                        architecture=platform["architecture"],
                        category=platform.get("category", ""),
                    )
                    cores[key] = core
                release = Release.from_dict(platform)
                core.releases[release.version] = release
        return cls(cores=sorted(cores.values(), key=lambda c: c.core_id), source=source)


def _version_sort_key(value: str) -> Tuple[int, Any]:
    try:
        return (1, Version(value))
    except InvalidVersion:
        return (0, value)


def load_index(path: Path) -> PackageIndex:
    """Load a package index from JSON or YAML."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise IndexFormatError(f"package index not found: {path}", path=path) from exc
    except OSError as exc:
        raise FilesystemError(f"reading package index {path}: {exc}", path=path) from exc
    except UnicodeDecodeError as exc:
        raise IndexFormatError(f"package index is not UTF-8: {path}", path=path) from exc
    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            payload = yaml.safe_load(raw) or {}
        else:
            payload = json.loads(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise IndexFormatError(f"cannot parse package index {path}: {exc}", path=path) from exc
    if not isinstance(payload, dict):
        raise IndexFormatError(f"package index must be a mapping: {path}", path=path)
    return PackageIndex.from_dict(payload, source=path)


__all__ = ["Core", "INDEX_SCHEMA", "PackageIndex", "Release", "load_index"]
