"""Directory checksum manifests for installed packages.

An installed directory is stamped with a ``package.json`` sidecar holding the
SHA-256 of every file's content, concatenated in a fixed walk order. The
sidecar at the directory root never contributes to its own digest; a
same-named file deeper in the tree does.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from enum import Enum
from hashlib import sha256
from pathlib import Path
from typing import Any, Iterator

from corecache.domain.errors import (
    FilesystemError,
    ManifestFormatError,
    ManifestNotFoundError,
    ResourceNotFoundError,
)

from .archive import stream_into

MANIFEST_FILENAME = "package.json"
MANIFEST_PERMISSIONS = 0o644


class ManifestPolicy(str, Enum):
    """How the tree walk treats files or directories it cannot open.

    ``LENIENT`` skips them, so coverage is best effort. ``STRICT`` raises.
    """

    LENIENT = "lenient"
    STRICT = "strict"


@dataclass(frozen=True)
class PackageManifest:
    checksum: str

    def to_dict(self) -> dict[str, str]:
        return {"checksum": self.checksum}

    @classmethod
    def from_dict(cls, data: Any) -> "PackageManifest":
        if not isinstance(data, dict):
            raise ManifestFormatError("manifest must be a JSON object")
        checksum = data.get("checksum")
        if not isinstance(checksum, str):
            raise ManifestFormatError("manifest has no string 'checksum' field")
        return cls(checksum=checksum)


@dataclass
class ManifestReport:
    root: Path
    expected: str | None
    actual: str | None
    status: str  # "ok" | "mismatch" | "missing"

    def to_dict(self) -> dict[str, str | None]:
        return {
            "root": self.root.as_posix(),
            "manifest": (self.root / MANIFEST_FILENAME).as_posix(),
            "expected": self.expected,
            "actual": self.actual,
            "status": self.status,
        }


class DirectoryManifestVerifier:
    def __init__(self, policy: ManifestPolicy = ManifestPolicy.LENIENT) -> None:
        self._policy = ManifestPolicy(policy)

    @property
    def policy(self) -> ManifestPolicy:
        return self._policy

    def iter_files(self, root: Path) -> Iterator[Path]:
        """Yield the files covered by the tree digest, in digest order."""
        root = Path(root)
        if not root.is_dir():
            raise ResourceNotFoundError(f"directory not found: {root}", path=root)
        yield from self._walk(root, root)

    def _walk(self, directory: Path, root: Path) -> Iterator[Path]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as exc:
            if directory == root or self._policy is ManifestPolicy.STRICT:
                raise FilesystemError(f"listing {directory}: {exc}", path=directory) from exc
            return
        for entry in entries:
            path = directory / entry.name
            if entry.is_dir(follow_symlinks=False):
                yield from self._walk(path, root)
            elif entry.is_file():
                if directory == root and entry.name == MANIFEST_FILENAME:
                    continue
                yield path

    def compute_tree_digest(self, root: Path) -> str:
        digest = sha256()
        for path in self.iter_files(root):
            try:
                handle = path.open("rb")
            except OSError as exc:
                if self._policy is ManifestPolicy.STRICT:
                    raise FilesystemError(f"opening {path}: {exc}", path=path) from exc
                continue
            with handle:
                stream_into(digest, handle, path=path)
        return digest.hexdigest()

    def stamp(self, root: Path) -> PackageManifest:
        root = Path(root)
        manifest = PackageManifest(checksum=self.compute_tree_digest(root))
        target = root / MANIFEST_FILENAME
        try:
            target.write_text(json.dumps(manifest.to_dict(), indent=2) + "\n", encoding="utf-8")
            os.chmod(target, MANIFEST_PERMISSIONS)
        except OSError as exc:
            raise FilesystemError(f"writing {target}: {exc}", path=target) from exc
        return manifest

    def read_manifest(self, root: Path) -> PackageManifest:
        target = Path(root) / MANIFEST_FILENAME
        try:
            raw = target.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ManifestNotFoundError(f"manifest not found: {target}", path=target) from exc
        except OSError as exc:
            raise FilesystemError(f"reading {target}: {exc}", path=target) from exc
        except UnicodeDecodeError as exc:
            raise ManifestFormatError(f"{target} is not UTF-8: {exc}", path=target) from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ManifestFormatError(f"invalid JSON in {target}: {exc}", path=target) from exc
        try:
            return PackageManifest.from_dict(data)
        except ManifestFormatError as exc:
            raise ManifestFormatError(f"{target}: {exc.message}", path=target) from exc

    def verify(self, root: Path) -> bool:
        manifest = self.read_manifest(root)
        return manifest.checksum == self.compute_tree_digest(root)

    def inspect(self, root: Path) -> ManifestReport:
        """Like verify, but reports an unstamped directory as ``missing``."""
        root = Path(root)
        if not root.is_dir():
            raise ResourceNotFoundError(f"directory not found: {root}", path=root)
        try:
            expected = self.read_manifest(root).checksum
        except ManifestNotFoundError:
            return ManifestReport(root=root, expected=None, actual=None, status="missing")
        actual = self.compute_tree_digest(root)
        status = "ok" if expected == actual else "mismatch"
        return ManifestReport(root=root, expected=expected, actual=actual, status=status)


__all__ = [
    "DirectoryManifestVerifier",
    "MANIFEST_FILENAME",
    "MANIFEST_PERMISSIONS",
    "ManifestPolicy",
    "ManifestReport",
    "PackageManifest",
]
