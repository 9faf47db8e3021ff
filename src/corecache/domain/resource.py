"""Download resource value object."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Any, Dict

from corecache.ports.resource import ArchiveResource

from .errors import ResourceResolutionError


@dataclass(frozen=True)
class DownloadResource(ArchiveResource):
    """Remote archive description plus the cache directory it lands in."""

    url: str
    archive_file_name: str
    checksum: str
    size: int
    cache_dir: Path

    def archive_path(self) -> Path:
        name = self.archive_file_name
        if not name:
            raise ResourceResolutionError("archive file name is empty")
        if (
            PurePosixPath(name).name != name
            or PureWindowsPath(name).name != name
            or name in {".", ".."}
        ):
            raise ResourceResolutionError(f"archive file name must be a bare file name: {name}")
        return Path(self.cache_dir) / name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "archive_file_name": self.archive_file_name,
            "checksum": self.checksum,
            "size": self.size,
            "cache_dir": Path(self.cache_dir).as_posix(),
        }


__all__ = ["DownloadResource"]
