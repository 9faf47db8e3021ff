"""Port definition for remote resource descriptions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class ArchiveResource(ABC):
    """Anything that knows its expected checksum, size and cached location."""

    checksum: str
    size: int

    @abstractmethod
    def archive_path(self) -> Path:
        """Return where the local cached copy of the archive lives."""
