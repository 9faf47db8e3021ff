"""Error taxonomy shared by archive and manifest integrity checks."""

from __future__ import annotations

from pathlib import Path
from typing import TypeVar

_E = TypeVar("_E", bound="IntegrityError")


class IntegrityError(RuntimeError):
    """Base class for every failure raised by corecache.

    A raised error always means "could not decide"; a definitive negative
    verdict is returned as ``False`` instead.
    """

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def with_context(self: _E, context: str) -> _E:
        """Return an error of the same type whose message is prefixed by ``context``."""
        return type(self)(f"{context}: {self.message}", path=self.path)

    def to_dict(self) -> dict[str, str | None]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "path": str(self.path) if self.path is not None else None,
        }


class MalformedChecksumError(IntegrityError, ValueError):
    """Checksum string is not of the form ``<ALGO>:<hex-digest>``."""


class InvalidDigestError(MalformedChecksumError):
    """Digest part of a checksum string is not valid hexadecimal."""


class UnsupportedAlgorithmError(IntegrityError, ValueError):
    """Checksum algorithm tag is outside the supported set."""


class ResourceResolutionError(IntegrityError):
    """A download resource could not resolve its local archive path."""


class ResourceNotFoundError(IntegrityError):
    """A file or directory the operation needs does not exist."""


class ManifestNotFoundError(ResourceNotFoundError):
    """The directory has never been stamped with a manifest."""


class FilesystemError(IntegrityError):
    """Any filesystem failure other than absence (permission, I/O)."""


class HashComputationError(IntegrityError):
    """Reading file content failed while a digest was being computed."""


class ManifestFormatError(IntegrityError):
    """Manifest sidecar exists but its content cannot be understood."""


class IndexFormatError(IntegrityError, ValueError):
    """Package index document is missing fields or malformed."""


__all__ = [
    "FilesystemError",
    "HashComputationError",
    "IndexFormatError",
    "IntegrityError",
    "InvalidDigestError",
    "MalformedChecksumError",
    "ManifestFormatError",
    "ManifestNotFoundError",
    "ResourceNotFoundError",
    "ResourceResolutionError",
    "UnsupportedAlgorithmError",
]
