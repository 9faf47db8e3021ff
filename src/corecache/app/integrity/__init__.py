"""Archive and directory integrity checks."""

from .archive import ArchiveIntegrityChecker
from .manifest import (
    MANIFEST_FILENAME,
    DirectoryManifestVerifier,
    ManifestPolicy,
    ManifestReport,
    PackageManifest,
)

__all__ = [
    "ArchiveIntegrityChecker",
    "DirectoryManifestVerifier",
    "MANIFEST_FILENAME",
    "ManifestPolicy",
    "ManifestReport",
    "PackageManifest",
]
