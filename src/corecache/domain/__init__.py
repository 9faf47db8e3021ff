"""Domain exports."""

from .checksum import HashAlgorithm, ParsedChecksum, parse_checksum
from .errors import (
    FilesystemError,
    HashComputationError,
    IndexFormatError,
    IntegrityError,
    InvalidDigestError,
    MalformedChecksumError,
    ManifestFormatError,
    ManifestNotFoundError,
    ResourceNotFoundError,
    ResourceResolutionError,
    UnsupportedAlgorithmError,
)
from .resource import DownloadResource

__all__ = [
    "DownloadResource",
    "FilesystemError",
    "HashAlgorithm",
    "HashComputationError",
    "IndexFormatError",
    "IntegrityError",
    "InvalidDigestError",
    "MalformedChecksumError",
    "ManifestFormatError",
    "ManifestNotFoundError",
    "ParsedChecksum",
    "ResourceNotFoundError",
    "ResourceResolutionError",
    "UnsupportedAlgorithmError",
    "parse_checksum",
]
