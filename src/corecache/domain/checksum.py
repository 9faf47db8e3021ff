"""Checksum strings as published by package indexes: ``<ALGO>:<hex-digest>``."""

from __future__ import annotations

import binascii
import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from .errors import InvalidDigestError, MalformedChecksumError, UnsupportedAlgorithmError

CHECKSUM_SEPARATOR = ":"


class HashAlgorithm(Enum):
    """Supported digest algorithms keyed by the index tag.

    Tags follow the Java ``MessageDigest`` standard names used by the
    package index. New algorithms are added as new members only.
    """

    SHA256 = "SHA-256"
    SHA1 = "SHA-1"
    MD5 = "MD5"

    @property
    def tag(self) -> str:
        return self.value

    @property
    def constructor(self) -> Callable[[], Any]:
        return _CONSTRUCTORS[self]

    def new(self) -> Any:
        return self.constructor()

    @classmethod
    def from_tag(cls, tag: str) -> "HashAlgorithm":
        for member in cls:
            if member.value == tag:
                return member
        raise UnsupportedAlgorithmError(f"unsupported hash algorithm: {tag}")


_CONSTRUCTORS: dict[HashAlgorithm, Callable[[], Any]] = {
    HashAlgorithm.SHA256: hashlib.sha256,
    HashAlgorithm.SHA1: hashlib.sha1,
    HashAlgorithm.MD5: hashlib.md5,
}


@dataclass(frozen=True)
class ParsedChecksum:
    algorithm: HashAlgorithm
    digest: bytes

    @property
    def hexdigest(self) -> str:
        return self.digest.hex()

    def new_hash(self) -> Any:
        return self.algorithm.new()

    def __str__(self) -> str:
        return f"{self.algorithm.tag}{CHECKSUM_SEPARATOR}{self.hexdigest}"


def parse_checksum(value: str) -> ParsedChecksum:
    """Split ``value`` into algorithm and expected digest bytes.

    Raises MalformedChecksumError when there is no separator,
    InvalidDigestError when the digest is not hexadecimal and
    UnsupportedAlgorithmError for unknown tags.
    """
    parts = value.split(CHECKSUM_SEPARATOR, 1)
    if len(parts) != 2:
        raise MalformedChecksumError(f"invalid checksum format: {value}")
    tag, hex_digest = parts
    try:
        # unhexlify rejects whitespace, unlike bytes.fromhex
        digest = binascii.unhexlify(hex_digest)
    except ValueError as exc:
        raise InvalidDigestError(f"invalid hash '{hex_digest}': {exc}") from exc
    return ParsedChecksum(algorithm=HashAlgorithm.from_tag(tag), digest=digest)


__all__ = ["CHECKSUM_SEPARATOR", "HashAlgorithm", "ParsedChecksum", "parse_checksum"]
