"""Cache presence and integrity checks for downloaded archives."""

from __future__ import annotations

import hmac
from pathlib import Path
from typing import Any, BinaryIO

from corecache.domain.checksum import parse_checksum
from corecache.domain.errors import (
    FilesystemError,
    HashComputationError,
    IntegrityError,
    ResourceNotFoundError,
)
from corecache.ports.resource import ArchiveResource

CHUNK_SIZE = 64 * 1024


def stream_into(digest: Any, handle: BinaryIO, *, path: Path) -> None:
    """Feed every byte of ``handle`` into ``digest``.

    Read failures raise HashComputationError; the partial digest is left to
    the caller to discard.
    """
    try:
        for chunk in iter(lambda: handle.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    except OSError as exc:
        raise HashComputationError(f"computing hash of {path}: {exc}", path=path) from exc


def _resolve(resource: ArchiveResource) -> Path:
    try:
        return resource.archive_path()
    except IntegrityError as exc:
        raise exc.with_context("getting archive path") from exc


class ArchiveIntegrityChecker:
    """Answer whether a resource's archive is cached and matches its index entry.

    A ``False`` verdict means the archive is absent or does not match; every
    situation where the answer is unknown (bad checksum string, I/O failure)
    raises an IntegrityError subclass instead.
    """

    def is_cached(self, resource: ArchiveResource) -> bool:
        path = _resolve(resource)
        try:
            path.stat()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise FilesystemError(f"checking archive existence: {exc}", path=path) from exc
        return True

    def verify_checksum(self, resource: ArchiveResource) -> bool:
        expected = parse_checksum(resource.checksum)
        path = _resolve(resource)
        digest = expected.new_hash()
        try:
            handle = path.open("rb")
        except FileNotFoundError as exc:
            raise ResourceNotFoundError(f"opening archive file: {exc}", path=path) from exc
        except OSError as exc:
            raise FilesystemError(f"opening archive file: {exc}", path=path) from exc
        with handle:
            stream_into(digest, handle, path=path)
        return hmac.compare_digest(digest.digest(), expected.digest)

    def verify_size(self, resource: ArchiveResource) -> bool:
        path = _resolve(resource)
        try:
            actual = path.stat().st_size
        except FileNotFoundError as exc:
            raise ResourceNotFoundError(f"getting archive info: {exc}", path=path) from exc
        except OSError as exc:
            raise FilesystemError(f"getting archive info: {exc}", path=path) from exc
        return actual == resource.size

    def verify_integrity(self, resource: ArchiveResource) -> bool:
        """Cached, then size, then checksum; stops at the first negative answer."""
        try:
            cached = self.is_cached(resource)
        except IntegrityError as exc:
            raise exc.with_context("testing if archive is cached") from exc
        if not cached:
            return False

        try:
            size_ok = self.verify_size(resource)
        except IntegrityError as exc:
            raise exc.with_context("testing archive size") from exc
        if not size_ok:
            return False

        try:
            return self.verify_checksum(resource)
        except IntegrityError as exc:
            raise exc.with_context("testing archive checksum") from exc


__all__ = ["ArchiveIntegrityChecker", "CHUNK_SIZE", "stream_into"]
