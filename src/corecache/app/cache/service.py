"""Cache status reporting over the archive and manifest checkers."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from corecache.app.integrity import (
    ArchiveIntegrityChecker,
    DirectoryManifestVerifier,
    ManifestPolicy,
    ManifestReport,
    PackageManifest,
)
from corecache.domain.errors import FilesystemError, IntegrityError
from corecache.domain.index import PackageIndex, Release
from corecache.domain.resource import DownloadResource
from corecache.ports.resource import ArchiveResource
from corecache.settings import RuntimeSettings
from corecache.utils.telemetry import record_structured_event, timed_event

ARCHIVE_ABSENT = "absent"
ARCHIVE_OK = "ok"
ARCHIVE_INVALID = "invalid"
ARCHIVE_ERROR = "error"


@dataclass
class ArchiveReport:
    path: Path | None
    expected_checksum: str
    expected_size: int
    status: str
    actual_size: int | None = None
    error: str | None = None
    core_id: str | None = None
    version: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "core": self.core_id,
            "version": self.version,
            "path": self.path.as_posix() if self.path is not None else None,
            "checksum": self.expected_checksum,
            "size": self.expected_size,
            "actual_size": self.actual_size,
            "status": self.status,
            "error": self.error,
        }


@dataclass
class IndexStatusSummary:
    status: str
    cache_dir: Path
    archives: list[ArchiveReport] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for report in self.archives:
            counts[report.status] = counts.get(report.status, 0) + 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "cache_dir": self.cache_dir.as_posix(),
            "counts": self.counts(),
            "archives": [report.to_dict() for report in self.archives],
        }


class CacheService:
    """Entry point used by the CLI: runs checks and records telemetry."""

    def __init__(
        self,
        settings: RuntimeSettings,
        *,
        checker: ArchiveIntegrityChecker | None = None,
        verifier: DirectoryManifestVerifier | None = None,
    ) -> None:
        self._settings = settings
        self._checker = checker or ArchiveIntegrityChecker()
        self._verifier = verifier or DirectoryManifestVerifier(ManifestPolicy(settings.manifest_policy))

    @property
    def cache_dir(self) -> Path:
        return self._settings.cache_dir

    @property
    def verifier(self) -> DirectoryManifestVerifier:
        return self._verifier

    def resource_for(self, release: Release) -> DownloadResource:
        return release.resource(self.cache_dir)

    def check_archive(self, resource: ArchiveResource) -> ArchiveReport:
        """Classify one archive. IntegrityError propagates after being logged."""
        payload: dict[str, Any] = {"checksum": resource.checksum, "size": resource.size}
        with timed_event(self._settings, "archive.check", payload, component="archive"):
            path = resource.archive_path()
            payload["path"] = path.as_posix()
            report = ArchiveReport(
                path=path,
                expected_checksum=resource.checksum,
                expected_size=resource.size,
                status=ARCHIVE_ABSENT,
            )
            if self._checker.verify_integrity(resource):
                report.status = ARCHIVE_OK
            elif self._checker.is_cached(resource):
                report.status = ARCHIVE_INVALID
            if report.status != ARCHIVE_ABSENT:
                try:
                    report.actual_size = path.stat().st_size
                except OSError as exc:
                    raise FilesystemError(f"getting archive info: {exc}", path=path) from exc
            payload["status"] = report.status
        return report

    def index_status(self, index: PackageIndex, *, core_id: str | None = None) -> IndexStatusSummary:
        """Report every release of ``index`` (or one core) against the cache.

        A release whose check raises is reported with status ``error`` and
        the error message; it is never counted as absent or invalid.
        """
        reports: list[ArchiveReport] = []
        for core, release in index.iter_releases():
            if core_id is not None and core.core_id != core_id:
                continue
            resource = self.resource_for(release)
            try:
                report = self.check_archive(resource)
            except IntegrityError as exc:
                report = ArchiveReport(
                    path=None,
                    expected_checksum=release.checksum,
                    expected_size=release.size,
                    status=ARCHIVE_ERROR,
                    error=str(exc),
                )
            report.core_id = core.core_id
            report.version = release.version
            reports.append(report)

        statuses = {report.status for report in reports}
        if ARCHIVE_ERROR in statuses:
            status = "error"
        elif statuses <= {ARCHIVE_OK}:
            status = "ok"
        else:
            status = "incomplete"
        summary = IndexStatusSummary(status=status, cache_dir=self.cache_dir, archives=reports)
        record_structured_event(
            self._settings,
            "index.status",
            payload={"core": core_id, "counts": summary.counts()},
            level="warn" if status == "error" else "info",
            status=status,
            component="index",
        )
        return summary

    def stamp_install(self, root: Path) -> PackageManifest:
        payload: dict[str, Any] = {"root": Path(root).as_posix(), "policy": self._verifier.policy.value}
        with timed_event(self._settings, "manifest.stamp", payload, component="manifest"):
            manifest = self._verifier.stamp(root)
            payload["status"] = "stamped"
            payload["checksum"] = manifest.checksum
        return manifest

    def check_install(self, root: Path) -> ManifestReport:
        payload: dict[str, Any] = {"root": Path(root).as_posix(), "policy": self._verifier.policy.value}
        with timed_event(self._settings, "manifest.verify", payload, component="manifest"):
            report = self._verifier.inspect(root)
            payload["status"] = report.status
        return report


__all__ = [
    "ARCHIVE_ABSENT",
    "ARCHIVE_ERROR",
    "ARCHIVE_INVALID",
    "ARCHIVE_OK",
    "ArchiveReport",
    "CacheService",
    "IndexStatusSummary",
]
