"""Cache reporting services."""

from .service import ArchiveReport, CacheService, IndexStatusSummary

__all__ = ["ArchiveReport", "CacheService", "IndexStatusSummary"]
