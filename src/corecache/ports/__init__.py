"""Port definitions consumed by the integrity services."""

from .resource import ArchiveResource

__all__ = ["ArchiveResource"]
