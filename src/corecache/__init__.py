"""Integrity-verified cache for downloaded core package archives."""

__version__ = "0.3.0"

__all__ = ["__version__"]
