"""Recommendation row synchronization for Jellyfin catalogs."""

__version__ = "0.1.0"
