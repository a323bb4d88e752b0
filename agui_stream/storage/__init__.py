"""Storage module."""

from .storage import MAX_RECENT_QUERIES, IStorage, Storage

__all__ = ["IStorage", "MAX_RECENT_QUERIES", "Storage"]
