"""Repository layer for the favorites catalog."""

from favorites_api.db.repositories.entries import EntryAggregates, EntryRepository

__all__ = ["EntryAggregates", "EntryRepository"]
