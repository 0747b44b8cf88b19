"""Persistence backends."""

from .sqlite_store import DuplicateListingError, SqliteStore

__all__ = ["DuplicateListingError", "SqliteStore"]
