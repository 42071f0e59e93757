"""SQLite infrastructure for the import store."""

from mailthreads.infrastructure.sqlite.client import (
    SQLiteClient,
)

__all__ = [
    "SQLiteClient",
]
