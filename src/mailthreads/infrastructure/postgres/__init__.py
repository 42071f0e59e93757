"""PostgreSQL infrastructure for the import store."""

from mailthreads.infrastructure.postgres.client import (
    PostgresClient,
)

__all__ = [
    "PostgresClient",
]
