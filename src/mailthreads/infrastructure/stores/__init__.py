"""Store implementations."""

from mailthreads.infrastructure.stores.sql_repositories import (
    SqlMessageRepository,
    SqlRawMessageRepository,
    SqlThreadRepository,
    SqlUserRepository,
    StoreClient,
)

__all__ = [
    "SqlMessageRepository",
    "SqlRawMessageRepository",
    "SqlThreadRepository",
    "SqlUserRepository",
    "StoreClient",
]
