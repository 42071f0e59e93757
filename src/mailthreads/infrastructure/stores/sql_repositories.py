"""Async repositories over the SQLite or PostgreSQL client.

The clients are blocking; calls are pushed to a worker thread so the
event loop stays free while assembly lookups run concurrently.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol, Sequence

from loguru import logger

from mailthreads.application.ports.repositories import (
    MessageRepository,
    RawMessageRepository,
    ThreadRepository,
    UserRepository,
)
from mailthreads.domain.entities import NormalizedMessage, RawMessage, Thread, User


class StoreClient(Protocol):
    def insert_emails(self, messages: Sequence[RawMessage]) -> int: ...
    def insert_threads(self, threads: Sequence[Thread]) -> list[Thread]: ...
    def insert_messages(self, messages: Sequence[NormalizedMessage]) -> int: ...
    def imported_message_ids(self, universal_ids: Sequence[str]) -> set[str]: ...
    def list_threads(self) -> list[Thread]: ...
    def get_thread(self, thread_id: int) -> Optional[Thread]: ...
    def list_messages(self, thread_id: int | None = None) -> list[NormalizedMessage]: ...
    def find_user_by_email(self, email: str) -> Optional[User]: ...
    def add_user(self, email: str, name: str | None = None) -> User: ...
    def list_users(self) -> list[User]: ...
    def reset(self) -> None: ...
    def health_check(self) -> dict: ...
    def disconnect(self) -> None: ...


class SqlRawMessageRepository(RawMessageRepository):
    def __init__(self, client: StoreClient):
        self.client = client

    async def persist(self, messages: Sequence[RawMessage]) -> None:
        inserted = await asyncio.to_thread(self.client.insert_emails, list(messages))
        logger.info(f"Stored {inserted} raw emails ({len(messages) - inserted} already present)")


class SqlThreadRepository(ThreadRepository):
    def __init__(self, client: StoreClient):
        self.client = client

    async def persist(self, threads: Sequence[Thread]) -> list[Thread]:
        return await asyncio.to_thread(self.client.insert_threads, list(threads))


class SqlMessageRepository(MessageRepository):
    def __init__(self, client: StoreClient):
        self.client = client

    async def persist(self, messages: Sequence[NormalizedMessage]) -> None:
        await asyncio.to_thread(self.client.insert_messages, list(messages))

    async def find_imported(self, universal_ids: Sequence[str]) -> set[str]:
        return await asyncio.to_thread(self.client.imported_message_ids, list(universal_ids))


class SqlUserRepository(UserRepository):
    def __init__(self, client: StoreClient):
        self.client = client

    async def find_by_address(self, address: str) -> Optional[User]:
        return await asyncio.to_thread(self.client.find_user_by_email, address)
