from __future__ import annotations
from typing import Optional, Protocol, Sequence

from mailthreads.domain.entities import NormalizedMessage, RawMessage, Thread, User

class RawMessageRepository(Protocol):
    async def persist(self, messages: Sequence[RawMessage]) -> None: ...

class ThreadRepository(Protocol):
    # Returned threads carry the ids assigned by the store
    async def persist(self, threads: Sequence[Thread]) -> list[Thread]: ...

class MessageRepository(Protocol):
    async def persist(self, messages: Sequence[NormalizedMessage]) -> None: ...
    # Subset of universal_ids that already have a stored message
    async def find_imported(self, universal_ids: Sequence[str]) -> set[str]: ...

class UserRepository(Protocol):
    async def find_by_address(self, address: str) -> Optional[User]: ...
