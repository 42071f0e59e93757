"""Resolve every message of a batch to the thread it belongs to."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Sequence

from loguru import logger

from mailthreads.application.ports.repositories import ThreadRepository
from mailthreads.domain.entities import RawMessage, Thread
from mailthreads.domain.errors import UnresolvedThreadReference


class ThreadResolver:
    """Build the identity map ``universal_id -> Thread`` for one import run.

    The pass is a sequential fold: a root creates and persists its thread
    before any later reply is looked at, so a reply only ever needs a direct
    lookup of its ``in_reply_to`` target. Every message of a thread maps to
    the same Thread value, which collapses reply chains of any depth.

    Input contract: universal_ids are unique and each reply's target appears
    earlier in ``messages``. ``prepare_batch`` establishes both.
    """

    def __init__(self, threads: ThreadRepository) -> None:
        self.threads = threads

    async def resolve(self, messages: Sequence[RawMessage]) -> Mapping[str, Thread]:
        identity: dict[str, Thread] = {}
        created = 0

        for message in messages:
            if message.in_reply_to is None:
                thread = await self._create_thread(message)
                created += 1
            else:
                thread = identity.get(message.in_reply_to)
                if thread is None:
                    logger.error(
                        f"Reply {message.universal_id} references unresolved {message.in_reply_to}"
                    )
                    raise UnresolvedThreadReference(message.universal_id, message.in_reply_to)

            identity[message.universal_id] = thread

        logger.info(f"Resolved {len(identity)} messages into {created} threads")
        return MappingProxyType(identity)

    async def _create_thread(self, message: RawMessage) -> Thread:
        # One thread per persist call: the id must exist before replies use it
        (thread,) = await self.threads.persist([Thread.from_message(message)])
        logger.debug(f"Created thread {thread.id}: {thread.name[:50]}")
        return thread
