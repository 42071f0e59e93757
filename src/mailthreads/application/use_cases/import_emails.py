"""Import a batch of fetched emails as threads and messages."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from loguru import logger

from mailthreads.application.ports.message_source import MessageSource
from mailthreads.application.ports.repositories import (
    MessageRepository,
    RawMessageRepository,
    ThreadRepository,
    UserRepository,
)
from mailthreads.application.services.message_assembler import MessageAssembler
from mailthreads.application.services.reply_ordering import ReplyOrdering, prepare_batch
from mailthreads.application.services.thread_resolver import ThreadResolver
from mailthreads.domain.entities import NormalizedMessage, RawMessage, Thread
from mailthreads.domain.errors import MessagesAlreadyImported


@dataclass
class ImportReport:
    """Outcome of a completed import run."""

    fetched: int = 0
    imported: int = 0
    threads_created: int = 0
    unknown_senders: int = 0
    # universal_id -> thread id
    thread_ids: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "fetched": self.fetched,
            "imported": self.imported,
            "threads_created": self.threads_created,
            "unknown_senders": self.unknown_senders,
        }


class ImportEmailsUseCase:
    """Run one import over the whole batch the source delivers.

    Flow:
    1. Fetch raw messages from the source
    2. Persist them verbatim, then refuse the batch if any of it was already imported
    3. Resolve threads (sequential, creates and persists threads)
    4. Assemble normalized messages (concurrent)
    5. Persist normalized messages as one batch

    There is no partial import: any failure aborts the run and is raised to
    the caller. Threads persisted before the failure are not rolled back.
    """

    def __init__(
        self,
        source: MessageSource,
        raw_messages: RawMessageRepository,
        threads: ThreadRepository,
        messages: MessageRepository,
        users: UserRepository,
        ordering: ReplyOrdering = ReplyOrdering.TOPOLOGICAL,
    ) -> None:
        self.source = source
        self.raw_messages = raw_messages
        self.messages = messages
        self.ordering = ordering
        self.resolver = ThreadResolver(threads)
        self.assembler = MessageAssembler(users)

    async def run(self) -> ImportReport:
        fetched = await self._retrieve_and_persist()
        await self._reject_imported(fetched)
        batch = prepare_batch(fetched, self.ordering)

        threads = await self.resolver.resolve(batch)
        normalized = await self._assemble_all(batch, threads)

        await self.messages.persist(normalized)
        logger.info(f"Persisted {len(normalized)} messages")

        report = ImportReport(
            fetched=len(fetched),
            imported=len(normalized),
            threads_created=len({t.id for t in threads.values()}),
            unknown_senders=sum(1 for m in normalized if m.sender_id is None),
            thread_ids={m.universal_id: m.thread_id for m in normalized},
        )
        logger.info(
            f"Import complete: fetched={report.fetched}, imported={report.imported}, "
            f"threads={report.threads_created}, unknown_senders={report.unknown_senders}"
        )
        return report

    async def _retrieve_and_persist(self) -> list[RawMessage]:
        fetched = await self.source.fetch()
        logger.info(f"Fetched {len(fetched)} messages")
        await self.raw_messages.persist(fetched)
        return fetched

    async def _reject_imported(self, fetched: Sequence[RawMessage]) -> None:
        # Runs before thread resolution so a repeated batch creates no threads
        imported = await self.messages.find_imported([m.universal_id for m in fetched])
        if imported:
            logger.error(f"{len(imported)} of {len(fetched)} fetched messages were already imported")
            raise MessagesAlreadyImported(imported)

    async def _assemble_all(
        self,
        batch: Sequence[RawMessage],
        threads: Mapping[str, Thread],
    ) -> list[NormalizedMessage]:
        # The identity map is complete and read-only from here on
        return list(
            await asyncio.gather(*(self.assembler.assemble(m, threads) for m in batch))
        )
