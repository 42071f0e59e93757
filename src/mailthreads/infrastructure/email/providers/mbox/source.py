from __future__ import annotations
import asyncio
import mailbox
from pathlib import Path

from loguru import logger

from mailthreads.application.ports.message_source import MessageSource
from mailthreads.domain.entities.raw_message import RawMessage
from mailthreads.domain.errors import MessageSourceError
from mailthreads.infrastructure.email.rfc822 import rfc822_to_raw_message


class MboxMessageSource(MessageSource):
    """Read messages from an mbox file in file order."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def fetch(self) -> list[RawMessage]:
        if not self.path.is_file():
            raise MessageSourceError(f"Mbox file not found: {self.path}")
        try:
            return await asyncio.to_thread(self._read_all)
        except (OSError, mailbox.Error) as e:
            logger.error(f"Reading {self.path} failed: {e}")
            raise MessageSourceError(f"Mbox read failed: {e}") from e

    def _read_all(self) -> list[RawMessage]:
        box = mailbox.mbox(self.path, create=False)
        results: list[RawMessage] = []
        try:
            for key in box.iterkeys():
                message = rfc822_to_raw_message(box.get_bytes(key))
                if message is not None:
                    results.append(message)
        finally:
            box.close()

        logger.info(f"Read {len(results)} messages from {self.path}")
        return results
