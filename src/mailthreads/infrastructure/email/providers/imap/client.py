from __future__ import annotations
import asyncio
import imaplib
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from mailthreads.application.ports.message_source import MessageSource
from mailthreads.domain.entities.raw_message import RawMessage
from mailthreads.domain.errors import MessageSourceError
from mailthreads.infrastructure.email.rfc822 import rfc822_to_raw_message


@dataclass
class ImapConfig:
    host: str
    username: str
    password: str
    port: int = 993
    folder: str = "INBOX"


class ImapMessageSource(MessageSource):
    """Fetch every message of one IMAP folder, oldest UID first."""

    def __init__(self, cfg: ImapConfig) -> None:
        self.cfg = cfg
        self._conn: Optional[imaplib.IMAP4_SSL] = None

    def _connect(self) -> imaplib.IMAP4_SSL:
        if self._conn is None:
            self._conn = imaplib.IMAP4_SSL(self.cfg.host, self.cfg.port)
            self._conn.login(self.cfg.username, self.cfg.password)
        return self._conn

    def disconnect(self) -> None:
        if self._conn:
            try:
                self._conn.logout()
            except (imaplib.IMAP4.error, OSError) as e:
                logger.debug(f"IMAP logout failed: {e}")
            self._conn = None

    async def fetch(self) -> list[RawMessage]:
        try:
            return await asyncio.to_thread(self._fetch_all)
        except (imaplib.IMAP4.error, OSError) as e:
            logger.error(f"IMAP fetch from {self.cfg.host}/{self.cfg.folder} failed: {e}")
            raise MessageSourceError(f"IMAP fetch failed: {e}") from e
        finally:
            self.disconnect()

    def _fetch_all(self) -> list[RawMessage]:
        conn = self._connect()

        typ, _ = conn.select(self.cfg.folder, readonly=True)
        if typ != "OK":
            raise MessageSourceError(f"Failed to select folder {self.cfg.folder}")

        typ, uids_data = conn.uid("SEARCH", None, "ALL")
        if typ != "OK":
            raise MessageSourceError("UID SEARCH failed")

        uids: list[int] = []
        if uids_data and uids_data[0]:
            uids = sorted(int(x) for x in uids_data[0].split())

        logger.info(f"Found {len(uids)} messages in {self.cfg.folder}")

        results: list[RawMessage] = []
        for uid in uids:
            typ, msg_data = conn.uid("FETCH", str(uid), "(RFC822)")
            if typ != "OK" or not msg_data or not msg_data[0]:
                raise MessageSourceError(f"Failed to fetch UID {uid}")

            message = rfc822_to_raw_message(msg_data[0][1])
            if message is not None:
                results.append(message)

        return results
