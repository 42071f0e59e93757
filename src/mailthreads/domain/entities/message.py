from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from mailthreads.domain.entities.raw_message import RawMessage

@dataclass(frozen=True)
class NormalizedMessage:
    universal_id: str
    thread_id: int
    sender_id: Optional[int] = None
    in_reply_to: Optional[str] = None
    sent_at: Optional[datetime] = None
    text: str = ""
    id: Optional[int] = None

    @classmethod
    def from_raw(cls, raw: RawMessage, *, thread_id: int, sender_id: Optional[int]) -> NormalizedMessage:
        return cls(
            universal_id=raw.universal_id,
            thread_id=thread_id,
            sender_id=sender_id,
            in_reply_to=raw.in_reply_to,
            sent_at=raw.sent_at,
            text=raw.text,
        )
