from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

@dataclass(frozen=True)
class RawMessage:
    # Message-ID header, unique across the batch
    universal_id: str
    subject: str
    sender_address: str
    # None starts a new conversation
    in_reply_to: Optional[str] = None
    sender_name: Optional[str] = None
    recipients: tuple[str, ...] = ()
    sent_at: Optional[datetime] = None
    text: str = ""

    @property
    def is_root(self) -> bool:
        return self.in_reply_to is None
