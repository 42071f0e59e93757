from __future__ import annotations
from typing import Protocol

from mailthreads.domain.entities.raw_message import RawMessage

class MessageSource(Protocol):
    # Replies are expected after their target; see ReplyOrdering
    async def fetch(self) -> list[RawMessage]: ...
