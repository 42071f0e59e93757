from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Optional

from mailthreads.domain.entities.raw_message import RawMessage

@dataclass(frozen=True)
class Thread:
    name: str
    # Assigned by the store on persist
    id: Optional[int] = None

    @classmethod
    def from_message(cls, message: RawMessage) -> Thread:
        """Start a thread named after the subject of its root message."""
        return cls(name=message.subject)

    def with_id(self, thread_id: int) -> Thread:
        return replace(self, id=thread_id)
