from mailthreads.domain.entities.message import NormalizedMessage
from mailthreads.domain.entities.raw_message import RawMessage
from mailthreads.domain.entities.thread import Thread
from mailthreads.domain.entities.user import User

__all__ = [
    "NormalizedMessage",
    "RawMessage",
    "Thread",
    "User",
]
