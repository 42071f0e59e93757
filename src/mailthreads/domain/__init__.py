"""Domain entities and errors."""

from mailthreads.domain.entities import NormalizedMessage, RawMessage, Thread, User
from mailthreads.domain.errors import (
    EmailImportError,
    MessagesAlreadyImported,
    MessageSourceError,
    MissingThreadForMessage,
    UnresolvedThreadReference,
)

__all__ = [
    "RawMessage",
    "Thread",
    "NormalizedMessage",
    "User",
    "EmailImportError",
    "UnresolvedThreadReference",
    "MissingThreadForMessage",
    "MessageSourceError",
    "MessagesAlreadyImported",
]
