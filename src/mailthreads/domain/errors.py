"""Errors raised by an import run.

Every error carries a ``kind`` so callers (CLI, HTTP API, schedulers) can
decide whether re-running the whole import makes sense.
"""

from __future__ import annotations

from typing import Iterable


class EmailImportError(Exception):
    """Base class for import failures."""

    kind = "import_error"


class UnresolvedThreadReference(EmailImportError):
    """A reply points at a message that was not resolved earlier in the pass."""

    kind = "unresolved_thread_reference"

    def __init__(self, universal_id: str, in_reply_to: str) -> None:
        self.universal_id = universal_id
        self.in_reply_to = in_reply_to
        super().__init__(
            f"Message {universal_id} replies to {in_reply_to}, which has no resolved thread"
        )


class MissingThreadForMessage(EmailImportError):
    """The completed identity map has no thread for a message of the batch."""

    kind = "missing_thread_for_message"

    def __init__(self, universal_id: str) -> None:
        self.universal_id = universal_id
        super().__init__(f"Could not retrieve thread for {universal_id}")


class MessageSourceError(EmailImportError):
    """The message source could not deliver the batch."""

    kind = "message_source_error"


class MessagesAlreadyImported(EmailImportError):
    """Part of the batch was imported by an earlier run."""

    kind = "already_imported"

    def __init__(self, universal_ids: Iterable[str]) -> None:
        self.universal_ids = sorted(universal_ids)
        preview = ", ".join(self.universal_ids[:5])
        more = f" and {len(self.universal_ids) - 5} more" if len(self.universal_ids) > 5 else ""
        super().__init__(f"{len(self.universal_ids)} messages already imported: {preview}{more}")
