"""Thread resolution and message assembly."""

from mailthreads.application.services.message_assembler import MessageAssembler
from mailthreads.application.services.reply_ordering import (
    ReplyOrdering,
    drop_duplicates,
    order_replies_after_targets,
    prepare_batch,
)
from mailthreads.application.services.thread_resolver import ThreadResolver

__all__ = [
    "MessageAssembler",
    "ReplyOrdering",
    "ThreadResolver",
    "drop_duplicates",
    "order_replies_after_targets",
    "prepare_batch",
]
