"""Application layer - ports, services and use cases."""

from mailthreads.application.services import MessageAssembler, ReplyOrdering, ThreadResolver
from mailthreads.application.use_cases.import_emails import ImportEmailsUseCase, ImportReport

__all__ = [
    "ImportEmailsUseCase",
    "ImportReport",
    "MessageAssembler",
    "ReplyOrdering",
    "ThreadResolver",
]
