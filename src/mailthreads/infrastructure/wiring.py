"""Build store clients, message sources and the import use case from settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from loguru import logger

from mailthreads.application.ports.message_source import MessageSource
from mailthreads.application.services.reply_ordering import ReplyOrdering
from mailthreads.application.use_cases.import_emails import ImportEmailsUseCase
from mailthreads.infrastructure.settings import Settings, get_settings
from mailthreads.infrastructure.stores import (
    SqlMessageRepository,
    SqlRawMessageRepository,
    SqlThreadRepository,
    SqlUserRepository,
    StoreClient,
)

SourceKind = Literal["imap", "mbox"]


def create_store_client(settings: Settings) -> StoreClient:
    """Open the configured store and make sure its schema exists."""
    if settings.store_backend == "postgres":
        from mailthreads.infrastructure.postgres import PostgresClient

        client = PostgresClient(settings)
        client.connect()
        client.setup_schema()
        return client

    from mailthreads.infrastructure.sqlite import SQLiteClient

    return SQLiteClient(db_path=settings.sqlite_db_path)


@lru_cache
def get_store_client() -> StoreClient:
    """Get cached store client for the configured backend."""
    return create_store_client(get_settings())


def create_message_source(
    settings: Settings,
    kind: SourceKind,
    mbox_path: str | None = None,
) -> MessageSource:
    """Create a message source. Raises ValueError when it is not configured."""
    if kind == "mbox":
        from mailthreads.infrastructure.email.providers.mbox import MboxMessageSource

        path = mbox_path or settings.mbox_path
        if not path:
            raise ValueError("No mbox path given (set MAILTHREADS_MBOX_PATH or pass one)")
        return MboxMessageSource(path)

    if kind == "imap":
        from mailthreads.infrastructure.email.providers.imap import ImapConfig, ImapMessageSource

        if not settings.imap_username or settings.imap_password is None:
            raise ValueError("IMAP source needs MAILTHREADS_IMAP_USERNAME and MAILTHREADS_IMAP_PASSWORD")
        return ImapMessageSource(
            ImapConfig(
                host=settings.imap_host,
                port=settings.imap_port,
                username=settings.imap_username,
                password=settings.imap_password.get_secret_value(),
                folder=settings.imap_folder,
            )
        )

    raise ValueError(f"Unknown message source: {kind}")


def create_import_use_case(
    client: StoreClient,
    source: MessageSource,
    ordering: ReplyOrdering | str = ReplyOrdering.TOPOLOGICAL,
) -> ImportEmailsUseCase:
    ordering = ReplyOrdering(ordering)
    logger.debug(f"Import configured: source={type(source).__name__}, ordering={ordering.value}")
    return ImportEmailsUseCase(
        source=source,
        raw_messages=SqlRawMessageRepository(client),
        threads=SqlThreadRepository(client),
        messages=SqlMessageRepository(client),
        users=SqlUserRepository(client),
        ordering=ordering,
    )
