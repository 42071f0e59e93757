"""PostgreSQL client for thread, message and raw email storage."""

from __future__ import annotations

from typing import Any, Optional, Sequence

import psycopg
from loguru import logger
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from mailthreads.domain.entities import NormalizedMessage, RawMessage, Thread, User
from mailthreads.infrastructure.settings import Settings, get_settings
from mailthreads.infrastructure.stores.rows import message_from_row, thread_from_row, user_from_row

SCHEMA = """
    CREATE TABLE IF NOT EXISTS users (
        id BIGSERIAL PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        name TEXT
    );

    CREATE TABLE IF NOT EXISTS emails (
        id BIGSERIAL PRIMARY KEY,
        universal_id TEXT NOT NULL UNIQUE,
        in_reply_to TEXT,
        subject TEXT NOT NULL,
        sender_address TEXT NOT NULL,
        sender_name TEXT,
        recipients JSONB NOT NULL DEFAULT '[]'::jsonb,
        sent_at TIMESTAMPTZ,
        text TEXT NOT NULL DEFAULT '',
        fetched_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    );

    CREATE TABLE IF NOT EXISTS threads (
        id BIGSERIAL PRIMARY KEY,
        name TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    );

    CREATE TABLE IF NOT EXISTS messages (
        id BIGSERIAL PRIMARY KEY,
        universal_id TEXT NOT NULL UNIQUE REFERENCES emails(universal_id),
        thread_id BIGINT NOT NULL REFERENCES threads(id),
        sender_id BIGINT REFERENCES users(id),
        in_reply_to TEXT,
        sent_at TIMESTAMPTZ,
        text TEXT NOT NULL DEFAULT ''
    );

    CREATE INDEX IF NOT EXISTS idx_messages_thread ON messages(thread_id, id);
"""


class PostgresClient:
    """PostgreSQL implementation of the import store."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._connection: psycopg.Connection | None = None

    def connect(self) -> psycopg.Connection:
        """Establish connection to PostgreSQL."""
        if self._connection is None or self._connection.closed:
            logger.info(f"Connecting to PostgreSQL at {self.settings.postgres_host}:{self.settings.postgres_port}")
            self._connection = psycopg.connect(
                self.settings.postgres_dsn,
                autocommit=True,
                row_factory=dict_row,
            )
            logger.info("PostgreSQL connection established")
        return self._connection

    def disconnect(self) -> None:
        """Close PostgreSQL connection."""
        if self._connection is not None and not self._connection.closed:
            self._connection.close()
            self._connection = None
            logger.info("PostgreSQL connection closed")

    @property
    def connection(self) -> psycopg.Connection:
        """Get or create PostgreSQL connection."""
        return self.connect()

    def setup_schema(self) -> None:
        """Set up database schema for the import store."""
        with self.connection.transaction():
            self.connection.execute(SCHEMA)
        logger.info("Database schema setup complete")

    def health_check(self) -> dict[str, Any]:
        """Check PostgreSQL connection health."""
        try:
            row = self.connection.execute("SELECT version() AS version").fetchone()
            return {
                "status": "healthy",
                "backend": "postgres",
                "host": self.settings.postgres_host,
                "database": self.settings.postgres_db,
                "version": row["version"],
            }
        except psycopg.Error as e:
            logger.error(f"PostgreSQL health check failed: {e}")
            return {
                "status": "unhealthy",
                "backend": "postgres",
                "host": self.settings.postgres_host,
                "database": self.settings.postgres_db,
                "error": str(e),
            }

    def insert_emails(self, messages: Sequence[RawMessage]) -> int:
        """Store raw messages verbatim. Already stored ids are left untouched."""
        with self.connection.transaction():
            with self.connection.cursor() as cur:
                cur.executemany(
                    """INSERT INTO emails
                       (universal_id, in_reply_to, subject, sender_address, sender_name, recipients, sent_at, text)
                       VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                       ON CONFLICT (universal_id) DO NOTHING""",
                    [
                        (
                            m.universal_id,
                            m.in_reply_to,
                            m.subject,
                            m.sender_address,
                            m.sender_name,
                            Jsonb(list(m.recipients)),
                            m.sent_at,
                            m.text,
                        )
                        for m in messages
                    ],
                )
                inserted = cur.rowcount

        logger.debug(f"Stored {inserted} of {len(messages)} raw emails")
        return inserted

    def insert_threads(self, threads: Sequence[Thread]) -> list[Thread]:
        """Insert threads and return them with their assigned ids."""
        persisted: list[Thread] = []
        with self.connection.transaction():
            for thread in threads:
                row = self.connection.execute(
                    "INSERT INTO threads (name) VALUES (%s) RETURNING id",
                    (thread.name,),
                ).fetchone()
                persisted.append(thread.with_id(row["id"]))
        return persisted

    def insert_messages(self, messages: Sequence[NormalizedMessage]) -> int:
        """Insert normalized messages in a single transaction."""
        with self.connection.transaction():
            with self.connection.cursor() as cur:
                cur.executemany(
                    """INSERT INTO messages
                       (universal_id, thread_id, sender_id, in_reply_to, sent_at, text)
                       VALUES (%s, %s, %s, %s, %s, %s)""",
                    [
                        (m.universal_id, m.thread_id, m.sender_id, m.in_reply_to, m.sent_at, m.text)
                        for m in messages
                    ],
                )
        return len(messages)

    def imported_message_ids(self, universal_ids: Sequence[str]) -> set[str]:
        """Return the ids among universal_ids that already have a stored message."""
        rows = self.connection.execute(
            "SELECT universal_id FROM messages WHERE universal_id = ANY(%s)",
            (list(universal_ids),),
        ).fetchall()
        return {row["universal_id"] for row in rows}

    def list_threads(self) -> list[Thread]:
        rows = self.connection.execute("SELECT id, name FROM threads ORDER BY id").fetchall()
        return [thread_from_row(row) for row in rows]

    def get_thread(self, thread_id: int) -> Optional[Thread]:
        row = self.connection.execute(
            "SELECT id, name FROM threads WHERE id = %s",
            (thread_id,),
        ).fetchone()
        return thread_from_row(row) if row else None

    def list_messages(self, thread_id: int | None = None) -> list[NormalizedMessage]:
        if thread_id is None:
            rows = self.connection.execute("SELECT * FROM messages ORDER BY id").fetchall()
        else:
            rows = self.connection.execute(
                "SELECT * FROM messages WHERE thread_id = %s ORDER BY id",
                (thread_id,),
            ).fetchall()
        return [message_from_row(row) for row in rows]

    def find_user_by_email(self, email: str) -> Optional[User]:
        row = self.connection.execute(
            "SELECT id, email, name FROM users WHERE lower(email) = lower(%s)",
            (email.strip(),),
        ).fetchone()
        return user_from_row(row) if row else None

    def add_user(self, email: str, name: str | None = None) -> User:
        """Add a user, or return the existing one with that address."""
        existing = self.find_user_by_email(email)
        if existing:
            return existing

        with self.connection.transaction():
            row = self.connection.execute(
                "INSERT INTO users (email, name) VALUES (%s, %s) RETURNING id, email, name",
                (email.strip().lower(), name),
            ).fetchone()
        user = user_from_row(row)
        logger.info(f"Added user {user.email} ({user.id})")
        return user

    def list_users(self) -> list[User]:
        rows = self.connection.execute("SELECT id, email, name FROM users ORDER BY id").fetchall()
        return [user_from_row(row) for row in rows]

    def reset(self) -> None:
        """Delete imported data. Users are kept."""
        with self.connection.transaction():
            self.connection.execute("TRUNCATE messages, threads, emails RESTART IDENTITY")
        logger.info("Import store reset")

