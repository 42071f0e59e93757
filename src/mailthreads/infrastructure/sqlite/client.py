"""SQLite client for thread, message and raw email storage."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator, Optional, Sequence

from loguru import logger

from mailthreads.domain.entities import NormalizedMessage, RawMessage, Thread, User
from mailthreads.infrastructure.stores.rows import (
    format_timestamp,
    message_from_row,
    thread_from_row,
    user_from_row,
)


class SQLiteClient:
    """SQLite client for the import store."""

    def __init__(self, db_path: str | Path = "data/mailthreads.db"):
        self.db_path = Path(db_path)
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Create database and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connection() as conn:
            conn.executescript("""
                PRAGMA journal_mode=WAL;

                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT NOT NULL UNIQUE COLLATE NOCASE,
                    name TEXT
                );

                CREATE TABLE IF NOT EXISTS emails (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    universal_id TEXT NOT NULL UNIQUE,
                    in_reply_to TEXT,
                    subject TEXT NOT NULL,
                    sender_address TEXT NOT NULL,
                    sender_name TEXT,
                    recipients TEXT NOT NULL DEFAULT '[]',
                    sent_at TEXT,
                    text TEXT NOT NULL DEFAULT '',
                    fetched_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS threads (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS messages (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    universal_id TEXT NOT NULL UNIQUE,
                    thread_id INTEGER NOT NULL,
                    sender_id INTEGER,
                    in_reply_to TEXT,
                    sent_at TEXT,
                    text TEXT NOT NULL DEFAULT '',

                    FOREIGN KEY(thread_id) REFERENCES threads(id),
                    FOREIGN KEY(sender_id) REFERENCES users(id),
                    FOREIGN KEY(universal_id) REFERENCES emails(universal_id)
                );

                CREATE INDEX IF NOT EXISTS idx_messages_thread
                    ON messages(thread_id, id);
            """)
            logger.info(f"SQLite database initialized at {self.db_path}")

    @contextmanager
    def _connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def insert_emails(self, messages: Sequence[RawMessage]) -> int:
        """Store raw messages verbatim. Already stored ids are left untouched."""
        now = datetime.now(timezone.utc).isoformat()

        with self._connection() as conn:
            cursor = conn.executemany(
                """INSERT OR IGNORE INTO emails
                   (universal_id, in_reply_to, subject, sender_address, sender_name, recipients, sent_at, text, fetched_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (
                        m.universal_id,
                        m.in_reply_to,
                        m.subject,
                        m.sender_address,
                        m.sender_name,
                        json.dumps(list(m.recipients)),
                        format_timestamp(m.sent_at),
                        m.text,
                        now,
                    )
                    for m in messages
                ],
            )
            inserted = cursor.rowcount

        logger.debug(f"Stored {inserted} of {len(messages)} raw emails")
        return inserted

    def insert_threads(self, threads: Sequence[Thread]) -> list[Thread]:
        """Insert threads and return them with their assigned ids."""
        now = datetime.now(timezone.utc).isoformat()
        persisted: list[Thread] = []

        with self._connection() as conn:
            for thread in threads:
                cursor = conn.execute(
                    "INSERT INTO threads (name, created_at) VALUES (?, ?)",
                    (thread.name, now),
                )
                persisted.append(thread.with_id(cursor.lastrowid))

        return persisted

    def insert_messages(self, messages: Sequence[NormalizedMessage]) -> int:
        """Insert normalized messages in a single transaction."""
        with self._connection() as conn:
            conn.executemany(
                """INSERT INTO messages
                   (universal_id, thread_id, sender_id, in_reply_to, sent_at, text)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                [
                    (
                        m.universal_id,
                        m.thread_id,
                        m.sender_id,
                        m.in_reply_to,
                        format_timestamp(m.sent_at),
                        m.text,
                    )
                    for m in messages
                ],
            )

        return len(messages)

    def imported_message_ids(self, universal_ids: Sequence[str]) -> set[str]:
        """Return the ids among universal_ids that already have a stored message."""
        found: set[str] = set()
        ids = list(universal_ids)

        with self._connection() as conn:
            # Stay under SQLite's bound-parameter limit
            for start in range(0, len(ids), 500):
                chunk = ids[start:start + 500]
                placeholders = ",".join("?" * len(chunk))
                rows = conn.execute(
                    f"SELECT universal_id FROM messages WHERE universal_id IN ({placeholders})",
                    chunk,
                ).fetchall()
                found.update(row["universal_id"] for row in rows)

        return found

    def list_threads(self) -> list[Thread]:
        with self._connection() as conn:
            rows = conn.execute("SELECT id, name FROM threads ORDER BY id").fetchall()
        return [thread_from_row(row) for row in rows]

    def get_thread(self, thread_id: int) -> Optional[Thread]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT id, name FROM threads WHERE id = ?",
                (thread_id,),
            ).fetchone()
        return thread_from_row(row) if row else None

    def list_messages(self, thread_id: int | None = None) -> list[NormalizedMessage]:
        """List stored messages in insertion order, optionally for one thread."""
        query = "SELECT * FROM messages"
        params: tuple = ()
        if thread_id is not None:
            query += " WHERE thread_id = ?"
            params = (thread_id,)

        with self._connection() as conn:
            rows = conn.execute(query + " ORDER BY id", params).fetchall()
        return [message_from_row(row) for row in rows]

    def find_user_by_email(self, email: str) -> Optional[User]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT id, email, name FROM users WHERE email = ?",
                (email.strip(),),
            ).fetchone()
        return user_from_row(row) if row else None

    def add_user(self, email: str, name: str | None = None) -> User:
        """Add a user, or return the existing one with that address."""
        existing = self.find_user_by_email(email)
        if existing:
            return existing

        with self._connection() as conn:
            cursor = conn.execute(
                "INSERT INTO users (email, name) VALUES (?, ?)",
                (email.strip().lower(), name),
            )
            user = User(id=cursor.lastrowid, email=email.strip().lower(), name=name)

        logger.info(f"Added user {user.email} ({user.id})")
        return user

    def list_users(self) -> list[User]:
        with self._connection() as conn:
            rows = conn.execute("SELECT id, email, name FROM users ORDER BY id").fetchall()
        return [user_from_row(row) for row in rows]

    def reset(self) -> None:
        """Delete imported data. Users are kept."""
        with self._connection() as conn:
            conn.executescript("""
                DELETE FROM messages;
                DELETE FROM threads;
                DELETE FROM emails;
                DELETE FROM sqlite_sequence WHERE name IN ('messages', 'threads', 'emails');
            """)
        logger.info("Import store reset")

    def disconnect(self) -> None:
        """Connections are opened per operation; nothing is held open."""

    def health_check(self) -> dict:
        try:
            with self._connection() as conn:
                conn.execute("SELECT 1")
            return {"status": "healthy", "backend": "sqlite", "path": str(self.db_path)}
        except sqlite3.Error as e:
            logger.error(f"SQLite health check failed: {e}")
            return {"status": "unhealthy", "backend": "sqlite", "error": str(e)}

