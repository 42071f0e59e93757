"""Row to entity conversion shared by the SQL clients."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from mailthreads.domain.entities import NormalizedMessage, Thread, User


def parse_timestamp(value: Any) -> Optional[datetime]:
    # sqlite stores ISO text, postgres hands back datetimes
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def thread_from_row(row: Mapping[str, Any]) -> Thread:
    return Thread(id=row["id"], name=row["name"])


def user_from_row(row: Mapping[str, Any]) -> User:
    return User(id=row["id"], email=row["email"], name=row["name"])


def message_from_row(row: Mapping[str, Any]) -> NormalizedMessage:
    return NormalizedMessage(
        id=row["id"],
        universal_id=row["universal_id"],
        thread_id=row["thread_id"],
        sender_id=row["sender_id"],
        in_reply_to=row["in_reply_to"],
        sent_at=parse_timestamp(row["sent_at"]),
        text=row["text"],
    )
