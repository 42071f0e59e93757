"""Shared fixtures: the conversation batch, in-memory stores and mbox files."""

import mailbox
from datetime import datetime, timedelta, timezone
from email.message import EmailMessage
from email.utils import format_datetime
from typing import Callable, Optional, Sequence

import pytest

from mailthreads.domain.entities import NormalizedMessage, RawMessage, Thread, User
from mailthreads.infrastructure.settings import Settings
from mailthreads.infrastructure.sqlite import SQLiteClient

BASE_TIME = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)


def make_message(
    universal_id: str,
    subject: str = "Subject",
    sender: str = "alice@example.com",
    in_reply_to: Optional[str] = None,
    minutes: int = 0,
    text: str = "",
) -> RawMessage:
    return RawMessage(
        universal_id=universal_id,
        subject=subject,
        sender_address=sender,
        in_reply_to=in_reply_to,
        sent_at=BASE_TIME + timedelta(minutes=minutes),
        text=text or f"Body of {universal_id}",
    )


# (universal_id, subject, sender, in_reply_to)
CONVERSATION = [
    ("m1@example.com", "Software Update Discussion", "alice@example.com", None),
    ("m2@example.com", "Re: Software Update Discussion", "bob@example.com", "m1@example.com"),
    ("m3@example.com", "Quarterly Budget Review", "carol@example.com", None),
    ("m4@example.com", "Re: Quarterly Budget Review", "alice@example.com", "m3@example.com"),
    ("m5@example.com", "Team Offsite Planning", "bob@example.com", None),
    ("m6@example.com", "Re: Team Offsite Planning", "dave@example.org", "m5@example.com"),
    ("m7@example.com", "Re: Team Offsite Planning", "carol@example.com", "m6@example.com"),
    ("m8@example.com", "Re: Software Update Discussion", "alice@example.com", "m2@example.com"),
    ("m9@example.com", "Security Audit Findings", "erin@example.org", None),
    ("m10@example.com", "Re: Security Audit Findings", "bob@example.com", "m9@example.com"),
    ("m11@example.com", "Re: Quarterly Budget Review", "carol@example.com", "m4@example.com"),
    ("m12@example.com", "New Hire Onboarding", "alice@example.com", None),
    ("m13@example.com", "Re: New Hire Onboarding", "dave@example.org", "m12@example.com"),
    ("m14@example.com", "Re: Security Audit Findings", "carol@example.com", "m10@example.com"),
]

KNOWN_USERS = [
    ("alice@example.com", "Alice"),
    ("bob@example.com", "Bob"),
    ("carol@example.com", "Carol"),
]


@pytest.fixture
def conversation_batch() -> list[RawMessage]:
    """14 messages forming 5 conversations, replies after their targets."""
    return [
        make_message(uid, subject, sender, reply_to, minutes=i)
        for i, (uid, subject, sender, reply_to) in enumerate(CONVERSATION)
    ]


# ============================================================================
# In-memory collaborators
# ============================================================================


class StaticMessageSource:
    def __init__(self, messages: Sequence[RawMessage]):
        self.messages = list(messages)
        self.fetch_calls = 0

    async def fetch(self) -> list[RawMessage]:
        self.fetch_calls += 1
        return list(self.messages)


class FailingMessageSource:
    def __init__(self, error: Exception):
        self.error = error

    async def fetch(self) -> list[RawMessage]:
        raise self.error


class InMemoryRawMessageRepository:
    def __init__(self, calls: list[str] | None = None):
        self.messages: list[RawMessage] = []
        self.calls = calls if calls is not None else []

    async def persist(self, messages: Sequence[RawMessage]) -> None:
        self.calls.append("raw")
        self.messages.extend(messages)


class InMemoryThreadRepository:
    def __init__(self, calls: list[str] | None = None):
        self.threads: list[Thread] = []
        self.persist_calls: list[list[Thread]] = []
        self.calls = calls if calls is not None else []

    async def persist(self, threads: Sequence[Thread]) -> list[Thread]:
        self.calls.append("thread")
        self.persist_calls.append(list(threads))
        persisted = []
        for thread in threads:
            stored = thread.with_id(len(self.threads) + 1)
            self.threads.append(stored)
            persisted.append(stored)
        return persisted


class InMemoryMessageRepository:
    def __init__(self, calls: list[str] | None = None):
        self.batches: list[list[NormalizedMessage]] = []
        self.calls = calls if calls is not None else []

    async def persist(self, messages: Sequence[NormalizedMessage]) -> None:
        self.calls.append("messages")
        self.batches.append(list(messages))

    async def find_imported(self, universal_ids: Sequence[str]) -> set[str]:
        stored = {m.universal_id for batch in self.batches for m in batch}
        return stored.intersection(universal_ids)


class InMemoryUserRepository:
    def __init__(self, users: Sequence[User] = ()):
        self.users = {u.email.lower(): u for u in users}
        self.lookups: list[str] = []

    async def find_by_address(self, address: str) -> Optional[User]:
        self.lookups.append(address)
        return self.users.get(address.lower())


@pytest.fixture
def known_users() -> list[User]:
    return [User(id=i, email=email, name=name) for i, (email, name) in enumerate(KNOWN_USERS, start=1)]


@pytest.fixture
def call_log() -> list[str]:
    return []


@pytest.fixture
def raw_repo(call_log) -> InMemoryRawMessageRepository:
    return InMemoryRawMessageRepository(call_log)


@pytest.fixture
def thread_repo(call_log) -> InMemoryThreadRepository:
    return InMemoryThreadRepository(call_log)


@pytest.fixture
def message_repo(call_log) -> InMemoryMessageRepository:
    return InMemoryMessageRepository(call_log)


@pytest.fixture
def user_repo(known_users) -> InMemoryUserRepository:
    return InMemoryUserRepository(known_users)


# ============================================================================
# SQLite store and mbox files
# ============================================================================


@pytest.fixture
def sqlite_client(tmp_path) -> SQLiteClient:
    client = SQLiteClient(db_path=tmp_path / "store" / "mailthreads.db")
    for email, name in KNOWN_USERS:
        client.add_user(email, name)
    return client


@pytest.fixture
def app_settings(tmp_path) -> Settings:
    return Settings(
        sqlite_db_path=str(tmp_path / "store" / "mailthreads.db"),
        mbox_path=None,
        imap_username=None,
        imap_password=None,
    )


def to_email_message(message: RawMessage) -> EmailMessage:
    em = EmailMessage()
    em["Message-ID"] = f"<{message.universal_id}>"
    if message.in_reply_to:
        em["In-Reply-To"] = f"<{message.in_reply_to}>"
    em["Subject"] = message.subject
    em["From"] = message.sender_address
    em["To"] = "team@example.com"
    if message.sent_at:
        em["Date"] = format_datetime(message.sent_at)
    em.set_content(message.text)
    return em


@pytest.fixture
def mbox_factory(tmp_path) -> Callable[[Sequence[RawMessage]], str]:
    """Write messages to an mbox file and return its path."""
    counter = {"n": 0}

    def _write(messages: Sequence[RawMessage]) -> str:
        counter["n"] += 1
        path = tmp_path / f"batch-{counter['n']}.mbox"
        box = mailbox.mbox(path)
        try:
            for message in messages:
                box.add(to_email_message(message))
            box.flush()
        finally:
            box.close()
        return str(path)

    return _write
