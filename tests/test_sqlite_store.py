import pytest

from mailthreads.domain.entities import NormalizedMessage, Thread
from mailthreads.domain.errors import MessagesAlreadyImported, UnresolvedThreadReference
from mailthreads.infrastructure.wiring import create_import_use_case

from tests.conftest import StaticMessageSource, make_message


def test_threads_get_sequential_ids(sqlite_client):
    persisted = sqlite_client.insert_threads([Thread(name="One"), Thread(name="Two")])

    assert [t.id for t in persisted] == [1, 2]
    assert sqlite_client.list_threads() == persisted
    assert sqlite_client.get_thread(2) == Thread(name="Two", id=2)
    assert sqlite_client.get_thread(99) is None


def test_user_lookup_ignores_case(sqlite_client):
    user = sqlite_client.find_user_by_email("Alice@Example.com")

    assert user is not None
    assert user.name == "Alice"
    assert sqlite_client.find_user_by_email("nobody@example.com") is None


def test_add_user_returns_existing(sqlite_client):
    again = sqlite_client.add_user("BOB@example.com", "Robert")

    assert again.id == 2
    assert again.name == "Bob"
    assert len(sqlite_client.list_users()) == 3


def test_raw_emails_stored_once(sqlite_client):
    batch = [make_message("a@x"), make_message("b@x")]

    assert sqlite_client.insert_emails(batch) == 2
    assert sqlite_client.insert_emails(batch) == 0


def test_messages_round_trip(sqlite_client):
    raw = make_message("a@x", text="hello")
    sqlite_client.insert_emails([raw])
    (thread,) = sqlite_client.insert_threads([Thread(name="Hello")])

    sqlite_client.insert_messages(
        [NormalizedMessage.from_raw(raw, thread_id=thread.id, sender_id=None)]
    )

    (stored,) = sqlite_client.list_messages(thread.id)
    assert stored.id == 1
    assert stored.universal_id == "a@x"
    assert stored.sender_id is None
    assert stored.sent_at == raw.sent_at
    assert stored.text == "hello"


def test_imported_message_ids(sqlite_client):
    raw = make_message("a@x")
    sqlite_client.insert_emails([raw])
    (thread,) = sqlite_client.insert_threads([Thread(name="Hello")])
    sqlite_client.insert_messages([NormalizedMessage.from_raw(raw, thread_id=thread.id, sender_id=None)])

    assert sqlite_client.imported_message_ids(["a@x", "b@x"]) == {"a@x"}
    assert sqlite_client.imported_message_ids([]) == set()


def test_imported_message_ids_over_many_ids(sqlite_client):
    raw = make_message("m700@x")
    sqlite_client.insert_emails([raw])
    (thread,) = sqlite_client.insert_threads([Thread(name="Hello")])
    sqlite_client.insert_messages([NormalizedMessage.from_raw(raw, thread_id=thread.id, sender_id=None)])

    ids = [f"m{i}@x" for i in range(1200)]

    assert sqlite_client.imported_message_ids(ids) == {"m700@x"}


def test_reset_keeps_users(sqlite_client):
    sqlite_client.insert_threads([Thread(name="One")])
    sqlite_client.reset()

    assert sqlite_client.list_threads() == []
    assert len(sqlite_client.list_users()) == 3
    assert sqlite_client.insert_threads([Thread(name="Again")])[0].id == 1


def test_health_check(sqlite_client):
    assert sqlite_client.health_check()["status"] == "healthy"


@pytest.mark.asyncio
async def test_full_import_into_sqlite(sqlite_client, conversation_batch):
    use_case = create_import_use_case(sqlite_client, StaticMessageSource(conversation_batch))

    await use_case.run()

    threads = sqlite_client.list_threads()
    assert len(threads) == 5
    assert threads[0] == Thread(name="Software Update Discussion", id=1)

    messages = sqlite_client.list_messages()
    assert len(messages) == 14
    thread_one = [m.universal_id for m in messages if m.thread_id == 1]
    assert thread_one == ["m1@example.com", "m2@example.com", "m8@example.com"]


@pytest.mark.asyncio
async def test_failed_import_keeps_created_threads(sqlite_client):
    batch = [make_message("root@x", "Hello"), make_message("reply@x", in_reply_to="nowhere@x")]
    use_case = create_import_use_case(sqlite_client, StaticMessageSource(batch), "strict")

    with pytest.raises(UnresolvedThreadReference):
        await use_case.run()

    assert [t.name for t in sqlite_client.list_threads()] == ["Hello"]
    assert sqlite_client.list_messages() == []


@pytest.mark.asyncio
async def test_second_import_creates_no_threads(sqlite_client, conversation_batch):
    source = StaticMessageSource(conversation_batch)
    await create_import_use_case(sqlite_client, source).run()

    with pytest.raises(MessagesAlreadyImported) as exc_info:
        await create_import_use_case(sqlite_client, source).run()

    assert exc_info.value.kind == "already_imported"
    assert len(sqlite_client.list_threads()) == 5
    assert len(sqlite_client.list_messages()) == 14
