import pytest
from fastapi.testclient import TestClient

from mailthreads.api.main import create_app
from mailthreads.infrastructure import get_settings, get_store_client

from tests.conftest import make_message


@pytest.fixture
def client(sqlite_client, app_settings):
    app = create_app()
    app.dependency_overrides[get_store_client] = lambda: sqlite_client
    app.dependency_overrides[get_settings] = lambda: app_settings
    return TestClient(app)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["store"]["backend"] == "sqlite"


def test_import_and_read_threads(client, mbox_factory, conversation_batch):
    response = client.post("/imports", json={"source": "mbox", "mbox_path": mbox_factory(conversation_batch)})

    assert response.status_code == 200
    assert response.json() == {"fetched": 14, "imported": 14, "threads_created": 5, "unknown_senders": 3}

    threads = client.get("/threads").json()
    assert len(threads) == 5
    assert threads[0] == {"id": 1, "name": "Software Update Discussion"}

    messages = client.get("/threads/1/messages").json()
    assert [m["universal_id"] for m in messages] == ["m1@example.com", "m2@example.com", "m8@example.com"]
    assert messages[0]["sender_id"] == 1


def test_unknown_thread(client):
    assert client.get("/threads/42/messages").status_code == 404


def test_unresolved_reference_is_422(client, mbox_factory):
    path = mbox_factory([make_message("reply@x", in_reply_to="nowhere@x")])

    response = client.post("/imports", json={"mbox_path": path})

    assert response.status_code == 422
    assert response.json()["kind"] == "unresolved_thread_reference"


def test_strict_ordering_from_request(client, mbox_factory):
    path = mbox_factory([make_message("reply@x", in_reply_to="root@x"), make_message("root@x")])

    strict = client.post("/imports", json={"mbox_path": path, "ordering": "strict"})

    assert strict.status_code == 422


def test_source_failure_is_502(client, tmp_path):
    response = client.post("/imports", json={"mbox_path": str(tmp_path / "missing.mbox")})

    assert response.status_code == 502
    assert response.json()["kind"] == "message_source_error"


def test_repeated_import_is_409(client, mbox_factory, conversation_batch):
    path = mbox_factory(conversation_batch)
    assert client.post("/imports", json={"mbox_path": path}).status_code == 200

    response = client.post("/imports", json={"mbox_path": path})

    assert response.status_code == 409
    assert response.json()["kind"] == "already_imported"
    assert len(client.get("/threads").json()) == 5


def test_unconfigured_source_is_400(client):
    assert client.post("/imports", json={"source": "imap"}).status_code == 400
