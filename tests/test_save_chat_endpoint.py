# tests/test_save_chat_endpoint.py
import pytest


def test_save_chat_inserts_one_row(client, store):
    r = client.post("/save-chat", json={"user_id": "u1", "role": "user", "message": "hi"})
    assert r.status_code == 200
    assert r.json() == {"success": True}
    assert store.rows == [("chat_history", {"user_id": "u1", "role": "user", "message": "hi"})]


@pytest.mark.parametrize("body", [
    {"role": "user", "message": "hi"},
    {"user_id": "u1", "message": "hi"},
    {"user_id": "u1", "role": "user"},
    {"user_id": "u1", "role": "user", "message": ""},
])
def test_save_chat_missing_fields(client, store, body):
    r = client.post("/save-chat", json=body)
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Missing fields: user_id, role, message"}
    assert store.rows == []


def test_save_chat_bad_role(client, store):
    r = client.post("/save-chat", json={"user_id": "u1", "role": "system", "message": "hi"})
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert store.rows == []


def test_save_chat_write_failure_is_reported(client, store):
    store.fail = True
    r = client.post("/save-chat", json={"user_id": "u1", "role": "assistant", "message": "hello"})
    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "connection refused"}


def test_save_chat_does_not_call_completion(client, completion):
    client.post("/save-chat", json={"user_id": "u1", "role": "user", "message": "hi"})
    assert completion.calls == []
