"""HTTP surface tests against the real app with an injected clock."""
from __future__ import annotations

import base64
import json

import pytest
from fastapi.testclient import TestClient

from chat_relay.app import create_app
from tests.conftest import PASSWORD, make_settings


def _send(client: TestClient, name: str = "Ann", text: str = "hi", **extra):
    return client.post("/send-message", json={"name": name, "text": text, **extra})


def test_health(client):
    resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.json() == {
        "status": "OK",
        "uptimeSeconds": 0,
        "totalMessages": 0,
        "onlineUsers": 0,
        "filesStored": 0,
    }


@pytest.mark.parametrize("path", ["/login", "/api/login"])
def test_login(client, path):
    assert client.post(path, json={"name": " Ann "}).json() == {"success": True, "message": None}

    resp = client.post(path, json={"name": "   "})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_send_then_history_returns_exactly_that_message(client):
    resp = _send(client)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    message = body["message"]
    assert message["author"] == "Ann"
    assert message["body"] == "hi"
    assert message["id"]
    assert message["timestamp"]

    history = client.get("/chat-history").json()
    assert history["messages"] == [message]
    # Push mode counts open /ws sessions, not HTTP callers.
    assert history["onlineCount"] == 0


def test_poll_mode_counts_http_callers_by_address(clock):
    app = create_app(make_settings(DELIVERY_MODE="poll"), clock)

    with TestClient(app) as client:
        _send(client)
        client.get("/chat-updates")
        assert client.get("/chat-history").json()["onlineCount"] == 1

        client.get("/chat-updates", headers={"X-Forwarded-For": "10.0.0.2, 10.0.0.1"})
        assert client.get("/api/health").json()["onlineUsers"] == 2

        clock.advance(seconds=31)
        assert client.get("/api/health").json()["onlineUsers"] == 0


def test_send_missing_fields_is_400(client):
    assert _send(client, name="").status_code == 400
    assert _send(client, text="").status_code == 400
    assert client.post("/send-message", json={}).status_code == 400
    assert client.post("/send-message", content=b"not json").status_code == 400
    assert client.get("/chat-history").json()["messages"] == []


def test_markup_is_escaped(client):
    message = _send(client, name="<i>x</i>", text="<script>alert(1)</script>").json()["message"]

    assert message["author"] == "&lt;i&gt;x&lt;/i&gt;"
    assert message["body"] == "&lt;script&gt;alert(1)&lt;/script&gt;"


def test_reply_to_is_carried(client):
    first = _send(client, text="q").json()["message"]

    reply = _send(client, text="a", replyTo=first["id"]).json()["message"]

    assert reply["replyTo"] == first["id"]


def test_chat_updates_by_id_and_since(client, clock):
    first = _send(client, text="1").json()["message"]
    clock.advance(seconds=1)
    second = _send(client, text="2").json()["message"]

    by_id = client.get("/chat-updates", params={"afterId": first["id"]}).json()
    assert [m["id"] for m in by_id["messages"]] == [second["id"]]
    assert by_id["lastUpdate"] > 0
    assert "serverUptimeSeconds" in by_id

    since = client.get("/chat-updates", params={"since": first["timestamp"]}).json()
    assert [m["id"] for m in since["messages"]] == [second["id"]]

    latest = client.get("/chat-updates", params={"afterId": second["id"]}).json()
    assert latest["messages"] == []

    assert client.get("/chat-updates").json()["messages"] == [first, second]


@pytest.mark.parametrize(
    "params",
    [
        {"afterId": "x"},
        {"afterId": "²"},
        {"since": "nan"},
        {"since": "inf"},
        {"since": "1e300"},
        {"since": "not-a-date"},
    ],
)
def test_chat_updates_malformed_cursor_is_400(client, params):
    resp = client.get("/chat-updates", params=params)

    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_inline_file_becomes_fetchable_reference(client):
    payload = b"GIF89a fake bytes"
    content = "data:image/gif;base64," + base64.b64encode(payload).decode()

    message = _send(client, text="pic", file={"content": content, "name": "cat.gif"}).json()["message"]

    attachment = message["attachment"]
    assert attachment["mimeType"] == "image/gif"
    assert attachment["displayName"] == "cat.gif"
    assert "content" not in attachment
    fetched = client.get(attachment["url"])
    assert fetched.status_code == 200
    assert fetched.content == payload
    assert fetched.headers["content-type"] == "image/gif"
    assert fetched.headers["content-length"] == str(len(payload))


def test_upload_and_fetch(client):
    resp = client.post("/upload", files={"file": ("notes.txt", b"hello file", "text/plain")})

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["file"]["name"] == "notes.txt"
    assert data["file"]["size"] == 10
    assert data["file"]["content"] == f"/api/file/{data['file']['fileId']}"

    fetched = client.get(data["file"]["content"])
    assert fetched.status_code == 200
    assert fetched.content == b"hello file"
    assert fetched.headers["content-type"].startswith("text/plain")

    message = _send(client, text="see", file={"content": data["file"]["content"], "name": "notes.txt"})
    assert message.json()["message"]["attachment"]["id"] == data["file"]["fileId"]


def test_upload_without_file_is_400(client):
    resp = client.post("/upload", data={"other": "x"})

    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_oversized_upload_is_rejected_and_not_stored(client):
    big = b"\0" * (15 * 1024 * 1024)

    resp = client.post("/upload", files={"file": ("big.bin", big, "application/octet-stream")})

    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert client.get("/api/health").json()["filesStored"] == 0


def test_unknown_file_is_404(client):
    assert client.get("/api/file/123456").status_code == 404


def test_delete_message_flow(client):
    message = _send(client).json()["message"]

    wrong = client.post("/delete-message", json={"id": message["id"], "password": "nope"})
    assert wrong.status_code == 403

    ok = client.post("/delete-message", json={"id": message["id"], "password": PASSWORD})
    assert ok.status_code == 200
    assert ok.json()["success"] is True

    again = client.post("/delete-message", json={"id": message["id"], "password": PASSWORD})
    assert again.status_code == 404
    assert client.get("/chat-history").json()["messages"] == []


def test_delete_by_timestamp(client):
    message = _send(client).json()["message"]

    resp = client.post(
        "/delete-message", json={"timestamp": message["timestamp"], "password": PASSWORD},
    )

    assert resp.status_code == 200


def test_delete_endpoint_with_header(client):
    message = _send(client).json()["message"]

    assert client.delete(f"/api/messages/{message['id']}").status_code == 403
    resp = client.delete(
        f"/api/messages/{message['id']}", headers={"X-Delete-Password": PASSWORD},
    )
    assert resp.status_code == 200


def test_export_import(client):
    _send(client, text="<b>one</b>")
    _send(client, text="two")

    assert client.get("/api/export").status_code == 403
    exported = client.get("/api/export", headers={"X-Delete-Password": PASSWORD})
    assert exported.status_code == 200
    snapshot = exported.json()
    assert [m["body"] for m in snapshot] == ["&lt;b&gt;one&lt;/b&gt;", "two"]

    client.post("/delete-message", json={"id": snapshot[0]["id"], "password": PASSWORD})

    resp = client.post(
        "/api/import",
        content=json.dumps(snapshot),
        headers={"X-Delete-Password": PASSWORD, "Content-Type": "application/json"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "imported": 2}
    assert client.get("/chat-history").json()["messages"] == snapshot


def test_import_malformed_is_400_and_keeps_ledger(client):
    _send(client, text="keep")

    resp = client.post(
        "/api/import",
        content=b'[{"id": "1"}]',
        headers={"X-Delete-Password": PASSWORD},
    )

    assert resp.status_code == 400
    assert [m["body"] for m in client.get("/chat-history").json()["messages"]] == ["keep"]


def test_import_wrong_password_is_403(client):
    resp = client.post("/api/import", content=b"[]", headers={"X-Delete-Password": "nope"})

    assert resp.status_code == 403


def test_correlation_id_is_echoed(client):
    resp = client.get("/api/health", headers={"X-Request-ID": "abc123"})

    assert resp.headers["X-Request-ID"] == "abc123"


def test_unsafe_correlation_id_is_replaced(client):
    resp = client.get("/api/health", headers={"X-Request-ID": "bad id\twith spaces"})

    assert resp.headers["X-Request-ID"] != "bad id\twith spaces"
    assert len(resp.headers["X-Request-ID"]) == 32


def test_root_redirects_to_login(client):
    resp = client.get("/", follow_redirects=False)

    assert resp.status_code in (302, 307)
    assert resp.headers["location"] == "/login"


def test_static_pages_served_when_configured(tmp_path, clock):
    (tmp_path / "login.html").write_text("<h1>login</h1>")
    (tmp_path / "chat.html").write_text("<h1>chat</h1>")
    app = create_app(make_settings(STATIC_DIR=str(tmp_path)), clock)

    with TestClient(app) as client:
        assert client.get("/login").text == "<h1>login</h1>"
        assert client.get("/chat").text == "<h1>chat</h1>"
        assert client.get("/static/chat.html").status_code == 200


def test_retention_cap_applies_over_http(clock):
    app = create_app(make_settings(LEDGER_MAX_RETAINED=4, LEDGER_TRIM_STRATEGY="fifo"), clock)

    with TestClient(app) as client:
        for i in range(7):
            _send(client, text=f"m{i}")
        bodies = [m["body"] for m in client.get("/chat-history").json()["messages"]]

    assert bodies == ["m3", "m4", "m5", "m6"]


def test_unexpected_error_is_500_and_server_keeps_serving(app, client, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(app.state.chat.ledger, "list_all", boom)

    resp = client.get("/chat-history")
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Internal server error"}

    monkeypatch.undo()
    assert client.get("/chat-history").status_code == 200
