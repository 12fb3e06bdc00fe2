import asyncio

import pytest
from starlette.websockets import WebSocketDisconnect

from leave_portal.utils.ws_manager import ConnectionManager, manager
from conftest import RecordingSocket, auth_headers


class BrokenSocket(RecordingSocket):
    async def send_json(self, payload):
        raise RuntimeError("connection reset")


def test_publish_reaches_connected_recipients_once():
    bus = ConnectionManager()
    alice, bob = RecordingSocket(), RecordingSocket()
    bus.active_connections.update({"alice": alice, "bob": bob})

    delivered = asyncio.run(bus.publish("leaveStatusUpdated", {"status": "approved"}, ["alice", "bob", "alice", "carol"]))

    assert delivered == 2
    assert alice.messages == [{"event": "leaveStatusUpdated", "data": {"status": "approved"}}]
    assert bob.messages == alice.messages


def test_publish_to_offline_user_is_dropped():
    bus = ConnectionManager()

    assert asyncio.run(bus.publish("leaveStatusUpdated", {}, ["nobody"])) == 0
    assert bus.active_connections == {}


def test_failing_socket_is_forgotten():
    bus = ConnectionManager()
    bus.active_connections["alice"] = BrokenSocket()

    assert asyncio.run(bus.notify("alice", {"event": "x"})) is False
    assert "alice" not in bus.active_connections


def test_disconnect_ignores_replaced_socket():
    bus = ConnectionManager()
    old, new = RecordingSocket(), RecordingSocket()
    bus.active_connections["alice"] = new

    bus.disconnect("alice", old)
    assert bus.active_connections["alice"] is new

    bus.disconnect("alice", new)
    assert bus.active_connections == {}


def test_websocket_rejects_missing_or_bad_token(client):
    for path in ("/ws", "/ws?token=garbage"):
        with pytest.raises(WebSocketDisconnect) as excinfo:
            with client.websocket_connect(path) as websocket:
                websocket.receive_json()
        assert excinfo.value.code == 1008


def test_websocket_registers_user_and_answers_ping(client, make_user):
    user = make_user()
    token = auth_headers(user)["Authorization"].split()[1]

    with client.websocket_connect(f"/ws?token={token}") as websocket:
        websocket.send_text("ping")
        assert websocket.receive_json() == {"event": "pong"}
        assert str(user["_id"]) in manager.active_connections

    stats = client.get("/health").json()["checks"]["websockets"]
    assert stats["active_connections"] == 0
