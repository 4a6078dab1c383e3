import asyncio

from tracker_backend.services.connection_manager import DELIBERATE_CLOSE_CODE


def test_connected_client_receives_broadcast(client, manager):
    with client.websocket_connect("/ws") as ws:
        delivered = ws.portal.call(manager.broadcast, "order_deleted", {"id": "42"})
        assert delivered == 1
        assert manager.connection_count == 1
        assert ws.receive_json() == {"type": "order_deleted", "data": {"id": "42"}}


def test_client_messages_are_ignored(client, manager):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("hello?")
        ws.portal.call(manager.broadcast, "order_created", {"id": "1"})
        assert ws.receive_json()["type"] == "order_created"


def test_binary_frames_are_ignored(client, manager):
    with client.websocket_connect("/ws") as ws:
        ws.send_bytes(b"\x00\x01")
        ws.send_text("still here")
        # let the endpoint consume both frames
        ws.portal.call(asyncio.sleep, 0.05)

        delivered = ws.portal.call(manager.broadcast, "order_updated", {"id": "7"})
        assert delivered == 1
        assert ws.receive_json() == {"type": "order_updated", "data": {"id": "7"}}


def test_deliberate_close_unregisters(client, manager):
    with client.websocket_connect("/ws") as ws:
        ws.portal.call(manager.broadcast, "order_created", {"id": "1"})
        ws.receive_json()
        ws.close(code=DELIBERATE_CLOSE_CODE)
    assert manager.connection_count == 0


def test_abrupt_close_unregisters(client, manager):
    with client.websocket_connect("/ws"):
        pass
    assert manager.connection_count == 0
