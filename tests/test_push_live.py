"""
Real server, real websocket-client connection: uvicorn runs the test app in
a background thread and a PushSubscriber connects to it over TCP.
"""

import threading
import time

import pytest
import requests
import uvicorn

from tracker_frontend.services.push_subscriber import (
    DELIBERATE_CLOSE_CODE, ConnectionState, PushSubscriber, WebSocketConnection,
)


def wait_for(condition, timeout=10.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.02)
    return condition()


class LiveServer:
    def __init__(self, app):
        config = uvicorn.Config(app, host="127.0.0.1", port=0, lifespan="off", log_level="warning")
        self.server = uvicorn.Server(config)
        self.thread = threading.Thread(target=self.server.run, daemon=True, name="LiveServer")

    def start(self):
        self.thread.start()
        assert wait_for(lambda: self.server.started), "server did not start"
        port = self.server.servers[0].sockets[0].getsockname()[1]
        self.base_url = f"http://127.0.0.1:{port}"
        self.ws_url = f"ws://127.0.0.1:{port}/ws"

    def stop(self):
        self.server.should_exit = True
        self.thread.join(timeout=10)


@pytest.fixture
def live_server(app):
    server = LiveServer(app)
    server.start()
    yield server
    server.stop()


class Recorder:
    """Builds real connections and records what each one reports on close."""

    def __init__(self):
        self.closes = []
        self.timers = []
        self.received = []

    def connection_factory(self, url, *, on_open, on_message, on_close):
        def record_close(code):
            self.closes.append(code)
            on_close(code)

        return WebSocketConnection(url, on_open=on_open, on_message=on_message, on_close=record_close)

    def timer_factory(self, interval, fn):
        timer = threading.Timer(interval, fn)
        self.timers.append(timer)
        return timer


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def subscriber(live_server, recorder):
    sub = PushSubscriber(
        live_server.ws_url,
        on_message=recorder.received.append,
        # long enough that no attempt runs during a test
        reconnect_delay=60.0,
        connection_factory=recorder.connection_factory,
        timer_factory=recorder.timer_factory,
    )
    yield sub
    sub.unmount()


def test_subscriber_receives_order_events(live_server, subscriber, recorder, manager):
    subscriber.mount()
    assert wait_for(lambda: subscriber.state == ConnectionState.CONNECTED)
    assert wait_for(lambda: manager.connection_count == 1)

    r = requests.post(f"{live_server.base_url}/api/orders", json={
        "customer": "Marché Bio", "items": ["Pommes"], "totalAmount": 900,
    }, timeout=10)
    assert r.status_code == 201

    assert wait_for(lambda: len(recorder.received) == 1)
    event = recorder.received[0]
    assert event["type"] == "order_created"
    assert event["data"]["id"] == r.json()["id"]


def test_unmount_closes_deliberately(subscriber, recorder, manager):
    subscriber.mount()
    assert wait_for(lambda: subscriber.state == ConnectionState.CONNECTED)
    assert wait_for(lambda: manager.connection_count == 1)

    subscriber.unmount()

    assert wait_for(lambda: manager.connection_count == 0)
    assert wait_for(lambda: recorder.closes == [DELIBERATE_CLOSE_CODE])
    assert subscriber.state == ConnectionState.DISCONNECTED
    assert not subscriber.reconnect_pending
    assert recorder.timers == []


def test_server_shutdown_schedules_one_reconnect(live_server, subscriber, recorder, manager):
    subscriber.mount()
    assert wait_for(lambda: subscriber.state == ConnectionState.CONNECTED)
    assert wait_for(lambda: manager.connection_count == 1)

    live_server.stop()

    assert wait_for(lambda: subscriber.reconnect_pending)
    assert subscriber.state == ConnectionState.DISCONNECTED
    assert len(recorder.closes) == 1
    assert recorder.closes[0] != DELIBERATE_CLOSE_CODE
    time.sleep(0.2)
    assert len(recorder.timers) == 1
    assert recorder.timers[0].interval == 60.0
