import json
import logging

import pytest

from tracker_frontend.services.push_subscriber import (
    DELIBERATE_CLOSE_CODE, ConnectionState, LatestCallback, PushSubscriber,
)


class FakeConnection:
    def __init__(self, url, *, on_open, on_message, on_close):
        self.url = url
        self.on_open = on_open
        self.on_message = on_message
        self.on_close = on_close
        self.started = False
        self.closed_with = None

    def start(self):
        self.started = True

    def close(self, code=DELIBERATE_CLOSE_CODE):
        self.closed_with = code

    def message(self, event_type, data):
        self.on_message(json.dumps({"type": event_type, "data": data}))


class FakeTimer:
    def __init__(self, interval, fn):
        self.interval = interval
        self.fn = fn
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.fn()


class Harness:
    def __init__(self):
        self.connections = []
        self.timers = []
        self.received = []

    def connection_factory(self, url, **callbacks):
        conn = FakeConnection(url, **callbacks)
        self.connections.append(conn)
        return conn

    def timer_factory(self, interval, fn):
        timer = FakeTimer(interval, fn)
        self.timers.append(timer)
        return timer

    @property
    def conn(self):
        return self.connections[-1]


@pytest.fixture
def h():
    return Harness()


@pytest.fixture
def sub(h):
    return PushSubscriber(
        "ws://localhost:8000/ws",
        on_message=h.received.append,
        connection_factory=h.connection_factory,
        timer_factory=h.timer_factory,
    )


def test_mount_connects(h, sub):
    assert sub.state == ConnectionState.DISCONNECTED
    sub.mount()

    assert sub.state == ConnectionState.CONNECTING
    assert len(h.connections) == 1
    assert h.conn.started
    assert h.conn.url == "ws://localhost:8000/ws"

    h.conn.on_open()
    assert sub.state == ConnectionState.CONNECTED


def test_mount_twice_keeps_one_connection(h, sub):
    sub.mount()
    sub.mount()
    assert len(h.connections) == 1


def test_messages_reach_handler(h, sub):
    sub.mount()
    h.conn.on_open()
    h.conn.message("order_created", {"id": "a1"})
    h.conn.message("order_deleted", {"id": "a1"})

    assert h.received == [
        {"type": "order_created", "data": {"id": "a1"}},
        {"type": "order_deleted", "data": {"id": "a1"}},
    ]


@pytest.mark.parametrize("raw", [
    "not json",
    "[1, 2]",
    json.dumps({"data": {}}),
    json.dumps({"type": 3, "data": {}}),
    json.dumps({"type": "order_created"}),
])
def test_bad_messages_are_dropped(h, sub, caplog, raw):
    sub.mount()
    h.conn.on_open()
    with caplog.at_level(logging.WARNING):
        h.conn.on_message(raw)

    assert h.received == []
    assert "Dropping" in caplog.text
    assert sub.state == ConnectionState.CONNECTED


def test_handler_error_keeps_connection(h, caplog):
    def boom(event):
        raise RuntimeError("boom")

    sub = PushSubscriber("ws://x/ws", boom, connection_factory=h.connection_factory,
                         timer_factory=h.timer_factory)
    sub.mount()
    h.conn.on_open()
    h.conn.message("order_updated", {})

    assert sub.state == ConnectionState.CONNECTED
    assert "handler failed" in caplog.text


def test_abnormal_close_schedules_one_reconnect(h, sub):
    sub.mount()
    h.conn.on_open()
    h.conn.on_close(1006)

    assert sub.state == ConnectionState.DISCONNECTED
    assert len(h.timers) == 1
    assert h.timers[0].interval == 3.0
    assert h.timers[0].started
    assert h.timers[0].daemon
    assert sub.reconnect_pending


def test_close_without_code_reconnects(h, sub):
    sub.mount()
    h.conn.on_close(None)
    assert len(h.timers) == 1


def test_duplicate_close_adds_no_timer(h, sub):
    sub.mount()
    h.conn.on_close(1006)
    h.conn.on_close(1006)
    assert len(h.timers) == 1


def test_timer_fire_opens_new_connection(h, sub):
    sub.mount()
    first = h.conn
    first.on_close(1011)
    h.timers[0].fire()

    assert len(h.connections) == 2
    assert h.conn is not first
    assert h.conn.started
    assert sub.state == ConnectionState.CONNECTING
    assert not sub.reconnect_pending

    h.conn.on_open()
    assert sub.state == ConnectionState.CONNECTED


def test_deliberate_close_does_not_reconnect(h, sub):
    sub.mount()
    h.conn.on_open()
    h.conn.on_close(DELIBERATE_CLOSE_CODE)

    assert h.timers == []
    assert sub.state == ConnectionState.DISCONNECTED


def test_unmount_closes_deliberately(h, sub):
    sub.mount()
    h.conn.on_open()
    conn = h.conn
    sub.unmount()

    assert conn.closed_with == DELIBERATE_CLOSE_CODE
    assert sub.state == ConnectionState.DISCONNECTED
    assert not sub.mounted

    # the socket reports its close after unmount; nothing is scheduled
    conn.on_close(DELIBERATE_CLOSE_CODE)
    conn.on_close(1006)
    assert h.timers == []


def test_unmount_cancels_pending_reconnect(h, sub):
    sub.mount()
    h.conn.on_close(1006)
    timer = h.timers[0]

    sub.unmount()
    assert timer.cancelled
    assert not sub.reconnect_pending

    # a timer that fires anyway must not connect
    timer.fire()
    assert len(h.connections) == 1


def test_stale_connection_events_are_ignored(h, sub):
    sub.mount()
    old = h.conn
    old.on_close(1006)
    h.timers[0].fire()
    new = h.conn
    new.on_open()

    old.on_open()
    old.message("order_created", {"id": "stale"})
    old.on_close(1006)

    assert h.received == []
    assert len(h.timers) == 1
    assert sub.state == ConnectionState.CONNECTED


def test_reconnects_without_limit(h, sub):
    sub.mount()
    for _ in range(25):
        h.conn.on_close(1006)
        h.timers[-1].fire()

    assert len(h.connections) == 26
    assert len(h.timers) == 25
    assert all(t.interval == 3.0 for t in h.timers)


def test_set_handler_uses_latest(h, sub):
    later = []
    sub.mount()
    h.conn.on_open()
    sub.set_handler(later.append)
    h.conn.message("order_updated", {"id": "b"})

    assert h.received == []
    assert later == [{"type": "order_updated", "data": {"id": "b"}}]
    assert len(h.connections) == 1


def test_remount_after_unmount(h, sub):
    sub.mount()
    sub.unmount()
    sub.mount()
    assert len(h.connections) == 2
    assert sub.state == ConnectionState.CONNECTING


def test_latest_callback_empty():
    cb = LatestCallback()
    assert cb(1) is None
    cb.set(lambda x: x * 2)
    assert cb(2) == 4
