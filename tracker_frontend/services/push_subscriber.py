# tracker_frontend/services/push_subscriber.py
"""
Push-channel subscriber with a flat reconnect loop.

    DISCONNECTED -> CONNECTING -> CONNECTED -> (close) -> DISCONNECTED -> ...

Any close that is not deliberate schedules exactly one reconnect attempt
after `reconnect_delay` seconds. There is no backoff and no attempt cap.
unmount() cancels a pending attempt and closes with DELIBERATE_CLOSE_CODE,
so neither side treats it as a failure.
"""

import json
import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, Optional

import websocket

log = logging.getLogger(__name__)

DELIBERATE_CLOSE_CODE = 4000
RECONNECT_DELAY = 3.0


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class LatestCallback:
    """Mutable cell; a call always goes to the callback that was set last."""

    def __init__(self, fn: Optional[Callable] = None):
        self._fn = fn

    def set(self, fn: Optional[Callable]) -> None:
        self._fn = fn

    def __call__(self, *args, **kwargs):
        fn = self._fn
        if fn is None:
            return None
        return fn(*args, **kwargs)


class WebSocketConnection:
    """
    One websocket-client connection running in a daemon thread.

    on_close fires exactly once per connection, with the close code or None
    when the socket failed or dropped without a close frame.
    """

    def __init__(self, url: str, *, on_open: Callable[[], None], on_message: Callable[[str], None],
                 on_close: Callable[[Optional[int]], None], name: str = "PushSocket"):
        self.url = url
        self.name = name
        self._on_open = on_open
        self._on_message = on_message
        self._on_close = on_close

        self._app: Optional[websocket.WebSocketApp] = None
        self._lock = threading.Lock()
        self._closed = False
        self._close_code: Optional[int] = None
        self._thread = threading.Thread(target=self._run, daemon=True, name=name)

    def start(self) -> None:
        self._thread.start()

    def close(self, code: int = DELIBERATE_CLOSE_CODE) -> None:
        with self._lock:
            self._close_code = code
            app = self._app
        if app is not None:
            try:
                app.close(status=code)
            except Exception as e:
                log.debug("[%s] close failed: %s", self.name, e)

    def _report_close(self, code: Optional[int]) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._close_code is not None:
                code = self._close_code
        try:
            self._on_close(code)
        except Exception:
            log.exception("[%s] on_close hook failed", self.name)

    def _run(self) -> None:
        log.info("[%s] connecting -> %s", self.name, self.url)

        def _on_open(ws):
            with self._lock:
                code = self._close_code
            if code is not None:
                # close() arrived before run_forever() started
                log.info("[%s] closing right after connect (code %s)", self.name, code)
                ws.close(status=code)
                return
            log.info("[%s] WS CONNECTED", self.name)
            self._on_open()

        def _on_message(_ws, msg):
            self._on_message(msg)

        def _on_error(_ws, err):
            # an error is not always followed by a close; the close report below covers both
            log.error("[%s] WS ERROR: %s", self.name, err)

        def _on_close(_ws, status_code=None, _msg=None):
            log.warning("[%s] WS CLOSED (code %s)", self.name, status_code)
            self._report_close(status_code)

        try:
            with self._lock:
                if self._close_code is not None:
                    return
                self._app = websocket.WebSocketApp(
                    self.url,
                    on_open=_on_open,
                    on_message=_on_message,
                    on_error=_on_error,
                    on_close=_on_close,
                )
            self._app.run_forever()
        except Exception as e:
            log.exception("[%s] WS exception: %s", self.name, e)
        finally:
            self._report_close(None)


class PushSubscriber:
    """
    Keeps one push connection alive for as long as it is mounted.

    Messages are parsed as {"type", "data"} and handed to the current
    handler; set_handler() swaps it without reconnecting.
    """

    def __init__(
        self,
        url: str,
        on_message: Callable[[Dict[str, Any]], None],
        reconnect_delay: float = RECONNECT_DELAY,
        connection_factory: Callable[..., Any] = WebSocketConnection,
        timer_factory: Callable[[float, Callable[[], None]], Any] = threading.Timer,
    ):
        self.url = url
        self.reconnect_delay = reconnect_delay
        self._connection_factory = connection_factory
        self._timer_factory = timer_factory
        self._handler = LatestCallback(on_message)

        self._lock = threading.RLock()
        self._state = ConnectionState.DISCONNECTED
        self._mounted = False
        self._conn = None
        self._timer = None
        # bumps on every connect so events from an old socket are ignored
        self._generation = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def reconnect_pending(self) -> bool:
        return self._timer is not None

    def set_handler(self, on_message: Callable[[Dict[str, Any]], None]) -> None:
        self._handler.set(on_message)

    # ---------- lifecycle ----------
    def mount(self) -> None:
        with self._lock:
            if self._mounted:
                return
            self._mounted = True
        self._connect()

    def unmount(self) -> None:
        with self._lock:
            self._mounted = False
            self._cancel_timer()
            conn, self._conn = self._conn, None
            self._generation += 1
            self._state = ConnectionState.DISCONNECTED
        if conn is not None:
            conn.close(DELIBERATE_CLOSE_CODE)
        log.info("Push subscriber unmounted")

    # ---------- internals ----------
    def _connect(self) -> None:
        with self._lock:
            if not self._mounted:
                return
            self._generation += 1
            gen = self._generation
            self._state = ConnectionState.CONNECTING
            conn = self._connection_factory(
                self.url,
                on_open=lambda: self._handle_open(gen),
                on_message=lambda raw: self._handle_message(gen, raw),
                on_close=lambda code: self._handle_close(gen, code),
            )
            self._conn = conn
        conn.start()

    def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

    def _handle_open(self, gen: int) -> None:
        with self._lock:
            if gen != self._generation:
                return
            self._state = ConnectionState.CONNECTED
            self._cancel_timer()
        log.info("Connected to push channel %s", self.url)

    def _handle_message(self, gen: int, raw: Any) -> None:
        if gen != self._generation:
            return
        try:
            event = json.loads(raw)
        except (TypeError, ValueError) as e:
            log.warning("Dropping unparseable push message: %s", e)
            return
        if not isinstance(event, dict) or not isinstance(event.get("type"), str) or "data" not in event:
            log.warning("Dropping malformed push message: %r", raw)
            return
        try:
            self._handler(event)
        except Exception:
            log.exception("Push message handler failed for %s", event.get("type"))

    def _handle_close(self, gen: int, code: Optional[int]) -> None:
        with self._lock:
            if gen != self._generation:
                return
            self._conn = None
            self._state = ConnectionState.DISCONNECTED
            if not self._mounted or code == DELIBERATE_CLOSE_CODE:
                log.info("Push channel closed deliberately")
                return
            if self._timer is not None:
                return
            log.info("Push channel lost (code %s); reconnecting in %.1f s", code, self.reconnect_delay)
            timer = self._timer_factory(self.reconnect_delay, self._reconnect)
            timer.daemon = True
            self._timer = timer
        timer.start()

    def _reconnect(self) -> None:
        with self._lock:
            self._timer = None
            if not self._mounted:
                return
        self._connect()
