# tracker_frontend/services/order_cache.py
"""
Client-side cache of the order list.

Mirrors what a query cache does in a browser client: reads are served from
memory while fresh, and a push event invalidates the list, which is then
re-fetched from the API in full. Pushed payloads are never merged in.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Orders = List[Dict[str, Any]]


class OrdersCache:
    def __init__(
        self,
        fetcher: Callable[[], Orders],
        stale_time: float = 30.0,
        retry: int = 2,
        retry_delay: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._fetcher = fetcher
        self.stale_time = stale_time
        self.retry = retry
        self.retry_delay = retry_delay
        self._clock = clock
        self._sleep = sleep

        self._lock = threading.RLock()
        self._data: Optional[Orders] = None
        self._fetched_at: Optional[float] = None
        self._listeners: List[Callable[[Orders], None]] = []

    # ---------- listeners ----------
    def subscribe(self, listener: Callable[[Orders], None]) -> Callable[[], None]:
        """Register a listener for refreshed lists; returns an unsubscribe function."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, orders: Orders) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(orders)
            except Exception:
                logger.exception("Orders listener failed")

    # ---------- reads ----------
    def peek(self) -> Optional[Orders]:
        with self._lock:
            return self._data

    def is_stale(self) -> bool:
        with self._lock:
            if self._data is None or self._fetched_at is None:
                return True
            return self._clock() - self._fetched_at >= self.stale_time

    def get(self) -> Orders:
        with self._lock:
            if not self.is_stale():
                return self._data
        return self.refetch()

    def refetch(self) -> Orders:
        """Fetch the full list, retrying `retry` times; raises the last error."""
        attempts = self.retry + 1
        with self._lock:
            for attempt in range(1, attempts + 1):
                try:
                    orders = self._fetcher()
                    break
                except Exception as e:
                    if attempt == attempts:
                        logger.error("Fetching orders failed after %d attempts: %s", attempts, e)
                        raise
                    logger.warning("Fetching orders failed (attempt %d/%d): %s", attempt, attempts, e)
                    self._sleep(self.retry_delay)
            self._data = orders
            self._fetched_at = self._clock()
        self._notify(orders)
        return orders

    # ---------- invalidation ----------
    def invalidate(self) -> None:
        """Discard the cached list and fetch it again; fetch errors are logged only."""
        with self._lock:
            self._data = None
            self._fetched_at = None
        try:
            self.refetch()
        except Exception as e:
            # the list stays empty until the next successful read
            logger.warning("Order list invalidated but not reloaded: %s", e)
