# tracker_frontend/services/live_orders.py
import logging
from typing import Any, Dict, Optional

from .order_cache import OrdersCache
from .push_subscriber import PushSubscriber

logger = logging.getLogger(__name__)

ORDER_EVENTS = frozenset({"order_created", "order_updated", "order_deleted"})


class LiveOrders:
    """Keeps an OrdersCache in sync with the push channel."""

    def __init__(self, cache: OrdersCache, ws_url: str, subscriber: Optional[PushSubscriber] = None):
        self.cache = cache
        self.subscriber = subscriber or PushSubscriber(ws_url, self.handle_event)
        self.subscriber.set_handler(self.handle_event)

    def handle_event(self, event: Dict[str, Any]) -> None:
        event_type = event.get("type")
        if event_type not in ORDER_EVENTS:
            logger.debug("Ignoring push event %r", event_type)
            return
        logger.info("Received %s, reloading orders", event_type)
        self.cache.invalidate()

    def start(self) -> None:
        self.subscriber.mount()

    def stop(self) -> None:
        self.subscriber.unmount()
