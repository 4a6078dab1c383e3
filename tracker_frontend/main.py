# tracker_frontend/main.py
"""
Console watcher: loads the order list, keeps it live through the push
channel and logs a summary line on every refresh.

    API_BASE_URL=http://127.0.0.1:8000 order-tracker-watch
"""

import logging
import os
import threading

from .services.api_client import API_BASE_URL, OrdersApi
from .services.live_orders import LiveOrders
from .services.order_cache import OrdersCache
from .services.orders_service import summarize

logger = logging.getLogger(__name__)


def ws_url_for(base_url: str) -> str:
    if base_url.startswith("https://"):
        return "wss://" + base_url[len("https://"):].rstrip("/") + "/ws"
    if base_url.startswith("http://"):
        return "ws://" + base_url[len("http://"):].rstrip("/") + "/ws"
    return base_url.rstrip("/") + "/ws"


WS_URL = os.getenv("WS_URL", ws_url_for(API_BASE_URL))


def _log_summary(orders) -> None:
    s = summarize(orders)
    logger.info(
        "%d orders | revenue %d | due %d | %d customers",
        s["total_orders"], s["total_revenue"], s["total_due"], len(s["customers"]),
    )


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    api = OrdersApi(API_BASE_URL)
    cache = OrdersCache(api.fetch_orders)
    cache.subscribe(_log_summary)
    live = LiveOrders(cache, WS_URL)

    try:
        cache.get()
    except Exception as e:
        logger.error("Initial load failed: %s", e)

    live.start()
    stop = threading.Event()
    try:
        stop.wait()
    except KeyboardInterrupt:
        logger.info("Stopping")
    finally:
        live.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
