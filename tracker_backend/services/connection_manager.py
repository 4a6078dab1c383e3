# tracker_backend/services/connection_manager.py
"""
Registry of open push-channel connections.

Everything here runs on the server's event loop: register/unregister are
called from the websocket endpoint and broadcast from background tasks
scheduled by the order routes, so the set is never touched concurrently.
"""

import asyncio
import json
import logging
from typing import Any, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)

# close code a client sends when it tears the connection down on purpose
DELIBERATE_CLOSE_CODE = 4000


class ConnectionManager:
    """Owns the set of open push connections."""

    def __init__(self) -> None:
        self._connections: Set[WebSocket] = set()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def register(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections.add(websocket)
        logger.info("Push client connected (%d open)", len(self._connections))

    def unregister(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)
        logger.info("Push client disconnected (%d open)", len(self._connections))

    async def broadcast(self, event_type: str, data: Any) -> int:
        """
        Send {type, data} to every open connection.

        Sends run concurrently; a connection whose send fails is dropped and
        does not affect delivery to the others.

        Returns:
            number of connections the message was delivered to
        """
        message = json.dumps({"type": event_type, "data": jsonable_encoder(data)})
        targets = list(self._connections)
        if not targets:
            return 0

        results = await asyncio.gather(
            *(ws.send_text(message) for ws in targets),
            return_exceptions=True,
        )

        delivered = 0
        for ws, result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.warning("Dropping push client after failed send: %s", result)
                self._connections.discard(ws)
            else:
                delivered += 1

        logger.debug("Broadcast %s to %d/%d clients", event_type, delivered, len(targets))
        return delivered


# global instance shared by the routers
connection_manager = ConnectionManager()


def get_connection_manager() -> ConnectionManager:
    return connection_manager
