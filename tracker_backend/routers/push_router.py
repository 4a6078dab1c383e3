# tracker_backend/routers/push_router.py
import logging

from fastapi import APIRouter, Depends, WebSocket

from ..services.connection_manager import (
    DELIBERATE_CLOSE_CODE, ConnectionManager, get_connection_manager,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["push"])


@router.websocket("/ws")
async def push_channel(websocket: WebSocket, manager: ConnectionManager = Depends(get_connection_manager)):
    """Server -> client event stream. Anything the client sends, text or binary, is ignored."""
    await manager.register(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                code = message.get("code")
                break
    finally:
        manager.unregister(websocket)

    if code == DELIBERATE_CLOSE_CODE:
        logger.info("Push client closed deliberately")
    else:
        logger.info("Push client went away (code %s)", code)
