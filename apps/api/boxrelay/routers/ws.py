"""WebSocket transport for box collaboration."""
from __future__ import annotations

import logging
from uuid import uuid4

from fastapi import APIRouter, WebSocket
from fastapi.websockets import WebSocketState

from ..services.broadcast import broadcaster
from ..services.registry import BoxConnection

logger = logging.getLogger(__name__)

router = APIRouter()


def _socket_is_open(websocket: WebSocket) -> bool:
    return (
        websocket.application_state == WebSocketState.CONNECTED
        and websocket.client_state == WebSocketState.CONNECTED
    )


@router.websocket("/ws")
async def box_socket(websocket: WebSocket) -> None:
    """Feed every frame from one client into the broadcast router."""

    connection_id = websocket.query_params.get("connection_id") or str(uuid4())
    await websocket.accept()

    connection = BoxConnection(
        connection_id=connection_id,
        send=websocket.send_json,
        is_open=lambda: _socket_is_open(websocket),
    )
    logger.debug("Connection %s opened", connection_id)

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            raw = frame.get("text")
            if raw is None:
                raw = frame.get("bytes")
            if raw is None:
                continue
            try:
                await broadcaster.handle_message(connection, raw)
            except Exception:  # noqa: BLE001 - one bad event must not drop the socket
                logger.exception("Failed handling message from %s", connection_id)
    finally:
        await broadcaster.handle_close(connection)
        logger.debug("Connection %s closed", connection_id)
