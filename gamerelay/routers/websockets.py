from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..handlers import handle_disconnect, handle_ws_message
from ..session import Session
from ..state import rooms

router = APIRouter(prefix="", tags=["ws"])

logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    session = Session(ws)
    try:
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            # Clients may send JSON as either text or binary frames
            data = message.get("text")
            if data is None:
                data = message.get("bytes") or b""
            await handle_ws_message(rooms, session, data)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("websocket error for %r", session)
    finally:
        # Closed cleanly, dropped, or failed its ping: all the same to the room.
        await handle_disconnect(rooms, session)
