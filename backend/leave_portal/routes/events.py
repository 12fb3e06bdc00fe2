from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query
from typing import Optional
from leave_portal.utils.auth import resolve_token_user
from leave_portal.utils.ws_manager import manager
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def events_socket(websocket: WebSocket, token: Optional[str] = Query(None)):
    """Push channel for ``leaveStatusUpdated`` and other server events.

    Clients authenticate with the same bearer token as the REST API, passed as
    the ``token`` query parameter.
    """
    user = await resolve_token_user(token) if token else None
    if user is None:
        await websocket.close(code=1008, reason="Could not validate credentials")
        return

    user_id = str(user["_id"])
    if not await manager.connect(user_id, websocket):
        return

    try:
        while True:
            # Inbound messages are only used as keep-alives
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_json({"event": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(user_id, websocket)
