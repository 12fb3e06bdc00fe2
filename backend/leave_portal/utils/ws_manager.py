from fastapi import WebSocket
from typing import Dict, Iterable
import logging

logger = logging.getLogger(__name__)


class ConnectionManager:
    """In-process event bus pushing JSON events to connected WebSocket clients.

    One socket is kept per user. Events for users who are not connected are
    dropped rather than queued.
    """

    def __init__(self, max_connections: int = 1000):
        self.active_connections: Dict[str, WebSocket] = {}
        self.max_connections = max_connections

    async def connect(self, user_id: str, websocket: WebSocket) -> bool:
        if len(self.active_connections) >= self.max_connections:
            logger.warning(f"Connection limit reached ({self.max_connections}), rejecting user {user_id}")
            await websocket.close(code=1013, reason="Server overloaded")
            return False

        await websocket.accept()

        # A second tab replaces the first one
        if user_id in self.active_connections:
            await self._force_disconnect(user_id)

        self.active_connections[user_id] = websocket
        logger.info(f"User {user_id} connected. Total connections: {len(self.active_connections)}")
        return True

    def disconnect(self, user_id: str, websocket: WebSocket = None):
        current = self.active_connections.get(user_id)
        if current is not None and (websocket is None or current is websocket):
            del self.active_connections[user_id]
            logger.info(f"User {user_id} disconnected. Total connections: {len(self.active_connections)}")

    async def _force_disconnect(self, user_id: str):
        ws = self.active_connections.pop(user_id, None)
        if ws is None:
            return
        try:
            await ws.close()
        except Exception as e:
            logger.warning(f"Error closing websocket for {user_id}: {e}")

    async def notify(self, user_id: str, payload: dict) -> bool:
        ws = self.active_connections.get(user_id)
        if ws is None:
            return False
        try:
            await ws.send_json(payload)
            return True
        except Exception as e:
            logger.warning(f"Failed to send message to {user_id}: {e}")
            self.active_connections.pop(user_id, None)
            return False

    async def publish(self, event: str, data: dict, recipients: Iterable[str]) -> int:
        """Send ``{"event", "data"}`` to every connected recipient; returns deliveries."""
        message = {"event": event, "data": data}
        delivered = 0
        for user_id in dict.fromkeys(recipients):
            if await self.notify(user_id, message):
                delivered += 1
        logger.info(f"Event {event} delivered to {delivered} connected client(s)")
        return delivered

    def get_connection_stats(self) -> dict:
        return {
            "active_connections": len(self.active_connections),
            "max_connections": self.max_connections
        }


manager = ConnectionManager()
