"""
WebSocket connection registry

Live notification sockets keyed by user id. A user may hold several
sockets at once (multiple tabs); a push goes to all of them.

Usage:
    await connections.connect(user.id, websocket)
    sent = await connections.send_to_user(user.id, {"type": "new_notification", ...})
    connections.disconnect(user.id, websocket)
"""
from typing import Dict, Set

from fastapi import WebSocket
from loguru import logger


class ConnectionManager:
    """Tracks open sockets per user"""

    def __init__(self):
        self.connections: Dict[str, Set[WebSocket]] = {}

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self.connections.setdefault(user_id, set()).add(websocket)
        logger.info(f"WebSocket connected: user={user_id}, total={self.connection_count()}")

    def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        sockets = self.connections.get(user_id)
        if sockets is not None:
            sockets.discard(websocket)
            if not sockets:
                del self.connections[user_id]
        logger.info(f"WebSocket disconnected: user={user_id}, total={self.connection_count()}")

    def is_connected(self, user_id: str) -> bool:
        return bool(self.connections.get(user_id))

    async def send_to_user(self, user_id: str, message: dict) -> int:
        """
        Push `message` to every socket of `user_id`

        Returns:
            number of sockets that received it; dead sockets are dropped
        """
        sockets = self.connections.get(user_id)
        if not sockets:
            return 0

        dead: Set[WebSocket] = set()
        sent = 0
        for websocket in list(sockets):
            try:
                await websocket.send_json(message)
                sent += 1
            except Exception as e:
                logger.warning(f"WebSocket send failed for user {user_id}: {e}")
                dead.add(websocket)

        for websocket in dead:
            self.disconnect(user_id, websocket)

        logger.debug(f"Pushed {message.get('type')} to user {user_id} ({sent} sockets)")
        return sent

    def connection_count(self, user_id: str = None) -> int:
        if user_id:
            return len(self.connections.get(user_id, ()))
        return sum(len(s) for s in self.connections.values())
