"""WebSocket connection manager for real-time report and notification updates."""

import json
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages WebSocket connections, grouped by user."""

    def __init__(self):
        """Initialize connection manager."""
        # Maps user_id -> list of WebSocket connections
        self.active_connections: dict[str, list[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, user_id: str) -> None:
        """Accept a new WebSocket connection and add it to the user's channel."""
        await websocket.accept()
        self.active_connections.setdefault(str(user_id), []).append(websocket)
        logger.info(f"[WS] Connected user {user_id} ({len(self.active_connections[str(user_id)])} open)")

    def disconnect(self, websocket: WebSocket, user_id: str) -> None:
        """Remove a WebSocket connection from the user's channel."""
        user_key = str(user_id)

        if user_key in self.active_connections:
            if websocket in self.active_connections[user_key]:
                self.active_connections[user_key].remove(websocket)

            # Clean up empty channels
            if not self.active_connections[user_key]:
                del self.active_connections[user_key]

    def connection_count(self, user_id: str) -> int:
        return len(self.active_connections.get(str(user_id), []))

    async def send_personal_message(self, message: dict[str, Any], websocket: WebSocket) -> None:
        """Send a message to a specific WebSocket connection."""
        await websocket.send_text(json.dumps(message))

    async def send_to_user(self, user_id: str, message: dict[str, Any]) -> None:
        """Send a message to every connection of a user."""
        user_key = str(user_id)

        if user_key not in self.active_connections:
            return

        disconnected = []
        for connection in list(self.active_connections[user_key]):
            try:
                await connection.send_text(json.dumps(message))
            except Exception:
                # Mark for removal if connection is broken
                disconnected.append(connection)

        # Clean up broken connections
        for connection in disconnected:
            self.disconnect(connection, user_id)

    async def send_event(self, user_id: str, event_type: str, data: dict[str, Any]) -> None:
        """Send a typed event (report_added, notification, ...) to a user."""
        await self.send_to_user(user_id, {"type": event_type, "data": data})

    async def send_session_changed(self, user_id: str, signed_in: bool) -> None:
        """Tell a user's clients that their session started or ended."""
        await self.send_event(user_id, "session_changed", {"signed_in": signed_in})


# Global connection manager instance
manager = ConnectionManager()
