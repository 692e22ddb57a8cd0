"""WebSocket connection management for dashboard clients."""

import json
import logging
from typing import Dict

from fastapi import WebSocket

from .exceptions import ConnectionLimitError
from .types import DashboardMessage, LogEventDict

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Tracks dashboard WebSocket connections.

    Features:
    - Connection limits
    - Broadcast of session log events to every client
    - Automatic cleanup of dead connections
    """

    def __init__(self, max_connections: int = 20):
        self.max_connections = max_connections
        self.active_connections: Dict[str, WebSocket] = {}

    async def connect(self, client_id: str, websocket: WebSocket) -> None:
        """
        Accept a dashboard connection.

        Raises:
            ConnectionLimitError: If max connections reached
        """
        if len(self.active_connections) >= self.max_connections:
            logger.warning("Connection limit reached")
            await websocket.close(code=1008, reason="Server at capacity")
            raise ConnectionLimitError(self.max_connections)

        await websocket.accept()
        self.active_connections[client_id] = websocket
        logger.info(
            f"WebSocket connected: {client_id} (total: {len(self.active_connections)})"
        )

    def disconnect(self, client_id: str) -> None:
        """Remove a connection."""
        if self.active_connections.pop(client_id, None) is not None:
            logger.info(f"WebSocket disconnected: {client_id}")

    async def send_message(self, client_id: str, message: DashboardMessage) -> bool:
        """
        Send a JSON message to one client.

        Returns:
            True if message was sent successfully, False otherwise
        """
        websocket = self.active_connections.get(client_id)
        if not websocket:
            logger.warning(f"Attempted to send to non-existent client: {client_id}")
            return False

        try:
            msg_type = message.get("type", "unknown")
            logger.debug(f"[WS OUT] {client_id[:8]}... | {msg_type} | {json.dumps(message)[:200]}")
            await websocket.send_json(message)
            return True
        except RuntimeError as e:
            # "Unexpected ASGI message" once the connection is already closed
            if "websocket.send" in str(e) or "websocket.close" in str(e):
                logger.warning(f"Cannot send message to {client_id}: connection already closed")
                self.disconnect(client_id)
                return False
            raise
        except Exception as e:
            logger.error(f"Error sending message to {client_id}: {e}")
            return False

    async def broadcast(self, message: DashboardMessage) -> int:
        """Send a message to every client; returns how many received it."""
        delivered = 0
        for client_id in list(self.active_connections):
            if await self.send_message(client_id, message):
                delivered += 1
        return delivered

    async def broadcast_log(self, event: LogEventDict) -> None:
        """Log sink for the session controller."""
        await self.broadcast({"type": "log", **event})

    def get_connection_count(self) -> int:
        """Get number of active connections."""
        return len(self.active_connections)
