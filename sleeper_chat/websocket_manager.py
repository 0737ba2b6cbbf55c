"""
WebSocket connection manager for live chat UI events.
"""

from typing import Dict, Set
import json
import logging
from datetime import datetime, timezone
from fastapi import WebSocket

from sleeper_chat.ui.streaming import UIEvent

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages WebSocket connections per chat session."""

    def __init__(self):
        # Map chat_id -> set of websockets
        self.chat_connections: Dict[str, Set[WebSocket]] = {}
        # Map websocket -> chat_id for cleanup
        self.connection_chats: Dict[WebSocket, str] = {}

    async def connect(self, websocket: WebSocket, chat_id: str):
        """
        Accept a WebSocket connection for a chat session.

        Args:
            websocket: FastAPI WebSocket instance
            chat_id: Chat session identifier
        """
        await websocket.accept()

        if chat_id not in self.chat_connections:
            self.chat_connections[chat_id] = set()

        self.chat_connections[chat_id].add(websocket)
        self.connection_chats[websocket] = chat_id

        logger.info(f"WebSocket connected to chat {chat_id}")

    def disconnect(self, websocket: WebSocket):
        """Remove a WebSocket connection from its chat."""
        chat_id = self.connection_chats.pop(websocket, None)

        if chat_id and chat_id in self.chat_connections:
            self.chat_connections[chat_id].discard(websocket)

            # Clean up empty chat
            if not self.chat_connections[chat_id]:
                del self.chat_connections[chat_id]

        logger.info(f"WebSocket disconnected from chat {chat_id}")

    def connection_count(self, chat_id: str) -> int:
        return len(self.chat_connections.get(chat_id, set()))

    async def broadcast_to_chat(self, chat_id: str, message: dict):
        """
        Broadcast a message to all clients of a chat session.

        Args:
            chat_id: Chat session ID
            message: Message dict to broadcast
        """
        connections = self.chat_connections.get(chat_id, set())

        if not connections:
            logger.debug(f"No active connections for chat {chat_id}")
            return

        disconnected = []
        for websocket in list(connections):
            try:
                await websocket.send_text(json.dumps(message))
            except Exception as e:
                logger.error(f"Error sending to WebSocket in chat {chat_id}: {e}")
                disconnected.append(websocket)

        # Clean up disconnected clients
        for websocket in disconnected:
            self.disconnect(websocket)

        logger.debug(f"Broadcast {message.get('type')} to {len(connections) - len(disconnected)} clients in chat {chat_id}")

    async def broadcast_ui_event(self, chat_id: str, event: UIEvent):
        await self.broadcast_to_chat(chat_id, {
            "type": "ui_event",
            "data": event.model_dump(mode="json")
        })

    async def send_error(self, websocket: WebSocket, message: str):
        await websocket.send_text(json.dumps({
            "type": "error",
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }))


# Global connection manager instance
connection_manager = ConnectionManager()
