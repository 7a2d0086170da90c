# grantkeeper/adapters/outbound/delivery/websocket_connection.py

import asyncio
import uuid
from typing import Any, Dict, Optional

from fastapi import WebSocket

from grantkeeper.application.ports.outbound import IConnection


class WebSocketConnection(IConnection):
    """
    Live connection backed by a FastAPI WebSocket.

    Sends on one connection are serialized by its own lock, so events reach
    the device in the order they were published.
    """

    def __init__(self, websocket: WebSocket, connection_id: Optional[str] = None):
        self.websocket = websocket
        self.connection_id = connection_id or uuid.uuid4().hex
        self._lock = asyncio.Lock()

    async def send(self, payload: Dict[str, Any]) -> None:
        async with self._lock:
            await self.websocket.send_json(payload)

    async def close(self, code: int = 1000) -> None:
        async with self._lock:
            await self.websocket.close(code=code)

    def __repr__(self) -> str:
        return f"<WebSocketConnection(connection_id={self.connection_id})>"
