"""
Live-reload hub.

Keeps the set of connected browser websockets and broadcasts reload
messages to all of them. Clients that fail on send are dropped.
"""
from __future__ import annotations

from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from .models import ReloadMessage


class ReloadHub:
    """Registry of live-reload clients."""

    def __init__(self):
        self._clients: set[Any] = set()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._clients.add(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        self._clients.discard(websocket)

    async def broadcast(self, message: ReloadMessage) -> int:
        """
        Send ``message`` to every client.

        Returns
        -------
        int
            Number of clients the message was delivered to
        """
        payload = message.model_dump(mode='json')
        delivered = 0
        for websocket in list(self._clients):
            try:
                await websocket.send_json(payload)
            except (WebSocketDisconnect, RuntimeError, OSError):
                self.disconnect(websocket)
                continue
            delivered += 1
        return delivered
