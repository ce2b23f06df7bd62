"""WebSocket handler for live store updates."""

import asyncio
import json
import logging
from typing import Any, Iterable

from fastapi import WebSocket

from discovery.models import Device
from notifications.models import Notification

logger = logging.getLogger(__name__)

# Snapshot frames pushed to the UI: the full list, never a delta
Snapshot = list[dict[str, Any]]


class ConnectionManager:
    """Mirrors the registry and feed snapshots to every UI WebSocket."""

    def __init__(self) -> None:
        self._connections: list[WebSocket] = []
        self._lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections.append(websocket)
            total = len(self._connections)
        logger.info(f"UI client connected. Total: {total}")

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            if websocket in self._connections:
                self._connections.remove(websocket)
            total = len(self._connections)
        logger.info(f"UI client disconnected. Total: {total}")

    async def broadcast(self, event: str, data: Snapshot) -> None:
        """Send one snapshot frame to every UI client, dropping dead ones."""
        frame = json.dumps({"event": event, "data": data})
        async with self._lock:
            alive: list[WebSocket] = []
            for ws in self._connections:
                try:
                    await ws.send_text(frame)
                except Exception as e:
                    logger.debug(f"Dropping UI client after send failure: {e}")
                    continue
                alive.append(ws)
            self._connections = alive

    async def publish_devices(self, devices: Iterable[Device]) -> None:
        """DeviceRegistry change listener."""
        await self.broadcast("devices", [d.model_dump() for d in devices])

    async def publish_notifications(self, notifications: Iterable[Notification]) -> None:
        """NotificationFeed change listener."""
        await self.broadcast(
            "notifications", [n.model_dump(mode="json") for n in notifications]
        )
