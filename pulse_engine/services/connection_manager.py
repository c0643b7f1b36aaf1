"""Manages WebSocket clients that follow live health changes."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import WebSocket

from pulse_engine.domain.health import HealthChange

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks connected frontend WebSockets and broadcasts to them.

    ``on_health_change`` is a HealthMonitor listener.  It is called
    synchronously from reconciliation, so the actual send is scheduled as
    a task on the running loop.
    """

    def __init__(self) -> None:
        self._connections: set[WebSocket] = set()
        self._lock = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections.add(websocket)
        logger.info("Health client connected (%d total)", len(self._connections))

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._connections.discard(websocket)
        logger.info("Health client disconnected (%d remaining)", len(self._connections))

    @property
    def active_count(self) -> int:
        return len(self._connections)

    def on_health_change(self, change: HealthChange) -> None:
        if not self._connections:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; health change not broadcast")
            return
        payload = {"type": "health_change", **change.model_dump(mode="json")}
        task = loop.create_task(self.broadcast_json(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def broadcast_json(self, data: dict[str, Any]) -> None:
        """Send a JSON payload to every connected client, dropping dead ones."""
        message = json.dumps(data, default=str)
        dead: set[WebSocket] = set()

        async with self._lock:
            clients = set(self._connections)

        for ws in clients:
            try:
                await ws.send_text(message)
            except Exception:
                dead.add(ws)

        if dead:
            async with self._lock:
                self._connections -= dead
            logger.info("Removed %d dead health client(s)", len(dead))
