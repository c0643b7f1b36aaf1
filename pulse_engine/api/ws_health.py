"""Health WebSocket — pushes health changes to connected frontends.

Architecture:
    transport  →  EntitySync  →  HealthMonitor.publish()
                                        ↓
    FE  ←  /ws/health  ←  ConnectionManager.on_health_change()

On connect the client receives the current snapshot, then one
``health_change`` message every time the level or tension intensity moves.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from pulse_engine.services.connection_manager import ConnectionManager
from pulse_engine.services.pulse_service import PulseService

logger = logging.getLogger(__name__)


def create_health_router(service: PulseService, manager: ConnectionManager) -> APIRouter:
    """Factory that creates the health WebSocket endpoint."""

    router = APIRouter()

    @router.websocket("/ws/health")
    async def health_ws(websocket: WebSocket) -> None:
        await manager.connect(websocket)
        try:
            await websocket.send_json({
                "type": "health_snapshot",
                **service.health.model_dump(mode="json"),
            })
            # FE just listens; answer heartbeats
            while True:
                data = await websocket.receive_text()
                if data.strip().lower() == "ping":
                    await websocket.send_text("pong")
        except WebSocketDisconnect:
            await manager.disconnect(websocket)

    return router
