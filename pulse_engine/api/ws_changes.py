"""WebSocket endpoint for change-notification ingestion.

Path: /ws/changes

A transport collaborator pushes raw notifications shaped like::

    {"kind": "signals", "eventType": "UPDATE", "new": {...}, "old": {...}}

Each frame is decoded and validated at the boundary and queued on the matching
EntitySync, which applies it in arrival order.  Malformed messages are
answered with an error and never reach the store.
"""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from pulse_engine.services.pulse_service import PulseService
from pulse_engine.store.changes import MalformedNotificationError, parse_change

logger = logging.getLogger(__name__)


def create_changes_router(service: PulseService) -> APIRouter:
    """Factory that wires the change feed to a PulseService."""

    router = APIRouter()

    @router.websocket("/ws/changes")
    async def ingest_changes(websocket: WebSocket) -> None:
        await websocket.accept()
        logger.info("Change feed connected")

        try:
            while True:
                text = await websocket.receive_text()
                try:
                    raw = json.loads(text)
                except ValueError:
                    logger.warning("Change feed sent a frame that is not JSON")
                    await websocket.send_json({
                        "status": "error",
                        "reason": "malformed",
                        "detail": "Frame is not valid JSON",
                    })
                    continue

                kind = raw.get("kind") if isinstance(raw, dict) else None
                sync = service.sync_for(kind) if isinstance(kind, str) else None
                if sync is None:
                    await websocket.send_json({
                        "status": "error",
                        "reason": "unknown_kind",
                        "detail": f"No collection named {kind!r}",
                    })
                    continue

                # ── Validate at the boundary ─────────────────────────────
                try:
                    change = parse_change(sync.kind, sync.model, raw)
                except MalformedNotificationError as exc:
                    sync.stats.rejected_count += 1
                    logger.warning("%s", exc)
                    await websocket.send_json({
                        "status": "error",
                        "reason": "malformed",
                        "detail": exc.reason,
                    })
                    continue

                if not sync.submit(raw):
                    await websocket.send_json({
                        "status": "error",
                        "reason": "not_running",
                        "detail": f"Sync for {sync.kind} is stopped",
                    })
                    continue

                await websocket.send_json({
                    "status": "accepted",
                    "kind": sync.kind,
                    "event_type": change.change_type.value,
                    "entity_id": change.entity_id,
                })

        except WebSocketDisconnect:
            logger.info("Change feed disconnected")

    return router
