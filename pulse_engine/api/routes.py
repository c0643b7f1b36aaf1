"""REST endpoints: read accessors and commands over the PulseService.

Reads are projections of the live stores, computed per request.  Commands
are forwarded to the transport; the response carries the entity as the
remote confirmed it, while the local store catches up when the matching
notification arrives.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from pulse_engine.models.commands import (
    SignalCreate,
    SignalUpdate,
    TicketCreate,
    TicketUpdate,
    command_fields,
)
from pulse_engine.services.pulse_service import PulseService
from pulse_engine.transport.base import TransportError

logger = logging.getLogger(__name__)


def create_api_router(service: PulseService) -> APIRouter:
    """Factory that wires the REST endpoints to a PulseService."""

    router = APIRouter(prefix="/api", tags=["pulse"])

    # ── Signals ──────────────────────────────────────────────────────

    @router.get("/signals")
    async def list_signals() -> dict[str, Any]:
        signals = service.signals
        return {
            "signals": [s.model_dump(mode="json") for s in signals],
            "count": len(signals),
            "loading": service.signals_loading,
        }

    @router.get("/signals/classified")
    async def classified_signals() -> dict[str, Any]:
        return service.classify_and_group().model_dump(mode="json")

    @router.get("/signals/decision-layers")
    async def decision_layers() -> dict[str, Any]:
        return service.group_by_decision_layer().model_dump(mode="json")

    @router.get("/pipeline")
    async def pipeline() -> dict[str, Any]:
        groups = service.group_by_pulse_state()
        return {
            state.value: [s.model_dump(mode="json") for s in members]
            for state, members in groups.items()
        }

    @router.get("/workflow-stage/{status}")
    async def workflow_stage(status: str) -> dict[str, Any]:
        return {
            "status": status,
            "pulse_state": service.status_to_pulse_state(status).value,
            **service.get_workflow_stage(status).model_dump(),
        }

    @router.post("/signals", status_code=201)
    async def add_signal(body: SignalCreate) -> dict[str, Any]:
        try:
            signal = await service.add_signal(command_fields(body))
        except TransportError as exc:
            raise HTTPException(status_code=502, detail=exc.reason) from exc
        return signal.model_dump(mode="json")

    @router.patch("/signals/{signal_id}")
    async def update_signal(signal_id: str, body: SignalUpdate) -> dict[str, Any]:
        fields = command_fields(body, partial=True)
        if not fields:
            raise HTTPException(status_code=400, detail="No fields to update")
        try:
            signal = await service.update_signal(signal_id, fields)
        except TransportError as exc:
            raise HTTPException(status_code=502, detail=exc.reason) from exc
        return signal.model_dump(mode="json")

    # ── Tickets ──────────────────────────────────────────────────────

    @router.get("/tickets")
    async def list_tickets() -> dict[str, Any]:
        tickets = service.tickets
        return {
            "tickets": [t.model_dump(mode="json") for t in tickets],
            "count": len(tickets),
            "loading": service.tickets_loading,
        }

    @router.post("/tickets", status_code=201)
    async def create_ticket(body: TicketCreate) -> dict[str, Any]:
        try:
            ticket = await service.create_ticket(command_fields(body))
        except TransportError as exc:
            raise HTTPException(status_code=502, detail=exc.reason) from exc
        return ticket.model_dump(mode="json")

    @router.patch("/tickets/{ticket_id}")
    async def update_ticket(ticket_id: str, body: TicketUpdate) -> dict[str, Any]:
        fields = command_fields(body, partial=True)
        if not fields:
            raise HTTPException(status_code=400, detail="No fields to update")
        try:
            ticket = await service.update_ticket(ticket_id, fields)
        except TransportError as exc:
            raise HTTPException(status_code=502, detail=exc.reason) from exc
        return ticket.model_dump(mode="json")

    # ── Health ───────────────────────────────────────────────────────

    @router.get("/health-snapshot")
    async def health_snapshot() -> dict[str, Any]:
        return service.health.model_dump(mode="json")

    @router.get("/events")
    async def recent_events(limit: int = 10) -> dict[str, Any]:
        events = service.aggregator.recent(limit)
        return {"events": [e.model_dump(mode="json") for e in events], "count": len(events)}

    return router
