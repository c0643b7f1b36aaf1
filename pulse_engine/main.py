"""pulse-engine — signal classification, pipeline state and live health.

This is the application entry point.  It wires the transport, the
PulseService and the HTTP / WebSocket endpoints together.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from pulse_engine.api.routes import create_api_router
from pulse_engine.api.ws_changes import create_changes_router
from pulse_engine.api.ws_health import create_health_router
from pulse_engine.config import Settings, settings
from pulse_engine.core.aggregator import TensionThresholds
from pulse_engine.core.classifier import ClassificationRules
from pulse_engine.services.connection_manager import ConnectionManager
from pulse_engine.services.pulse_service import PulseService
from pulse_engine.transport.base import Transport
from pulse_engine.transport.memory import InMemoryTransport

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


# ── Service ──────────────────────────────────────────────────────────────────


def build_service(transport: Transport, config: Settings = settings) -> PulseService:
    """Build a PulseService whose thresholds come from *config*."""
    return PulseService(
        transport,
        rules=ClassificationRules(
            low_confidence=config.classification_low_confidence,
            high_risk_amount=config.classification_high_risk_amount,
            medium_risk_amount=config.classification_medium_risk_amount,
            manager_approval_amount=config.classification_manager_approval_amount,
            exception_layer_confidence=config.classification_exception_layer_confidence,
        ),
        thresholds=TensionThresholds(
            elevated_urgent=config.tension_elevated_urgent,
            elevated_pending=config.tension_elevated_pending,
            high_urgent=config.tension_high_urgent,
            high_pending=config.tension_high_pending,
            active_urgent=config.tension_active_urgent,
            active_pending=config.tension_active_pending,
            pending_only=config.tension_pending_only,
        ),
        event_window=config.event_window_size,
        recent_limit=config.recent_events_limit,
        seconds_per_auto_resolved=config.time_saved_per_auto_resolved_seconds,
    )


# ── App ──────────────────────────────────────────────────────────────────────


def create_app(service: PulseService | None = None, config: Settings = settings) -> FastAPI:
    """Create the FastAPI app.  The service starts and stops with the app."""
    service = service or build_service(InMemoryTransport(), config)
    manager = ConnectionManager()
    service.health_monitor.add_listener(manager.on_health_change)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await service.start()
        try:
            yield
        finally:
            await service.stop()

    app = FastAPI(
        title=config.app_name,
        description="Signal classification, pipeline state and live system health",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.service = service

    # ── Routes ───────────────────────────────────────────────────────────

    app.include_router(create_api_router(service))
    app.include_router(create_changes_router(service))
    app.include_router(create_health_router(service, manager))

    # ── Health ───────────────────────────────────────────────────────────

    @app.get("/health")
    async def health() -> dict:
        snapshot = service.health
        return {
            "status": "ok",
            "signals": len(service.signals),
            "tickets": len(service.tickets),
            "signals_loading": service.signals_loading,
            "tickets_loading": service.tickets_loading,
            "health_level": snapshot.health_level.value,
            "tension_intensity": snapshot.tension_intensity,
            "health_clients": manager.active_count,
            "notifications": [
                service.signal_sync.stats.to_dict(),
                service.ticket_sync.stats.to_dict(),
            ],
        }

    return app


app = create_app()
