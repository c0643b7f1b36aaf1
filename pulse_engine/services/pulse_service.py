"""PulseService — the engine's single entry point for consumers.

Wires two EntitySyncs (signals and maintenance tickets) to the aggregator
and the health monitor, and exposes read accessors plus the four command
coroutines.  Every reconciled signal change is turned into a SignalEvent
for the rolling window, after which the health monitor republishes.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from pulse_engine.core.aggregator import SignalAggregator, TensionThresholds
from pulse_engine.core.classifier import (
    DEFAULT_RULES,
    ClassificationRules,
    classify_and_group,
    classify_signal,
    get_workflow_stage,
    group_by_decision_layer,
)
from pulse_engine.core.health_monitor import HealthMonitor
from pulse_engine.core.pipeline import group_by_pulse_state, status_to_pulse_state
from pulse_engine.core.transitions import derive_signal_event
from pulse_engine.domain.classification import (
    ClassifiedGroups,
    ClassifiedSignal,
    DecisionLayerGroups,
    WorkflowStage,
)
from pulse_engine.domain.enums import EntityKind, PulseState
from pulse_engine.domain.events import SignalEvent
from pulse_engine.domain.health import HealthSnapshot
from pulse_engine.domain.signal import Signal
from pulse_engine.domain.ticket import MaintenanceTicket
from pulse_engine.services.entity_sync import EntitySync
from pulse_engine.store.changes import EntityChange
from pulse_engine.store.entity_store import ChangeOutcome
from pulse_engine.transport.base import Transport, TransportError

logger = logging.getLogger(__name__)


class PulseService:
    """Signals, tickets, classification and health behind one object.

    Args:
        transport: The remote collaborator.
        rules: Classification thresholds.
        thresholds: Tension thresholds.
        event_window: Capacity of the rolling event window.
        recent_limit: How many events the health snapshot carries.
        seconds_per_auto_resolved: Time-saved estimate per auto-approval.
    """

    def __init__(
        self,
        transport: Transport,
        rules: ClassificationRules | None = None,
        thresholds: TensionThresholds | None = None,
        event_window: int = 20,
        recent_limit: int = 10,
        seconds_per_auto_resolved: int = 180,
    ) -> None:
        self._rules = rules or DEFAULT_RULES
        self.signal_sync: EntitySync[Signal] = EntitySync(EntityKind.SIGNALS.value, Signal, transport)
        self.ticket_sync: EntitySync[MaintenanceTicket] = EntitySync(
            EntityKind.TICKETS.value, MaintenanceTicket, transport
        )
        self.aggregator = SignalAggregator(
            self.signal_sync.store.snapshot,
            capacity=event_window,
            thresholds=thresholds,
            seconds_per_auto_resolved=seconds_per_auto_resolved,
        )
        self.health_monitor = HealthMonitor(
            self.signal_sync.store.snapshot,
            self.ticket_sync.store.snapshot,
            self.aggregator,
            recent_limit=recent_limit,
        )
        self.signal_sync.add_listener(self._on_signal_change)
        self.ticket_sync.add_listener(self._on_ticket_change)

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def start(self) -> None:
        await self.signal_sync.start()
        try:
            await self.ticket_sync.start()
        except TransportError:
            await self.signal_sync.stop()
            raise
        self.health_monitor.publish()
        logger.info(
            "PulseService started with %d signal(s), %d ticket(s)",
            len(self.signal_sync.store),
            len(self.ticket_sync.store),
        )

    async def stop(self) -> None:
        await self.signal_sync.stop()
        await self.ticket_sync.stop()
        logger.info("PulseService stopped")

    async def drain(self) -> None:
        """Wait until all queued notifications have been applied."""
        await self.signal_sync.drain()
        await self.ticket_sync.drain()

    def sync_for(self, kind: str) -> Optional[EntitySync[Any]]:
        for sync in (self.signal_sync, self.ticket_sync):
            if sync.kind == kind:
                return sync
        return None

    # ── Read accessors ───────────────────────────────────────────────────

    @property
    def signals(self) -> tuple[Signal, ...]:
        return self.signal_sync.store.snapshot()

    @property
    def tickets(self) -> tuple[MaintenanceTicket, ...]:
        return self.ticket_sync.store.snapshot()

    @property
    def signals_loading(self) -> bool:
        return self.signal_sync.loading

    @property
    def tickets_loading(self) -> bool:
        return self.ticket_sync.loading

    @property
    def health(self) -> HealthSnapshot:
        return self.health_monitor.snapshot()

    def refresh_health(self) -> None:
        self.health_monitor.refresh_health()

    def classify_signal(self, signal: Signal) -> ClassifiedSignal:
        return classify_signal(signal, self._rules)

    def classify_and_group(self, signals: Optional[Sequence[Signal]] = None) -> ClassifiedGroups:
        return classify_and_group(self.signals if signals is None else signals, self._rules)

    def group_by_decision_layer(self, signals: Optional[Sequence[Signal]] = None) -> DecisionLayerGroups:
        return group_by_decision_layer(self.signals if signals is None else signals, self._rules)

    def group_by_pulse_state(self, signals: Optional[Sequence[Signal]] = None) -> dict[PulseState, list[Signal]]:
        return group_by_pulse_state(self.signals if signals is None else signals)

    @staticmethod
    def status_to_pulse_state(status: str) -> PulseState:
        return status_to_pulse_state(status)

    @staticmethod
    def get_workflow_stage(status: str) -> WorkflowStage:
        return get_workflow_stage(status)

    def record_event(self, event: SignalEvent) -> None:
        """Log a client-side event into the rolling window."""
        self.aggregator.record(event)
        self.health_monitor.publish()

    # ── Commands ─────────────────────────────────────────────────────────

    async def add_signal(self, fields: dict[str, Any]) -> Signal:
        return await self.signal_sync.create(fields)

    async def update_signal(self, signal_id: str, fields: dict[str, Any]) -> Signal:
        return await self.signal_sync.update(signal_id, fields)

    async def create_ticket(self, fields: dict[str, Any]) -> MaintenanceTicket:
        return await self.ticket_sync.create(fields)

    async def update_ticket(self, ticket_id: str, fields: dict[str, Any]) -> MaintenanceTicket:
        return await self.ticket_sync.update(ticket_id, fields)

    # ── Reconciliation hooks ─────────────────────────────────────────────

    def _on_signal_change(
        self,
        change: EntityChange[Signal],
        outcome: ChangeOutcome,
        previous: Optional[Signal],
    ) -> None:
        event = derive_signal_event(outcome, change.entity_id, previous, change.entity)
        if event is not None:
            self.aggregator.record(event)
        if outcome.mutated:
            self.health_monitor.publish()

    def _on_ticket_change(
        self,
        change: EntityChange[MaintenanceTicket],
        outcome: ChangeOutcome,
        previous: Optional[MaintenanceTicket],
    ) -> None:
        if outcome.mutated:
            self.health_monitor.publish()
