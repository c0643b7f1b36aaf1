"""HealthMonitor — composes pipeline grouping and tension into one snapshot.

The monitor stores nothing derived.  snapshot() reads the live stores and
the aggregator window every time it is called, so the result always
reflects the latest confirmed notifications.

Presentation side effects are replaced by an observer: publish() compares
the fresh snapshot with the last one it saw and emits a HealthChange to
every listener when the health level or tension intensity moved.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from pulse_engine.core.aggregator import SignalAggregator
from pulse_engine.core.pipeline import count_by_pulse_state
from pulse_engine.domain.enums import HealthLevel
from pulse_engine.domain.health import HealthChange, HealthSnapshot
from pulse_engine.domain.signal import Signal
from pulse_engine.domain.ticket import MaintenanceTicket

logger = logging.getLogger(__name__)

HealthListener = Callable[[HealthChange], None]


class HealthMonitor:
    """Read-time projection of signals, tickets and the event window."""

    def __init__(
        self,
        signals: Callable[[], Sequence[Signal]],
        tickets: Callable[[], Sequence[MaintenanceTicket]],
        aggregator: SignalAggregator,
        recent_limit: int = 10,
    ) -> None:
        self._signals = signals
        self._tickets = tickets
        self._aggregator = aggregator
        self._recent_limit = recent_limit
        self._listeners: list[HealthListener] = []
        self._last_level: HealthLevel | None = None
        self._last_intensity: int | None = None

    # ── Snapshot ─────────────────────────────────────────────────────────

    def snapshot(self) -> HealthSnapshot:
        signals = self._signals()
        tickets = self._tickets()
        tension = self._aggregator.tension()
        return HealthSnapshot(
            health_level=tension.level,
            tension_level=tension.level,
            tension_intensity=tension.intensity,
            pending_decisions=tension.pending_count,
            critical_count=tension.critical_count,
            urgent_count=tension.urgent_count,
            recent_events=self._aggregator.recent(self._recent_limit),
            activity_summary=self._aggregator.activity_summary(),
            pipeline=count_by_pulse_state(signals),
            open_tickets=sum(1 for t in tickets if t.is_open),
            active_tickets=sum(1 for t in tickets if t.is_active),
        )

    def refresh_health(self) -> None:
        """Kept for API compatibility; snapshots are always current."""

    # ── Observers ────────────────────────────────────────────────────────

    def add_listener(self, listener: HealthListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: HealthListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self) -> HealthChange | None:
        """Emit a HealthChange if level or intensity moved since the last call."""
        snapshot = self.snapshot()
        level, intensity = snapshot.health_level, snapshot.tension_intensity
        if level == self._last_level and intensity == self._last_intensity:
            return None

        change = HealthChange(
            previous=self._last_level,
            current=level,
            previous_intensity=self._last_intensity,
            intensity=intensity,
            css_class=f"tension-{intensity}",
            snapshot=snapshot,
        )
        self._last_level, self._last_intensity = level, intensity
        logger.info(
            "Health %s → %s (tension %s → %s)",
            change.previous.value if change.previous else None,
            level.value,
            change.previous_intensity,
            intensity,
        )
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as exc:
                logger.error("Health listener failed: %s", exc, exc_info=True)
        return change
