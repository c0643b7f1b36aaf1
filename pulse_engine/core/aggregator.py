"""Event/tension aggregator — rolling event window plus tension and activity.

Design principles:
    1. The window is a fixed-capacity ring: newest first, oldest evicted.
    2. Tension and activity are pure functions of the live signal snapshot;
       the aggregator only supplies that snapshot and the window.
    3. All thresholds are explicit and configurable.

Tension level:
    critical — any critical signal
    elevated — urgent_count > elevated_urgent OR pending_count > elevated_pending
    stable   — everything else

Tension intensity (four-step scale used for presentation):
    3 — any critical signal
    2 — urgent_count > high_urgent OR pending_count > high_pending
    1 — urgent_count > active_urgent OR pending_count > active_pending
    0 — calm
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Sequence

from pulse_engine.domain.enums import HealthLevel, SignalStatus, SignalType, Urgency
from pulse_engine.domain.events import SignalEvent
from pulse_engine.domain.health import ActivitySummary, TensionSnapshot
from pulse_engine.domain.signal import Signal
from pulse_engine.foundation.clock import ensure_aware

logger = logging.getLogger(__name__)

PENDING_STATUSES = frozenset({SignalStatus.PENDING.value, SignalStatus.NEEDS_CLARITY.value})

_INTENSITY_COPY: dict[int, tuple[str, str]] = {
    0: ("Calm", "All systems operating normally"),
    1: ("Active", "Some items need attention"),
    2: ("Elevated", "Multiple urgent items pending"),
    3: ("High", "Critical items require immediate attention"),
}


@dataclass(frozen=True)
class TensionThresholds:
    """Configurable thresholds for tension level and intensity."""

    elevated_urgent: int = 2
    elevated_pending: int = 10
    high_urgent: int = 1
    high_pending: int = 10
    active_urgent: int = 0
    active_pending: int = 5
    # Count urgency only among pending signals instead of the whole snapshot
    pending_only: bool = False


DEFAULT_THRESHOLDS = TensionThresholds()


# ── Pure computations ────────────────────────────────────────────────────────


def compute_tension(
    signals: Iterable[Signal], thresholds: TensionThresholds = DEFAULT_THRESHOLDS
) -> TensionSnapshot:
    """Derive a TensionSnapshot from a signal collection."""
    pending = urgent = critical = 0
    for signal in signals:
        is_pending = signal.status in PENDING_STATUSES
        if is_pending:
            pending += 1
        if thresholds.pending_only and not is_pending:
            continue
        if signal.urgency == Urgency.URGENT.value:
            urgent += 1
        elif signal.urgency == Urgency.CRITICAL.value:
            critical += 1

    if critical > 0:
        level = HealthLevel.CRITICAL
    elif urgent > thresholds.elevated_urgent or pending > thresholds.elevated_pending:
        level = HealthLevel.ELEVATED
    else:
        level = HealthLevel.STABLE

    if critical > 0:
        intensity = 3
    elif urgent > thresholds.high_urgent or pending > thresholds.high_pending:
        intensity = 2
    elif urgent > thresholds.active_urgent or pending > thresholds.active_pending:
        intensity = 1
    else:
        intensity = 0

    label, description = _INTENSITY_COPY[intensity]
    return TensionSnapshot(
        level=level,
        pending_count=pending,
        urgent_count=urgent,
        critical_count=critical,
        intensity=intensity,
        label=label,
        description=description,
    )


def summarize_activity(signals: Sequence[Signal], seconds_per_auto_resolved: int = 180) -> ActivitySummary:
    """Count outcomes across the whole signal snapshot."""
    auto_resolved = sum(1 for s in signals if s.status == SignalStatus.AUTO_APPROVED.value)
    return ActivitySummary(
        total=len(signals),
        auto_resolved=auto_resolved,
        approved=sum(1 for s in signals if s.status == SignalStatus.APPROVED.value),
        escalated=sum(
            1 for s in signals if s.signal_type == SignalType.INCIDENT.value or s.is_flagged
        ),
        time_saved_seconds=auto_resolved * seconds_per_auto_resolved,
    )


# ── Aggregator ───────────────────────────────────────────────────────────────


class SignalAggregator:
    """Bounded window of recent SignalEvents plus tension/activity over live signals.

    Args:
        signals: Zero-argument callable returning the current signal
            snapshot (normally ``EntityStore.snapshot``).
        capacity: Maximum number of events retained.
        thresholds: Tension thresholds.
        seconds_per_auto_resolved: Estimated human seconds saved per
            auto-approved signal.
    """

    def __init__(
        self,
        signals: Callable[[], Sequence[Signal]],
        capacity: int = 20,
        thresholds: TensionThresholds | None = None,
        seconds_per_auto_resolved: int = 180,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._signals = signals
        self._thresholds = thresholds or DEFAULT_THRESHOLDS
        self._seconds_per_auto_resolved = seconds_per_auto_resolved
        self._events: deque[SignalEvent] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._events.maxlen or 0

    @property
    def thresholds(self) -> TensionThresholds:
        return self._thresholds

    # ── Event window ─────────────────────────────────────────────────────

    def record(self, event: SignalEvent) -> None:
        """Add *event* at the front; the oldest event falls off when full."""
        self._events.appendleft(event)
        logger.debug(
            "Recorded %s for signal %s (%d in window)",
            event.event_type.value,
            event.signal_id,
            len(self._events),
        )

    @property
    def events(self) -> list[SignalEvent]:
        """Events in the window, newest first."""
        return list(self._events)

    def recent(self, limit: int = 10) -> list[SignalEvent]:
        return list(self._events)[: max(limit, 0)]

    def events_in_range(self, start: datetime, end: datetime) -> list[SignalEvent]:
        """Events whose timestamp falls within [start, end], newest first."""
        start, end = ensure_aware(start), ensure_aware(end)
        return [e for e in self._events if start <= e.created_at <= end]

    def clear(self) -> None:
        self._events.clear()

    # ── Derived observations ─────────────────────────────────────────────

    def activity_summary(self) -> ActivitySummary:
        return summarize_activity(self._signals(), self._seconds_per_auto_resolved)

    def tension(self) -> TensionSnapshot:
        return compute_tension(self._signals(), self._thresholds)
