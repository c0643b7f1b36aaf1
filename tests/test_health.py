"""Tests for the HealthMonitor."""

from pulse_engine.core.aggregator import SignalAggregator
from pulse_engine.core.health_monitor import HealthMonitor
from pulse_engine.domain.enums import HealthLevel, SignalEventType
from pulse_engine.domain.events import SignalEvent
from pulse_engine.domain.health import HealthChange
from pulse_engine.domain.signal import Signal
from pulse_engine.domain.ticket import MaintenanceTicket

from tests.test_signal import _valid_signal, _valid_ticket


def _signal(**kw) -> Signal:
    return Signal.model_validate(_valid_signal(**kw))


class _Fixture:
    def __init__(self) -> None:
        self.signals: list[Signal] = []
        self.tickets: list[MaintenanceTicket] = []
        self.aggregator = SignalAggregator(lambda: self.signals)
        self.monitor = HealthMonitor(lambda: self.signals, lambda: self.tickets, self.aggregator, recent_limit=10)


class TestSnapshot:
    def test_empty_snapshot(self) -> None:
        fx = _Fixture()
        snap = fx.monitor.snapshot()
        assert snap.health_level is HealthLevel.STABLE
        assert snap.pending_decisions == 0
        assert snap.recent_events == []
        assert snap.pipeline["needs-action"] == 0

    def test_snapshot_reflects_current_state_without_refresh(self) -> None:
        fx = _Fixture()
        assert fx.monitor.snapshot().health_level is HealthLevel.STABLE
        fx.signals.append(_signal(urgency="critical"))
        snap = fx.monitor.snapshot()
        assert snap.health_level is HealthLevel.CRITICAL
        assert snap.tension_level is HealthLevel.CRITICAL
        assert snap.critical_count == 1

    def test_recent_events_capped_at_ten(self) -> None:
        fx = _Fixture()
        for i in range(15):
            fx.aggregator.record(SignalEvent(signal_id=str(i), event_type=SignalEventType.CREATED))
        events = fx.monitor.snapshot().recent_events
        assert len(events) == 10
        assert events[0].signal_id == "14"

    def test_pipeline_and_ticket_counts(self) -> None:
        fx = _Fixture()
        fx.signals.extend([_signal(id="a"), _signal(id="b", status="auto-approved")])
        fx.tickets.extend([
            MaintenanceTicket.model_validate(_valid_ticket(id="t1")),
            MaintenanceTicket.model_validate(_valid_ticket(id="t2", status="assigned")),
            MaintenanceTicket.model_validate(_valid_ticket(id="t3", status="completed")),
        ])
        snap = fx.monitor.snapshot()
        assert snap.pipeline["needs-action"] == 1
        assert snap.pipeline["auto-handled"] == 1
        assert snap.activity_summary.auto_resolved == 1
        assert (snap.open_tickets, snap.active_tickets) == (1, 1)

    def test_refresh_health_is_noop(self) -> None:
        fx = _Fixture()
        before = fx.monitor.snapshot()
        fx.monitor.refresh_health()
        assert fx.monitor.snapshot() == before


class TestPublish:
    def test_first_publish_emits(self) -> None:
        fx = _Fixture()
        seen: list[HealthChange] = []
        fx.monitor.add_listener(seen.append)
        change = fx.monitor.publish()
        assert change is not None
        assert change.previous is None
        assert change.css_class == "tension-0"
        assert seen == [change]

    def test_unchanged_level_does_not_emit(self) -> None:
        fx = _Fixture()
        seen: list[HealthChange] = []
        fx.monitor.add_listener(seen.append)
        fx.monitor.publish()
        fx.signals.append(_signal(id="quiet"))
        assert fx.monitor.publish() is None
        assert len(seen) == 1

    def test_level_change_emits(self) -> None:
        fx = _Fixture()
        seen: list[HealthChange] = []
        fx.monitor.add_listener(seen.append)
        fx.monitor.publish()
        fx.signals.append(_signal(urgency="critical"))
        fx.monitor.publish()
        assert seen[-1].previous is HealthLevel.STABLE
        assert seen[-1].current is HealthLevel.CRITICAL
        assert seen[-1].css_class == "tension-3"

    def test_failing_listener_does_not_block_others(self) -> None:
        fx = _Fixture()
        seen: list[HealthChange] = []

        def broken(change: HealthChange) -> None:
            raise RuntimeError("boom")

        fx.monitor.add_listener(broken)
        fx.monitor.add_listener(seen.append)
        fx.monitor.publish()
        assert len(seen) == 1

    def test_removed_listener_not_called(self) -> None:
        fx = _Fixture()
        seen: list[HealthChange] = []
        fx.monitor.add_listener(seen.append)
        fx.monitor.remove_listener(seen.append)
        fx.monitor.publish()
        assert seen == []
