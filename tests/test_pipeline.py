"""Tests for the pipeline state mapper."""

import pytest

from pulse_engine.core.pipeline import count_by_pulse_state, group_by_pulse_state, status_to_pulse_state
from pulse_engine.domain.enums import PulseState, SignalStatus
from pulse_engine.domain.signal import Signal

from tests.test_signal import _valid_signal


def _signal(**kw) -> Signal:
    return Signal.model_validate(_valid_signal(**kw))


class TestStatusToPulseState:
    @pytest.mark.parametrize(
        ("status", "state"),
        [
            ("pending", PulseState.NEEDS_ACTION),
            ("needs-clarity", PulseState.NEEDS_ACTION),
            ("approved", PulseState.IN_MOTION),
            ("in-motion", PulseState.IN_MOTION),
            ("awaiting-supplier", PulseState.BLOCKED),
            ("auto-approved", PulseState.AUTO_HANDLED),
            ("delivered", PulseState.RESOLVED),
            ("closed", PulseState.RESOLVED),
            ("rejected", PulseState.RESOLVED),
        ],
    )
    def test_known_statuses(self, status: str, state: PulseState) -> None:
        assert status_to_pulse_state(status) is state

    @pytest.mark.parametrize("status", ["", "archived", "Approved", None, 3.14])
    def test_unknown_defaults_to_needs_action(self, status) -> None:
        assert status_to_pulse_state(status) is PulseState.NEEDS_ACTION

    def test_every_known_status_is_mapped(self) -> None:
        for status in SignalStatus:
            assert status_to_pulse_state(status) in PulseState


class TestGroupByPulseState:
    def test_all_states_present(self) -> None:
        groups = group_by_pulse_state([])
        assert list(groups) == list(PulseState)
        assert all(members == [] for members in groups.values())

    def test_preserves_input_order_within_group(self) -> None:
        signals = [
            _signal(id="1", status="pending"),
            _signal(id="2", status="delivered"),
            _signal(id="3", status="needs-clarity"),
            _signal(id="4", status="mystery"),
            _signal(id="5", status="closed"),
        ]
        groups = group_by_pulse_state(signals)
        assert [s.id for s in groups[PulseState.NEEDS_ACTION]] == ["1", "3", "4"]
        assert [s.id for s in groups[PulseState.RESOLVED]] == ["2", "5"]

    def test_grouping_is_deterministic(self) -> None:
        signals = [_signal(id=str(i), status=s) for i, s in enumerate(["approved", "pending", "in-motion"] * 3)]
        first = group_by_pulse_state(signals)
        second = group_by_pulse_state(signals)
        assert {k: [s.id for s in v] for k, v in first.items()} == {
            k: [s.id for s in v] for k, v in second.items()
        }

    def test_count_by_pulse_state(self) -> None:
        counts = count_by_pulse_state([_signal(id="1"), _signal(id="2", status="awaiting-supplier")])
        assert counts == {
            "needs-action": 1,
            "in-motion": 0,
            "blocked": 1,
            "auto-handled": 0,
            "resolved": 0,
        }
