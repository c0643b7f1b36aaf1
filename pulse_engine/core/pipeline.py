"""Pipeline state mapper — raw status to one of five pulse states."""

from __future__ import annotations

from typing import Iterable, Sequence, TypeVar

from pulse_engine.domain.enums import PulseState, SignalStatus, enum_value
from pulse_engine.domain.signal import Signal

SignalT = TypeVar("SignalT", bound=Signal)

STATUS_TO_PULSE_STATE: dict[str, PulseState] = {
    SignalStatus.PENDING.value: PulseState.NEEDS_ACTION,
    SignalStatus.NEEDS_CLARITY.value: PulseState.NEEDS_ACTION,
    SignalStatus.APPROVED.value: PulseState.IN_MOTION,
    SignalStatus.IN_MOTION.value: PulseState.IN_MOTION,
    SignalStatus.AWAITING_SUPPLIER.value: PulseState.BLOCKED,
    SignalStatus.AUTO_APPROVED.value: PulseState.AUTO_HANDLED,
    SignalStatus.DELIVERED.value: PulseState.RESOLVED,
    SignalStatus.CLOSED.value: PulseState.RESOLVED,
    SignalStatus.REJECTED.value: PulseState.RESOLVED,
}

DEFAULT_PULSE_STATE = PulseState.NEEDS_ACTION


def status_to_pulse_state(status: object) -> PulseState:
    """Return the pulse state for *status*; unknown values need action."""
    key = enum_value(status)
    if not isinstance(key, str):
        return DEFAULT_PULSE_STATE
    return STATUS_TO_PULSE_STATE.get(key, DEFAULT_PULSE_STATE)


def group_by_pulse_state(signals: Iterable[SignalT]) -> dict[PulseState, list[SignalT]]:
    """Group signals by pulse state.

    Every state is present as a key (possibly empty), in pipeline order,
    and members keep their relative input order.
    """
    groups: dict[PulseState, list[SignalT]] = {state: [] for state in PulseState}
    for signal in signals:
        groups[status_to_pulse_state(signal.status)].append(signal)
    return groups


def count_by_pulse_state(signals: Sequence[Signal]) -> dict[str, int]:
    return {state.value: len(members) for state, members in group_by_pulse_state(signals).items()}
