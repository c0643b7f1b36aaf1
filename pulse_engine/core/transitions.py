"""Derive SignalEvents from reconciled signal changes."""

from __future__ import annotations

from typing import Optional

from pulse_engine.domain.enums import SignalEventType, SignalStatus
from pulse_engine.domain.events import SignalEvent
from pulse_engine.domain.signal import Signal
from pulse_engine.store.entity_store import ChangeOutcome

_STATUS_EVENTS: dict[str, SignalEventType] = {
    SignalStatus.AUTO_APPROVED.value: SignalEventType.AUTO_RESOLVED,
    SignalStatus.APPROVED.value: SignalEventType.APPROVED,
    SignalStatus.REJECTED.value: SignalEventType.REJECTED,
}


def derive_signal_event(
    outcome: ChangeOutcome,
    signal_id: str,
    previous: Optional[Signal],
    current: Optional[Signal],
) -> Optional[SignalEvent]:
    """Return the event a reconciled change represents, or None.

    An UPDATE that neither moves the status nor newly flags the signal is
    not a transition and yields nothing.
    """
    if outcome in (ChangeOutcome.INSERTED, ChangeOutcome.UPSERTED) and current is not None:
        return SignalEvent(
            signal_id=signal_id,
            event_type=SignalEventType.CREATED,
            new_status=current.status,
            title=current.title,
        )

    if outcome is ChangeOutcome.REMOVED:
        return SignalEvent(
            signal_id=signal_id,
            event_type=SignalEventType.DELETED,
            previous_status=previous.status if previous else None,
            title=previous.title if previous else None,
        )

    if outcome is not ChangeOutcome.REPLACED or previous is None or current is None:
        return None

    if current.status != previous.status:
        event_type = _STATUS_EVENTS.get(current.status, SignalEventType.STATUS_CHANGE)
    elif current.is_flagged and not previous.is_flagged:
        event_type = SignalEventType.ESCALATED
    else:
        return None

    return SignalEvent(
        signal_id=signal_id,
        event_type=event_type,
        previous_status=previous.status,
        new_status=current.status,
        title=current.title,
    )
