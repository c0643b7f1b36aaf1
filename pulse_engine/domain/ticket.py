"""MaintenanceTicket model — physical maintenance work linked to a signal."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from pulse_engine.domain.enums import TicketStatus, Urgency, enum_value
from pulse_engine.foundation.clock import ensure_aware

ACTIVE_TICKET_STATUSES = frozenset({TicketStatus.ASSIGNED.value, TicketStatus.IN_PROGRESS.value})


class MaintenanceTicket(BaseModel):
    """A maintenance ticket row as confirmed by the remote store.

    Follows the same reconciliation discipline as Signal but carries no
    classification of its own.
    """

    id: str = Field(..., min_length=1)
    signal_id: Optional[str] = Field(default=None, description="Signal that spawned this ticket")
    issue_description: str = ""
    location: Optional[str] = None
    room_or_area: Optional[str] = None
    priority: str = Field(default=Urgency.NORMAL.value)
    status: str = Field(default=TicketStatus.OPEN.value)
    contractor_name: Optional[str] = None
    contractor_phone: Optional[str] = None
    scheduled_date: Optional[str] = None
    completion_date: Optional[str] = None
    resolution_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"frozen": True, "extra": "ignore"}

    @field_validator("id", "signal_id", mode="before")
    @classmethod
    def ids_as_strings(cls, v: object) -> object:
        return None if v is None else str(v)

    @field_validator("priority", "status", mode="before")
    @classmethod
    def coerce_label(cls, v: object) -> object:
        return enum_value(v)

    @field_validator("created_at", "updated_at")
    @classmethod
    def timestamps_are_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        return None if v is None else ensure_aware(v)

    @property
    def is_open(self) -> bool:
        return self.status == TicketStatus.OPEN.value

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_TICKET_STATUSES
