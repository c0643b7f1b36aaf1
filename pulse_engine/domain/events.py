"""SignalEvent — an observed transition kept in the rolling event window."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from pulse_engine.domain.enums import SignalEventType, enum_value
from pulse_engine.foundation.clock import ensure_aware, utc_now
from pulse_engine.foundation.identifiers import new_id


class SignalEvent(BaseModel):
    """A single transition of a signal, as seen by this process.

    Events live only in the aggregator's bounded window; they are never
    persisted.
    """

    id: str = Field(default_factory=new_id)
    signal_id: Optional[str] = Field(default=None, description="Signal the event is about")
    event_type: SignalEventType
    previous_status: Optional[str] = None
    new_status: Optional[str] = None
    title: Optional[str] = None
    actor_role: Optional[str] = Field(default=None, description="anouk | jolanda | rohan | sarah | ai | system")
    actor_name: Optional[str] = None
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Free-form context such as amount, rule_applied or time_saved_seconds",
    )
    created_at: datetime = Field(default_factory=utc_now)

    model_config = {"frozen": True}

    @field_validator("actor_role", mode="before")
    @classmethod
    def coerce_role(cls, v: object) -> object:
        return enum_value(v)

    @field_validator("created_at")
    @classmethod
    def created_at_is_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)
