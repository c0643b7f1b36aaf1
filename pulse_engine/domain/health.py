"""Health and tension observations.

These are pure data structures.  They are derived at read time from the
live signal snapshot and the rolling event window and are never stored.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from pulse_engine.domain.enums import HealthLevel
from pulse_engine.domain.events import SignalEvent


class TensionSnapshot(BaseModel):
    """Aggregate urgency over the live signal set."""

    level: HealthLevel = Field(..., description="stable | elevated | critical")
    pending_count: int = Field(..., description="Signals awaiting a decision or clarification")
    urgent_count: int
    critical_count: int
    intensity: int = Field(..., ge=0, le=3, description="Four-step tension scale (0 = calm, 3 = high)")
    label: str
    description: str

    model_config = {"frozen": True}

    @property
    def css_class(self) -> str:
        return f"tension-{self.intensity}"


class ActivitySummary(BaseModel):
    """Counts over the full signal snapshot."""

    total: int = 0
    auto_resolved: int = 0
    approved: int = 0
    escalated: int = 0
    time_saved_seconds: int = Field(0, description="Estimated human time saved by auto-resolution")

    model_config = {"frozen": True}


class HealthSnapshot(BaseModel):
    """Everything a consumer needs to render overall system health."""

    health_level: HealthLevel
    tension_level: HealthLevel
    tension_intensity: int
    pending_decisions: int
    critical_count: int
    urgent_count: int
    recent_events: list[SignalEvent] = Field(default_factory=list)
    activity_summary: ActivitySummary = Field(default_factory=ActivitySummary)
    pipeline: dict[str, int] = Field(default_factory=dict, description="Signal count per pulse state")
    open_tickets: int = 0
    active_tickets: int = 0

    model_config = {"frozen": True}


class HealthChange(BaseModel):
    """Output notification emitted when health level or tension intensity moves.

    ``css_class`` is the presentation hint a UI may apply; the engine itself
    never touches presentation state.
    """

    previous: HealthLevel | None = None
    current: HealthLevel
    previous_intensity: int | None = None
    intensity: int
    css_class: str
    snapshot: HealthSnapshot

    model_config = {"frozen": True}
