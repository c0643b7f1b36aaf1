"""Signal model — a unit of business work requiring attention.

A Signal is exactly what the remote store holds: it carries no derived
fields.  Decision type, risk level and pipeline state are recomputed from
the current fields on every read (see ``pulse_engine.core``), so they can
never drift from the latest status or urgency.

Categorical fields are plain strings.  Known values are listed in
``pulse_engine.domain.enums``; anything else is still accepted so that the
classification functions stay total over whatever the remote sends.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator

from pulse_engine.domain.enums import SignalStatus, SignalType, Urgency, enum_value
from pulse_engine.foundation.clock import ensure_aware


class Signal(BaseModel):
    """A signal row as confirmed by the remote source of truth.

    Immutable.  Unknown columns in a notification payload are ignored.
    """

    id: str = Field(..., min_length=1, description="Stable identifier assigned by the remote store")
    signal_type: str = Field(default=SignalType.GENERAL.value, description="Kind of work (purchase, incident, …)")
    status: str = Field(default=SignalStatus.PENDING.value, description="Raw workflow status")
    urgency: str = Field(default=Urgency.NORMAL.value, description="normal | urgent | critical")
    confidence: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=100.0,
        description="Classifier confidence score (0–100); low values force exception handling",
    )
    flag_reason: Optional[str] = Field(default=None, description="Why the signal was flagged, if at all")
    bottleneck: Optional[Union[bool, str]] = Field(default=None, description="Truthy when the signal is stuck")
    amount: Optional[float] = Field(default=None, description="Monetary amount, drives risk level")
    funding: Optional[str] = None
    expected_date: Optional[str] = Field(default=None, description="Free-form due date shown to users")

    signal_number: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    submitter_name: Optional[str] = None
    location: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Enrichment written by the remote classifier
    ai_reasoning: Optional[str] = Field(default=None, description="Explanation produced alongside the confidence score")
    confidence_level: Optional[str] = Field(default=None, description="high | medium | low")
    supplier_suggestion: Optional[str] = None
    cost_comparison: Optional[str] = None
    attachments: Optional[list[str]] = Field(default=None, description="Storage paths of uploaded files")

    model_config = {"frozen": True, "extra": "ignore"}

    # ── Validators ───────────────────────────────────────────────────────

    @field_validator("signal_type", "status", "confidence_level", mode="before")
    @classmethod
    def coerce_label(cls, v: object) -> object:
        return enum_value(v)

    @field_validator("urgency", mode="before")
    @classmethod
    def default_urgency(cls, v: object) -> object:
        # Absent urgency is treated as normal
        if v is None or v == "":
            return Urgency.NORMAL.value
        return enum_value(v)

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v: object) -> object:
        if v is None:
            raise ValueError("signal id is required")
        return str(v)

    @field_validator("created_at", "updated_at")
    @classmethod
    def timestamps_are_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        return ensure_aware(v)

    # ── Convenience ──────────────────────────────────────────────────────

    @property
    def is_flagged(self) -> bool:
        return bool(self.flag_reason)

    def signal_fields(self) -> dict:
        """Return only the fields a Signal owns (drops any derived extras)."""
        return self.model_dump(include=set(Signal.model_fields))
