"""Derived classification models.

A ClassifiedSignal is a Signal plus the routing fields computed by
``pulse_engine.core.classifier``.  It is built fresh on every read and is
never written back to a store.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from pulse_engine.domain.enums import (
    DecisionLayer,
    DecisionType,
    RiskLevel,
    SignalDomain,
    UrgencyTier,
)
from pulse_engine.domain.signal import Signal


class ClassifiedSignal(Signal):
    """Signal + decision type, risk level, due label and cockpit fields."""

    decision_type: DecisionType
    risk_level: RiskLevel
    due_label: Optional[str] = None

    decision_layer: DecisionLayer
    urgency_tier: UrgencyTier
    signal_domain: SignalDomain
    financial_exposure: float = Field(0.0, description="Amount at stake if financial, otherwise 0")
    requires_manager_approval: bool = False


class WorkflowStage(BaseModel):
    """Position of a status within the four-step workflow."""

    stage: int
    total: int = 4
    label: str

    model_config = {"frozen": True}


class ClassifiedGroups(BaseModel):
    """Exhaustive, mutually exclusive partition by decision type."""

    approvals: list[ClassifiedSignal] = Field(default_factory=list)
    exceptions: list[ClassifiedSignal] = Field(default_factory=list)
    alerts: list[ClassifiedSignal] = Field(default_factory=list)
    all: list[ClassifiedSignal] = Field(default_factory=list)


class DecisionLayerStats(BaseModel):
    judgment_count: int = 0
    exception_count: int = 0
    informational_count: int = 0
    total_financial_exposure: float = 0.0
    critical_count: int = 0


class DecisionLayerGroups(BaseModel):
    """Signals arranged for the three-layer decision cockpit."""

    judgment: list[ClassifiedSignal] = Field(default_factory=list)
    exceptions: list[ClassifiedSignal] = Field(default_factory=list)
    informational: list[ClassifiedSignal] = Field(default_factory=list)
    all: list[ClassifiedSignal] = Field(default_factory=list)
    stats: DecisionLayerStats = Field(default_factory=DecisionLayerStats)
