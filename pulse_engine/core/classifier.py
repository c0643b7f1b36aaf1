"""Classification engine — routes signals into approvals, exceptions and alerts.

Design principles:
    1. Pure functions: accept Signals, return ClassifiedSignals.
    2. Total: any string status or signal_type yields a result.
    3. Derived fields are recomputed from Signal fields only, so
       classifying an already-classified signal changes nothing.

Decision type precedence (later rule wins):
    1. approval by default
    2. exception — compliance, a flag reason, or confidence below threshold
    3. alert     — incident, shift handover, or a bottleneck

Risk level:
    high   — critical urgency or amount > high_risk_amount
    medium — urgent urgency or amount > medium_risk_amount
    low    — everything else
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from pulse_engine.domain.classification import (
    ClassifiedGroups,
    ClassifiedSignal,
    DecisionLayerGroups,
    DecisionLayerStats,
    WorkflowStage,
)
from pulse_engine.domain.enums import (
    DecisionLayer,
    DecisionType,
    RiskLevel,
    SignalDomain,
    SignalStatus,
    SignalType,
    Urgency,
    UrgencyTier,
    enum_value,
)
from pulse_engine.domain.signal import Signal


@dataclass(frozen=True)
class ClassificationRules:
    """Configurable thresholds for classification."""

    low_confidence: float = 60.0
    high_risk_amount: float = 250.0
    medium_risk_amount: float = 100.0
    # Decision cockpit
    manager_approval_amount: float = 100.0
    exception_layer_confidence: float = 70.0


DEFAULT_RULES = ClassificationRules()

_EXCEPTION_TYPES = frozenset({SignalType.COMPLIANCE.value})
_ALERT_TYPES = frozenset({SignalType.INCIDENT.value, SignalType.SHIFT_HANDOVER.value})
_EXCEPTION_FLAG_MARKERS = ("Anomaly", "pattern")

_TIER_ORDER = {UrgencyTier.CRITICAL: 0, UrgencyTier.HIGH: 1, UrgencyTier.NORMAL: 2}

WORKFLOW_TOTAL_STAGES = 4

_WORKFLOW_STAGES: dict[str, tuple[int, str]] = {
    SignalStatus.PENDING.value: (1, "Submitted"),
    SignalStatus.NEEDS_CLARITY.value: (1, "Needs clarification"),
    SignalStatus.APPROVED.value: (2, "Approved"),
    SignalStatus.IN_MOTION.value: (3, "Processing"),
    SignalStatus.AWAITING_SUPPLIER.value: (3, "With vendor"),
    SignalStatus.DELIVERED.value: (4, "Delivered"),
    SignalStatus.CLOSED.value: (4, "Closed"),
    SignalStatus.AUTO_APPROVED.value: (4, "Auto-handled"),
    SignalStatus.REJECTED.value: (4, "Rejected"),
}


# ── Single signal ────────────────────────────────────────────────────────────


def classify_signal(signal: Signal, rules: ClassificationRules = DEFAULT_RULES) -> ClassifiedSignal:
    """Derive decision type, risk, due label and cockpit fields for *signal*."""
    amount = signal.amount or 0.0

    decision_type = _decision_type(signal, rules)
    risk_level = _risk_level(signal, amount, rules)

    due_label = f"Due: {signal.expected_date}" if signal.expected_date else None
    if signal.urgency == Urgency.CRITICAL.value:
        due_label = "Overdue"

    domain = _signal_domain(signal, amount)
    requires_manager_approval = domain is SignalDomain.FINANCIAL and (
        amount > rules.manager_approval_amount
        or signal.is_flagged
        or signal.funding == "uncertain"
    )

    if requires_manager_approval:
        layer = DecisionLayer.JUDGMENT
    elif _is_exception_layer(signal, rules):
        layer = DecisionLayer.EXCEPTION
    else:
        layer = DecisionLayer.INFORMATIONAL

    if signal.urgency == Urgency.CRITICAL.value or risk_level is RiskLevel.HIGH:
        tier = UrgencyTier.CRITICAL
    elif signal.urgency == Urgency.URGENT.value or risk_level is RiskLevel.MEDIUM:
        tier = UrgencyTier.HIGH
    else:
        tier = UrgencyTier.NORMAL

    return ClassifiedSignal(
        **signal.signal_fields(),
        decision_type=decision_type,
        risk_level=risk_level,
        due_label=due_label,
        decision_layer=layer,
        urgency_tier=tier,
        signal_domain=domain,
        financial_exposure=amount if domain is SignalDomain.FINANCIAL else 0.0,
        requires_manager_approval=requires_manager_approval,
    )


def _decision_type(signal: Signal, rules: ClassificationRules) -> DecisionType:
    decision = DecisionType.APPROVAL
    if (
        signal.signal_type in _EXCEPTION_TYPES
        or signal.is_flagged
        or (signal.confidence is not None and signal.confidence < rules.low_confidence)
    ):
        decision = DecisionType.EXCEPTION
    if signal.signal_type in _ALERT_TYPES or signal.bottleneck:
        decision = DecisionType.ALERT
    return decision


def _risk_level(signal: Signal, amount: float, rules: ClassificationRules) -> RiskLevel:
    if signal.urgency == Urgency.CRITICAL.value or amount > rules.high_risk_amount:
        return RiskLevel.HIGH
    if signal.urgency == Urgency.URGENT.value or amount > rules.medium_risk_amount:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _signal_domain(signal: Signal, amount: float) -> SignalDomain:
    if signal.signal_type == SignalType.PURCHASE.value or amount > 0:
        return SignalDomain.FINANCIAL
    if signal.signal_type in _ALERT_TYPES:
        return SignalDomain.CLINICAL
    return SignalDomain.OPERATIONAL


def _is_exception_layer(signal: Signal, rules: ClassificationRules) -> bool:
    if signal.signal_type in _EXCEPTION_TYPES:
        return True
    flag = signal.flag_reason or ""
    if any(marker in flag for marker in _EXCEPTION_FLAG_MARKERS):
        return True
    return signal.confidence is not None and signal.confidence < rules.exception_layer_confidence


# ── Batches ──────────────────────────────────────────────────────────────────


def classify_and_group(
    signals: Iterable[Signal], rules: ClassificationRules = DEFAULT_RULES
) -> ClassifiedGroups:
    """Classify every signal and partition by decision type.

    Every input lands in exactly one of approvals / exceptions / alerts;
    ``all`` keeps the input order.
    """
    groups = ClassifiedGroups()
    buckets = {
        DecisionType.APPROVAL: groups.approvals,
        DecisionType.EXCEPTION: groups.exceptions,
        DecisionType.ALERT: groups.alerts,
    }
    for signal in signals:
        classified = classify_signal(signal, rules)
        groups.all.append(classified)
        buckets[classified.decision_type].append(classified)
    return groups


def group_by_decision_layer(
    signals: Iterable[Signal], rules: ClassificationRules = DEFAULT_RULES
) -> DecisionLayerGroups:
    """Arrange signals for the three-layer decision cockpit.

    Judgment items are sorted by urgency tier, then by financial exposure
    (largest first).  Exceptions are sorted by urgency tier.  Sorting is
    stable, so ties keep their input order.
    """
    classified = [classify_signal(s, rules) for s in signals]

    judgment = sorted(
        (s for s in classified if s.decision_layer is DecisionLayer.JUDGMENT),
        key=lambda s: (_TIER_ORDER[s.urgency_tier], -s.financial_exposure),
    )
    exceptions = sorted(
        (s for s in classified if s.decision_layer is DecisionLayer.EXCEPTION),
        key=lambda s: _TIER_ORDER[s.urgency_tier],
    )
    informational = [s for s in classified if s.decision_layer is DecisionLayer.INFORMATIONAL]

    stats = DecisionLayerStats(
        judgment_count=len(judgment),
        exception_count=len(exceptions),
        informational_count=len(informational),
        total_financial_exposure=sum(s.financial_exposure for s in judgment),
        critical_count=sum(1 for s in classified if s.urgency_tier is UrgencyTier.CRITICAL),
    )
    return DecisionLayerGroups(
        judgment=judgment,
        exceptions=exceptions,
        informational=informational,
        all=classified,
        stats=stats,
    )


# ── Workflow ─────────────────────────────────────────────────────────────────


def get_workflow_stage(status: object) -> WorkflowStage:
    """Map a raw status to its workflow stage.

    Unknown statuses fall back to stage 1 with the raw status as label.
    """
    key = enum_value(status)
    stage = _WORKFLOW_STAGES.get(key) if isinstance(key, str) else None
    if stage is None:
        label = "" if key is None else str(key)
        return WorkflowStage(stage=1, total=WORKFLOW_TOTAL_STAGES, label=label)
    number, label = stage
    return WorkflowStage(stage=number, total=WORKFLOW_TOTAL_STAGES, label=label)
