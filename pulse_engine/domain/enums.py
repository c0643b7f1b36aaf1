"""Controlled enumerations for the pulse-engine domain.

Entity fields that arrive from the remote store (``signal_type``,
``status``, ``urgency``) are kept as plain strings on the models so that an
unexpected value never breaks classification.  The enums below name the
values the engine knows about; lookup tables are keyed by ``.value``.
"""

from __future__ import annotations

from enum import Enum


class EntityKind(str, Enum):
    """Remote collections the engine keeps in sync."""

    SIGNALS = "signals"
    TICKETS = "maintenance_tickets"


class SignalType(str, Enum):
    PURCHASE = "purchase"
    MAINTENANCE = "maintenance"
    INCIDENT = "incident"
    SHIFT_HANDOVER = "shift-handover"
    COMPLIANCE = "compliance"
    EVENT = "event"
    RESOURCE = "resource"
    GENERAL = "general"


class SignalStatus(str, Enum):
    PENDING = "pending"
    NEEDS_CLARITY = "needs-clarity"
    APPROVED = "approved"
    AUTO_APPROVED = "auto-approved"
    IN_MOTION = "in-motion"
    AWAITING_SUPPLIER = "awaiting-supplier"
    DELIVERED = "delivered"
    CLOSED = "closed"
    REJECTED = "rejected"


class Urgency(str, Enum):
    NORMAL = "normal"
    URGENT = "urgent"
    CRITICAL = "critical"


class TicketStatus(str, Enum):
    OPEN = "open"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class PulseState(str, Enum):
    """The five canonical pipeline states a signal moves through."""

    NEEDS_ACTION = "needs-action"
    IN_MOTION = "in-motion"
    BLOCKED = "blocked"
    AUTO_HANDLED = "auto-handled"
    RESOLVED = "resolved"


class DecisionType(str, Enum):
    """Routing bucket for a signal."""

    APPROVAL = "approval"
    EXCEPTION = "exception"
    ALERT = "alert"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DecisionLayer(str, Enum):
    """Where a signal belongs in the three-layer decision cockpit."""

    JUDGMENT = "judgment"
    EXCEPTION = "exception"
    INFORMATIONAL = "informational"


class UrgencyTier(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    NORMAL = "normal"


class ConfidenceLevel(str, Enum):
    """Coarse confidence band the remote stores next to the numeric score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SignalDomain(str, Enum):
    FINANCIAL = "financial"
    CLINICAL = "clinical"
    OPERATIONAL = "operational"


class SignalEventType(str, Enum):
    """Kinds of transitions recorded in the rolling event window."""

    CREATED = "created"
    AUTO_RESOLVED = "auto_resolved"
    ESCALATED = "escalated"
    APPROVED = "approved"
    REJECTED = "rejected"
    STATUS_CHANGE = "status_change"
    ASSIGNED = "assigned"
    COMMENT = "comment"
    UNDO = "undo"
    DELETED = "deleted"


class ActorRole(str, Enum):
    """Who performed an action recorded as an event."""

    ANOUK = "anouk"
    JOLANDA = "jolanda"
    ROHAN = "rohan"
    SARAH = "sarah"
    AI = "ai"
    SYSTEM = "system"


class HealthLevel(str, Enum):
    STABLE = "stable"
    ELEVATED = "elevated"
    CRITICAL = "critical"


def enum_value(value: object) -> object:
    """Return ``value.value`` for enum members, otherwise ``value`` itself.

    Lets callers pass either ``SignalStatus.PENDING`` or ``"pending"`` to a
    string-keyed lookup table.
    """
    if isinstance(value, Enum):
        return value.value
    return value
