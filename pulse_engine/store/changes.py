"""Change notifications — the contract between the transport and the store.

The transport delivers raw dicts shaped like::

    {"eventType": "INSERT" | "UPDATE" | "DELETE", "new": {...}, "old": {"id": ...}}

``parse_change`` validates one such dict into a typed EntityChange or
raises MalformedNotificationError.  The sync service catches that error
at the reconciliation boundary so a single bad message never reaches the
store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=BaseModel)


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class MalformedNotificationError(Exception):
    """Raised when a raw notification cannot be turned into an EntityChange."""

    def __init__(self, kind: str, reason: str) -> None:
        self.kind = kind
        self.reason = reason
        super().__init__(f"Malformed '{kind}' notification: {reason}")


@dataclass(frozen=True)
class EntityChange(Generic[EntityT]):
    """One validated change.

    ``entity`` is set for INSERT and UPDATE; DELETE carries only
    ``entity_id``.
    """

    change_type: ChangeType
    entity_id: str
    entity: Optional[EntityT] = None


def parse_change(kind: str, model: type[EntityT], raw: Any) -> EntityChange[EntityT]:
    """Validate a raw notification for *kind* into an EntityChange.

    Raises:
        MalformedNotificationError: unknown eventType, missing id, or a
            payload the entity model rejects.
    """
    if not isinstance(raw, dict):
        raise MalformedNotificationError(kind, f"expected an object, got {type(raw).__name__}")

    event_type = raw.get("eventType", raw.get("event_type"))
    try:
        change_type = ChangeType(str(event_type).upper())
    except ValueError:
        raise MalformedNotificationError(kind, f"unknown eventType {event_type!r}") from None

    if change_type is ChangeType.DELETE:
        old = raw.get("old") or {}
        entity_id = old.get("id") if isinstance(old, dict) else None
        if entity_id in (None, ""):
            raise MalformedNotificationError(kind, "DELETE without old.id")
        return EntityChange(change_type=change_type, entity_id=str(entity_id))

    new = raw.get("new")
    if not isinstance(new, dict) or new.get("id") in (None, ""):
        raise MalformedNotificationError(kind, f"{change_type.value} without new.id")
    try:
        entity = model.model_validate(new)
    except ValidationError as exc:
        raise MalformedNotificationError(
            kind, f"{change_type.value} payload rejected ({exc.error_count()} error(s))"
        ) from exc
    return EntityChange(change_type=change_type, entity_id=entity.id, entity=entity)


class NotificationStats:
    """Per-kind reconciliation statistics for observability."""

    __slots__ = ("kind", "applied_count", "ignored_count", "rejected_count")

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self.applied_count: int = 0
        self.ignored_count: int = 0
        self.rejected_count: int = 0

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "applied_count": self.applied_count,
            "ignored_count": self.ignored_count,
            "rejected_count": self.rejected_count,
        }
