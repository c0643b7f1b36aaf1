"""In-memory Transport — a local stand-in for the remote source of truth.

Holds rows per kind, assigns ids and timestamps on insert, and fans every
confirmed mutation out to subscribers as an INSERT / UPDATE / DELETE
notification.  Used by the default application wiring and by tests.
"""

from __future__ import annotations

import copy
import itertools
import logging
from typing import Any

from pulse_engine.foundation.clock import utc_now
from pulse_engine.foundation.identifiers import new_id
from pulse_engine.transport.base import ChangeCallback, SubscriptionHandle, TransportError

logger = logging.getLogger(__name__)


class InMemoryTransport:
    """Transport implementation backed by plain dicts.

    Notifications are delivered synchronously to every subscriber of the
    kind, after the row has been stored.
    """

    def __init__(self, seed: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self._rows: dict[str, list[dict[str, Any]]] = {
            kind: [copy.deepcopy(row) for row in rows] for kind, rows in (seed or {}).items()
        }
        self._subscribers: dict[int, tuple[str, ChangeCallback]] = {}
        self._handle_ids = itertools.count(1)

    # ── Transport protocol ───────────────────────────────────────────────

    async def fetch_all(self, kind: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(row) for row in self._rows.get(kind, [])]

    async def subscribe(self, kind: str, on_change: ChangeCallback) -> SubscriptionHandle:
        handle = SubscriptionHandle(kind, next(self._handle_ids))
        self._subscribers[handle.handle_id] = (kind, on_change)
        logger.debug("Subscribed %r", handle)
        return handle

    async def unsubscribe(self, handle: SubscriptionHandle) -> None:
        self._subscribers.pop(handle.handle_id, None)
        logger.debug("Unsubscribed %r", handle)

    async def insert(self, kind: str, fields: dict[str, Any]) -> dict[str, Any]:
        rows = self._rows.setdefault(kind, [])
        row = copy.deepcopy(fields)
        row["id"] = str(row.get("id") or new_id())
        if any(existing["id"] == row["id"] for existing in rows):
            raise TransportError(kind, f"duplicate id {row['id']}")
        now = utc_now().isoformat()
        row.setdefault("created_at", now)
        row.setdefault("updated_at", now)
        rows.insert(0, row)
        self._notify(kind, {"eventType": "INSERT", "new": copy.deepcopy(row), "old": None})
        return copy.deepcopy(row)

    async def update(self, kind: str, entity_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        row = self._find(kind, entity_id)
        if row is None:
            raise TransportError(kind, f"no row with id {entity_id}")
        old = copy.deepcopy(row)
        row.update({k: copy.deepcopy(v) for k, v in fields.items() if k != "id"})
        row["updated_at"] = utc_now().isoformat()
        self._notify(kind, {"eventType": "UPDATE", "new": copy.deepcopy(row), "old": old})
        return copy.deepcopy(row)

    # ── Extras ───────────────────────────────────────────────────────────

    async def delete(self, kind: str, entity_id: str) -> None:
        row = self._find(kind, entity_id)
        if row is None:
            raise TransportError(kind, f"no row with id {entity_id}")
        self._rows[kind].remove(row)
        self._notify(kind, {"eventType": "DELETE", "new": None, "old": {"id": entity_id}})

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # ── Internals ────────────────────────────────────────────────────────

    def _find(self, kind: str, entity_id: str) -> dict[str, Any] | None:
        for row in self._rows.get(kind, []):
            if row["id"] == entity_id:
                return row
        return None

    def _notify(self, kind: str, event: dict[str, Any]) -> None:
        for sub_kind, callback in list(self._subscribers.values()):
            if sub_kind == kind:
                callback(copy.deepcopy(event))
