"""In-memory, ordered entity collection reconciled from change notifications.

Design notes:
    - The collection is ordered newest-first.  INSERT prepends, UPDATE
      replaces in place, DELETE removes.
    - At most one entity per id exists at any time, whatever order
      duplicate INSERTs and early UPDATEs arrive in.
    - apply_change() never raises.  An invalid change is ignored so one
      bad notification cannot corrupt the collection.
    - The store is mutated only by load() and apply_change().  It is used
      from a single event loop, one notification at a time, so it holds no
      lock.
    - The store does NOT decide what an entity means.  Classification and
      health live in pulse_engine.core.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Generic, Iterable, Optional

from pulse_engine.store.changes import ChangeType, EntityChange, EntityT

logger = logging.getLogger(__name__)


class ChangeOutcome(str, Enum):
    """What apply_change() actually did."""

    INSERTED = "inserted"
    REPLACED = "replaced"
    UPSERTED = "upserted"  # UPDATE for an id we had never seen
    REMOVED = "removed"
    IGNORED = "ignored"

    @property
    def mutated(self) -> bool:
        return self is not ChangeOutcome.IGNORED


class EntityStore(Generic[EntityT]):
    """Ordered, duplicate-free collection of one entity kind.

    Args:
        kind: Name of the remote collection, used in log lines.
    """

    def __init__(self, kind: str) -> None:
        self._kind = kind
        self._items: list[EntityT] = []

    @property
    def kind(self) -> str:
        return self._kind

    # ── Public API ───────────────────────────────────────────────────────

    def load(self, initial: Iterable[EntityT]) -> None:
        """Replace the collection wholesale with a point-in-time snapshot.

        Duplicate ids in the snapshot keep their first (newest) occurrence.
        """
        seen: set[str] = set()
        items: list[EntityT] = []
        for entity in initial:
            entity_id = getattr(entity, "id", None)
            if not entity_id or entity_id in seen:
                continue
            seen.add(entity_id)
            items.append(entity)
        self._items = items
        logger.info("Loaded %d %s", len(items), self._kind)

    def apply_change(self, change: EntityChange[EntityT]) -> ChangeOutcome:
        """Reconcile one change notification into the collection."""
        change_type = getattr(change, "change_type", None)
        entity_id = getattr(change, "entity_id", None)
        if not entity_id:
            return ChangeOutcome.IGNORED

        if change_type is ChangeType.DELETE:
            return self._delete(entity_id)

        entity = getattr(change, "entity", None)
        if entity is None or getattr(entity, "id", None) != entity_id:
            return ChangeOutcome.IGNORED
        if change_type is ChangeType.INSERT:
            return self._insert(entity)
        if change_type is ChangeType.UPDATE:
            return self._update(entity)
        return ChangeOutcome.IGNORED

    def snapshot(self) -> tuple[EntityT, ...]:
        """Return the current collection as an immutable tuple."""
        return tuple(self._items)

    def get(self, entity_id: str) -> Optional[EntityT]:
        index = self._index_of(entity_id)
        return None if index is None else self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, entity_id: object) -> bool:
        return isinstance(entity_id, str) and self._index_of(entity_id) is not None

    # ── Internals ────────────────────────────────────────────────────────

    def _index_of(self, entity_id: str) -> Optional[int]:
        for index, item in enumerate(self._items):
            if item.id == entity_id:
                return index
        return None

    def _insert(self, entity: EntityT) -> ChangeOutcome:
        if self._index_of(entity.id) is not None:
            logger.debug("Duplicate INSERT for %s %s ignored", self._kind, entity.id)
            return ChangeOutcome.IGNORED
        self._items.insert(0, entity)
        return ChangeOutcome.INSERTED

    def _update(self, entity: EntityT) -> ChangeOutcome:
        index = self._index_of(entity.id)
        if index is None:
            # Missed the INSERT; treat the UPDATE as one
            self._items.insert(0, entity)
            logger.debug("UPDATE for unknown %s %s applied as insert", self._kind, entity.id)
            return ChangeOutcome.UPSERTED
        self._items[index] = entity
        return ChangeOutcome.REPLACED

    def _delete(self, entity_id: str) -> ChangeOutcome:
        index = self._index_of(entity_id)
        if index is None:
            return ChangeOutcome.IGNORED
        del self._items[index]
        return ChangeOutcome.REMOVED
