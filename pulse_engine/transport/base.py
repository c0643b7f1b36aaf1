"""Transport protocol — the remote source of truth the engine syncs against.

The engine depends only on this protocol.  Swap implementations to talk to
a different backend without touching reconciliation logic.

Rules for implementations:
    1. fetch_all() returns a point-in-time snapshot, newest first.
    2. Notifications for one entity id are delivered in order.  Delivery
       may be at-least-once.
    3. insert() / update() raise TransportError on failure and must not
       call subscribers in that case.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol

ChangeCallback = Callable[[dict[str, Any]], None]


class TransportError(Exception):
    """Raised when the remote rejects a fetch, insert or update."""

    def __init__(self, kind: str, reason: str) -> None:
        self.kind = kind
        self.reason = reason
        super().__init__(f"Transport failure on '{kind}': {reason}")


class SubscriptionHandle:
    """Opaque token returned by subscribe()."""

    __slots__ = ("kind", "handle_id")

    def __init__(self, kind: str, handle_id: int) -> None:
        self.kind = kind
        self.handle_id = handle_id

    def __repr__(self) -> str:
        return f"SubscriptionHandle({self.kind!r}, {self.handle_id})"


class Transport(Protocol):
    """Protocol for the persistence/transport collaborator."""

    async def fetch_all(self, kind: str) -> list[dict[str, Any]]:
        """Return every entity of *kind*, newest first."""
        ...

    async def subscribe(self, kind: str, on_change: ChangeCallback) -> SubscriptionHandle:
        """Deliver every change of *kind* to *on_change* until unsubscribed."""
        ...

    async def unsubscribe(self, handle: SubscriptionHandle) -> None:
        ...

    async def insert(self, kind: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Create an entity and return it as stored."""
        ...

    async def update(self, kind: str, entity_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Apply a partial update and return the entity as stored."""
        ...
