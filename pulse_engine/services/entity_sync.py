"""EntitySync — keeps one EntityStore reconciled with a remote collection.

Lifecycle:
    start()  subscribe → fetch snapshot → load store → drain buffered
             notifications → keep consuming
    stop()   mark closed → unsubscribe → cancel consumer → drop queue

Notifications are only ever enqueued by the transport callback.  A single
consumer task applies them one at a time in arrival order, so no two
reconciliations overlap.  Subscribing before the snapshot fetch means a
change landing mid-fetch is buffered rather than lost; replaying it over
the snapshot is harmless because the store tolerates duplicate INSERTs and
UPDATEs for ids it already holds.

Commands (create / update) go to the transport only.  The store changes
when the resulting notification arrives, never before.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Callable, Generic, Optional

from pydantic import ValidationError

from pulse_engine.store.changes import (
    EntityChange,
    EntityT,
    MalformedNotificationError,
    NotificationStats,
    parse_change,
)
from pulse_engine.store.entity_store import ChangeOutcome, EntityStore
from pulse_engine.transport.base import SubscriptionHandle, Transport, TransportError

logger = logging.getLogger(__name__)

ChangeListener = Callable[[EntityChange[Any], ChangeOutcome, Optional[Any]], None]


class EntitySync(Generic[EntityT]):
    """Subscription, reconciliation and commands for one entity kind.

    Args:
        kind: Remote collection name.
        model: Pydantic model every row is validated into.
        transport: The remote collaborator.
    """

    def __init__(self, kind: str, model: type[EntityT], transport: Transport) -> None:
        self._kind = kind
        self._model = model
        self._transport = transport
        self.store: EntityStore[EntityT] = EntityStore(kind)
        self.stats = NotificationStats(kind)
        self._listeners: list[ChangeListener] = []
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._handle: SubscriptionHandle | None = None
        self._consumer: asyncio.Task | None = None
        self._closed = True
        self._loading = True

    @property
    def kind(self) -> str:
        return self._kind

    @property
    def model(self) -> type[EntityT]:
        return self._model

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def running(self) -> bool:
        return not self._closed

    def add_listener(self, listener: ChangeListener) -> None:
        """Call *listener(change, outcome, previous)* after every reconciliation."""
        self._listeners.append(listener)

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Subscribe, load the initial snapshot, then start consuming.

        Raises:
            TransportError: If the snapshot fetch fails.  The subscription
                is released before the error propagates.
        """
        if self.running:
            return
        self._closed = False
        self._loading = True
        self._handle = await self._transport.subscribe(self._kind, self._enqueue)
        try:
            rows = await self._transport.fetch_all(self._kind)
        except TransportError as exc:
            logger.error("Initial fetch of %s failed: %s", self._kind, exc)
            await self.stop()
            raise

        if self._closed:
            # stop() ran while the snapshot was in flight
            logger.info("Sync for %s stopped during initial fetch", self._kind)
            return

        self.store.load(self._validate_rows(rows))
        self._loading = False
        self._consumer = asyncio.create_task(self._consume(), name=f"sync-{self._kind}")
        logger.info("Sync for %s started (%d buffered)", self._kind, self._queue.qsize())

    async def stop(self) -> None:
        """Stop applying notifications and release the subscription."""
        self._closed = True
        if self._handle is not None:
            handle, self._handle = self._handle, None
            await self._transport.unsubscribe(handle)
        if self._consumer is not None:
            consumer, self._consumer = self._consumer, None
            consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await consumer
        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            dropped += 1
        if dropped:
            logger.info("Dropped %d pending %s notification(s) on stop", dropped, self._kind)

    async def drain(self) -> None:
        """Wait until every queued notification has been applied."""
        if self._consumer is None:
            return
        await self._queue.join()

    # ── Notifications ────────────────────────────────────────────────────

    def submit(self, raw: dict[str, Any]) -> bool:
        """Queue a raw notification.  Returns False once the sync is stopped."""
        if self._closed:
            logger.debug("Notification for %s after stop discarded", self._kind)
            return False
        self._queue.put_nowait(raw)
        return True

    def apply(self, raw: dict[str, Any]) -> ChangeOutcome:
        """Reconcile one raw notification into the store.

        Malformed notifications are logged and counted, never raised.
        """
        if self._closed:
            return ChangeOutcome.IGNORED
        try:
            change = parse_change(self._kind, self._model, raw)
        except MalformedNotificationError as exc:
            self.stats.rejected_count += 1
            logger.warning("%s", exc)
            return ChangeOutcome.IGNORED

        previous = self.store.get(change.entity_id)
        outcome = self.store.apply_change(change)
        if outcome.mutated:
            self.stats.applied_count += 1
        else:
            self.stats.ignored_count += 1
        logger.debug("%s %s %s → %s", self._kind, change.change_type.value, change.entity_id, outcome.value)

        for listener in list(self._listeners):
            try:
                listener(change, outcome, previous)
            except Exception as exc:
                logger.error("Change listener for %s failed: %s", self._kind, exc, exc_info=True)
        return outcome

    def _enqueue(self, raw: dict[str, Any]) -> None:
        self.submit(raw)

    async def _consume(self) -> None:
        while True:
            raw = await self._queue.get()
            try:
                self.apply(raw)
            finally:
                self._queue.task_done()

    # ── Commands ─────────────────────────────────────────────────────────

    async def create(self, fields: dict[str, Any]) -> EntityT:
        """Ask the remote to create an entity; return it as confirmed.

        Raises:
            TransportError: The remote rejected the insert.  The store is
                untouched.
        """
        try:
            row = await self._transport.insert(self._kind, fields)
        except TransportError as exc:
            logger.error("Insert into %s failed: %s", self._kind, exc)
            raise
        return self._model.model_validate(row)

    async def update(self, entity_id: str, fields: dict[str, Any]) -> EntityT:
        """Ask the remote to update an entity; return it as confirmed.

        Raises:
            TransportError: The remote rejected the update.  The store is
                untouched.
        """
        try:
            row = await self._transport.update(self._kind, entity_id, fields)
        except TransportError as exc:
            logger.error("Update of %s %s failed: %s", self._kind, entity_id, exc)
            raise
        return self._model.model_validate(row)

    # ── Internals ────────────────────────────────────────────────────────

    def _validate_rows(self, rows: list[dict[str, Any]]) -> list[EntityT]:
        entities: list[EntityT] = []
        for row in rows:
            try:
                entities.append(self._model.model_validate(row))
            except ValidationError as exc:
                self.stats.rejected_count += 1
                logger.warning("Skipping invalid %s row in snapshot (%d error(s))", self._kind, exc.error_count())
        return entities
