"""SyncEngine: local-first writes, queued remote propagation, reconciliation."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Mapping, Optional

from ledgersync.config import SyncConfig
from ledgersync.connectivity import ConnectivityObserver, ConnectivitySignal
from ledgersync.errors import (
    InvalidStateError,
    LedgerSyncError,
    OfflineError,
    ValidationError,
)
from ledgersync.events import EventCallback, EventChannel, EventType, QueueReset, Subscription
from ledgersync.models import (
    DrainResult,
    InitialSyncResult,
    QueueItemStatus,
    SyncStatus,
    WriteResult,
)
from ledgersync.models.ledger import ENTRY_ID, UPDATED_AT
from ledgersync.queue import OperationKind, OperationQueue
from ledgersync.remote import RemoteStore
from ledgersync.storage import LocalCache, LocalStore
from ledgersync.sync import Reconciler, SyncProcessor
from ledgersync.util.ids import new_entity_id, remote_doc_id
from ledgersync.util.time import now_ms
from ledgersync.validation import validate_entry

logger = logging.getLogger(__name__)

IdentityProvider = Callable[[], Optional[str]]


class SyncEngine:
    """
    Caller-facing facade over the queue, drain, reconciler and observer.

    Writes land in the local cache first and are reported as successful from
    there; remote propagation happens asynchronously and is only visible via
    events and get_status(). The only error returned synchronously from a
    write is a validation failure (or a local storage failure).
    """

    def __init__(
        self,
        store: LocalStore,
        remote: RemoteStore,
        signal: ConnectivitySignal,
        *,
        identity: IdentityProvider,
        config: Optional[SyncConfig] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._config = config or SyncConfig()
        self._identity = identity
        self._clock = clock
        self._started = False
        self._tasks: set[asyncio.Task[Any]] = set()

        self.events = EventChannel()
        self.cache = LocalCache(store, self._config)
        self.queue = OperationQueue(self.cache, clock=clock)
        self.connectivity = ConnectivityObserver(
            signal,
            self.cache,
            self.events,
            on_reconnect=self._schedule_drain,
        )
        self.processor = SyncProcessor(
            self.queue,
            remote,
            self.events,
            is_online=self.connectivity.current,
            max_retries=self._config.max_retries,
            clock=clock,
        )
        self.reconciler = Reconciler(
            self.cache,
            remote,
            self.events,
            self._config,
            is_online=self.connectivity.current,
            drain=self.processor.drain,
        )

    @property
    def config(self) -> SyncConfig:
        return self._config

    # ----------------------------
    # Lifecycle
    # ----------------------------
    async def start(self) -> None:
        """Load the persisted queue and begin observing connectivity."""
        if self._started:
            return
        await self.queue.load()
        await self.connectivity.start()
        self._started = True

    async def close(self) -> None:
        """Stop observing connectivity and wait for scheduled drains."""
        self.connectivity.close()
        await self.wait_idle()
        self._started = False

    async def wait_idle(self) -> None:
        """Wait until every drain scheduled so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def subscribe(self, callback: EventCallback, *event_types: EventType) -> Subscription:
        return self.events.subscribe(callback, *event_types)

    # ----------------------------
    # Write API
    # ----------------------------
    async def save_entity(self, entity: Mapping[str, Any], owner_id: str) -> WriteResult:
        """Validate, write locally, then queue for remote propagation."""
        self._require_started()
        validation = validate_entry(entity)
        if not validation.valid:
            exc = ValidationError(
                f"Validation failed: {', '.join(validation.errors)}",
                validation.errors,
            )
            logger.warning("Entry rejected: %s", exc)
            return WriteResult.failed(exc)

        collection = self._config.entry_collection
        try:
            entities = await self.cache.load_collection(collection, owner_id)
            entity_id = str(entity.get(ENTRY_ID) or new_entity_id())
            saved = dict(entity)
            saved[ENTRY_ID] = entity_id
            saved[UPDATED_AT] = self._clock()

            index = _index_of(entities, entity_id)
            if index is None:
                entities.append(saved)
                kind = OperationKind.CREATE
            else:
                entities[index] = saved
                kind = OperationKind.UPDATE
            await self.cache.save_collection(collection, owner_id, entities)

            uid = self._identity()
            if uid:
                payload = dict(saved)
                payload[self._config.owner_field] = uid
                await self._enqueue(kind, collection, remote_doc_id(uid, entity_id), payload)
            else:
                logger.info("No authenticated identity; entry %s kept local only", entity_id)
        except (LedgerSyncError, OSError, TypeError) as exc:
            logger.error("Saving entry failed: %s", exc)
            return WriteResult.failed(exc)

        return WriteResult.ok(entities)

    async def delete_entity(self, entity_id: str, owner_id: str) -> WriteResult:
        """Remove locally, then queue the remote delete."""
        self._require_started()
        collection = self._config.entry_collection
        try:
            entities = await self.cache.load_collection(collection, owner_id)
            remaining = [e for e in entities if e.get(ENTRY_ID) != entity_id]
            await self.cache.save_collection(collection, owner_id, remaining)

            uid = self._identity()
            if uid:
                await self._enqueue(
                    OperationKind.DELETE,
                    collection,
                    remote_doc_id(uid, entity_id),
                )
            else:
                logger.info("No authenticated identity; delete of %s kept local only", entity_id)
        except (LedgerSyncError, OSError, TypeError) as exc:
            logger.error("Deleting entry failed: %s", exc)
            return WriteResult.failed(exc)

        return WriteResult.ok(remaining)

    async def save_user_setting(self, field_name: str, value: Any) -> WriteResult:
        """Write one user setting locally and queue it on the owner's settings document."""
        self._require_started()
        try:
            await self.cache.save_setting(field_name, value)
            uid = self._identity()
            if uid:
                await self._enqueue(
                    OperationKind.UPDATE,
                    self._config.settings_collection,
                    uid,
                    {field_name: value, UPDATED_AT: self._clock()},
                )
        except (LedgerSyncError, OSError, TypeError) as exc:
            logger.error("Saving setting %s failed: %s", field_name, exc)
            return WriteResult.failed(exc)
        return WriteResult.ok()

    # ----------------------------
    # Sync control
    # ----------------------------
    def get_status(self) -> SyncStatus:
        ops = self.queue.list()
        return SyncStatus(
            is_online=self.connectivity.current(),
            is_syncing=self.processor.is_syncing,
            pending_operations=len(ops),
            manual_offline=self.connectivity.manual_offline,
            queue_items=[
                QueueItemStatus(
                    op_id=op.op_id,
                    kind=op.kind.value,
                    retry_count=op.retry_count,
                    enqueued_at=op.enqueued_at,
                )
                for op in ops
            ],
        )

    async def manual_sync(self) -> Optional[DrainResult]:
        """
        Drain now.

        Raises:
            OfflineError: if offline (physically or by manual override).
        """
        self._require_started()
        if not self.connectivity.current():
            raise OfflineError("No network connection")
        return await self.processor.drain()

    async def set_manual_offline_mode(self, enabled: bool) -> WriteResult:
        self._require_started()
        try:
            await self.connectivity.set_manual_offline(enabled)
        except (LedgerSyncError, OSError) as exc:
            logger.error("Setting offline mode failed: %s", exc)
            return WriteResult.failed(exc)
        return WriteResult.ok()

    async def perform_initial_sync(self, owner_id: Optional[str] = None) -> InitialSyncResult:
        """Full pull-and-merge for `owner_id` (default: current identity), then drain."""
        self._require_started()
        return await self.reconciler.perform_initial_sync(owner_id or self._identity())

    async def clear_queue(self) -> int:
        """Drop every pending operation. Returns how many were dropped."""
        self._require_started()
        dropped = await self.queue.clear()
        logger.warning("Sync queue cleared (%d operations dropped)", dropped)
        self.events.publish(QueueReset(dropped=dropped))
        return dropped

    # ----------------------------
    # Internals
    # ----------------------------
    async def _enqueue(
        self,
        kind: OperationKind,
        resource_type: str,
        resource_id: str,
        payload: Optional[dict[str, Any]] = None,
    ) -> None:
        await self.queue.enqueue(kind, resource_type, resource_id, payload)
        if self.connectivity.current():
            self._schedule_drain()

    def _schedule_drain(self) -> None:
        task = asyncio.get_running_loop().create_task(self.processor.drain())
        self._tasks.add(task)
        task.add_done_callback(self._on_drain_done)

    def _on_drain_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background drain failed", exc_info=exc)

    def _require_started(self) -> None:
        if not self._started:
            raise InvalidStateError("SyncEngine is not started. Call start() first.")


def _index_of(entities: list[dict[str, Any]], entity_id: str) -> Optional[int]:
    for i, entity in enumerate(entities):
        if entity.get(ENTRY_ID) == entity_id:
            return i
    return None
