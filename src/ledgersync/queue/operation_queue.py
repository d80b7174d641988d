"""Ordered, persisted queue of pending operations."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional

from ledgersync.errors import StorageCorruptionError
from ledgersync.models import EnqueueResult
from ledgersync.storage import LocalCache
from ledgersync.util.ids import new_op_id
from ledgersync.util.time import now_ms

from .operation import Operation, OperationKind

logger = logging.getLogger(__name__)


class OperationQueue:
    """
    Owns admission (dedup/merge), persistence, and corruption recovery.

    Every structural change is followed by a full rewrite of the queue under
    the configured key, so a process kill between steps loses nothing that
    was acknowledged.
    """

    def __init__(
        self,
        cache: LocalCache,
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._cache = cache
        self._clock = clock
        self._ops: list[Operation] = []

    def __len__(self) -> int:
        return len(self._ops)

    def list(self) -> tuple[Operation, ...]:
        """Read-only ordered snapshot."""
        return tuple(self._ops)

    def get(self, op_id: str) -> Optional[Operation]:
        for op in self._ops:
            if op.op_id == op_id:
                return op
        return None

    # ----------------------------
    # Load / persist
    # ----------------------------
    async def load(self) -> tuple[Operation, ...]:
        """
        Rebuild the queue from storage. Never raises for bad data.

        Unparsable or non-array content resets the queue; individually
        malformed items are dropped. Whatever survives is written back
        immediately.
        """
        raw = await self._cache.read_queue_raw()
        if raw is None:
            self._ops = []
            return self.list()

        try:
            items = _decode_queue(raw)
        except StorageCorruptionError as exc:
            logger.warning("Persisted queue is corrupted, resetting: %s", exc)
            items = []

        self._ops = _sanitize(items)
        await self.persist()
        logger.info("Loaded %d valid operations from queue", len(self._ops))
        return self.list()

    async def persist(self) -> None:
        await self._cache.write_queue([op.to_dict() for op in self._ops])

    # ----------------------------
    # Admission
    # ----------------------------
    async def enqueue(
        self,
        kind: OperationKind,
        resource_type: str,
        resource_id: str,
        payload: Optional[dict[str, Any]] = None,
    ) -> EnqueueResult:
        """
        Admit or merge an operation and persist the resulting queue.

        - CREATE when a CREATE for the same resource is queued: discarded.
        - UPDATE when a CREATE/UPDATE for the same resource is queued: merged
          into that entry (new fields win, updatedAt refreshed).
        - Anything else: appended.
        """
        kind = OperationKind(kind)
        now = self._clock()
        key = (resource_type, resource_id)

        if kind is OperationKind.CREATE:
            existing = self._find(key, (OperationKind.CREATE,))
            if existing is not None:
                logger.debug(
                    "Duplicate CREATE for %s/%s skipped (queued as %s)",
                    resource_type,
                    resource_id,
                    existing.op_id,
                )
                return EnqueueResult(outcome="duplicate", operation=existing)

        if kind is OperationKind.UPDATE:
            existing = self._find(key, (OperationKind.CREATE, OperationKind.UPDATE))
            if existing is not None:
                merged = existing.merged_with(dict(payload or {}), updated_at=now)
                self._replace(merged)
                await self.persist()
                logger.debug(
                    "UPDATE for %s/%s merged into queued %s",
                    resource_type,
                    resource_id,
                    existing.op_id,
                )
                return EnqueueResult(outcome="merged", operation=merged)

        body: Optional[dict[str, Any]] = None
        if kind is not OperationKind.DELETE:
            body = dict(payload or {})
            body.setdefault("updatedAt", now)

        op = Operation(
            op_id=new_op_id(),
            kind=kind,
            resource_type=resource_type,
            resource_id=resource_id,
            enqueued_at=now,
            payload=body,
        )
        self._ops.append(op)
        await self.persist()
        logger.debug("Queued %s %s/%s as %s", kind.value, resource_type, resource_id, op.op_id)
        return EnqueueResult(outcome="appended", operation=op)

    # ----------------------------
    # Drain bookkeeping
    # ----------------------------
    async def dequeue_applied(self, op_id: str, revision: Optional[int] = None) -> bool:
        """
        Remove a successfully applied operation.

        When `revision` is given and the entry was merged again after the
        drain picked it up, it stays queued so the newer fields go out on the
        next drain. Returns True when the entry was removed.
        """
        current = self.get(op_id)
        if current is None:
            return False
        if revision is not None and current.revision != revision:
            logger.debug("Operation %s changed while in flight; keeping it queued", op_id)
            return False
        self._remove(op_id)
        await self.persist()
        return True

    async def record_failure(
        self,
        op_id: str,
        error: str,
        max_retries: int,
    ) -> Optional[Operation]:
        """
        Swap in the failed transition of `op_id`; evict it when terminal.

        Returns the transitioned operation, or None if it is no longer queued.
        """
        current = self.get(op_id)
        if current is None:
            return None
        updated = current.failed(error, max_retries)
        if updated.state.terminal:
            self._remove(op_id)
        else:
            self._replace(updated)
        await self.persist()
        return updated

    async def clear(self) -> int:
        dropped = len(self._ops)
        self._ops = []
        await self.persist()
        return dropped

    # ----------------------------
    # Internals
    # ----------------------------
    def _find(
        self,
        key: tuple[str, str],
        kinds: tuple[OperationKind, ...],
    ) -> Optional[Operation]:
        for op in self._ops:
            if op.resource_key == key and op.kind in kinds:
                return op
        return None

    def _replace(self, op: Operation) -> None:
        for i, cur in enumerate(self._ops):
            if cur.op_id == op.op_id:
                self._ops[i] = op
                return

    def _remove(self, op_id: str) -> None:
        self._ops = [op for op in self._ops if op.op_id != op_id]


def _decode_queue(raw: str) -> list[Any]:
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise StorageCorruptionError("Queue payload is not valid JSON", cause=exc) from exc
    if not isinstance(data, list):
        raise StorageCorruptionError(
            "Queue payload is not an array",
            details={"type": type(data).__name__},
        )
    return data


def _sanitize(items: list[Any]) -> list[Operation]:
    ops: list[Operation] = []
    seen: set[str] = set()
    for item in items:
        try:
            op = Operation.from_dict(item)
        except ValueError as exc:
            logger.warning("Removing invalid queue item: %s", exc)
            continue
        if op.op_id in seen:
            logger.warning("Removing duplicate queue item: %s", op.op_id)
            continue
        if op.state.terminal:
            logger.warning("Removing finished queue item: %s", op.op_id)
            continue
        seen.add(op.op_id)
        ops.append(op)
    return ops
