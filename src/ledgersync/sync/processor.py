"""Drain engine: applies queued operations against the remote store."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ledgersync.errors import LedgerSyncError, PermanentSyncError, TransientSyncError
from ledgersync.events import (
    DrainCompleted,
    DrainStarted,
    EventChannel,
    OperationApplied,
    OperationFailed,
)
from ledgersync.models import DrainResult, OperationResult
from ledgersync.queue import Operation, OperationKind, OperationQueue, OperationState
from ledgersync.remote import RemoteStore
from ledgersync.util.time import now_ms

from .conflict import resolve_write

logger = logging.getLogger(__name__)


class SyncProcessor:
    """
    Drains the queue one operation at a time, in queue order.

    drain() is non-reentrant: a call made while a pass is in flight returns
    None immediately. Operations admitted during a pass wait for the next one.
    """

    def __init__(
        self,
        queue: OperationQueue,
        remote: RemoteStore,
        events: EventChannel,
        *,
        is_online: Callable[[], bool],
        max_retries: int = 3,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._queue = queue
        self._remote = remote
        self._events = events
        self._is_online = is_online
        self._max_retries = max_retries
        self._clock = clock
        self._in_flight = False

    @property
    def is_syncing(self) -> bool:
        return self._in_flight

    async def drain(self) -> Optional[DrainResult]:
        """
        Run one pass over a snapshot of the queue.

        Returns:
            DrainResult, or None when skipped (already draining or offline).
        """
        # Flag is set before the first await so overlapping calls bail out.
        if self._in_flight:
            logger.debug("Drain already in flight; request dropped")
            return None
        if not self._is_online():
            logger.debug("Offline; drain skipped")
            return None

        self._in_flight = True
        try:
            return await self._drain_snapshot()
        finally:
            self._in_flight = False

    async def _drain_snapshot(self) -> DrainResult:
        snapshot = self._queue.list()
        self._events.publish(DrainStarted(pending=len(snapshot)))
        result = DrainResult()

        for op in snapshot:
            result.results.append(await self._process_one(op))

        await self._queue.persist()

        logger.info(
            "Drain complete: %d applied, %d retrying, %d failed, %d still queued",
            result.applied_count,
            result.retrying_count,
            result.failed_count,
            len(self._queue),
        )
        self._events.publish(
            DrainCompleted(
                failed_count=result.failed_count,
                applied_count=result.applied_count,
            )
        )
        return result

    async def _process_one(self, op: Operation) -> OperationResult:
        try:
            conflict_resolved = await self._apply(op)
        except Exception as exc:
            return await self._handle_failure(op, _as_transient(op, exc))

        await self._queue.dequeue_applied(op.op_id, revision=op.revision)
        self._events.publish(
            OperationApplied(operation=op.applied(), conflict_resolved=conflict_resolved)
        )
        return OperationResult(
            op_id=op.op_id,
            kind=op.kind.value,
            resource_type=op.resource_type,
            resource_id=op.resource_id,
            status="applied",
            retry_count=op.retry_count,
            conflict_resolved=conflict_resolved,
        )

    async def _apply(self, op: Operation) -> bool:
        """Apply one operation remotely. Returns True when a conflict was merged."""
        if op.kind is OperationKind.DELETE:
            await self._remote.delete(op.resource_type, op.resource_id)
            return False

        payload = dict(op.payload or {})
        remote = await self._remote.get(op.resource_type, op.resource_id)
        write = resolve_write(remote, payload, self._clock())
        if write.conflict_resolved:
            logger.warning(
                "Conflict on %s/%s: server copy is newer, merging",
                op.resource_type,
                op.resource_id,
            )
        elif remote is not None and op.kind is OperationKind.CREATE:
            logger.info(
                "Document %s/%s already exists; CREATE applied as merge",
                op.resource_type,
                op.resource_id,
            )

        await self._remote.upsert(
            op.resource_type,
            op.resource_id,
            write.data,
            merge=write.merge,
        )
        return write.conflict_resolved

    async def _handle_failure(self, op: Operation, error: TransientSyncError) -> OperationResult:
        updated = await self._queue.record_failure(op.op_id, str(error), self._max_retries)
        if updated is None:
            # Removed from the queue while in flight (e.g. cleared).
            updated = op.failed(str(error), self._max_retries)

        if updated.state is OperationState.FAILED:
            permanent = PermanentSyncError(
                "Operation dropped after reaching the retry ceiling",
                details={
                    "op_id": op.op_id,
                    "kind": op.kind.value,
                    "resource_type": op.resource_type,
                    "resource_id": op.resource_id,
                    "retry_count": updated.retry_count,
                    "last_error": updated.last_error,
                },
                cause=error,
            )
            logger.error(
                "Operation %s (%s %s/%s) failed permanently after %d attempts: %s",
                op.op_id,
                op.kind.value,
                op.resource_type,
                op.resource_id,
                updated.retry_count,
                error,
            )
            self._events.publish(OperationFailed(operation=updated, error=permanent))
            status = "failed"
        else:
            logger.warning(
                "Operation %s failed (attempt %d/%d): %s",
                op.op_id,
                updated.retry_count,
                self._max_retries,
                error,
            )
            status = "retrying"

        return OperationResult(
            op_id=op.op_id,
            kind=op.kind.value,
            resource_type=op.resource_type,
            resource_id=op.resource_id,
            status=status,  # type: ignore[arg-type]
            retry_count=updated.retry_count,
            error_type=error.__class__.__name__,
            error_message=str(error),
        )


def _as_transient(op: Operation, exc: Exception) -> TransientSyncError:
    if isinstance(exc, TransientSyncError):
        return exc
    message = str(exc) or exc.__class__.__name__
    details = {"op_id": op.op_id}
    if isinstance(exc, LedgerSyncError):
        details.update(exc.details)
    return TransientSyncError(message, details=details, cause=exc)
