"""Lifecycle events published by the sync engine (UI-facing, no control authority)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional

from ledgersync.errors import LedgerSyncError
from ledgersync.models import DrainResult, ReconcileResult
from ledgersync.queue.operation import Operation


class EventType(str, Enum):
    CONNECTIVITY_CHANGED = "connectivity_changed"
    DRAIN_STARTED = "drain_started"
    OPERATION_APPLIED = "operation_applied"
    OPERATION_FAILED = "operation_failed"
    DRAIN_COMPLETED = "drain_completed"
    COLLECTION_RECONCILED = "collection_reconciled"
    SETTINGS_RECONCILED = "settings_reconciled"
    QUEUE_RESET = "queue_reset"
    INITIAL_SYNC_COMPLETED = "initial_sync_completed"


@dataclass(frozen=True)
class SyncEvent:
    """Base of all events; `type` is the tag subscribers filter on."""

    type: ClassVar[EventType]


@dataclass(frozen=True)
class ConnectivityChanged(SyncEvent):
    type: ClassVar[EventType] = EventType.CONNECTIVITY_CHANGED

    is_online: bool
    manual_offline: bool


@dataclass(frozen=True)
class DrainStarted(SyncEvent):
    type: ClassVar[EventType] = EventType.DRAIN_STARTED

    pending: int


@dataclass(frozen=True)
class OperationApplied(SyncEvent):
    type: ClassVar[EventType] = EventType.OPERATION_APPLIED

    operation: Operation
    conflict_resolved: bool = False


@dataclass(frozen=True)
class OperationFailed(SyncEvent):
    type: ClassVar[EventType] = EventType.OPERATION_FAILED

    operation: Operation
    error: LedgerSyncError


@dataclass(frozen=True)
class DrainCompleted(SyncEvent):
    type: ClassVar[EventType] = EventType.DRAIN_COMPLETED

    failed_count: int
    applied_count: int = 0


@dataclass(frozen=True)
class CollectionReconciled(SyncEvent):
    type: ClassVar[EventType] = EventType.COLLECTION_RECONCILED

    resource_type: str
    owner_id: str
    entities: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class SettingsReconciled(SyncEvent):
    type: ClassVar[EventType] = EventType.SETTINGS_RECONCILED

    owner_id: str
    data: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class QueueReset(SyncEvent):
    type: ClassVar[EventType] = EventType.QUEUE_RESET

    dropped: int = 0


@dataclass(frozen=True)
class InitialSyncCompleted(SyncEvent):
    type: ClassVar[EventType] = EventType.INITIAL_SYNC_COMPLETED

    owner_id: str
    reconciled: list[ReconcileResult] = field(default_factory=list)
    drain: Optional[DrainResult] = None
