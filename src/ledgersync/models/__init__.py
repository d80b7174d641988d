"""Public model exports for ledgersync."""

from __future__ import annotations

from .ledger import LedgerCategory
from .results import (
    DrainResult,
    EnqueueOutcome,
    EnqueueResult,
    InitialSyncResult,
    OperationResult,
    OperationStatus,
    QueueItemStatus,
    ReconcileResult,
    SyncStatus,
    WriteResult,
)

__all__ = [
    "LedgerCategory",
    "EnqueueOutcome",
    "EnqueueResult",
    "OperationStatus",
    "OperationResult",
    "DrainResult",
    "WriteResult",
    "QueueItemStatus",
    "SyncStatus",
    "ReconcileResult",
    "InitialSyncResult",
]
