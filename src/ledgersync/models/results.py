"""Result models returned by the queue, the drain, and the write API."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Optional

if TYPE_CHECKING:
    from ledgersync.queue.operation import Operation


EnqueueOutcome = Literal["appended", "merged", "duplicate"]
OperationStatus = Literal["applied", "retrying", "failed"]


@dataclass(slots=True)
class EnqueueResult:
    """What admission did with an operation request."""

    outcome: EnqueueOutcome
    operation: Operation


@dataclass(slots=True)
class OperationResult:
    """Result for a single operation within one drain pass."""

    op_id: str
    kind: str
    resource_type: str
    resource_id: str
    status: OperationStatus

    retry_count: int = 0
    conflict_resolved: bool = False
    error_type: Optional[str] = None
    error_message: Optional[str] = None


@dataclass(slots=True)
class DrainResult:
    """Aggregate result of one drain pass."""

    results: list[OperationResult] = field(default_factory=list)

    @property
    def applied_count(self) -> int:
        return sum(1 for r in self.results if r.status == "applied")

    @property
    def retrying_count(self) -> int:
        return sum(1 for r in self.results if r.status == "retrying")

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if r.status == "failed")


@dataclass(slots=True)
class WriteResult:
    """Caller-facing outcome of a write API call."""

    success: bool
    data: Any = None
    error: Optional[str] = None
    validation_errors: Optional[list[str]] = None

    @classmethod
    def ok(cls, data: Any = None) -> WriteResult:
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, exc: BaseException) -> WriteResult:
        errors = getattr(exc, "errors", None)
        return cls(
            success=False,
            error=str(exc),
            validation_errors=list(errors) if errors is not None else None,
        )


@dataclass(slots=True)
class QueueItemStatus:
    op_id: str
    kind: str
    retry_count: int
    enqueued_at: int


@dataclass(slots=True)
class SyncStatus:
    """Snapshot fed to status indicators."""

    is_online: bool
    is_syncing: bool
    pending_operations: int
    manual_offline: bool = False
    queue_items: list[QueueItemStatus] = field(default_factory=list)


@dataclass(slots=True)
class ReconcileResult:
    """Outcome of one pull (collection or settings)."""

    success: bool
    resource_type: str
    entities: list[dict[str, Any]] = field(default_factory=list)
    data: Optional[dict[str, Any]] = None
    error: Optional[str] = None


@dataclass(slots=True)
class InitialSyncResult:
    success: bool
    reconciled: list[ReconcileResult] = field(default_factory=list)
    drain: Optional[DrainResult] = None
    error: Optional[str] = None
