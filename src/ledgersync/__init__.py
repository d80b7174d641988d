"""ledgersync public API."""

from __future__ import annotations

from ledgersync.auth import AuthInfo, OAuthClient
from ledgersync.config import SyncConfig
from ledgersync.connectivity import ConnectivityObserver, ConnectivitySignal, TcpProbeSignal
from ledgersync.engine import SyncEngine
from ledgersync.errors import (
    ApiError,
    AuthError,
    ConflictError,
    HttpErrorInfo,
    IdentityMissingError,
    InvalidArgumentError,
    InvalidStateError,
    LedgerSyncError,
    NetworkError,
    NotFoundError,
    OfflineError,
    PermanentSyncError,
    PermissionError,
    RateLimitError,
    StorageCorruptionError,
    TransientSyncError,
    ValidationError,
    map_http_error,
)
from ledgersync.events import (
    CollectionReconciled,
    ConnectivityChanged,
    DrainCompleted,
    DrainStarted,
    EventChannel,
    EventType,
    InitialSyncCompleted,
    OperationApplied,
    OperationFailed,
    QueueReset,
    SettingsReconciled,
    Subscription,
    SyncEvent,
)
from ledgersync.models import (
    DrainResult,
    EnqueueResult,
    InitialSyncResult,
    LedgerCategory,
    OperationResult,
    ReconcileResult,
    SyncStatus,
    WriteResult,
)
from ledgersync.queue import Operation, OperationKind, OperationQueue, OperationState
from ledgersync.remote import FirestoreController, FirestoreRemoteStore, RemoteDocument, RemoteStore
from ledgersync.storage import FileLocalStore, LocalCache, LocalStore, MemoryLocalStore
from ledgersync.sync import Reconciler, SyncProcessor, merge_collections, resolve_write
from ledgersync.validation import ValidationResult, validate_entry

__all__ = [
    # High-level
    "SyncEngine",
    "SyncConfig",
    # Components
    "OperationQueue",
    "SyncProcessor",
    "Reconciler",
    "ConnectivityObserver",
    "EventChannel",
    "Subscription",
    "LocalCache",
    "validate_entry",
    "ValidationResult",
    "resolve_write",
    "merge_collections",
    # Collaborators
    "LocalStore",
    "MemoryLocalStore",
    "FileLocalStore",
    "RemoteStore",
    "RemoteDocument",
    "FirestoreController",
    "FirestoreRemoteStore",
    "ConnectivitySignal",
    "TcpProbeSignal",
    "AuthInfo",
    "OAuthClient",
    # Models
    "Operation",
    "OperationKind",
    "OperationState",
    "LedgerCategory",
    "EnqueueResult",
    "OperationResult",
    "DrainResult",
    "WriteResult",
    "SyncStatus",
    "ReconcileResult",
    "InitialSyncResult",
    # Events
    "EventType",
    "SyncEvent",
    "ConnectivityChanged",
    "DrainStarted",
    "OperationApplied",
    "OperationFailed",
    "DrainCompleted",
    "CollectionReconciled",
    "SettingsReconciled",
    "QueueReset",
    "InitialSyncCompleted",
    # Errors
    "LedgerSyncError",
    "ValidationError",
    "InvalidStateError",
    "StorageCorruptionError",
    "IdentityMissingError",
    "OfflineError",
    "TransientSyncError",
    "PermanentSyncError",
    "AuthError",
    "PermissionError",
    "InvalidArgumentError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "NetworkError",
    "ApiError",
    "HttpErrorInfo",
    "map_http_error",
]
