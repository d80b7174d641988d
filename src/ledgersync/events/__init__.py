"""Public event exports for ledgersync."""

from __future__ import annotations

from .channel import EventCallback, EventChannel, Subscription
from .types import (
    CollectionReconciled,
    ConnectivityChanged,
    DrainCompleted,
    DrainStarted,
    EventType,
    InitialSyncCompleted,
    OperationApplied,
    OperationFailed,
    QueueReset,
    SettingsReconciled,
    SyncEvent,
)

__all__ = [
    "EventChannel",
    "EventCallback",
    "Subscription",
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
]
