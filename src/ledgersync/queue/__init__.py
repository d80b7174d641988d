"""Public queue exports for ledgersync."""

from __future__ import annotations

from .operation import Operation, OperationKind, OperationState
from .operation_queue import OperationQueue

__all__ = ["Operation", "OperationKind", "OperationState", "OperationQueue"]
