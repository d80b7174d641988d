"""Queued operation model (kind-checked at construction, immutable transitions)."""

from __future__ import annotations

import copy
import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class OperationKind(str, Enum):
    """Supported mutation kinds."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class OperationState(str, Enum):
    """
    Lifecycle of one queued operation.

        PENDING -> APPLIED
        PENDING -> RETRYING(n < max) -> PENDING (next drain)
        RETRYING -> FAILED (n == max)

    APPLIED and FAILED are terminal: the operation leaves the queue.
    """

    PENDING = "PENDING"
    RETRYING = "RETRYING"
    APPLIED = "APPLIED"
    FAILED = "FAILED"

    @property
    def terminal(self) -> bool:
        return self in (OperationState.APPLIED, OperationState.FAILED)


@dataclass(slots=True, frozen=True)
class Operation:
    """
    A persisted mutation intent awaiting remote application.

    Instances never change; the queue swaps in the value returned by
    merged_with / failed / applied.
    """

    op_id: str
    kind: OperationKind
    resource_type: str
    resource_id: str
    enqueued_at: int

    payload: Optional[dict[str, Any]] = None
    retry_count: int = 0
    last_error: Optional[str] = None
    state: OperationState = OperationState.PENDING
    revision: int = 0

    def __post_init__(self) -> None:
        self.validate_required_fields()

    def validate_required_fields(self) -> None:
        """Validate required fields according to kind. Raises ValueError."""
        if not isinstance(self.kind, OperationKind):
            raise ValueError(f"Unsupported kind: {self.kind!r}")

        _require(self.op_id, "id")
        _require(self.resource_type, "resourceType")
        _require(self.resource_id, "resourceId")

        if isinstance(self.enqueued_at, bool) or not isinstance(self.enqueued_at, int):
            raise ValueError("enqueuedAt must be an integer timestamp")
        if isinstance(self.retry_count, bool) or not isinstance(self.retry_count, int):
            raise ValueError("retryCount must be an integer")
        if self.retry_count < 0:
            raise ValueError("retryCount must not be negative")

        if self.kind is OperationKind.DELETE:
            if self.payload is not None:
                raise ValueError("DELETE operations carry no payload")
            return

        if not isinstance(self.payload, dict):
            raise ValueError(f"{self.kind.value} operations require a payload object")

    @property
    def resource_key(self) -> tuple[str, str]:
        return (self.resource_type, self.resource_id)

    # ----------------------------
    # Transitions
    # ----------------------------
    def merged_with(self, payload: dict[str, Any], updated_at: int) -> Operation:
        """Shallow-merge `payload` over ours (new fields win), keeping id and position."""
        merged = dict(self.payload or {})
        merged.update(payload)
        merged["updatedAt"] = updated_at
        return dataclasses.replace(self, payload=merged, revision=self.revision + 1)

    def failed(self, error: str, max_retries: int) -> Operation:
        """Record one failed attempt; FAILED once the retry ceiling is reached."""
        count = self.retry_count + 1
        state = OperationState.FAILED if count >= max_retries else OperationState.RETRYING
        return dataclasses.replace(self, retry_count=count, last_error=error, state=state)

    def applied(self) -> Operation:
        return dataclasses.replace(self, state=OperationState.APPLIED)

    # ----------------------------
    # Persistence
    # ----------------------------
    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.op_id,
            "kind": self.kind.value,
            "resourceType": self.resource_type,
            "resourceId": self.resource_id,
            "enqueuedAt": self.enqueued_at,
            "retryCount": self.retry_count,
            "lastError": self.last_error,
            "state": self.state.value,
            "revision": self.revision,
        }
        if self.payload is not None:
            data["payload"] = copy.deepcopy(self.payload)
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Operation:
        """
        Rebuild an Operation from its persisted form.

        Raises:
            ValueError: if the shape check fails (missing id, unknown kind,
                missing resourceType/resourceId/enqueuedAt, or a CREATE/UPDATE
                without payload).
        """
        if not isinstance(data, dict):
            raise ValueError("Queue item must be an object")

        try:
            kind = OperationKind(data.get("kind"))
        except ValueError as exc:
            raise ValueError(f"Unsupported kind: {data.get('kind')!r}") from exc

        state_raw = data.get("state") or OperationState.PENDING.value
        try:
            state = OperationState(state_raw)
        except ValueError as exc:
            raise ValueError(f"Unsupported state: {state_raw!r}") from exc

        payload = data.get("payload")
        if kind is OperationKind.DELETE:
            payload = None

        last_error = data.get("lastError")
        revision = data.get("revision", 0)

        return cls(
            op_id=data.get("id"),  # type: ignore[arg-type]
            kind=kind,
            resource_type=data.get("resourceType"),  # type: ignore[arg-type]
            resource_id=data.get("resourceId"),  # type: ignore[arg-type]
            enqueued_at=data.get("enqueuedAt"),  # type: ignore[arg-type]
            payload=copy.deepcopy(payload) if isinstance(payload, dict) else payload,
            retry_count=data.get("retryCount", 0),
            last_error=last_error if isinstance(last_error, str) else None,
            state=state,
            revision=revision if isinstance(revision, int) and not isinstance(revision, bool) else 0,
        )


def _require(value: object, field_name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Missing required field: {field_name}")
