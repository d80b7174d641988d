"""Last-write-wins conflict rule, per document and per collection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from ledgersync.models.ledger import CONFLICT_RESOLVED, ENTRY_ID, UPDATED_AT
from ledgersync.util.time import timestamp_of


@dataclass(slots=True, frozen=True)
class ResolvedWrite:
    """What to send to the remote store for one queued payload."""

    data: dict[str, Any]
    merge: bool
    conflict_resolved: bool = False


def remote_is_newer(remote: Optional[dict[str, Any]], payload: dict[str, Any]) -> bool:
    """True when both sides carry updatedAt and the remote one is strictly later."""
    if not remote:
        return False
    if remote.get(UPDATED_AT) is None or payload.get(UPDATED_AT) is None:
        return False
    return timestamp_of(remote[UPDATED_AT]) > timestamp_of(payload[UPDATED_AT])


def resolve_write(
    remote: Optional[dict[str, Any]],
    payload: dict[str, Any],
    now: int,
) -> ResolvedWrite:
    """
    Decide the remote write for a queued CREATE/UPDATE payload.

    - Remote newer: remote fields as base, queued fields on top, fresh
      updatedAt, flagged conflictResolved; merge-written.
    - Remote absent: payload written as a full document.
    - Otherwise: payload merge-written as-is (a CREATE racing an existing
      document becomes a merge rather than a failure).
    """
    if remote_is_newer(remote, payload):
        merged = dict(remote or {})
        merged.update(payload)
        merged[UPDATED_AT] = now
        merged[CONFLICT_RESOLVED] = True
        return ResolvedWrite(data=merged, merge=True, conflict_resolved=True)

    if remote is None:
        return ResolvedWrite(data=dict(payload), merge=False)

    return ResolvedWrite(data=dict(payload), merge=True)


def merge_collections(
    local: Iterable[dict[str, Any]],
    remote: Iterable[dict[str, Any]],
) -> list[dict[str, Any]]:
    """
    Merge a remote collection into the local one, keyed by entity id.

    Remote-only entities are inserted; when both sides have an entity the
    greater updatedAt wins and ties keep the local copy. Local order is kept,
    remote inserts follow in remote order.
    """
    merged: dict[Any, dict[str, Any]] = {}
    for entity in local:
        merged[entity.get(ENTRY_ID)] = entity

    for entity in remote:
        key = entity.get(ENTRY_ID)
        current = merged.get(key)
        if current is None:
            merged[key] = entity
            continue
        if timestamp_of(entity.get(UPDATED_AT)) > timestamp_of(current.get(UPDATED_AT)):
            merged[key] = entity

    return list(merged.values())
