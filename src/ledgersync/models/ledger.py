"""Ledger entry vocabulary."""

from __future__ import annotations

from enum import Enum


class LedgerCategory(str, Enum):
    """Recognized category tags of a ledger entry."""

    SPENDING = "spending"
    SAVING = "saving"


# Field names of a ledger entry as stored locally and remotely.
ENTRY_ID = "id"
ENTRY_TITLE = "title"
ENTRY_AMOUNT = "amount"
ENTRY_CATEGORY = "category"
ENTRY_OCCURRED_AT = "occurredAt"
UPDATED_AT = "updatedAt"
CONFLICT_RESOLVED = "conflictResolved"
