"""Structural validation of ledger entries before any write or enqueue."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping

from ledgersync.models.ledger import (
    ENTRY_AMOUNT,
    ENTRY_CATEGORY,
    ENTRY_OCCURRED_AT,
    ENTRY_TITLE,
    LedgerCategory,
)

_CATEGORY_VALUES: tuple[str, ...] = tuple(c.value for c in LedgerCategory)


@dataclass(slots=True)
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)


def validate_entry(entity: Mapping[str, Any]) -> ValidationResult:
    """
    Check a ledger entry.

    Rules:
        - title: non-empty string
        - amount: parses to a finite number > 0
        - category: one of LedgerCategory values
        - occurredAt: present
    """
    if not isinstance(entity, Mapping):
        return ValidationResult(valid=False, errors=["Entry must be an object"])

    errors: list[str] = []

    title = entity.get(ENTRY_TITLE)
    if not isinstance(title, str) or not title.strip():
        errors.append("Title is required and must be a non-empty string")

    amount = parse_amount(entity.get(ENTRY_AMOUNT))
    if amount is None or amount <= 0:
        errors.append("Valid amount greater than 0 is required")

    category = entity.get(ENTRY_CATEGORY)
    if isinstance(category, LedgerCategory):
        category = category.value
    if category not in _CATEGORY_VALUES:
        allowed = " or ".join(f'"{v}"' for v in _CATEGORY_VALUES)
        errors.append(f"Category must be either {allowed}")

    occurred_at = entity.get(ENTRY_OCCURRED_AT)
    if occurred_at is None or (isinstance(occurred_at, str) and not occurred_at.strip()):
        errors.append("Date is required")

    return ValidationResult(valid=not errors, errors=errors)


def parse_amount(value: Any) -> float | None:
    """Parse an amount the way a form field would; None when not a finite number."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number
