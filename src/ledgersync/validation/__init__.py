"""Public validation exports for ledgersync."""

from __future__ import annotations

from .validator import ValidationResult, parse_amount, validate_entry

__all__ = ["ValidationResult", "validate_entry", "parse_amount"]
