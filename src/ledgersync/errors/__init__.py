"""Public error exports for ledgersync."""

from __future__ import annotations

from .exceptions import (
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

__all__ = [
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
