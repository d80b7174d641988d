"""Exception hierarchy and HTTP error mapping for ledgersync."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class LedgerSyncError(Exception):
    """
    Base exception for ledgersync.

    Attributes:
        details: Optional structured information (e.g., HTTP status, op_id).
        cause: Optional original exception that triggered this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause


class ValidationError(LedgerSyncError):
    """Raised when an entity payload is malformed. Never reaches the queue."""

    def __init__(
        self,
        message: str,
        errors: list[str],
        *,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details)
        self.errors = list(errors)


class InvalidStateError(LedgerSyncError):
    """Raised when the engine is used in an invalid state (e.g., start not called)."""


class StorageCorruptionError(LedgerSyncError):
    """Raised internally when persisted queue data cannot be decoded."""


class IdentityMissingError(LedgerSyncError):
    """Raised when an operation requires an authenticated owner and none is set."""


class OfflineError(LedgerSyncError):
    """Raised when a remote round-trip is requested while offline."""


class TransientSyncError(LedgerSyncError):
    """A remote call failed; the operation stays queued for another drain."""


class PermanentSyncError(LedgerSyncError):
    """The retry ceiling was reached; the operation was dropped."""


class AuthError(TransientSyncError):
    """Raised when OAuth authentication/refresh fails (HTTP 401)."""


class PermissionError(TransientSyncError):
    """Raised when access is denied (HTTP 403)."""


class InvalidArgumentError(TransientSyncError):
    """Raised when request arguments are invalid (HTTP 400, etc.)."""


class NotFoundError(TransientSyncError):
    """Raised when a remote document or collection is not found (HTTP 404)."""


class ConflictError(TransientSyncError):
    """Raised when a write conflicts on the server (HTTP 409/412)."""


class RateLimitError(TransientSyncError):
    """Raised when rate-limited (HTTP 429)."""


class NetworkError(TransientSyncError):
    """Raised when network/timeout issues prevent the request."""


class ApiError(TransientSyncError):
    """Raised for unclassified API errors (5xx, unknown 4xx, etc.)."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Lightweight HTTP error information for mapping to ledgersync exceptions."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> LedgerSyncError:
    """
    Map an HTTP error to a ledgersync exception.

    Policy:
        - 400 -> InvalidArgumentError
        - 401 -> AuthError
        - 403 -> PermissionError
        - 404 -> NotFoundError
        - 409/412 -> ConflictError
        - 429 -> RateLimitError
        - otherwise -> ApiError
    """
    details: dict[str, Any] = {
        "status_code": info.status_code,
        "reason": info.reason,
    }
    if info.details:
        details.update(info.details)

    message = info.message or f"HTTP error {info.status_code}"

    if info.status_code == 400:
        return InvalidArgumentError(message, details=details, cause=cause)
    if info.status_code == 401:
        return AuthError(message, details=details, cause=cause)
    if info.status_code == 403:
        return PermissionError(message, details=details, cause=cause)
    if info.status_code == 404:
        return NotFoundError(message, details=details, cause=cause)
    if info.status_code in (409, 412):
        return ConflictError(message, details=details, cause=cause)
    if info.status_code == 429:
        return RateLimitError(message, details=details, cause=cause)

    return ApiError(message, details=details, cause=cause)
