"""Firestore REST controller (internal use only)."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, TypeVar

from ledgersync.auth import AuthInfo, OAuthClient
from ledgersync.errors import (
    ApiError,
    HttpErrorInfo,
    InvalidArgumentError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    map_http_error,
)

from .base import RemoteDocument
from .values import decode_fields, encode_fields, encode_value, quote_field_path

T = TypeVar("T")


@dataclass(frozen=True)
class _RetryPolicy:
    max_retries: int = 3
    initial_delay_sec: float = 1.0


class FirestoreController:
    """
    Blocking Firestore v1 controller (internal only).

    Notes:
        - The discovery `service` object is NOT exposed.
        - Rate limits, 5xx and network errors are retried with exponential
          backoff before the mapped error is raised.
    """

    DEFAULT_SCOPES: tuple[str, ...] = ("https://www.googleapis.com/auth/datastore",)

    def __init__(
        self,
        auth_info: AuthInfo,
        project_id: str,
        *,
        database: str = "(default)",
        scopes: Optional[Sequence[str]] = None,
    ) -> None:
        self._documents_root = _documents_root(project_id, database)
        self._retry_policy = _RetryPolicy()

        use_scopes = list(scopes) if scopes is not None else list(self.DEFAULT_SCOPES)
        client = OAuthClient(auth_info)
        self._service = client.build_firestore_service(use_scopes, ensure_valid=True)

    @classmethod
    def from_service(
        cls,
        service: Any,
        project_id: str,
        *,
        database: str = "(default)",
    ) -> "FirestoreController":
        """Create controller from a pre-built Firestore service (useful for tests)."""
        obj = cls.__new__(cls)
        obj._documents_root = _documents_root(project_id, database)
        obj._retry_policy = _RetryPolicy()
        obj._service = service
        return obj

    @property
    def documents_root(self) -> str:
        return self._documents_root

    # ----------------------------
    # Public API
    # ----------------------------
    def get_document(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        """Return decoded document fields, or None when the document is absent."""
        req = self._documents().get(name=self._doc_name(collection, doc_id))
        try:
            data = self._execute(req.execute)
        except NotFoundError:
            return None
        return decode_fields(data.get("fields") or {})

    def set_document(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        *,
        merge: bool,
    ) -> None:
        """
        Upsert a document.

        merge=True sends an update mask of the given top-level fields, so
        other fields on the server are kept; merge=False replaces the document.
        """
        kwargs: dict[str, Any] = {
            "name": self._doc_name(collection, doc_id),
            "body": {"fields": encode_fields(data)},
        }
        if merge:
            kwargs["updateMask_fieldPaths"] = [quote_field_path(k) for k in data]
        req = self._documents().patch(**kwargs)
        self._execute(req.execute)

    def delete_document(self, collection: str, doc_id: str) -> None:
        req = self._documents().delete(name=self._doc_name(collection, doc_id))
        try:
            self._execute(req.execute)
        except NotFoundError:
            return

    def query_equal(self, collection: str, field_name: str, value: Any) -> list[RemoteDocument]:
        """Return all documents of `collection` whose `field_name` equals `value`."""
        _require_segment(collection, "collection")
        body = {
            "structuredQuery": {
                "from": [{"collectionId": collection}],
                "where": {
                    "fieldFilter": {
                        "field": {"fieldPath": quote_field_path(field_name)},
                        "op": "EQUAL",
                        "value": encode_value(value),
                    }
                },
            }
        }
        req = self._documents().runQuery(parent=self._documents_root, body=body)
        data = self._execute(req.execute)
        return _query_response_to_documents(data)

    # ----------------------------
    # Internals
    # ----------------------------
    def _documents(self) -> Any:
        return self._service.projects().databases().documents()

    def _doc_name(self, collection: str, doc_id: str) -> str:
        _require_segment(collection, "collection")
        _require_segment(doc_id, "doc_id")
        return f"{self._documents_root}/{collection}/{doc_id}"

    def _execute(self, func: Callable[[], T]) -> T:
        delay = self._retry_policy.initial_delay_sec
        for attempt in range(self._retry_policy.max_retries + 1):
            try:
                return func()
            except Exception as exc:
                mapped = self._map_exception(exc)
                if self._should_retry(mapped) and attempt < self._retry_policy.max_retries:
                    time.sleep(delay)
                    delay *= 2
                    continue
                raise mapped from exc

        raise ApiError("Unexpected retry loop termination")

    def _should_retry(self, exc: Exception) -> bool:
        if isinstance(exc, RateLimitError):
            return True
        if isinstance(exc, NetworkError):
            return True
        if isinstance(exc, ApiError):
            status_code = getattr(exc, "details", {}).get("status_code")
            return isinstance(status_code, int) and 500 <= status_code <= 599
        return False

    def _map_exception(self, exc: Exception) -> Exception:
        try:
            from googleapiclient.errors import HttpError
        except Exception:  # pragma: no cover
            HttpError = None  # type: ignore[assignment]

        if HttpError is not None and isinstance(exc, HttpError):
            info = _http_error_to_info(exc)
            return map_http_error(info, cause=exc)

        if isinstance(exc, (OSError, TimeoutError)):
            return NetworkError("Network error", cause=exc)

        return ApiError("Firestore API error", cause=exc)


def _documents_root(project_id: str, database: str) -> str:
    _require_segment(project_id, "project_id")
    _require_segment(database, "database")
    return f"projects/{project_id}/databases/{database}/documents"


def _require_segment(value: object, field_name: str) -> None:
    if not isinstance(value, str) or not value.strip() or "/" in value:
        raise InvalidArgumentError(
            f"{field_name} must be a non-empty path segment",
            details={field_name: value},
        )


def _query_response_to_documents(data: Any) -> list[RemoteDocument]:
    # runQuery answers with a JSON array of {document?, readTime, ...} rows.
    rows = data if isinstance(data, list) else [data]
    docs: list[RemoteDocument] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        doc = row.get("document")
        if not isinstance(doc, dict):
            continue
        name = doc.get("name")
        if not isinstance(name, str) or not name:
            continue
        docs.append(
            RemoteDocument(
                doc_id=name.rsplit("/", 1)[-1],
                data=decode_fields(doc.get("fields") or {}),
            )
        )
    return docs


def _http_error_to_info(exc: Any) -> HttpErrorInfo:
    status_code = getattr(getattr(exc, "resp", None), "status", None)
    reason = getattr(getattr(exc, "resp", None), "reason", None)

    message = None
    details: dict[str, Any] = {}

    content = getattr(exc, "content", None)
    if isinstance(content, (bytes, bytearray)):
        try:
            payload = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            payload = None
        # Firestore wraps errors as {"error": {...}} or [{"error": {...}}].
        if isinstance(payload, list) and payload:
            payload = payload[0]
        err = payload.get("error", {}) if isinstance(payload, dict) else {}
        if isinstance(err, dict):
            message = err.get("message") or None
            if isinstance(err.get("status"), str):
                details["status"] = err["status"]
                reason = err["status"]

    if not isinstance(status_code, int):
        status_code = 0

    return HttpErrorInfo(
        status_code=status_code,
        reason=reason if isinstance(reason, str) else None,
        message=message,
        details=details or None,
    )
