"""Async RemoteStore backed by the Firestore REST controller."""

from __future__ import annotations

import asyncio
from typing import Any, Optional, Sequence

from ledgersync.auth import AuthInfo

from .base import RemoteDocument
from .firestore_controller import FirestoreController


class FirestoreRemoteStore:
    """
    RemoteStore over Firestore.

    The Google client blocks, so every call is pushed to a worker thread and
    awaited; callers see ordinary suspension points.
    """

    def __init__(
        self,
        auth_info: AuthInfo,
        project_id: str,
        *,
        database: str = "(default)",
        scopes: Optional[Sequence[str]] = None,
        owner_field: str = "userId",
    ) -> None:
        self._controller = FirestoreController(
            auth_info,
            project_id,
            database=database,
            scopes=scopes,
        )
        self._owner_field = owner_field

    @classmethod
    def from_controller(
        cls,
        controller: FirestoreController,
        *,
        owner_field: str = "userId",
    ) -> "FirestoreRemoteStore":
        """Create store with an injected controller (useful for tests)."""
        obj = cls.__new__(cls)
        obj._controller = controller
        obj._owner_field = owner_field
        return obj

    async def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        return await asyncio.to_thread(self._controller.get_document, collection, doc_id)

    async def upsert(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        *,
        merge: bool,
    ) -> None:
        await asyncio.to_thread(
            self._controller.set_document,
            collection,
            doc_id,
            dict(data),
            merge=merge,
        )

    async def delete(self, collection: str, doc_id: str) -> None:
        await asyncio.to_thread(self._controller.delete_document, collection, doc_id)

    async def query_by_owner(self, collection: str, owner_id: str) -> list[RemoteDocument]:
        return await asyncio.to_thread(
            self._controller.query_equal,
            collection,
            self._owner_field,
            owner_id,
        )
