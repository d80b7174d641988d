"""Remote document store contract consumed by the drain and the reconciler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol


@dataclass(slots=True)
class RemoteDocument:
    """One document returned by an owner query."""

    doc_id: str
    data: dict[str, Any] = field(default_factory=dict)


class RemoteStore(Protocol):
    """
    Whole-document store with upsert semantics.

    `upsert(..., merge=True)` writes only the given fields and creates the
    document if absent; `merge=False` replaces the whole document.
    """

    async def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]: ...

    async def upsert(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        *,
        merge: bool,
    ) -> None: ...

    async def delete(self, collection: str, doc_id: str) -> None: ...

    async def query_by_owner(
        self,
        collection: str,
        owner_id: str,
    ) -> list[RemoteDocument]: ...
