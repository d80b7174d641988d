"""JSON view over a LocalStore: collections, queue payload, flags, settings."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from ledgersync.config import SyncConfig

from .local_store import LocalStore

logger = logging.getLogger(__name__)


class LocalCache:
    """Typed accessors for everything the engine keeps on the device."""

    def __init__(self, store: LocalStore, config: SyncConfig) -> None:
        self._store = store
        self._config = config

    @property
    def store(self) -> LocalStore:
        return self._store

    # ----------------------------
    # Raw queue payload
    # ----------------------------
    async def read_queue_raw(self) -> Optional[str]:
        return await self._store.get(self._config.queue_key)

    async def write_queue(self, items: list[dict[str, Any]]) -> None:
        await self._store.set(self._config.queue_key, json.dumps(items))

    # ----------------------------
    # Manual offline flag
    # ----------------------------
    async def read_manual_offline(self) -> bool:
        return await self._store.get(self._config.manual_offline_key) == "true"

    async def write_manual_offline(self, enabled: bool) -> None:
        await self._store.set(
            self._config.manual_offline_key,
            "true" if enabled else "false",
        )

    # ----------------------------
    # Entity collections
    # ----------------------------
    async def load_collection(self, resource_type: str, owner_id: str) -> list[dict[str, Any]]:
        """Return the cached collection; unreadable data reads as empty."""
        key = self._config.collection_key(resource_type, owner_id)
        raw = await self._store.get(key)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Cached collection %s is not valid JSON; treating as empty", key)
            return []
        if not isinstance(data, list):
            logger.warning("Cached collection %s is not a list; treating as empty", key)
            return []
        return [item for item in data if isinstance(item, dict)]

    async def save_collection(
        self,
        resource_type: str,
        owner_id: str,
        entities: list[dict[str, Any]],
    ) -> None:
        key = self._config.collection_key(resource_type, owner_id)
        await self._store.set(key, json.dumps(entities))

    # ----------------------------
    # Settings
    # ----------------------------
    async def load_setting(self, field_name: str, default: Any = None) -> Any:
        raw = await self._store.get(self._config.setting_key(field_name))
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            return default

    async def save_setting(self, field_name: str, value: Any) -> None:
        await self._store.set(self._config.setting_key(field_name), json.dumps(value))
