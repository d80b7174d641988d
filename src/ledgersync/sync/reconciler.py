"""Bulk pull-and-merge between remote collections and the local cache."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional

from ledgersync.config import SyncConfig
from ledgersync.errors import IdentityMissingError, OfflineError
from ledgersync.events import (
    CollectionReconciled,
    EventChannel,
    InitialSyncCompleted,
    SettingsReconciled,
)
from ledgersync.models import DrainResult, InitialSyncResult, ReconcileResult
from ledgersync.models.ledger import ENTRY_ID
from ledgersync.remote import RemoteDocument, RemoteStore
from ledgersync.storage import LocalCache
from ledgersync.util.ids import strip_owner_prefix

from .conflict import merge_collections

logger = logging.getLogger(__name__)


class Reconciler:
    """Startup/reconnect reconciliation. Remote and storage failures come back in results."""

    def __init__(
        self,
        cache: LocalCache,
        remote: RemoteStore,
        events: EventChannel,
        config: SyncConfig,
        *,
        is_online: Callable[[], bool],
        drain: Callable[[], Awaitable[Optional[DrainResult]]],
    ) -> None:
        self._cache = cache
        self._remote = remote
        self._events = events
        self._config = config
        self._is_online = is_online
        self._drain = drain

    async def pull_and_merge(self, resource_type: str, owner_id: str) -> ReconcileResult:
        """Fetch everything `owner_id` owns in `resource_type` and merge it locally."""
        try:
            docs = await self._remote.query_by_owner(resource_type, owner_id)
        except Exception as exc:
            logger.warning("Fetching %s for %s failed: %s", resource_type, owner_id, exc)
            return ReconcileResult(success=False, resource_type=resource_type, error=str(exc))

        remote_entities = [_entity_from_document(owner_id, doc) for doc in docs]
        try:
            local_entities = await self._cache.load_collection(resource_type, owner_id)
            merged = merge_collections(local_entities, remote_entities)
            await self._cache.save_collection(resource_type, owner_id, merged)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Writing merged %s for %s failed: %s", resource_type, owner_id, exc)
            return ReconcileResult(success=False, resource_type=resource_type, error=str(exc))

        logger.info(
            "Reconciled %s for %s: %d local, %d remote, %d merged",
            resource_type,
            owner_id,
            len(local_entities),
            len(remote_entities),
            len(merged),
        )
        self._events.publish(
            CollectionReconciled(resource_type=resource_type, owner_id=owner_id, entities=merged)
        )
        return ReconcileResult(success=True, resource_type=resource_type, entities=merged)

    async def pull_settings(self, owner_id: str) -> ReconcileResult:
        """Copy the owner's remote settings document into local settings keys."""
        collection = self._config.settings_collection
        try:
            data = await self._remote.get(collection, owner_id)
        except Exception as exc:
            logger.warning("Fetching settings for %s failed: %s", owner_id, exc)
            return ReconcileResult(success=False, resource_type=collection, error=str(exc))

        if data is None:
            return ReconcileResult(success=True, resource_type=collection)

        try:
            for field_name in self._config.settings_fields:
                if field_name in data:
                    await self._cache.save_setting(field_name, data[field_name])
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Writing settings for %s failed: %s", owner_id, exc)
            return ReconcileResult(success=False, resource_type=collection, error=str(exc))

        self._events.publish(SettingsReconciled(owner_id=owner_id, data=dict(data)))
        return ReconcileResult(success=True, resource_type=collection, data=dict(data))

    async def perform_initial_sync(self, owner_id: Optional[str]) -> InitialSyncResult:
        """Pull and merge every known collection plus settings, then drain once."""
        if not owner_id:
            missing = IdentityMissingError("No authenticated owner; initial sync skipped")
            logger.info("%s", missing)
            return InitialSyncResult(success=False, error=str(missing))
        if not self._is_online():
            offline = OfflineError("Offline")
            logger.info("Offline, skipping initial sync")
            return InitialSyncResult(success=False, error=str(offline))

        logger.info("Starting initial sync for %s", owner_id)
        reconciled = [
            await self.pull_and_merge(resource_type, owner_id)
            for resource_type in self._config.resource_types
        ]
        reconciled.append(await self.pull_settings(owner_id))

        drain = await self._drain()
        logger.info("Initial sync for %s complete", owner_id)
        self._events.publish(
            InitialSyncCompleted(owner_id=owner_id, reconciled=reconciled, drain=drain)
        )
        return InitialSyncResult(success=True, reconciled=reconciled, drain=drain)


def _entity_from_document(owner_id: str, doc: RemoteDocument) -> dict[str, Any]:
    entity = dict(doc.data)
    if not entity.get(ENTRY_ID):
        entity[ENTRY_ID] = strip_owner_prefix(owner_id, doc.doc_id)
    return entity
