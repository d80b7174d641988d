import unittest
from unittest.mock import patch
from typing import Any, Optional

from ledgersync.config import SyncConfig
from ledgersync.errors import NetworkError
from ledgersync.events import EventChannel, EventType
from ledgersync.models import DrainResult
from ledgersync.remote import RemoteDocument
from ledgersync.storage import LocalCache, MemoryLocalStore
from ledgersync.sync import Reconciler


class FakeRemote:
    def __init__(self) -> None:
        self.collections: dict[str, list[RemoteDocument]] = {}
        self.docs: dict[tuple[str, str], dict[str, Any]] = {}
        self.fail_with: Optional[Exception] = None
        self.queries: list[tuple[str, str]] = []

    async def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        if self.fail_with is not None:
            raise self.fail_with
        return self.docs.get((collection, doc_id))

    async def upsert(self, collection: str, doc_id: str, data: dict[str, Any], *, merge: bool) -> None:
        raise AssertionError("reconciliation never writes remotely")

    async def delete(self, collection: str, doc_id: str) -> None:
        raise AssertionError("reconciliation never writes remotely")

    async def query_by_owner(self, collection: str, owner_id: str) -> list[RemoteDocument]:
        self.queries.append((collection, owner_id))
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.collections.get(collection, []))


class TestReconciler(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.online = True
        self.drains = 0
        self.config = SyncConfig()
        self.cache = LocalCache(MemoryLocalStore(), self.config)
        self.remote = FakeRemote()
        self.events = EventChannel()
        self.seen: list = []
        self.events.subscribe(self.seen.append)

        async def drain() -> DrainResult:
            self.drains += 1
            return DrainResult()

        self.reconciler = Reconciler(
            self.cache,
            self.remote,
            self.events,
            self.config,
            is_online=lambda: self.online,
            drain=drain,
        )

    async def test_pull_and_merge_writes_merged_collection(self) -> None:
        await self.cache.save_collection(
            "entries",
            "u1",
            [{"id": "e1", "title": "local", "updatedAt": 10}],
        )
        self.remote.collections["entries"] = [
            RemoteDocument(doc_id="u1_e1", data={"id": "e1", "title": "remote", "updatedAt": 20}),
            RemoteDocument(doc_id="u1_e2", data={"title": "no-id", "updatedAt": 5}),
        ]

        result = await self.reconciler.pull_and_merge("entries", "u1")

        self.assertTrue(result.success)
        cached = await self.cache.load_collection("entries", "u1")
        self.assertEqual([(e["id"], e["title"]) for e in cached], [("e1", "remote"), ("e2", "no-id")])
        self.assertEqual(self.seen[-1].type, EventType.COLLECTION_RECONCILED)
        self.assertEqual(self.remote.queries, [("entries", "u1")])

    async def test_pull_failure_leaves_cache_untouched(self) -> None:
        await self.cache.save_collection("entries", "u1", [{"id": "e1"}])
        self.remote.fail_with = NetworkError("down")

        result = await self.reconciler.pull_and_merge("entries", "u1")

        self.assertFalse(result.success)
        self.assertEqual(result.error, "down")
        self.assertEqual(await self.cache.load_collection("entries", "u1"), [{"id": "e1"}])
        self.assertEqual(self.seen, [])

    async def test_pull_settings_copies_known_fields(self) -> None:
        self.remote.docs[("users", "u1")] = {"name": "Ana", "weeklyGoal": 100, "secret": "x"}

        result = await self.reconciler.pull_settings("u1")

        self.assertTrue(result.success)
        self.assertEqual(await self.cache.load_setting("name"), "Ana")
        self.assertEqual(await self.cache.load_setting("weeklyGoal"), 100)
        self.assertIsNone(await self.cache.load_setting("secret"))
        self.assertEqual(self.seen[-1].type, EventType.SETTINGS_RECONCILED)

    async def test_pull_settings_without_document(self) -> None:
        result = await self.reconciler.pull_settings("u1")
        self.assertTrue(result.success)
        self.assertIsNone(result.data)
        self.assertEqual(self.seen, [])

    async def test_initial_sync_pulls_then_drains(self) -> None:
        self.remote.collections["entries"] = [
            RemoteDocument(doc_id="u1_e1", data={"id": "e1", "updatedAt": 1}),
        ]

        result = await self.reconciler.perform_initial_sync("u1")

        self.assertTrue(result.success)
        self.assertEqual([r.resource_type for r in result.reconciled], ["entries", "users"])
        self.assertEqual(self.drains, 1)
        self.assertIsNotNone(result.drain)

        completed = [e for e in self.seen if e.type is EventType.INITIAL_SYNC_COMPLETED]
        self.assertEqual(len(completed), 1)
        self.assertEqual(completed[0].owner_id, "u1")
        self.assertEqual(completed[0].reconciled, result.reconciled)
        self.assertIs(completed[0].drain, result.drain)
        self.assertIs(self.seen[-1], completed[0])

    async def test_initial_sync_with_infinite_remote_timestamp(self) -> None:
        await self.cache.save_collection("entries", "u1", [{"id": "a", "title": "local", "updatedAt": 5}])
        self.remote.collections["entries"] = [
            RemoteDocument(doc_id="u1_a", data={"id": "a", "title": "remote", "updatedAt": float("inf")}),
        ]

        result = await self.reconciler.perform_initial_sync("u1")

        self.assertTrue(result.success)
        self.assertTrue(result.reconciled[0].success)
        cached = await self.cache.load_collection("entries", "u1")
        self.assertEqual([(e["id"], e["title"]) for e in cached], [("a", "local")])

    async def test_local_write_failure_is_reported_in_result(self) -> None:
        self.remote.collections["entries"] = [
            RemoteDocument(doc_id="u1_e1", data={"id": "e1", "updatedAt": 1}),
        ]
        self.remote.docs[("users", "u1")] = {"name": "Ana"}

        with patch.object(self.cache, "save_collection", side_effect=OSError("disk full")), patch.object(
            self.cache, "save_setting", side_effect=OSError("disk full")
        ):
            with self.assertLogs("ledgersync.sync.reconciler", level="ERROR"):
                result = await self.reconciler.perform_initial_sync("u1")

        self.assertTrue(result.success)
        self.assertEqual([r.success for r in result.reconciled], [False, False])
        self.assertEqual(result.reconciled[0].error, "disk full")
        self.assertEqual(self.drains, 1)
        self.assertNotIn(EventType.COLLECTION_RECONCILED, [e.type for e in self.seen])

    async def test_initial_sync_requires_owner(self) -> None:
        result = await self.reconciler.perform_initial_sync(None)
        self.assertFalse(result.success)
        self.assertIn("owner", result.error)
        self.assertEqual(self.drains, 0)

    async def test_initial_sync_offline(self) -> None:
        self.online = False
        result = await self.reconciler.perform_initial_sync("u1")
        self.assertFalse(result.success)
        self.assertEqual(result.error, "Offline")
        self.assertEqual(self.remote.queries, [])


if __name__ == "__main__":
    unittest.main()
