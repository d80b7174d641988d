import unittest

from ledgersync.config import SyncConfig
from ledgersync.storage import LocalCache, MemoryLocalStore


class TestLocalCache(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.store = MemoryLocalStore()
        self.cache = LocalCache(self.store, SyncConfig())

    async def test_collection_round_trip(self) -> None:
        await self.cache.save_collection("entries", "u1", [{"id": "e1"}])
        self.assertEqual(await self.cache.load_collection("entries", "u1"), [{"id": "e1"}])
        self.assertIn("entries_u1", self.store.keys())
        self.assertEqual(await self.cache.load_collection("entries", "u2"), [])

    async def test_unreadable_collection_reads_as_empty(self) -> None:
        await self.store.set("entries_u1", "{broken")
        with self.assertLogs("ledgersync.storage.local_cache", level="WARNING"):
            self.assertEqual(await self.cache.load_collection("entries", "u1"), [])

        await self.store.set("entries_u1", '{"id": "e1"}')
        with self.assertLogs("ledgersync.storage.local_cache", level="WARNING"):
            self.assertEqual(await self.cache.load_collection("entries", "u1"), [])

        await self.store.set("entries_u1", '[{"id": "e1"}, 3, "x"]')
        self.assertEqual(await self.cache.load_collection("entries", "u1"), [{"id": "e1"}])

    async def test_manual_offline_flag(self) -> None:
        self.assertFalse(await self.cache.read_manual_offline())
        await self.cache.write_manual_offline(True)
        self.assertEqual(await self.store.get("manual_offline_mode"), "true")
        self.assertTrue(await self.cache.read_manual_offline())
        await self.cache.write_manual_offline(False)
        self.assertFalse(await self.cache.read_manual_offline())

    async def test_settings(self) -> None:
        self.assertEqual(await self.cache.load_setting("weeklyGoal", default=0), 0)
        await self.cache.save_setting("weeklyGoal", 250)
        self.assertEqual(await self.cache.load_setting("weeklyGoal"), 250)
        self.assertEqual(await self.store.get("setting_weeklyGoal"), "250")

    async def test_queue_payload(self) -> None:
        self.assertIsNone(await self.cache.read_queue_raw())
        await self.cache.write_queue([{"id": "o1"}])
        self.assertEqual(await self.cache.read_queue_raw(), '[{"id": "o1"}]')


if __name__ == "__main__":
    unittest.main()
