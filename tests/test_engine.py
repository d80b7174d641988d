import unittest
from typing import Any, Callable, Optional

from ledgersync.engine import SyncEngine
from ledgersync.errors import InvalidStateError, NetworkError, OfflineError
from ledgersync.events import EventType
from ledgersync.remote import RemoteDocument
from ledgersync.storage import MemoryLocalStore


class FakeRemote:
    def __init__(self) -> None:
        self.docs: dict[tuple[str, str], dict[str, Any]] = {}
        self.calls: list[tuple] = []
        self.fail_with: Optional[Exception] = None

    async def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        self.calls.append(("get", collection, doc_id))
        if self.fail_with is not None:
            raise self.fail_with
        doc = self.docs.get((collection, doc_id))
        return dict(doc) if doc is not None else None

    async def upsert(self, collection: str, doc_id: str, data: dict[str, Any], *, merge: bool) -> None:
        self.calls.append(("upsert", collection, doc_id))
        base = dict(self.docs.get((collection, doc_id), {})) if merge else {}
        base.update(data)
        self.docs[(collection, doc_id)] = base

    async def delete(self, collection: str, doc_id: str) -> None:
        self.calls.append(("delete", collection, doc_id))
        if self.fail_with is not None:
            raise self.fail_with
        self.docs.pop((collection, doc_id), None)

    async def query_by_owner(self, collection: str, owner_id: str) -> list[RemoteDocument]:
        return [
            RemoteDocument(doc_id=doc_id, data=dict(data))
            for (coll, doc_id), data in self.docs.items()
            if coll == collection and data.get("userId") == owner_id
        ]


class FakeSignal:
    def __init__(self, connected: bool) -> None:
        self.connected = connected
        self.listeners: list[Callable[[bool], None]] = []

    async def fetch(self) -> bool:
        return self.connected

    def add_listener(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        self.listeners.append(callback)
        return lambda: self.listeners.remove(callback)

    def emit(self, connected: bool) -> None:
        self.connected = connected
        for listener in list(self.listeners):
            listener(connected)


class Clock:
    def __init__(self) -> None:
        self.now = 1_000

    def __call__(self) -> int:
        self.now += 10
        return self.now


def entry(**overrides) -> dict:
    data = {
        "title": "Groceries",
        "amount": 42.5,
        "category": "spending",
        "occurredAt": "2025-01-01",
    }
    data.update(overrides)
    return data


class TestSyncEngine(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.store = MemoryLocalStore()
        self.remote = FakeRemote()
        self.signal = FakeSignal(connected=True)
        self.uid: Optional[str] = "u1"
        self.engine = self.make_engine()
        self.seen: list = []
        self.engine.subscribe(self.seen.append)
        await self.engine.start()

    async def asyncTearDown(self) -> None:
        await self.engine.close()

    def make_engine(self) -> SyncEngine:
        return SyncEngine(
            self.store,
            self.remote,
            self.signal,
            identity=lambda: self.uid,
            clock=Clock(),
        )

    def count(self, event_type: EventType) -> int:
        return sum(1 for e in self.seen if e.type is event_type)

    async def test_requires_start(self) -> None:
        engine = self.make_engine()
        with self.assertRaises(InvalidStateError):
            await engine.save_entity(entry(), "u1")

    async def test_save_writes_locally_and_syncs(self) -> None:
        result = await self.engine.save_entity(entry(), "u1")

        self.assertTrue(result.success)
        saved = result.data[0]
        self.assertTrue(saved["id"])
        self.assertIn("updatedAt", saved)
        self.assertNotIn("userId", saved)

        await self.engine.wait_idle()

        doc = self.remote.docs[("entries", f"u1_{saved['id']}")]
        self.assertEqual(doc["title"], "Groceries")
        self.assertEqual(doc["userId"], "u1")
        self.assertEqual(self.engine.get_status().pending_operations, 0)
        self.assertEqual(self.count(EventType.OPERATION_APPLIED), 1)

    async def test_validation_failure_writes_nothing(self) -> None:
        result = await self.engine.save_entity(entry(amount=-5, title=""), "u1")

        self.assertFalse(result.success)
        self.assertEqual(
            result.validation_errors,
            [
                "Title is required and must be a non-empty string",
                "Valid amount greater than 0 is required",
            ],
        )
        self.assertEqual(await self.engine.cache.load_collection("entries", "u1"), [])
        self.assertEqual(len(self.engine.queue), 0)

    async def test_saving_existing_entry_updates_it(self) -> None:
        self.signal.emit(False)
        first = await self.engine.save_entity(entry(), "u1")
        entry_id = first.data[0]["id"]

        second = await self.engine.save_entity(entry(id=entry_id, title="Rent"), "u1")

        self.assertEqual(len(second.data), 1)
        self.assertEqual(second.data[0]["title"], "Rent")
        ops = self.engine.queue.list()
        self.assertEqual(len(ops), 1)
        self.assertEqual(ops[0].kind.value, "CREATE")
        self.assertEqual(ops[0].payload["title"], "Rent")

    async def test_offline_writes_drain_on_reconnect(self) -> None:
        self.signal.emit(False)
        await self.engine.save_entity(entry(title="a"), "u1")
        await self.engine.save_entity(entry(title="b"), "u1")

        status = self.engine.get_status()
        self.assertFalse(status.is_online)
        self.assertEqual(status.pending_operations, 2)
        self.assertEqual(len(status.queue_items), 2)
        self.assertEqual(self.remote.calls, [])

        self.signal.emit(True)
        await self.engine.wait_idle()

        self.assertEqual(self.engine.get_status().pending_operations, 0)
        self.assertEqual(len(self.remote.docs), 2)
        self.assertEqual(self.count(EventType.DRAIN_STARTED), 1)

    async def test_manual_offline_holds_writes_until_disabled(self) -> None:
        await self.engine.set_manual_offline_mode(True)
        await self.engine.save_entity(entry(title="a"), "u1")
        await self.engine.save_entity(entry(title="b"), "u1")

        status = self.engine.get_status()
        self.assertTrue(status.manual_offline)
        self.assertFalse(status.is_online)
        self.assertEqual(status.pending_operations, 2)
        self.assertEqual(self.remote.calls, [])

        with self.assertRaises(OfflineError):
            await self.engine.manual_sync()

        await self.engine.set_manual_offline_mode(False)
        await self.engine.wait_idle()

        self.assertEqual(self.count(EventType.DRAIN_STARTED), 1)
        self.assertEqual(self.engine.get_status().pending_operations, 0)

    async def test_missing_identity_keeps_write_local(self) -> None:
        self.uid = None

        result = await self.engine.save_entity(entry(), "u1")

        self.assertTrue(result.success)
        self.assertEqual(len(await self.engine.cache.load_collection("entries", "u1")), 1)
        self.assertEqual(len(self.engine.queue), 0)

    async def test_delete_removes_locally_and_remotely(self) -> None:
        saved = await self.engine.save_entity(entry(), "u1")
        entry_id = saved.data[0]["id"]
        await self.engine.wait_idle()

        result = await self.engine.delete_entity(entry_id, "u1")
        await self.engine.wait_idle()

        self.assertTrue(result.success)
        self.assertEqual(result.data, [])
        self.assertNotIn(("entries", f"u1_{entry_id}"), self.remote.docs)

    async def test_failing_remote_keeps_operation_queued(self) -> None:
        self.remote.fail_with = NetworkError("down")
        await self.engine.save_entity(entry(), "u1")
        await self.engine.wait_idle()

        ops = self.engine.queue.list()
        self.assertEqual(len(ops), 1)
        self.assertEqual(ops[0].retry_count, 1)

        self.remote.fail_with = None
        result = await self.engine.manual_sync()
        self.assertEqual(result.applied_count, 1)

    async def test_save_user_setting(self) -> None:
        result = await self.engine.save_user_setting("weeklyGoal", 300)
        await self.engine.wait_idle()

        self.assertTrue(result.success)
        self.assertEqual(await self.engine.cache.load_setting("weeklyGoal"), 300)
        self.assertEqual(self.remote.docs[("users", "u1")]["weeklyGoal"], 300)

    async def test_initial_sync_merges_remote_entries(self) -> None:
        self.remote.docs[("entries", "u1_r1")] = {"title": "remote", "userId": "u1", "updatedAt": 5}
        self.remote.docs[("users", "u1")] = {"name": "Ana"}

        result = await self.engine.perform_initial_sync()

        self.assertTrue(result.success)
        cached = await self.engine.cache.load_collection("entries", "u1")
        self.assertEqual([e["id"] for e in cached], ["r1"])
        self.assertEqual(await self.engine.cache.load_setting("name"), "Ana")

    async def test_clear_queue(self) -> None:
        self.signal.emit(False)
        await self.engine.save_entity(entry(), "u1")

        with self.assertLogs("ledgersync.engine", level="WARNING"):
            dropped = await self.engine.clear_queue()

        self.assertEqual(dropped, 1)
        self.assertEqual(self.count(EventType.QUEUE_RESET), 1)
        self.assertEqual(len(self.engine.queue), 0)

    async def test_queue_survives_restart(self) -> None:
        self.signal.emit(False)
        await self.engine.save_entity(entry(), "u1")
        await self.engine.close()

        restarted = self.make_engine()
        await restarted.start()
        try:
            self.assertEqual(restarted.get_status().pending_operations, 1)
        finally:
            await restarted.close()


if __name__ == "__main__":
    unittest.main()
