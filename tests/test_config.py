import unittest

from ledgersync.config import SyncConfig


class TestSyncConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        config = SyncConfig()
        self.assertEqual(config.max_retries, 3)
        self.assertEqual(config.queue_key, "sync_queue")
        self.assertEqual(config.manual_offline_key, "manual_offline_mode")
        self.assertEqual(config.resource_types, ("entries",))

    def test_keys(self) -> None:
        config = SyncConfig()
        self.assertEqual(config.collection_key("entries", "u1"), "entries_u1")
        self.assertEqual(config.setting_key("weeklyGoal"), "setting_weeklyGoal")

    def test_invalid_values(self) -> None:
        with self.assertRaises(ValueError):
            SyncConfig(max_retries=0)
        with self.assertRaises(ValueError):
            SyncConfig(queue_key=" ")
        with self.assertRaises(ValueError):
            SyncConfig(queue_key="same", manual_offline_key="same")


if __name__ == "__main__":
    unittest.main()
