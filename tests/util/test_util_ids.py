import unittest
import uuid

from ledgersync.util.ids import (
    new_entity_id,
    new_op_id,
    new_uuid,
    remote_doc_id,
    strip_owner_prefix,
)


class TestUtilIds(unittest.TestCase):
    def test_new_uuid_is_valid_uuid4(self) -> None:
        value = new_uuid()
        parsed = uuid.UUID(value)
        self.assertEqual(str(parsed), value)
        self.assertEqual(parsed.version, 4)

    def test_new_op_id_and_entity_id_are_uuid4(self) -> None:
        self.assertEqual(uuid.UUID(new_op_id()).version, 4)
        self.assertEqual(uuid.UUID(new_entity_id()).version, 4)

    def test_ids_are_unique(self) -> None:
        values = {new_op_id(), new_op_id(), new_op_id()}
        self.assertEqual(len(values), 3)

    def test_remote_doc_id_round_trips_through_prefix_strip(self) -> None:
        self.assertEqual(remote_doc_id("u1", "e9"), "u1_e9")
        self.assertEqual(strip_owner_prefix("u1", "u1_e9"), "e9")

    def test_strip_owner_prefix_leaves_foreign_ids(self) -> None:
        self.assertEqual(strip_owner_prefix("u1", "u2_e9"), "u2_e9")
        self.assertEqual(strip_owner_prefix("u1", "u1_"), "u1_")


if __name__ == "__main__":
    unittest.main()
