import time
import unittest
from datetime import datetime, timezone

from ledgersync.util.time import (
    normalize_dt,
    now_ms,
    parse_rfc3339,
    timestamp_of,
    to_rfc3339,
)


class TestUtilTime(unittest.TestCase):
    def test_now_ms_is_epoch_milliseconds(self) -> None:
        before = int(time.time() * 1000)
        value = now_ms()
        after = int(time.time() * 1000)
        self.assertIsInstance(value, int)
        self.assertTrue(before - 1 <= value <= after + 1)

    def test_normalize_dt_rejects_naive(self) -> None:
        naive = datetime(2025, 1, 1, 12, 0, 0)
        with self.assertRaises(ValueError):
            normalize_dt(naive)

    def test_parse_rfc3339_offset_converts_to_utc(self) -> None:
        dt = parse_rfc3339("2025-01-01T12:34:56+09:00")
        self.assertEqual(dt.tzinfo, timezone.utc)
        self.assertEqual(dt, datetime(2025, 1, 1, 3, 34, 56, tzinfo=timezone.utc))

    def test_to_rfc3339_uses_z_suffix(self) -> None:
        dt = datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
        self.assertEqual(to_rfc3339(dt), "2025-01-01T00:00:00.000000Z")

    def test_timestamp_of_numbers_and_strings(self) -> None:
        self.assertEqual(timestamp_of(100), 100)
        self.assertEqual(timestamp_of(100.9), 100)
        self.assertEqual(timestamp_of("150"), 150)
        self.assertEqual(timestamp_of("1970-01-01T00:00:01Z"), 1000)

    def test_timestamp_of_missing_or_garbage_is_zero(self) -> None:
        self.assertEqual(timestamp_of(None), 0)
        self.assertEqual(timestamp_of(True), 0)
        self.assertEqual(timestamp_of("yesterday"), 0)
        self.assertEqual(timestamp_of({}), 0)

    def test_timestamp_of_non_finite_floats_is_zero(self) -> None:
        self.assertEqual(timestamp_of(float("inf")), 0)
        self.assertEqual(timestamp_of(float("-inf")), 0)
        self.assertEqual(timestamp_of(float("nan")), 0)
        self.assertEqual(timestamp_of("Infinity"), 0)


if __name__ == "__main__":
    unittest.main()
