from __future__ import annotations

import json
import os
import tempfile
import unittest

from quota import JsonFileStore, QuotaExceeded, STORAGE_KEY, UsageQuota, UsageRecord

TODAY = "2026-10-19"
YESTERDAY = "2026-10-18"


class _CountingStore(dict):
    def __init__(self, *a, **k) -> None:
        super().__init__(*a, **k)
        self.writes = 0

    def __setitem__(self, key, value) -> None:
        self.writes += 1
        super().__setitem__(key, value)


def _stored(store) -> dict:
    return json.loads(store[STORAGE_KEY])


def _quota(store, limit: int = 10) -> UsageQuota:
    return UsageQuota(store, limit, today=lambda: TODAY)


class TestUsageQuotaLoad(unittest.TestCase):
    def test_fresh_store_is_initialised(self) -> None:
        store: dict = {}
        q = _quota(store)

        self.assertEqual(q.load(), 0)
        self.assertEqual(_stored(store), {"date": TODAY, "count": 0})

    def test_record_from_another_day_resets(self) -> None:
        store = {STORAGE_KEY: UsageRecord(YESTERDAY, 10).to_json()}
        q = _quota(store)

        self.assertEqual(q.load(), 0)
        self.assertFalse(q.exhausted)
        self.assertEqual(_stored(store), {"date": TODAY, "count": 0})

    def test_todays_record_is_adopted_without_writing(self) -> None:
        store = _CountingStore({STORAGE_KEY: UsageRecord(TODAY, 4).to_json()})
        before = store[STORAGE_KEY]

        for _ in range(3):
            self.assertEqual(_quota(store).load(), 4)

        self.assertEqual(store.writes, 0)
        self.assertEqual(store[STORAGE_KEY], before)

    def test_non_integer_count_resets(self) -> None:
        for count in ("3", 3.7, True, None):
            with self.subTest(count=count):
                store = {STORAGE_KEY: json.dumps({"date": TODAY, "count": count})}
                with self.assertLogs(level="WARNING"):
                    self.assertEqual(_quota(store).load(), 0)
                self.assertEqual(_stored(store), {"date": TODAY, "count": 0})

    def test_unreadable_record_resets(self) -> None:
        for raw in ("{not json", json.dumps({"date": TODAY}), json.dumps({"date": TODAY, "count": -2})):
            with self.subTest(raw=raw):
                store = {STORAGE_KEY: raw}
                with self.assertLogs(level="WARNING"):
                    self.assertEqual(_quota(store).load(), 0)
                self.assertEqual(_stored(store), {"date": TODAY, "count": 0})


class TestUsageQuotaTransitions(unittest.TestCase):
    def test_below_limit_is_permitted_and_advances(self) -> None:
        for c in (0, 5, 9):
            with self.subTest(count=c):
                store = {STORAGE_KEY: UsageRecord(TODAY, c).to_json()}
                q = _quota(store)
                q.load()
                q.check()
                self.assertEqual(q.record_success(), c + 1)
                self.assertEqual(_stored(store), {"date": TODAY, "count": c + 1})

    def test_at_limit_is_refused_without_writing(self) -> None:
        for c in (10, 12):
            with self.subTest(count=c):
                store = _CountingStore({STORAGE_KEY: UsageRecord(TODAY, c).to_json()})
                q = _quota(store)
                q.load()
                with self.assertRaises(QuotaExceeded) as ctx:
                    q.check()
                self.assertIn("10回", str(ctx.exception))
                self.assertEqual(q.remaining, 0)
                self.assertEqual(store.writes, 0)

    def test_fresh_store_first_success(self) -> None:
        store: dict = {}
        q = _quota(store)
        q.load()
        q.record_success()

        self.assertEqual(_stored(store), {"date": TODAY, "count": 1})
        self.assertEqual(q.remaining, 9)

    def test_stale_record_is_reset_before_check(self) -> None:
        store = {STORAGE_KEY: UsageRecord(YESTERDAY, 99).to_json()}
        q = _quota(store, limit=3)
        q.load()
        q.check()

        self.assertEqual(q.remaining, 3)


class TestJsonFileStore(unittest.TestCase):
    def test_quota_survives_reopening_the_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "usage.json")
            q = _quota(JsonFileStore(path))
            q.load()
            q.record_success()
            q.record_success()

            reopened = _quota(JsonFileStore(path))
            self.assertEqual(reopened.load(), 2)

    def test_damaged_file_resets_and_is_rewritten(self) -> None:
        for content in ("{truncated", "[]", "\"episodeUsage\""):
            with self.subTest(content=content):
                with tempfile.TemporaryDirectory() as tmp:
                    path = os.path.join(tmp, "usage.json")
                    with open(path, "w", encoding="utf-8") as f:
                        f.write(content)

                    with self.assertLogs(level="WARNING"):
                        self.assertEqual(_quota(JsonFileStore(path)).load(), 0)

                    with open(path, encoding="utf-8") as f:
                        stored = json.loads(json.load(f)[STORAGE_KEY])
                    self.assertEqual(stored, {"date": TODAY, "count": 0})
                    self.assertFalse(os.path.exists(path + ".tmp"))

    def test_missing_file_reads_as_empty(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = JsonFileStore(os.path.join(tmp, "nope.json"))
            self.assertIsNone(store.get(STORAGE_KEY))


if __name__ == "__main__":
    unittest.main()
