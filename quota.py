"""
Daily usage quota kept on the client side.

The browser keeps the record in localStorage (see static/app.js); the Python
client keeps the same JSON record in a file. Either way there is a single key
holding {"date": "YYYY-MM-DD", "count": n}. The count resets when the stored
date is not today, and that check only happens on load.
"""

import json
import logging
import os
from dataclasses import dataclass, asdict
from datetime import date
from typing import Callable, Optional

STORAGE_KEY = "episodeUsage"
USAGE_FILE = "episode_usage.json"


def today_str() -> str:
    return date.today().isoformat()


class QuotaExceeded(Exception):
    def __init__(self, limit: int):
        super().__init__(f"今日の生成回数上限（{limit}回）に達しました。明日また試してください。")
        self.limit = limit


@dataclass
class UsageRecord:
    date: str
    count: int = 0

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "UsageRecord":
        data = json.loads(raw)
        count = data["count"]
        # same acceptance rule as Number.isInteger in static/app.js
        if not isinstance(count, int) or isinstance(count, bool):
            raise ValueError(f"usage count is not an integer: {count!r}")
        if count < 0:
            raise ValueError(f"negative usage count: {count}")
        if not isinstance(data["date"], str):
            raise ValueError(f"usage date is not a string: {data['date']!r}")
        return cls(date=data["date"], count=count)


class JsonFileStore:
    """Key-value store backed by one JSON file, the stand-in for localStorage."""

    def __init__(self, path: str = USAGE_FILE):
        self.path = path

    def _read_all(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as e:
            logging.warning("Ignoring unreadable usage file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logging.warning("Ignoring usage file %s: expected an object, got %s", self.path, type(data).__name__)
            return {}
        return data

    def get(self, key, default=None):
        return self._read_all().get(key, default)

    def __setitem__(self, key, value):
        data = self._read_all()
        data[key] = value
        tmp_path = self.path + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
        os.replace(tmp_path, self.path)


class UsageQuota:
    def __init__(self, store, limit: int, today: Optional[Callable[[], str]] = None):
        self.store = store
        self.limit = limit
        self.today = today or today_str
        self.count = 0

    def _save(self):
        self.store[STORAGE_KEY] = UsageRecord(self.today(), self.count).to_json()

    def load(self) -> int:
        """Adopt today's stored count, or reset the record if it is stale or missing."""
        raw = self.store.get(STORAGE_KEY)
        record = None
        if raw is not None:
            try:
                record = UsageRecord.from_json(raw)
            except (ValueError, KeyError, TypeError) as e:
                logging.warning("Discarding unreadable usage record %r: %s", raw, e)
        if record is not None and record.date == self.today():
            self.count = record.count
        else:
            self.count = 0
            self._save()
        return self.count

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)

    @property
    def exhausted(self) -> bool:
        return self.count >= self.limit

    def check(self):
        if self.exhausted:
            raise QuotaExceeded(self.limit)

    def record_success(self) -> int:
        self.count += 1
        self._save()
        return self.count
