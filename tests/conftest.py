"""Shared fixtures: a deterministic clock and a store rooted in tmp_path."""
import threading
from datetime import datetime, timedelta, timezone

import pytest

from zenqa.config import Settings
from zenqa.services.pipeline import TestAssetPipeline
from zenqa.store.csv_store import RecordStore

START = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


class StepClock:
    """Every now() call moves one millisecond forward."""

    def __init__(self, start: datetime = START):
        self.current = start
        self.last_id = int(start.timestamp() * 1000)
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            self.current += timedelta(milliseconds=1)
            return self.current

    def next_id(self) -> int:
        with self._lock:
            self.last_id += 1
            return self.last_id


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def store(data_dir, clock):
    return RecordStore(data_dir, clock=clock)


@pytest.fixture
def settings(data_dir):
    return Settings(data_dir=str(data_dir))


@pytest.fixture
def pipeline(store, settings):
    return TestAssetPipeline(store, settings)
