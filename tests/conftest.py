"""Shared pytest fixtures for dayseal tests."""

import tempfile
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from dayseal.clock import MonotonicClock
from dayseal.config import DaySealConfig
from dayseal.controller import DailyRecordController
from dayseal.models import DailyRecord
from dayseal.storage import JsonFileStore, MemoryStore

TODAY = date(2026, 3, 14)
START = datetime(2026, 3, 14, 9, 0, 0, tzinfo=timezone.utc)


class ManualTime:
    """Wall-clock stand-in that only moves when told to."""

    def __init__(self, start: datetime = START):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def temp_project():
    """Create a temporary project directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config(temp_project):
    """Create a test configuration."""
    return DaySealConfig(project_root=temp_project)


@pytest.fixture
def manual_time():
    return ManualTime()


@pytest.fixture
def clock(manual_time):
    return MonotonicClock(manual_time)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def file_store(config):
    return JsonFileStore(config.get_data_path())


@pytest.fixture
def record(clock):
    """A fresh, unsealed record for today."""
    return DailyRecord.empty("2026-03-14", clock.now())


@pytest.fixture
def controller(store, config, clock):
    """Controller over an in-memory store, pinned to TODAY."""
    ctl = DailyRecordController(store, config=config, clock=clock, today=lambda: TODAY)
    ctl.load()
    return ctl


@pytest.fixture
def controller_factory(config, clock):
    """Factory for controllers sharing a clock over a given store."""

    def _create(store, today=TODAY):
        return DailyRecordController(store, config=config, clock=clock, today=lambda: today)

    return _create
