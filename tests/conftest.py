"""Shared test fixtures for SekundeBrain."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from sekundebrain.logic import EntryStore
from sekundebrain.models import JournalEntry, JournalFolder

T0 = datetime(2025, 2, 27, 9, 0, tzinfo=timezone.utc)


class StepClock:
    """Deterministic clock: each call returns a time one minute after the last."""

    def __init__(self, start=T0, step=timedelta(minutes=1)):
        self.now = start
        self.step = step

    def __call__(self):
        ts = self.now
        self.now = self.now + self.step
        return ts


@pytest.fixture
def clock():
    return StepClock()


@pytest_asyncio.fixture
async def store(tmp_path, clock):
    s = EntryStore(tmp_path / "journal.sqlite3", clock=clock)
    await s.init()
    return s


@pytest.fixture
def make_entry():
    """Build JournalEntry snapshots without touching the database."""

    def _make(entry_id, days_ago=0, pinned=False, tags=(), folder=None, title=""):
        return JournalEntry(
            id=entry_id,
            title=title,
            content=f"body {entry_id}",
            date=T0 - timedelta(days=days_ago),
            tags=list(tags),
            is_pinned=pinned,
            folder=folder,
        )

    return _make


@pytest.fixture
def work_folder():
    return JournalFolder(id=1, name="Work", created_at=T0)


@pytest.fixture
def home_folder():
    return JournalFolder(id=2, name="Home", created_at=T0)


@pytest.fixture
def t0():
    """First timestamp handed out by the ``clock`` fixture."""
    return T0
