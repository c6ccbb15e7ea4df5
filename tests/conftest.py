"""
Pytest configuration and fixtures.
"""

import datetime
import itertools
import sys
from pathlib import Path
import pytest
import pytest_asyncio

# Add project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from shovel_tracker.domain.models import Project, TeamMember, TimeEntry, TrackerState
from shovel_tracker.infra.db import DatabaseEngine
from shovel_tracker.infra.store import MemoryStore, SqlStore, StoreError


class FlakyStore(MemoryStore):
    """Memory store whose reads and writes can be switched to fail."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.fail_reads = False
        self.fail_writes = False

    async def get_value(self, key):
        if self.fail_reads:
            raise StoreError(f"read of {key} refused")
        return await super().get_value(key)

    async def set_value(self, key, value):
        if self.fail_writes:
            raise StoreError(f"write of {key} refused")
        await super().set_value(key, value)


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def flaky_store():
    return FlakyStore()


@pytest_asyncio.fixture
async def sql_store(tmp_path):
    """SQLite-backed store in a throwaway database file"""
    engine = DatabaseEngine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    store = SqlStore(engine)
    yield store
    await store.close()


@pytest.fixture
def id_factory():
    """Predictable ids: '1', '2', '3', ..."""
    counter = itertools.count(1)
    return lambda: str(next(counter))


@pytest.fixture
def sample_state():
    """Two projects, two members and entries spread over early January 2024"""
    projects = [
        Project(id="p1", code="PRJ001", name="Main Street"),
        Project(id="p2", code="PRJ002", name="Riverside"),
    ]
    members = [
        TeamMember(id="m1", name="Alex"),
        TeamMember(id="m2", name="Sam"),
    ]
    entries = [
        TimeEntry(id="e1", project_id="p1", team_member_id="m1",
                  date=datetime.date(2024, 1, 4), hours=8, kilometers=10),
        TimeEntry(id="e2", project_id="p1", team_member_id="m2",
                  date=datetime.date(2024, 1, 5), hours=2, kilometers=3, description="Trenching"),
        TimeEntry(id="e3", project_id="p2", team_member_id="m1",
                  date=datetime.date(2024, 1, 10), hours=1.5, kilometers=0),
        TimeEntry(id="e4", project_id="p2", team_member_id="m2",
                  date=datetime.date(2024, 1, 11), hours=4, kilometers=25.5),
    ]
    return TrackerState(projects=projects, team_members=members, time_entries=entries)
