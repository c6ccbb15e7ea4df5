"""
Tests for the typed collection repositories.
"""

import datetime
import json
import pytest

from shovel_tracker.domain.models import Collection, Project
from shovel_tracker.infra.repository import ProjectRepository, TeamMemberRepository, TimeEntryRepository
from shovel_tracker.infra.store import MemoryStore


@pytest.mark.asyncio
async def test_time_entries_are_parsed_from_camel_case(memory_store):
    await memory_store.set(Collection.TIME_ENTRIES, [
        {"id": "1", "projectId": "p1", "teamMemberId": "m1", "date": "2024-01-05",
         "hours": 2, "kilometers": 3.5, "description": "Survey"},
    ])

    entries = await TimeEntryRepository(memory_store).get_all()

    assert len(entries) == 1
    assert entries[0].project_id == "p1"
    assert entries[0].team_member_id == "m1"
    assert entries[0].date == datetime.date(2024, 1, 5)
    assert entries[0].kilometers == 3.5


@pytest.mark.asyncio
async def test_replace_all_writes_wire_shape(memory_store):
    repo = ProjectRepository(memory_store)
    await repo.replace_all([Project(id="1", code="PRJ001", name="Main Street")])

    stored = json.loads(memory_store.values["shovel-projects"])
    assert stored == [{"id": "1", "code": "PRJ001", "name": "Main Street"}]
    assert await repo.get_all() == [Project(id="1", code="PRJ001", name="Main Street")]


@pytest.mark.asyncio
async def test_read_failure_yields_empty_collection(flaky_store, caplog):
    await flaky_store.set(Collection.TEAM_MEMBERS, [{"id": "1", "name": "Alex"}])
    flaky_store.fail_reads = True

    assert await TeamMemberRepository(flaky_store).get_all() == []
    assert "Failed to fetch team members" in caplog.text


@pytest.mark.asyncio
async def test_malformed_json_yields_empty_collection():
    store = MemoryStore(initial={"shovel-projects": "not json"})
    assert await ProjectRepository(store).get_all() == []


@pytest.mark.asyncio
async def test_malformed_record_yields_empty_collection(memory_store):
    await memory_store.set(Collection.TIME_ENTRIES, [{"id": "1", "date": "yesterday"}])
    assert await TimeEntryRepository(memory_store).get_all() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", [
    '[{"id": "1", "projectId": "p1", "teamMemberId": "m1", "date": "2024-01-05", "hours": Infinity}]',
    '[{"id": "1", "projectId": "p1", "teamMemberId": "m1", "date": "2024-01-05", "kilometers": NaN}]',
])
async def test_non_finite_amounts_yield_empty_collection(raw):
    store = MemoryStore(initial={"shovel-time-entries": raw})
    assert await TimeEntryRepository(store).get_all() == []
