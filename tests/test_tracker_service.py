"""
Tests for the TrackerService: optimistic updates, persistence and failures.
"""

import asyncio
import datetime
import json
import pytest

from shovel_tracker.domain.models import Collection, ReportFilter
from shovel_tracker.domain.mutators import InvalidRecordError
from shovel_tracker.infra.repository import ProjectRepository, TimeEntryRepository
from shovel_tracker.services.tracker_service import TrackerService


async def _seed(store, state):
    await ProjectRepository(store).replace_all(state.projects)
    await store.set(Collection.TEAM_MEMBERS, [m.to_json() for m in state.team_members])
    await TimeEntryRepository(store).replace_all(state.time_entries)


def _stored(store, collection):
    return json.loads(store.values[store.key_for(collection)])


@pytest.mark.asyncio
async def test_load_reads_all_collections(memory_store, sample_state):
    await _seed(memory_store, sample_state)
    tracker = TrackerService(memory_store)

    state = await tracker.load()

    assert state == sample_state
    assert tracker.state is state


@pytest.mark.asyncio
async def test_load_with_unreachable_store_starts_empty(flaky_store):
    flaky_store.fail_reads = True
    state = await TrackerService(flaky_store).load()
    assert state.projects == [] and state.team_members == [] and state.time_entries == []


@pytest.mark.asyncio
async def test_add_project_persists(memory_store, id_factory):
    tracker = TrackerService(memory_store, id_factory=id_factory)
    await tracker.load()

    result = await tracker.add_project("PRJ001", "Main Street")

    assert result.saved
    assert result.item.id == "1"
    assert _stored(memory_store, Collection.PROJECTS) == [{"id": "1", "code": "PRJ001", "name": "Main Street"}]


@pytest.mark.asyncio
async def test_invalid_project_changes_nothing(memory_store):
    tracker = TrackerService(memory_store)
    with pytest.raises(InvalidRecordError):
        await tracker.add_project("", "Main Street")
    assert tracker.state.projects == []
    assert memory_store.values == {}


@pytest.mark.asyncio
async def test_delete_project_persists_cascade(memory_store, sample_state):
    await _seed(memory_store, sample_state)
    tracker = TrackerService(memory_store)
    await tracker.load()

    result = await tracker.delete_project("p1")

    assert result.saved
    assert [p["id"] for p in _stored(memory_store, Collection.PROJECTS)] == ["p2"]
    assert [e["id"] for e in _stored(memory_store, Collection.TIME_ENTRIES)] == ["e3", "e4"]


@pytest.mark.asyncio
async def test_delete_team_member_persists_cascade(memory_store, sample_state):
    await _seed(memory_store, sample_state)
    tracker = TrackerService(memory_store)
    await tracker.load()

    await tracker.delete_team_member("m1")

    assert [m["id"] for m in _stored(memory_store, Collection.TEAM_MEMBERS)] == ["m2"]
    assert [e["id"] for e in _stored(memory_store, Collection.TIME_ENTRIES)] == ["e2", "e4"]


@pytest.mark.asyncio
async def test_add_time_entry(memory_store, sample_state, id_factory):
    await _seed(memory_store, sample_state)
    tracker = TrackerService(memory_store, id_factory=id_factory)
    await tracker.load()

    result = await tracker.add_time_entry("p2", "m1", datetime.date(2024, 2, 1), hours=3, kilometers=7.5)

    assert result.saved
    assert _stored(memory_store, Collection.TIME_ENTRIES)[-1] == {
        "id": "1", "projectId": "p2", "teamMemberId": "m1", "date": "2024-02-01",
        "hours": 3.0, "kilometers": 7.5,
    }


@pytest.mark.asyncio
async def test_add_time_entry_requires_existing_references(memory_store, sample_state):
    await _seed(memory_store, sample_state)
    tracker = TrackerService(memory_store)
    await tracker.load()

    with pytest.raises(InvalidRecordError):
        await tracker.add_time_entry("missing", "m1", datetime.date(2024, 2, 1), hours=1)
    with pytest.raises(InvalidRecordError):
        await tracker.add_time_entry("p1", "missing", datetime.date(2024, 2, 1), hours=1)
    assert len(tracker.state.time_entries) == 4


@pytest.mark.asyncio
async def test_failed_write_keeps_optimistic_state(flaky_store, caplog):
    tracker = TrackerService(flaky_store)
    await tracker.load()
    flaky_store.fail_writes = True

    result = await tracker.add_team_member("Alex")

    assert not result.saved
    assert result.errors == ["Failed to save team members"]
    assert [m.name for m in tracker.state.team_members] == ["Alex"]
    assert "Failed to save team members" in caplog.text

    # Retrying the action once the store is back persists everything
    flaky_store.fail_writes = False
    result = await tracker.add_team_member("Sam")
    assert result.saved
    assert [m["name"] for m in _stored(flaky_store, Collection.TEAM_MEMBERS)] == ["Alex", "Sam"]


@pytest.mark.asyncio
async def test_concurrent_actions_do_not_lose_updates(memory_store):
    tracker = TrackerService(memory_store)
    await tracker.load()

    await asyncio.gather(*(tracker.add_team_member(f"Member {i}") for i in range(10)))

    assert len(_stored(memory_store, Collection.TEAM_MEMBERS)) == 10


def test_entries_for_date_and_recent(memory_store, sample_state):
    tracker = TrackerService(memory_store)
    tracker.state = sample_state

    assert [e.id for e in tracker.entries_for_date(datetime.date(2024, 1, 5))] == ["e2"]
    assert [e.id for e in tracker.recent_entries(2)] == ["e4", "e3"]


def test_report_uses_state(memory_store, sample_state):
    tracker = TrackerService(memory_store)
    tracker.state = sample_state

    report = tracker.report(ReportFilter(member_id="m1"))

    assert [r.entry.id for r in report.rows] == ["e3", "e1"]
    assert report.totals.total_hours == pytest.approx(9.5)
