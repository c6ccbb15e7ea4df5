"""
Tracker Service - Session state and persistence.

Architecture Decision: Optimistic whole-collection writes
Every action applies a pure mutator to the in-memory state first and then
rewrites each changed collection in the store. Writes to the same
collection are serialized with a per-collection lock so they can never
overlap or land out of order. A failed write is reported back to the caller
and the in-memory change is kept; nothing is rolled back or retried.
"""

import asyncio
import datetime
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from shovel_tracker.domain import mutators
from shovel_tracker.domain.models import Collection, Record, Report, ReportFilter, TimeEntry, TrackerState
from shovel_tracker.domain.mutators import IdFactory, InvalidRecordError
from shovel_tracker.infra.repository import (
    CollectionRepository, ProjectRepository, TeamMemberRepository, TimeEntryRepository,
)
from shovel_tracker.infra.store import CollectionStore, StoreError
from shovel_tracker.services.report_service import ReportService, sort_entries

logger = logging.getLogger(__name__)


@dataclass
class MutationResult:
    """
    Outcome of one user action.

    saved is False when at least one collection could not be written; errors
    then holds the messages to show the user.
    """
    item: Optional[Record] = None
    saved: bool = True
    errors: List[str] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "item": self.item.to_json() if self.item else None,
            "saved": self.saved,
        }
        if self.errors:
            body["errors"] = self.errors
        return body


class TrackerService:
    """
    Owns the TrackerState for one process and keeps the store in step with it.
    """

    def __init__(self, store: CollectionStore,
                 report_service: Optional[ReportService] = None,
                 id_factory: IdFactory = mutators.new_id):
        self.store = store
        self.state = TrackerState()
        self.report_service = report_service or ReportService()
        self.id_factory = id_factory

        self.repositories: Dict[Collection, CollectionRepository] = {
            Collection.PROJECTS: ProjectRepository(store),
            Collection.TEAM_MEMBERS: TeamMemberRepository(store),
            Collection.TIME_ENTRIES: TimeEntryRepository(store),
        }
        self._locks: Dict[Collection, asyncio.Lock] = {c: asyncio.Lock() for c in Collection}

    async def load(self) -> TrackerState:
        """Fetch all three collections; unreadable ones come back empty"""
        projects = await self.repositories[Collection.PROJECTS].get_all()
        members = await self.repositories[Collection.TEAM_MEMBERS].get_all()
        entries = await self.repositories[Collection.TIME_ENTRIES].get_all()
        self.state = TrackerState(projects=projects, team_members=members, time_entries=entries)
        logger.info(
            "Loaded %d projects, %d team members, %d time entries",
            len(projects), len(members), len(entries)
        )
        return self.state

    def _items(self, collection: Collection) -> list:
        if collection == Collection.PROJECTS:
            return self.state.projects
        if collection == Collection.TEAM_MEMBERS:
            return self.state.team_members
        return self.state.time_entries

    async def _persist(self, *collections: Collection) -> List[str]:
        """
        Write the current value of each collection.

        Returns:
            Error messages for the writes that failed
        """
        errors = []
        for collection in collections:
            async with self._locks[collection]:
                try:
                    await self.repositories[collection].replace_all(self._items(collection))
                except StoreError as e:
                    logger.error("Failed to save %s: %s", collection.label, e)
                    errors.append(f"Failed to save {collection.label}")
        return errors

    async def _commit(self, item: Optional[Record], *collections: Collection) -> MutationResult:
        errors = await self._persist(*collections)
        return MutationResult(item=item, saved=not errors, errors=errors)

    # Projects

    async def add_project(self, code: str, name: str) -> MutationResult:
        self.state.projects, project = mutators.add_project(
            self.state.projects, code, name, id_factory=self.id_factory
        )
        return await self._commit(project, Collection.PROJECTS)

    async def delete_project(self, project_id: str) -> MutationResult:
        """Delete a project and every time entry booked on it"""
        self.state.projects, self.state.time_entries = mutators.delete_project(
            self.state.projects, self.state.time_entries, project_id
        )
        return await self._commit(None, Collection.PROJECTS, Collection.TIME_ENTRIES)

    # Team members

    async def add_team_member(self, name: str) -> MutationResult:
        self.state.team_members, member = mutators.add_team_member(
            self.state.team_members, name, id_factory=self.id_factory
        )
        return await self._commit(member, Collection.TEAM_MEMBERS)

    async def delete_team_member(self, member_id: str) -> MutationResult:
        """Delete a team member and every time entry they logged"""
        self.state.team_members, self.state.time_entries = mutators.delete_team_member(
            self.state.team_members, self.state.time_entries, member_id
        )
        return await self._commit(None, Collection.TEAM_MEMBERS, Collection.TIME_ENTRIES)

    # Time entries

    async def add_time_entry(self, project_id: str, team_member_id: str,
                             date: datetime.date,
                             hours: Optional[float] = None,
                             kilometers: Optional[float] = None,
                             description: Optional[str] = None) -> MutationResult:
        """
        Log hours and kilometers for a project/member pair.

        Raises:
            InvalidRecordError: If a presence check fails or the project or
                team member does not exist
        """
        if project_id and not any(p.id == project_id for p in self.state.projects):
            raise InvalidRecordError(f"Unknown project '{project_id}'")
        if team_member_id and not any(m.id == team_member_id for m in self.state.team_members):
            raise InvalidRecordError(f"Unknown team member '{team_member_id}'")

        self.state.time_entries, entry = mutators.add_time_entry(
            self.state.time_entries, project_id, team_member_id, date,
            hours=hours, kilometers=kilometers, description=description,
            id_factory=self.id_factory,
        )
        return await self._commit(entry, Collection.TIME_ENTRIES)

    async def delete_time_entry(self, entry_id: str) -> MutationResult:
        self.state.time_entries = mutators.delete_time_entry(self.state.time_entries, entry_id)
        return await self._commit(None, Collection.TIME_ENTRIES)

    # Queries

    def entries_for_date(self, day: datetime.date) -> List[TimeEntry]:
        """Entries logged on one day, in the order they were added"""
        return [e for e in self.state.time_entries if e.date == day]

    def recent_entries(self, limit: int = 10) -> List[TimeEntry]:
        """The most recent entries by date"""
        return sort_entries(self.state.time_entries)[:limit]

    def report(self, report_filter: ReportFilter) -> Report:
        return self.report_service.build_report(self.state, report_filter)
