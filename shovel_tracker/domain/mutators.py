"""
Collection mutators.

Every function takes the current collection(s) and returns new list(s);
the inputs are never modified. Deleting a project or a team member also
drops the time entries that reference it.
"""

import datetime
import math
import threading
import time
from typing import Callable, List, Optional, Tuple

from shovel_tracker.domain.models import Project, TeamMember, TimeEntry


IdFactory = Callable[[], str]


class InvalidRecordError(ValueError):
    """Raised when a new record fails a presence check."""


class MonotonicIdFactory:
    """
    Issues string ids from the epoch-millisecond clock, bumped so that each
    id is strictly greater than the previous one for the process lifetime.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            candidate = int(self._clock() * 1000)
            self._last = max(candidate, self._last + 1)
            return str(self._last)


_default_ids = MonotonicIdFactory()


def new_id() -> str:
    return _default_ids()


def add_project(projects: List[Project], code: str, name: str,
                id_factory: IdFactory = new_id) -> Tuple[List[Project], Project]:
    """Append a new project. Both code and name are required."""
    if not code or not name:
        raise InvalidRecordError("Project code and name are required")
    project = Project(id=id_factory(), code=code, name=name)
    return [*projects, project], project


def delete_project(projects: List[Project], entries: List[TimeEntry],
                   project_id: str) -> Tuple[List[Project], List[TimeEntry]]:
    return (
        [p for p in projects if p.id != project_id],
        [e for e in entries if e.project_id != project_id],
    )


def add_team_member(members: List[TeamMember], name: str,
                    id_factory: IdFactory = new_id) -> Tuple[List[TeamMember], TeamMember]:
    """Append a new team member; the name is trimmed and must not be blank."""
    name = (name or "").strip()
    if not name:
        raise InvalidRecordError("Team member name is required")
    member = TeamMember(id=id_factory(), name=name)
    return [*members, member], member


def delete_team_member(members: List[TeamMember], entries: List[TimeEntry],
                       member_id: str) -> Tuple[List[TeamMember], List[TimeEntry]]:
    return (
        [m for m in members if m.id != member_id],
        [e for e in entries if e.team_member_id != member_id],
    )


def add_time_entry(entries: List[TimeEntry],
                   project_id: str,
                   team_member_id: str,
                   date: datetime.date,
                   hours: Optional[float] = None,
                   kilometers: Optional[float] = None,
                   description: Optional[str] = None,
                   id_factory: IdFactory = new_id) -> Tuple[List[TimeEntry], TimeEntry]:
    """
    Append a new time entry.

    Args:
        entries: Current time entry collection
        project_id: Selected project
        team_member_id: Selected team member
        date: Day the work was done (a datetime is reduced to its date)
        hours: Hours worked, None counts as 0
        kilometers: Distance travelled, None counts as 0
        description: Optional free text
        id_factory: Source of the new entry id

    Raises:
        InvalidRecordError: If a selection is missing, both amounts are zero,
            or an amount is negative or not finite.
    """
    if not project_id or not team_member_id:
        raise InvalidRecordError("Both a project and a team member must be selected")

    hours = float(hours or 0)
    kilometers = float(kilometers or 0)
    if not math.isfinite(hours) or not math.isfinite(kilometers):
        raise InvalidRecordError("Hours and kilometers must be finite numbers")
    if hours < 0 or kilometers < 0:
        raise InvalidRecordError("Hours and kilometers cannot be negative")
    if not hours and not kilometers:
        raise InvalidRecordError("Enter hours or kilometers")

    entry = TimeEntry(
        id=id_factory(),
        project_id=project_id,
        team_member_id=team_member_id,
        date=date,
        hours=hours,
        kilometers=kilometers,
        description=description,
    )
    return [*entries, entry], entry


def delete_time_entry(entries: List[TimeEntry], entry_id: str) -> List[TimeEntry]:
    return [e for e in entries if e.id != entry_id]
