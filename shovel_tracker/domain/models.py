"""
Domain Models using Pydantic for validation.

Architecture Decision: Why Pydantic?
Records travel as JSON arrays between the store, the web layer and the
report renderer. Pydantic validates them on the way in and dumps them back
to the exact camelCase wire shape on the way out.
"""

import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


ALL_MEMBERS = "all"


def _to_calendar_date(value):
    """Drop the time of day (and any UTC offset) from datetime inputs."""
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


class Collection(str, Enum):
    """The three top-level collections, each persisted as one JSON array."""
    PROJECTS = "projects"
    TEAM_MEMBERS = "team-members"
    TIME_ENTRIES = "time-entries"

    @property
    def label(self) -> str:
        return self.value.replace("-", " ")


class Record(BaseModel):
    """Base for persisted records: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(populate_by_name=True)

    id: str

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Project(Record):
    """A billable project, shown as '<code> - <name>'."""
    code: str
    name: str


class TeamMember(Record):
    name: str


class TimeEntry(Record):
    """
    Hours and kilometers logged by one team member on one project for one day.
    """
    project_id: str = Field(..., alias="projectId")
    team_member_id: str = Field(..., alias="teamMemberId")
    date: datetime.date
    hours: float = Field(default=0.0, allow_inf_nan=False)
    kilometers: float = Field(default=0.0, allow_inf_nan=False)
    description: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value):
        return _to_calendar_date(value)


class DateRange(BaseModel):
    """Inclusive calendar date range."""
    start: datetime.date
    end: datetime.date

    @field_validator("start", "end", mode="before")
    @classmethod
    def normalize_dates(cls, value):
        return _to_calendar_date(value)

    def contains(self, day: datetime.date) -> bool:
        return self.start <= day <= self.end


class ReportView(BaseModel):
    """Base for report models: camelCase on the wire, like the records."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReportFilter(ReportView):
    """
    Active report filters.

    The date range only applies when both ends are set; member_id 'all'
    (or None) disables member filtering.
    """
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None
    member_id: Optional[str] = ALL_MEMBERS

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def normalize_dates(cls, value):
        return _to_calendar_date(value)

    @property
    def date_range(self) -> Optional[DateRange]:
        if self.start_date and self.end_date:
            return DateRange(start=self.start_date, end=self.end_date)
        return None

    @property
    def all_members(self) -> bool:
        return self.member_id in (None, "", ALL_MEMBERS)


class ReportTotals(ReportView):
    total_hours: float = 0.0
    total_kilometers: float = 0.0


class ReportRow(ReportView):
    """One time entry with its project and member labels resolved."""
    entry: TimeEntry
    member_label: str
    project_label: str


class Report(ReportView):
    """
    The filtered and aggregated view of time entries used for display,
    printing and export.
    """
    title: str
    subtitle: str
    generated_at: datetime.datetime
    filters: ReportFilter
    date_range_label: str
    member_label: str
    totals: ReportTotals
    rows: List[ReportRow] = Field(default_factory=list)


class TrackerState(BaseModel):
    """
    In-memory copy of the three collections for one running process.

    Every mutation swaps a whole list; nothing inside is shared or edited
    in place.
    """
    projects: List[Project] = Field(default_factory=list)
    team_members: List[TeamMember] = Field(default_factory=list)
    time_entries: List[TimeEntry] = Field(default_factory=list)

    def to_json(self) -> dict:
        return {
            "projects": [p.to_json() for p in self.projects],
            "teamMembers": [m.to_json() for m in self.team_members],
            "timeEntries": [e.to_json() for e in self.time_entries],
        }
