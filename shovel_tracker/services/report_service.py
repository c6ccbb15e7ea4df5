"""
Report Generation Service using Jinja2 templates.

Architecture Decision: Template Pattern
The filtering and totals are plain functions over the time entry list; the
printable document is a Jinja2 template, so the layout can change without
touching code.
"""

import datetime
import logging
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Iterable, List, Optional, Sequence
from jinja2 import Environment, FileSystemLoader, select_autoescape

from shovel_tracker.domain.models import (
    ALL_MEMBERS, DateRange, Project, Report, ReportFilter, ReportRow, ReportTotals,
    TeamMember, TimeEntry, TrackerState,
)
from shovel_tracker.infra.config import TrackerPreferences
from shovel_tracker.utils import get_resource_path

logger = logging.getLogger(__name__)

UNKNOWN_PROJECT = "Unknown Project"
UNKNOWN_MEMBER = "Unknown Member"
ALL_DATES_LABEL = "All dates"
ALL_MEMBERS_LABEL = "All Team Members"


def filter_entries(entries: Iterable[TimeEntry],
                   date_range: Optional[DateRange] = None,
                   member_id: Optional[str] = None) -> List[TimeEntry]:
    """
    Select the entries a report covers.

    Args:
        entries: Time entries to filter
        date_range: Inclusive range of calendar dates, or None for all dates
        member_id: Team member id, or None / 'all' for everyone

    Returns:
        Matching entries, in input order
    """
    filtered = list(entries)

    if date_range is not None:
        filtered = [e for e in filtered if date_range.contains(e.date)]

    if member_id and member_id != ALL_MEMBERS:
        filtered = [e for e in filtered if e.team_member_id == member_id]

    return filtered


def aggregate(entries: Iterable[TimeEntry]) -> ReportTotals:
    """Sum hours and kilometers"""
    entries = list(entries)
    return ReportTotals(
        total_hours=sum(e.hours for e in entries),
        total_kilometers=sum(e.kilometers for e in entries),
    )


def resolve_project_label(project_id: str, projects: Sequence[Project]) -> str:
    project = next((p for p in projects if p.id == project_id), None)
    return f"{project.code} - {project.name}" if project else UNKNOWN_PROJECT


def resolve_member_label(member_id: str, members: Sequence[TeamMember]) -> str:
    member = next((m for m in members if m.id == member_id), None)
    return member.name if member else UNKNOWN_MEMBER


def sort_entries(entries: Iterable[TimeEntry]) -> List[TimeEntry]:
    """Most recent first; entries on the same day keep their order"""
    return sorted(entries, key=lambda e: e.date, reverse=True)


def format_date(value: datetime.date, fmt: str = "%b %d, %Y") -> str:
    """Format a date like 'Jan 05, 2024'"""
    return value.strftime(fmt)


def format_number(value: float, suffix: str = "") -> str:
    """One decimal place plus an optional unit, e.g. '3.5h'. Ties round up, so 1.25 gives '1.3'."""
    rounded = Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return f"{rounded}{suffix}"


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return f"{day}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_timestamp(value: datetime.datetime) -> str:
    """Format like 'October 17th, 2026 at 8:18 PM'"""
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{value:%B} {_ordinal(value.day)}, {value.year} at {hour}:{value.minute:02d} {suffix}"


class ReportService:
    """
    Builds reports from the tracker state and renders them with Jinja2 templates.
    """

    def __init__(self, template_dir: Optional[Path] = None,
                 preferences: Optional[TrackerPreferences] = None):
        """
        Initialize the report service.

        Args:
            template_dir: Directory containing Jinja2 templates
            preferences: Report title and subtitle
        """
        if template_dir is None:
            template_dir = get_resource_path("resources/templates")

        self.template_dir = template_dir
        self.preferences = preferences or TrackerPreferences()

        # Setup Jinja2 environment
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True
        )

        # Add custom filters
        self.env.filters['format_date'] = format_date
        self.env.filters['format_number'] = format_number
        self.env.filters['format_timestamp'] = format_timestamp

    def build_report(self, state: TrackerState, report_filter: ReportFilter,
                     now: Optional[datetime.datetime] = None) -> Report:
        """
        Filter, total and label the time entries for one report.

        Args:
            state: Current collections
            report_filter: Date range and team member selection
            now: Generation timestamp, defaults to the current time
        """
        date_range = report_filter.date_range
        member_id = None if report_filter.all_members else report_filter.member_id

        entries = filter_entries(state.time_entries, date_range, member_id)
        totals = aggregate(entries)

        rows = [
            ReportRow(
                entry=entry,
                member_label=resolve_member_label(entry.team_member_id, state.team_members),
                project_label=resolve_project_label(entry.project_id, state.projects),
            )
            for entry in sort_entries(entries)
        ]

        if date_range:
            date_range_label = f"{format_date(date_range.start)} - {format_date(date_range.end)}"
        else:
            date_range_label = ALL_DATES_LABEL

        if member_id is None:
            member_label = ALL_MEMBERS_LABEL
        else:
            member_label = resolve_member_label(member_id, state.team_members)
            if member_label == UNKNOWN_MEMBER:
                logger.debug("Report filtered on unknown team member id %r", member_id)

        logger.debug("Report covers %d of %d entries", len(rows), len(state.time_entries))

        return Report(
            title=self.preferences.report_title,
            subtitle=self.preferences.report_subtitle,
            generated_at=now or datetime.datetime.now(),
            filters=report_filter,
            date_range_label=date_range_label,
            member_label=member_label,
            totals=totals,
            rows=rows,
        )

    def render_html(self, report: Report,
                    template_name: str = "report.html",
                    output_file: Optional[Path] = None) -> str:
        """
        Render a report as a printable HTML document.

        Args:
            report: Report built by build_report
            template_name: Name of the template file
            output_file: Optional file path to save the document

        Returns:
            The rendered document
        """
        template = self.env.get_template(template_name)
        content = template.render(report=report)

        if output_file:
            output_file.parent.mkdir(parents=True, exist_ok=True)
            with open(output_file, 'w', encoding='utf-8') as f:
                f.write(content)

        return content
