"""Domain layer - Pure business entities and logic"""

from .models import Project, TeamMember, TimeEntry, TrackerState, Report, ReportFilter, ReportTotals

__all__ = ["Project", "TeamMember", "TimeEntry", "TrackerState", "Report", "ReportFilter", "ReportTotals"]
