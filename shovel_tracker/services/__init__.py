"""Services layer - Business logic"""

from .report_service import ReportService
from .excel_report_service import ExcelReportService
from .tracker_service import TrackerService, MutationResult

__all__ = ["ReportService", "ExcelReportService", "TrackerService", "MutationResult"]
