"""
Excel Report Service using XlsxWriter.
Exports a built report as a workbook: the detailed entry table plus a
summary of totals per project and per team member.
"""

import io
import logging
from pathlib import Path
from typing import Dict, Tuple, Union
import xlsxwriter

from shovel_tracker.domain.models import Report

logger = logging.getLogger(__name__)


class ExcelReportService:
    """
    Generates .xlsx reports with:
    - Tab 1: Report (filters, totals, entries sorted most recent first)
    - Tab 2: Summary (hours and kilometers per project and per team member)
    """

    def generate_report(self, report: Report, output: Union[str, Path, io.BytesIO]) -> Union[str, Path, io.BytesIO]:
        """
        Write the workbook to output.

        Args:
            report: Report built by ReportService.build_report
            output: File path, or a BytesIO for in-memory downloads

        Returns:
            The output target
        """
        if isinstance(output, (str, Path)):
            Path(output).parent.mkdir(parents=True, exist_ok=True)
            workbook = xlsxwriter.Workbook(str(output))
        else:
            workbook = xlsxwriter.Workbook(output, {'in_memory': True})

        fmt_title = workbook.add_format({'bold': True, 'font_size': 14})
        fmt_header = workbook.add_format({
            'bold': True, 'bg_color': '#4472C4', 'font_color': 'white', 'border': 1
        })
        fmt_date = workbook.add_format({'num_format': 'mmm dd, yyyy', 'border': 1})
        fmt_hours = workbook.add_format({'num_format': '0.0"h"', 'border': 1})
        fmt_km = workbook.add_format({'num_format': '0.0"km"', 'border': 1})
        fmt_text = workbook.add_format({'border': 1})

        ws_report = workbook.add_worksheet("Report")
        self._create_report_sheet(ws_report, report, fmt_title, fmt_header, fmt_date, fmt_hours, fmt_km, fmt_text)

        ws_summary = workbook.add_worksheet("Summary")
        self._create_summary_sheet(ws_summary, report, fmt_header, fmt_hours, fmt_km, fmt_text)

        workbook.close()
        logger.info("Excel report written with %d entries", len(report.rows))
        return output

    def _create_report_sheet(self, ws, report: Report, fmt_title, fmt_header, fmt_date, fmt_hours, fmt_km, fmt_text):
        ws.write(0, 0, report.title, fmt_title)
        ws.write(1, 0, report.subtitle)
        ws.write(2, 0, f"Date Range: {report.date_range_label}")
        ws.write(3, 0, f"Team Member: {report.member_label}")
        ws.write(4, 0, "Total Hours")
        ws.write_number(4, 1, report.totals.total_hours, fmt_hours)
        ws.write(5, 0, "Total Travel")
        ws.write_number(5, 1, report.totals.total_kilometers, fmt_km)

        headers = ["Date", "Team Member", "Project", "Hours", "Travel (km)", "Description"]
        header_row = 7
        for col, header in enumerate(headers):
            ws.write(header_row, col, header, fmt_header)

        if not report.rows:
            ws.merge_range(header_row + 1, 0, header_row + 1, len(headers) - 1,
                           "No entries found for the selected criteria", fmt_text)

        for i, row in enumerate(report.rows, start=header_row + 1):
            ws.write_datetime(i, 0, row.entry.date, fmt_date)
            ws.write(i, 1, row.member_label, fmt_text)
            ws.write(i, 2, row.project_label, fmt_text)
            ws.write_number(i, 3, row.entry.hours, fmt_hours)
            ws.write_number(i, 4, row.entry.kilometers, fmt_km)
            ws.write(i, 5, row.entry.description or "-", fmt_text)

        ws.set_column(0, 0, 14)
        ws.set_column(1, 2, 28)
        ws.set_column(3, 4, 12)
        ws.set_column(5, 5, 40)

    def _create_summary_sheet(self, ws, report: Report, fmt_header, fmt_hours, fmt_km, fmt_text):
        by_project = self._group_totals(report, "project_label")
        by_member = self._group_totals(report, "member_label")

        row = 0
        for title, groups in (("Project", by_project), ("Team Member", by_member)):
            ws.write(row, 0, title, fmt_header)
            ws.write(row, 1, "Hours", fmt_header)
            ws.write(row, 2, "Travel (km)", fmt_header)
            row += 1
            for label, (hours, km) in sorted(groups.items()):
                ws.write(row, 0, label, fmt_text)
                ws.write_number(row, 1, hours, fmt_hours)
                ws.write_number(row, 2, km, fmt_km)
                row += 1
            row += 1

        ws.set_column(0, 0, 30)
        ws.set_column(1, 2, 14)

    @staticmethod
    def _group_totals(report: Report, label_attr: str) -> Dict[str, Tuple[float, float]]:
        """Hours and kilometers summed per row label"""
        groups: Dict[str, Tuple[float, float]] = {}
        for row in report.rows:
            label = getattr(row, label_attr)
            hours, km = groups.get(label, (0.0, 0.0))
            groups[label] = (hours + row.entry.hours, km + row.entry.kilometers)
        return groups
