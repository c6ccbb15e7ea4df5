"""
Script to generate a report file based on a YAML configuration.

Example config:
    start_date: 2024-01-01
    end_date: 2024-01-31
    member_id: all
    format: html          # or xlsx
    output_path: reports/january.html
"""

import sys
import yaml
import asyncio
from pathlib import Path
from typing import Literal, Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shovel_tracker.domain.models import ReportFilter
from shovel_tracker.infra.config import get_settings
from shovel_tracker.infra.store import create_store
from shovel_tracker.services.excel_report_service import ExcelReportService
from shovel_tracker.services.report_service import ReportService
from shovel_tracker.services.tracker_service import TrackerService


class ReportConfiguration(ReportFilter):
    """Report filters plus where and how to write the result."""
    format: Literal["html", "xlsx"] = "html"
    output_path: Optional[str] = None


async def main():
    if len(sys.argv) < 2:
        print("Usage: python generate_report.py <config_file.yaml>")
        sys.exit(1)

    config_path = Path(sys.argv[1])
    if not config_path.exists():
        print(f"Error: Config file '{config_path}' not found.")
        sys.exit(1)

    print(f"Loading configuration from {config_path}...")
    with open(config_path, 'r') as f:
        config_data = yaml.safe_load(f) or {}

    try:
        config = ReportConfiguration(**config_data)
    except ValueError as e:
        print(f"Error parsing configuration: {e}")
        sys.exit(1)

    settings = get_settings()
    store = create_store(settings)
    report_service = ReportService(preferences=settings.preferences)
    tracker = TrackerService(store, report_service)
    try:
        await tracker.load()
        report = tracker.report(config)
    finally:
        await store.close()

    # Determine output path
    if config.output_path:
        output_file = Path(config.output_path)
    else:
        output_file = config_path.parent / f"report.{config.format}"

    if config.format == "xlsx":
        ExcelReportService().generate_report(report, output_file)
    else:
        report_service.render_html(report, output_file=output_file)

    print(f"Report with {len(report.rows)} entries saved to: {output_file.absolute()}")


if __name__ == "__main__":
    asyncio.run(main())
