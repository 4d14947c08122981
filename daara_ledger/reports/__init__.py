"""Reports package: CSV exports and the detailed printable report."""

from daara_ledger.reports.csv_export import (
    MONTH_SECTIONS,
    month_report_csv,
    month_report_filename,
    selection_csv,
)
from daara_ledger.reports.detailed import build_detailed_report, render_markdown
from daara_ledger.reports.formatting import format_amount, format_timestamp, plain_amount

__all__ = [
    "MONTH_SECTIONS",
    "build_detailed_report",
    "format_amount",
    "format_timestamp",
    "month_report_csv",
    "month_report_filename",
    "plain_amount",
    "render_markdown",
    "selection_csv",
]
