"""End-of-run audit reports."""

from trimveo.report.audit_report import (
    REPORT_COLUMNS,
    RunSummary,
    render_summary,
    report_row,
    write_audit_reports,
    write_summary,
    write_tsv_report,
)

__all__ = [
    "REPORT_COLUMNS",
    "RunSummary",
    "render_summary",
    "report_row",
    "write_audit_reports",
    "write_summary",
    "write_tsv_report",
]
