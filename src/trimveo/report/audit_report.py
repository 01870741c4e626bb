"""End-of-run reports.

Written once, after every export has been processed, from the run-wide
registry:

- ExportedReport.txt: every record sealed into some package
- AllEntities.txt: every record seen, stubs included
- AllFiles.txt: exported roots only (one line per package)
- Report.txt: human-readable run summary
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from trimveo.models import GlobalRegistry, Record

__all__ = [
    "REPORT_COLUMNS",
    "EXPORTED_REPORT",
    "ALL_ENTITIES_REPORT",
    "ALL_FILES_REPORT",
    "SUMMARY_REPORT",
    "RunSummary",
    "report_row",
    "write_tsv_report",
    "write_audit_reports",
    "render_summary",
    "write_summary",
]

REPORT_COLUMNS: tuple[str, ...] = (
    "ID",
    "VEO Name",
    "Container",
    "Title",
    "Date Created",
    "Date Registered",
    "Classification",
    "Record Type",
)

EXPORTED_REPORT = "ExportedReport.txt"
ALL_ENTITIES_REPORT = "AllEntities.txt"
ALL_FILES_REPORT = "AllFiles.txt"
SUMMARY_REPORT = "Report.txt"

_CRLF = "\r\n"


def report_row(record: Record) -> list[str]:
    """Render a record as the eight report cells; missing values are empty."""
    return [
        record.key,
        record.veo_name or "",
        str(record.container) if record.container is not None else "",
        record.title or "",
        record.date_created or "",
        record.date_registered or "",
        record.classification or "",
        record.record_type_normalized or "",
    ]


def write_tsv_report(records: Iterable[Record], path: Path) -> int:
    """Write a tab-separated report (UTF-8, CRLF line endings).

    Parameters
    ----------
    records : Iterable[Record]
        Records to list, already in report order.
    path : Path
        Report file.

    Returns
    -------
    int
        Number of data rows written.
    """
    count = 0
    with path.open("w", encoding="utf-8", newline="") as f:
        f.write("\t".join(REPORT_COLUMNS) + _CRLF)
        for record in records:
            f.write("\t".join(report_row(record)) + _CRLF)
            count += 1
    return count


def write_audit_reports(registry: GlobalRegistry, output_dir: Path) -> dict[Path, int]:
    """Write the three tabular audit reports.

    Returns
    -------
    dict[Path, int]
        Report path to number of rows written.
    """
    reports = {
        output_dir / EXPORTED_REPORT: registry.exported(),
        output_dir / ALL_ENTITIES_REPORT: list(registry),
        output_dir / ALL_FILES_REPORT: registry.exported_roots(),
    }
    return {path: write_tsv_report(records, path) for path, records in reports.items()}


@dataclass(frozen=True)
class RunSummary:
    """Facts about a run shown at the top of Report.txt."""

    run_at: datetime
    user_id: str
    inputs: Sequence[str]
    hash_algorithm: str
    output_dir: Path
    export_count: int
    source_dir: Path | None = None
    template_dir: Path | None = None
    signer_id: str | None = None
    files_skipped: Sequence[str] = field(default_factory=tuple)
    roots_failed: Sequence[str] = field(default_factory=tuple)


def _describe_dir(path: Path | None, default: str) -> str:
    return f"'{path.resolve()}'" if path is not None else default


def render_summary(summary: RunSummary, registry: GlobalRegistry) -> str:
    """Render the run summary text."""
    inputs = ", ".join(f"'{p}'" for p in summary.inputs)
    lines = [
        "REPORT FOR PROCESSING TRIM EXPORT",
        f"Processing performed at {summary.run_at.strftime('%d %B %Y, %H%M hours (%z)')}"
        f" by {summary.user_id}",
        f"TRIM export files located in: {inputs}",
        f"Hash algorithm is {summary.hash_algorithm}",
        f"Source directory is {_describe_dir(summary.source_dir, 'the directory of each export')}",
        f"Output directory is {_describe_dir(summary.output_dir, '')}",
        f"Template directory is {_describe_dir(summary.template_dir, 'not used')}",
        f"Signer is '{summary.signer_id}'" if summary.signer_id else "Packages are not signed",
        f"Total records (VEOs) created: {summary.export_count}",
        "",
        "Files (VEOs) generated:",
    ]

    roots = registry.exported_roots()
    for record in roots:
        where = f" in {record.source_dir}" if record.source_dir is not None else ""
        lines.append(f"\t{record.key}{where}")
    if not roots:
        lines.append("\tNo entities")

    if summary.roots_failed:
        lines.append("")
        lines.append("Roots that failed:")
        lines.extend(f"\t{message}" for message in summary.roots_failed)

    if summary.files_skipped:
        lines.append("")
        lines.append("Files skipped:")
        lines.extend(f"\t{message}" for message in summary.files_skipped)

    return "\n".join(lines) + "\n"


def write_summary(summary: RunSummary, registry: GlobalRegistry, output_dir: Path) -> Path:
    """Write Report.txt to the output directory and return its path."""
    path = output_dir / SUMMARY_REPORT
    path.write_text(render_summary(summary, registry), encoding="utf-8")
    return path
