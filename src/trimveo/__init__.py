"""Convert TRIM record exports into nested VEO archival packages.

This package provides:
- Data models (trimveo.models): identifiers, records, tables, registry
- Parsing (trimveo.parse): export reading and column binding
- Normalization (trimveo.normalize): dates, record types, rows to records
- Graph (trimveo.graph): containment assembly, stubs, cycle scan
- Emission (trimveo.emit): package builder and recursive emitter
- Reports (trimveo.report): end-of-run audit reports
- Engine (trimveo.engine): run orchestration
- Audit (trimveo.audit): logging and traceability
- CLI (trimveo.cli): command-line interface
- Public API (trimveo.api): high-level convenience functions
"""

__version__ = "0.4.0"
__license__ = "MIT"

from trimveo.api import ExportReadError, convert, load_export
from trimveo.models import GlobalRegistry, Record, RecordIdentifier, RecordTable
from trimveo.normalize import normalize_date

__all__ = [
    "__version__",
    "__license__",
    "Record",
    "RecordIdentifier",
    "RecordTable",
    "GlobalRegistry",
    "load_export",
    "convert",
    "normalize_date",
    "ExportReadError",
]
