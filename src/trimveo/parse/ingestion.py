"""Export file ingestion.

Reads one TRIM export into a RecordTable, and discovers export files among
the paths a run is given. A file whose header cannot be bound is skipped
whole; a malformed row is rejected on its own and reading continues.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from trimveo.errors import DuplicateRecordError, IdentifierParseError, SchemaError
from trimveo.models import RecordTable
from trimveo.normalize.normalizer import build_record, merge_into_table
from trimveo.parse.base import detect_encoding, iter_rows, normalize_line_endings
from trimveo.parse.schema import COLUMN_LABELS, bind_schema
from trimveo.utils import calculate_file_sha256, get_file_mtime

INGESTION_VERSION = "1.0.0"

_HEADER_PROBE_BYTES = 4096


@dataclass(frozen=True)
class FileIngestionResult:
    """Immutable result of reading a single export.

    Attributes
    ----------
    filename : str
        Name of the file (basename).
    filepath : str
        Full path to the file.
    file_size : int
        Size of file in bytes.
    file_mtime : str
        ISO8601 timestamp of file modification time.
    encoding_used : str
        Encoding used to decode file.
    rows_read : int
        Data rows seen (header and blank lines excluded).
    records_defined : int
        Distinct identifiers defined by those rows.
    rows_rejected : int
        Rows dropped because of a malformed identifier or a rejected duplicate.
    skipped : bool
        True when the whole file was skipped.
    warnings : tuple[str, ...]
        Warning messages.
    errors : tuple[str, ...]
        Error messages (file-level, or one per rejected row).
    file_digest : str
        SHA-256 digest of file bytes.
    error_type : str | None
        Kind of failure that caused a skip (e.g. "SchemaError").
    """

    filename: str
    filepath: str
    file_size: int
    file_mtime: str
    encoding_used: str
    rows_read: int
    records_defined: int
    rows_rejected: int = 0
    skipped: bool = False
    warnings: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()
    file_digest: str = ""
    error_type: str | None = None


def _skipped(
    file_path: Path,
    error_type: str,
    message: str,
    file_size: int = 0,
    file_mtime: str = "",
    encoding_used: str = "",
    file_digest: str = "",
) -> FileIngestionResult:
    """Build the result for a file that is skipped whole."""
    return FileIngestionResult(
        filename=file_path.name,
        filepath=str(file_path),
        file_size=file_size,
        file_mtime=file_mtime,
        encoding_used=encoding_used,
        rows_read=0,
        records_defined=0,
        skipped=True,
        errors=(message,),
        file_digest=file_digest,
        error_type=error_type,
    )


def read_export(
    file_path: Path,
    duplicate_policy: str = "last_wins",
) -> tuple[RecordTable | None, FileIngestionResult]:
    """Read a single export file.

    Parameters
    ----------
    file_path : Path
        Path to a tab-separated TRIM export.
    duplicate_policy : str, optional
        How repeated identifiers are handled ("last_wins" or "reject").

    Returns
    -------
    tuple[RecordTable | None, FileIngestionResult]
        - Table of records (None when the file was skipped)
        - Ingestion result with counts, warnings and errors
    """
    try:
        file_bytes = file_path.read_bytes()
    except OSError as e:
        return None, _skipped(file_path, type(e).__name__, f"Failed to read file: {e}")

    file_mtime = get_file_mtime(file_path)
    file_digest = calculate_file_sha256(file_path)
    encoding = detect_encoding(file_bytes)
    context: dict[str, Any] = {
        "file_size": len(file_bytes),
        "file_mtime": file_mtime,
        "encoding_used": encoding,
        "file_digest": file_digest,
    }

    try:
        content = file_bytes.decode(encoding)
    except UnicodeDecodeError as e:
        message = f"Failed to decode with {encoding}: {e}"
        return None, _skipped(file_path, "UnicodeDecodeError", message, **context)

    rows = iter_rows(content)
    header = next(rows, None)
    if header is None:
        return None, _skipped(file_path, "EmptyExport", "Export is empty (no header row)", **context)

    try:
        binding = bind_schema(header[1], file=file_path.name)
    except SchemaError as e:
        return None, _skipped(file_path, "SchemaError", str(e), **context)

    width = len(binding.labels)
    table = RecordTable(source=file_path, labels=binding.labels)
    warnings: list[str] = []
    errors: list[str] = []
    rows_read = 0

    for line_no, cells in rows:
        rows_read += 1
        if len(cells) < width:
            cells.extend([""] * (width - len(cells)))
        try:
            record, row_warnings = build_record(cells, binding, source_dir=file_path.parent)
            merge_into_table(table, record, line_no, duplicate_policy)
        except (IdentifierParseError, DuplicateRecordError) as e:
            errors.append(f"line {line_no}: {e}")
            continue
        warnings.extend(row_warnings)

    result = FileIngestionResult(
        filename=file_path.name,
        filepath=str(file_path),
        file_size=len(file_bytes),
        file_mtime=file_mtime,
        encoding_used=encoding,
        rows_read=rows_read,
        records_defined=sum(1 for r in table if r.is_defined),
        rows_rejected=len(errors),
        warnings=tuple(warnings),
        errors=tuple(errors),
        file_digest=file_digest,
    )
    return table, result


def looks_like_export(file_path: Path) -> bool:
    """Return True if the first line of a file names an identifier column.

    Only the start of the file is read, so content files (PDFs, images)
    found beside the exports are cheap to rule out.
    """
    try:
        with file_path.open("rb") as f:
            head = f.read(_HEADER_PROBE_BYTES)
    except OSError:
        return False

    text = head.decode(detect_encoding(head), errors="replace").lstrip("\ufeff")
    first_line = normalize_line_endings(text).split("\n", 1)[0]
    cells = {cell.strip() for cell in first_line.split("\t")}
    return any(label in cells for label in COLUMN_LABELS["id"])


def _is_within(path: Path, directories: list[Path]) -> bool:
    resolved = path.resolve()
    return any(resolved.is_relative_to(d) for d in directories)


def discover_exports(
    paths: Iterable[Path],
    recursive: bool = True,
    glob_pattern: str = "*",
    exclude: Iterable[Path] = (),
) -> tuple[list[Path], list[Path], list[Path]]:
    """Expand run inputs into export files.

    Files named directly are always returned. Files found inside a
    directory are returned only when their header looks like an export
    header; the rest (content files, earlier run output) are ignored.

    Parameters
    ----------
    paths : Iterable[Path]
        Files or directories given to the run.
    recursive : bool, optional
        Descend into sub-directories, by default True.
    glob_pattern : str, optional
        Pattern filtering files found in directories, by default "*".
    exclude : Iterable[Path], optional
        Directories never searched (the run's output directory).

    Returns
    -------
    tuple[list[Path], list[Path], list[Path]]
        - Export files, in input order, directory contents sorted
        - Inputs that do not exist
        - Files found in directories that are not exports
    """
    files: list[Path] = []
    missing: list[Path] = []
    ignored: list[Path] = []
    excluded = [Path(d).resolve() for d in exclude]

    for path in paths:
        if not path.exists():
            missing.append(path)
        elif path.is_dir():
            found = path.rglob(glob_pattern) if recursive else path.glob(glob_pattern)
            for candidate in sorted(p for p in found if p.is_file()):
                if _is_within(candidate, excluded):
                    continue
                if looks_like_export(candidate):
                    files.append(candidate)
                else:
                    ignored.append(candidate)
        elif path.is_file():
            files.append(path)

    return files, missing, ignored
