"""Row-to-record normalization.

Turns one export row into a Record using a schema binding, and folds
repeated rows for the same identifier into the record already stored in a
table (last occurrence wins, unless duplicates are rejected).
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from trimveo.errors import DuplicateRecordError
from trimveo.models import Record, RecordTable, parse_identifier, parse_optional_identifier
from trimveo.normalize.record_types import map_record_type

if TYPE_CHECKING:
    from trimveo.parse.schema import SchemaBinding

__all__ = ["DUPLICATE_POLICIES", "build_record", "merge_into_table"]

DUPLICATE_POLICIES = ("last_wins", "reject")

# Fields a later row overwrites; relationship state is left alone.
_ROW_FIELDS = (
    "raw_fields",
    "labels",
    "source_dir",
    "veo_name",
    "container",
    "title",
    "date_created",
    "date_registered",
    "classification",
    "retention_schedule",
    "content_file_spec",
    "record_type_raw",
    "record_type_normalized",
)


def build_record(
    row: Sequence[str],
    binding: SchemaBinding,
    source_dir: Path | None = None,
) -> tuple[Record, list[str]]:
    """Build a Record from one export row.

    Parameters
    ----------
    row : Sequence[str]
        Row cells, already padded to the header width.
    binding : SchemaBinding
        Column binding of the export.
    source_dir : Path | None, optional
        Directory holding the export.

    Returns
    -------
    tuple[Record, list[str]]
        (record, warnings). A warning is produced for a record type that
        is not in the controlled vocabulary.

    Raises
    ------
    IdentifierParseError
        If the row's own identifier or its container reference is malformed.
    """
    id_text = binding.cell(row, "id")
    rid = parse_identifier(id_text)
    container = parse_optional_identifier(binding.cell(row, "container"))

    warnings: list[str] = []
    record_type_raw = binding.cell(row, "record_type")
    record_type_normalized = ""
    if record_type_raw:
        record_type_normalized, known = map_record_type(record_type_raw)
        if not known:
            warnings.append(f"Unhandled record type: '{record_type_raw}' (record {rid})")

    record = Record(
        id=rid,
        raw_fields=tuple(row),
        labels=binding.labels,
        source_dir=source_dir,
        veo_name=id_text,
        container=container,
        title=binding.cell(row, "title"),
        date_created=binding.cell(row, "date_created"),
        date_registered=binding.cell(row, "date_registered"),
        classification=binding.cell(row, "classification"),
        retention_schedule=binding.cell(row, "retention_schedule"),
        content_file_spec=binding.cell(row, "content_file"),
        record_type_raw=record_type_raw,
        record_type_normalized=record_type_normalized,
        is_defined=True,
    )
    return record, warnings


def merge_into_table(
    table: RecordTable,
    record: Record,
    line_no: int,
    duplicate_policy: str = "last_wins",
) -> Record:
    """Store a freshly built record, folding it into any existing entry.

    Parameters
    ----------
    table : RecordTable
        Table for the export being read.
    record : Record
        Record built from the current row.
    line_no : int
        1-based line number of the row, for error reporting.
    duplicate_policy : str, optional
        "last_wins" (default) overwrites the stored row fields;
        "reject" refuses a second row for a defined identifier.

    Returns
    -------
    Record
        The record now stored in the table.

    Raises
    ------
    DuplicateRecordError
        If the identifier is already defined and the policy is "reject".
    """
    existing = table.get(record.id)
    if existing is None:
        table.put(record)
        return record

    if existing.is_defined and duplicate_policy == "reject":
        raise DuplicateRecordError(record.key, line_no)

    for name in _ROW_FIELDS:
        setattr(existing, name, getattr(record, name))
    existing.is_defined = True
    return existing
