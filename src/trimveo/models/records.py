"""Record, record table and global registry models.

A Record is one row of a TRIM export (or a stub for an identifier that is
only ever referenced as a container). Records are mutable: later rows for
the same identifier overwrite their fields, and emission moves them through
the export states. Tables and the registry iterate in identifier-string
order so every downstream walk is deterministic.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from trimveo.models.identifiers import RecordIdentifier

__all__ = ["ExportState", "Record", "RecordTable", "GlobalRegistry"]


class ExportState(str, Enum):
    """Emission state of a record.

    ``UNVISITED -> EMITTING -> EXPORTED`` or ``UNVISITED -> EMITTING -> FAILED``.
    Both end states are terminal; a record is never retried.
    """

    UNVISITED = "unvisited"
    EMITTING = "emitting"
    EXPORTED = "exported"
    FAILED = "failed"


@dataclass
class Record:
    """One record of an export.

    Attributes
    ----------
    id : RecordIdentifier
        Unique key within the owning table.
    raw_fields : tuple[str, ...]
        Row cells, index-aligned with ``labels``. Empty for stubs.
    labels : tuple[str, ...]
        Column labels of the export the row came from.
    source_dir : Path | None
        Directory holding the export file.
    veo_name : str | None
        Identifier text exactly as written in the export.
    container : RecordIdentifier | None
        Containing record; None marks a root.
    title, date_created, date_registered, classification : str | None
        Descriptive fields copied from the row.
    retention_schedule, content_file_spec : str | None
        Disposal schedule and ``|``-delimited content file names.
    record_type_raw : str
        Record type as exported.
    record_type_normalized : str
        Record type mapped through the controlled vocabulary.
    is_root : bool
        Set when the emitter starts a package at this record.
    is_referenced : bool
        Set when another record names this one as its container but the
        reference could not be resolved in the same table.
    is_defined : bool
        True once a row for this identifier has been read.
    export_state : ExportState
        Emission progress.
    referenced_by : set[str]
        Canonical identifiers of records whose container points here.
    """

    id: RecordIdentifier
    raw_fields: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    source_dir: Path | None = None
    veo_name: str | None = None
    container: RecordIdentifier | None = None
    title: str | None = None
    date_created: str | None = None
    date_registered: str | None = None
    classification: str | None = None
    retention_schedule: str | None = None
    content_file_spec: str | None = None
    record_type_raw: str = ""
    record_type_normalized: str = ""
    is_root: bool = False
    is_referenced: bool = False
    is_defined: bool = False
    export_state: ExportState = ExportState.UNVISITED
    referenced_by: set[str] = field(default_factory=set)

    @classmethod
    def stub(cls, rid: RecordIdentifier, source_dir: Path | None = None) -> "Record":
        """Create a placeholder for an identifier that has no row."""
        return cls(id=rid, source_dir=source_dir)

    @property
    def key(self) -> str:
        """Canonical identifier string (table key)."""
        return str(self.id)

    @property
    def is_exported(self) -> bool:
        """True once the record has been sealed into a package."""
        return self.export_state is ExportState.EXPORTED

    def fields(self) -> Iterator[tuple[str, str]]:
        """Yield ``(label, value)`` pairs for every column of the row."""
        for i, label in enumerate(self.labels):
            value = self.raw_fields[i] if i < len(self.raw_fields) else ""
            yield label, value

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "id": self.key,
            "veo_name": self.veo_name,
            "container": str(self.container) if self.container else None,
            "title": self.title,
            "date_created": self.date_created,
            "date_registered": self.date_registered,
            "classification": self.classification,
            "retention_schedule": self.retention_schedule,
            "content_file_spec": self.content_file_spec,
            "record_type_raw": self.record_type_raw,
            "record_type_normalized": self.record_type_normalized,
            "is_root": self.is_root,
            "is_referenced": self.is_referenced,
            "is_defined": self.is_defined,
            "export_state": self.export_state.value,
            "referenced_by": sorted(self.referenced_by),
        }

    def __str__(self) -> str:
        return (
            f"id:{self.key}\tparent:{self.container}\ttitle:{self.title}"
            f"\tclass:{self.classification}\tretSch:{self.retention_schedule}"
        )


class RecordTable:
    """Records from one export file, keyed by canonical identifier.

    Iteration is in identifier-string order.

    Parameters
    ----------
    source : Path | None, optional
        Export file the table was read from.
    labels : Iterable[str], optional
        Column labels of that export.
    """

    def __init__(self, source: Path | None = None, labels: Iterable[str] = ()) -> None:
        self.source = source
        self.labels = tuple(labels)
        self._records: dict[str, Record] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, rid: object) -> bool:
        return str(rid) in self._records

    def __iter__(self) -> Iterator[Record]:
        for key in sorted(self._records):
            yield self._records[key]

    def get(self, rid: RecordIdentifier | str) -> Record | None:
        """Look up a record by identifier or canonical string."""
        return self._records.get(str(rid))

    def put(self, record: Record) -> None:
        """Store a record under its canonical key, replacing any previous entry."""
        self._records[record.key] = record

    def keys(self) -> list[str]:
        """Canonical keys in iteration order."""
        return sorted(self._records)

    def roots(self) -> list[Record]:
        """Records with no container, in iteration order."""
        return [r for r in self if r.container is None and r.is_defined]


class GlobalRegistry:
    """Process-wide record index used for end-of-run auditing.

    Entries are only ever added or upgraded; a stub never overwrites a
    defined record, while a defined record always replaces what is there.
    """

    def __init__(self) -> None:
        self._records: dict[str, Record] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, rid: object) -> bool:
        return str(rid) in self._records

    def __iter__(self) -> Iterator[Record]:
        for key in sorted(self._records):
            yield self._records[key]

    def get(self, rid: RecordIdentifier | str) -> Record | None:
        """Look up a record by identifier or canonical string."""
        return self._records.get(str(rid))

    def add(self, record: Record) -> bool:
        """Add or upgrade one entry.

        Parameters
        ----------
        record : Record
            Incoming record.

        Returns
        -------
        bool
            True if the registry now holds ``record`` for its key.
        """
        existing = self._records.get(record.key)
        if existing is None:
            self._records[record.key] = record
            return True
        if existing is record:
            return True
        if not record.is_defined:
            existing.is_referenced = existing.is_referenced or record.is_referenced
            existing.referenced_by |= record.referenced_by
            return False

        record.is_referenced = record.is_referenced or existing.is_referenced
        record.referenced_by |= existing.referenced_by
        self._records[record.key] = record
        return True

    def merge(self, table: RecordTable) -> int:
        """Merge every record of a table.

        Returns
        -------
        int
            Number of entries added or replaced.
        """
        return sum(1 for record in table if self.add(record))

    def exported(self) -> list[Record]:
        """Exported records in identifier order."""
        return [r for r in self if r.is_exported]

    def exported_roots(self) -> list[Record]:
        """Exported root records in identifier order."""
        return [r for r in self if r.is_exported and r.is_root]
