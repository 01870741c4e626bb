"""Error taxonomy for trimveo.

Each error is scoped to the unit of work it aborts:

- SchemaError: one export file (the file is skipped)
- IdentifierParseError, DuplicateRecordError: one row
- DateFormatError, ContentAttachError, CycleDetected, PackageError: one root
- ConfigurationError: the whole run (raised only at startup)
"""

from pathlib import Path

__all__ = [
    "TrimVeoError",
    "ConfigurationError",
    "SchemaError",
    "IdentifierParseError",
    "DuplicateRecordError",
    "DateFormatError",
    "ContentAttachError",
    "CycleDetected",
    "PackageError",
    "PackageCreateError",
    "PackageFinalizeError",
]


class TrimVeoError(Exception):
    """Base class for all trimveo errors."""


class ConfigurationError(TrimVeoError):
    """Raised when startup configuration cannot be validated."""


class SchemaError(TrimVeoError):
    """Raised when an export header lacks a required column.

    Parameters
    ----------
    role : str
        First required role with no matching column.
    file : str | None, optional
        Export file being bound.
    """

    def __init__(self, role: str, file: str | None = None) -> None:
        where = f"'{file}': " if file else ""
        super().__init__(f"{where}no column found for required role '{role}'")
        self.role = role
        self.file = file


class IdentifierParseError(TrimVeoError):
    """Raised when a record identifier string is malformed."""

    def __init__(self, value: str | None, reason: str) -> None:
        super().__init__(f"Invalid record identifier {value!r}: {reason}")
        self.value = value
        self.reason = reason


class DuplicateRecordError(TrimVeoError):
    """Raised for a repeated identifier when duplicates are rejected."""

    def __init__(self, rid: str, line_no: int) -> None:
        super().__init__(f"Record '{rid}' already defined (line {line_no} rejected)")
        self.rid = rid
        self.line_no = line_no


class DateFormatError(TrimVeoError):
    """Raised when a date string is not a supported digit length."""

    def __init__(self, value: str | None) -> None:
        length = 0 if value is None else len(value)
        super().__init__(f"Failed converting date {value!r}: unsupported length {length}")
        self.value = value


class ContentAttachError(TrimVeoError):
    """Raised when a record's content file cannot be resolved or attached."""

    def __init__(self, rid: str, path: Path | str, reason: str) -> None:
        super().__init__(f"Content for '{rid}' ({path}): {reason}")
        self.rid = rid
        self.path = Path(path)
        self.reason = reason


class CycleDetected(TrimVeoError):
    """Raised when a container cycle is met during emission.

    Attributes
    ----------
    rid : str
        Record visited twice.
    path : tuple[str, ...]
        Emission path from the root down to the repeated record.
    """

    def __init__(self, rid: str, path: tuple[str, ...]) -> None:
        chain = " -> ".join((*path, rid))
        super().__init__(f"Container cycle detected at '{rid}': {chain}")
        self.rid = rid
        self.path = path


class PackageError(TrimVeoError):
    """Base class for package builder failures."""


class PackageCreateError(PackageError):
    """Raised when a package cannot be created (e.g. stale output not removable)."""


class PackageFinalizeError(PackageError):
    """Raised when a package cannot be sealed."""
