"""Column schema binding for TRIM exports.

The first row of an export names its columns. Binding maps each semantic
role to the position of the column carrying it, by exact (case-sensitive)
label match after trimming. Adding a label variant requires only a new
entry in COLUMN_LABELS.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from trimveo.errors import SchemaError

__all__ = [
    "COLUMN_LABELS",
    "REQUIRED_ROLES",
    "OPTIONAL_ROLES",
    "SchemaBinding",
    "bind_schema",
]

# role -> accepted column labels
COLUMN_LABELS: dict[str, tuple[str, ...]] = {
    "id": ("Expanded Number",),
    "container": ("Folder", "Container"),
    "title": ("Title (Free Text Part)",),
    "classification": ("Classification",),
    "date_created": ("Date Created",),
    "date_registered": ("Date Registered",),
    "record_type": ("Record Type",),
    "content_file": ("DOS file",),
    "retention_schedule": ("Retention schedule",),
    "contained_records": ("*Contained Records*",),
    "is_part": ("*Is Part*",),
}

# Order matters: a SchemaError names the first missing role in this order.
REQUIRED_ROLES: tuple[str, ...] = (
    "id",
    "container",
    "title",
    "classification",
    "date_created",
    "date_registered",
    "record_type",
    "content_file",
    "retention_schedule",
)

OPTIONAL_ROLES: tuple[str, ...] = ("contained_records", "is_part")

_LABEL_TO_ROLE: dict[str, str] = {
    label: role for role, labels in COLUMN_LABELS.items() for label in labels
}


@dataclass(frozen=True)
class SchemaBinding:
    """Role-to-column mapping for one export.

    Attributes
    ----------
    labels : tuple[str, ...]
        Column labels as they appear in the header row.
    columns : dict[str, int]
        Role name to 0-based column index. Optional roles are absent
        when the export lacks them.
    """

    labels: tuple[str, ...]
    columns: dict[str, int]

    def has(self, role: str) -> bool:
        """Return True if the role is bound to a column."""
        return role in self.columns

    def cell(self, row: Sequence[str], role: str) -> str:
        """Get the cell for a role, or "" when unbound or past the row end."""
        index = self.columns.get(role)
        if index is None or index >= len(row):
            return ""
        return row[index]


def bind_schema(header: Sequence[str], file: str | None = None) -> SchemaBinding:
    """Bind an export header to semantic roles.

    Parameters
    ----------
    header : Sequence[str]
        Column labels from the first row.
    file : str | None, optional
        Export file name, used in error messages.

    Returns
    -------
    SchemaBinding
        Binding covering every required role.

    Raises
    ------
    SchemaError
        If any required role has no column; names the first one missing.
    """
    columns: dict[str, int] = {}
    for index, label in enumerate(header):
        role = _LABEL_TO_ROLE.get(label.strip())
        if role is not None:
            columns[role] = index

    for role in REQUIRED_ROLES:
        if role not in columns:
            raise SchemaError(role, file=file)

    return SchemaBinding(labels=tuple(header), columns=columns)
