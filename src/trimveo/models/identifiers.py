"""Structured record identifiers.

A TRIM record number has three slash-separated parts: a category, a year
and a sequence number (e.g. ``AB/2021/17``). The year may be written with
two or four digits; both forms identify the same record, so the canonical
form always uses the last two digits (``AB/21/17``). The canonical string is
the key used by record tables and the global registry.
"""

import re
from dataclasses import dataclass

from trimveo.errors import IdentifierParseError

__all__ = ["RecordIdentifier", "parse_identifier", "parse_optional_identifier"]

_DIGITS_RE = re.compile(r"\d+", re.ASCII)


@dataclass(frozen=True)
class RecordIdentifier:
    """Three-part record identifier with structural equality.

    Attributes
    ----------
    category : str
        Leading alphanumeric part (e.g. 'AB').
    year : str
        Two-digit year.
    sequence : int
        Non-negative sequence number.
    """

    category: str
    year: str
    sequence: int

    @classmethod
    def parse(cls, value: str | None) -> "RecordIdentifier":
        """Parse an identifier string.

        Parameters
        ----------
        value : str | None
            Text of the form ``category/yy/seq`` or ``category/yyyy/seq``.
            Surrounding whitespace is ignored.

        Returns
        -------
        RecordIdentifier
            Parsed identifier with a two-digit year.

        Raises
        ------
        IdentifierParseError
            If the value is missing, does not have exactly three parts, the
            year is not 2 or 4 digits, or the sequence is not a
            non-negative integer.
        """
        if value is None:
            raise IdentifierParseError(value, "no identifier")

        parts = value.strip().split("/")
        if len(parts) != 3:
            raise IdentifierParseError(value, "doesn't have three parts separated by '/'")

        category, year, sequence = (p.strip() for p in parts)
        if not category:
            raise IdentifierParseError(value, "category is empty")

        if len(year) not in (2, 4) or not _DIGITS_RE.fullmatch(year):
            raise IdentifierParseError(value, f"year is not 2 or 4 digits ({year})")

        if not _DIGITS_RE.fullmatch(sequence):
            raise IdentifierParseError(value, f"invalid sequence number ({sequence})")

        return cls(category=category, year=year[-2:], sequence=int(sequence))

    @property
    def package_name(self) -> str:
        """Filesystem-safe name: canonical form with '/' replaced by '-'."""
        return str(self).replace("/", "-")

    def __str__(self) -> str:
        return f"{self.category}/{self.year}/{self.sequence}"


def parse_identifier(value: str | None) -> RecordIdentifier:
    """Parse an identifier string (see RecordIdentifier.parse)."""
    return RecordIdentifier.parse(value)


def parse_optional_identifier(value: str | None) -> RecordIdentifier | None:
    """Parse a container reference, treating empty text as no container.

    Parameters
    ----------
    value : str | None
        Raw container cell.

    Returns
    -------
    RecordIdentifier | None
        None when the cell is absent or blank.

    Raises
    ------
    IdentifierParseError
        If the cell is non-blank and malformed.
    """
    if value is None or not value.strip():
        return None
    return RecordIdentifier.parse(value)
