"""Timestamp utilities for trimveo.

This module provides consistent timestamp functions across the codebase.
"""

from datetime import UTC, datetime
from pathlib import Path

__all__ = ["get_iso_timestamp", "get_file_mtime", "vers_datetime"]


def get_iso_timestamp() -> str:
    """Get current UTC timestamp in ISO8601 format with microseconds.

    Returns
    -------
    str
        ISO8601 timestamp with microseconds (e.g., "2026-02-03T12:34:56.123456Z").
    """
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def get_file_mtime(file_path: Path) -> str:
    """Get modification time of file as ISO8601 timestamp.

    Parameters
    ----------
    file_path : Path
        Path to file.

    Returns
    -------
    str
        ISO8601 timestamp (e.g., '2024-01-30T12:00:00Z'), or empty string if unable to read.
    """
    try:
        file_stat = file_path.stat()
        mtime = datetime.fromtimestamp(file_stat.st_mtime, UTC)
        return mtime.replace(microsecond=0).isoformat().replace("+00:00", "Z")
    except (OSError, ValueError):
        return ""


def vers_datetime(moment: datetime | None = None) -> str:
    """Format a moment in the VERS date-time form.

    The VERS form is local time to the second with a ``+hh:mm`` offset,
    e.g. ``2021-05-05T14:03:22+10:00``.

    Parameters
    ----------
    moment : datetime | None, optional
        Time to format; naive values are taken as local time. Defaults to now.

    Returns
    -------
    str
        Formatted timestamp.
    """
    if moment is None:
        moment = datetime.now()
    return moment.astimezone().replace(microsecond=0).isoformat()
