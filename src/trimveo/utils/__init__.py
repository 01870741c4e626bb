"""Digests and timestamps shared by the package builder and the audit trail."""

from trimveo.utils.hashing import (
    calculate_file_digest,
    calculate_file_sha256,
    format_digest,
    resolve_hash_algorithm,
)
from trimveo.utils.timestamps import get_file_mtime, get_iso_timestamp, vers_datetime

__all__ = [
    "get_iso_timestamp",
    "get_file_mtime",
    "vers_datetime",
    "resolve_hash_algorithm",
    "format_digest",
    "calculate_file_digest",
    "calculate_file_sha256",
]
