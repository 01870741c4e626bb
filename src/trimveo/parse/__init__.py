"""TRIM export parsing.

Exports are tab-separated text (UTF-16 as written by TRIM) whose first
row names the columns.

Main entry points:
- bind_schema: Map a header row to semantic roles
- read_export: Read one export into a RecordTable
- discover_exports: Expand files and directories into export files
- looks_like_export: Cheap header check used when searching directories
"""

from trimveo.parse.ingestion import (
    FileIngestionResult,
    discover_exports,
    looks_like_export,
    read_export,
)
from trimveo.parse.schema import SchemaBinding, bind_schema

__all__ = [
    "FileIngestionResult",
    "SchemaBinding",
    "bind_schema",
    "discover_exports",
    "looks_like_export",
    "read_export",
]
