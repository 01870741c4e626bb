"""Shared data types for trimveo.

This package contains the identifier, record, table and registry types
consumed across the pipeline.

Domain-specific types live closer to their consumers:
- Schema bindings → trimveo.parse.schema
- Emission results → trimveo.emit.emitter
- Audit types → trimveo.audit.models
"""

from trimveo.models.identifiers import (
    RecordIdentifier,
    parse_identifier,
    parse_optional_identifier,
)
from trimveo.models.records import (
    ExportState,
    GlobalRegistry,
    Record,
    RecordTable,
)

__all__ = [
    # Identifiers
    "RecordIdentifier",
    "parse_identifier",
    "parse_optional_identifier",
    # Record models
    "ExportState",
    "Record",
    "RecordTable",
    "GlobalRegistry",
]
