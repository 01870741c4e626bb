"""Deterministic normalization of export rows.

- normalize_date: TRIM digit dates to ISO8601
- map_record_type: controlled record-type vocabulary
- build_record / merge_into_table: rows to records
"""

from trimveo.normalize.dates import normalize_date
from trimveo.normalize.normalizer import DUPLICATE_POLICIES, build_record, merge_into_table
from trimveo.normalize.record_types import RECORD_TYPE_LABELS, map_record_type

__all__ = [
    "DUPLICATE_POLICIES",
    "RECORD_TYPE_LABELS",
    "build_record",
    "map_record_type",
    "merge_into_table",
    "normalize_date",
]
