"""Audit trail of conversion runs: events.jsonl and run.json.

- RunContext: what the runner talks to; opens both files and closes them
- AuditLogger: JSON Lines event log
- ManifestWriter: run.json builder
"""

from trimveo.audit.context import RunContext
from trimveo.audit.helpers import generate_run_id, get_user_id
from trimveo.audit.logger import AuditLogger
from trimveo.audit.manifest import ManifestWriter

__all__ = [
    "RunContext",
    "AuditLogger",
    "ManifestWriter",
    "generate_run_id",
    "get_user_id",
]
