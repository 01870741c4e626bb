"""JSON Lines event log of a conversion run.

One JSON object per line in ``events.jsonl``. The events a run can raise
and their levels are listed in EVENT_LEVELS; ``schemas/log_event.schema.json``
describes the envelope.
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

from trimveo.audit.models import LogEvent
from trimveo.utils import get_iso_timestamp

__all__ = ["AuditLogger", "LEVELS", "EVENT_LEVELS"]

LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")

EVENT_LEVELS: dict[str, str] = {
    "run_started": "INFO",
    "run_finished": "INFO",
    "stage_started": "INFO",
    "stage_finished": "INFO",
    "artifact_written": "INFO",
    "package_written": "INFO",
    "file_skipped": "WARN",
    "row_rejected": "WARN",
    "record_warning": "WARN",
    "root_failed": "ERROR",
    "error": "ERROR",
}


def _payload(**fields: Any) -> dict[str, Any]:
    """Event data without the optional fields left unset."""
    return {k: v for k, v in fields.items() if v is not None}


class AuditLogger:
    """Append-only JSONL writer, flushed after every event.

    Parameters
    ----------
    run_id : str
        Run identifier stamped on every event.
    log_path : Path
        Log file; opened for append, parent created if needed.
    min_level : str, optional
        Events below this level are dropped, by default "INFO".

    Attributes
    ----------
    current_stage : str | None
        Stage stamped on events that do not name one.
    counts : dict[str, int]
        Events written per level.
    """

    def __init__(self, run_id: str, log_path: Path, min_level: str = "INFO") -> None:
        if min_level not in LEVELS:
            raise ValueError(f"Unknown log level: {min_level!r}")

        self.run_id = run_id
        self.log_path = log_path
        self.min_level = min_level
        self.current_stage: str | None = None
        self.counts: dict[str, int] = dict.fromkeys(LEVELS, 0)

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.log_path.open("a", encoding="utf-8")

    def __enter__(self) -> "AuditLogger":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        if not self._file.closed:
            self._file.flush()
            self._file.close()

    def set_stage(self, stage: str | None) -> None:
        self.current_stage = stage

    def event(
        self,
        event_type: str,
        data: dict[str, Any] | None = None,
        level: str | None = None,
        stage: str | None = None,
        rid: str | None = None,
    ) -> None:
        """Write one event.

        Parameters
        ----------
        event_type : str
            Event name.
        data : dict[str, Any] | None, optional
            Payload.
        level : str | None, optional
            Level; defaults to the event's entry in EVENT_LEVELS, else INFO.
        stage : str | None, optional
            Stage; defaults to ``current_stage``.
        rid : str | None, optional
            Record the event is about.
        """
        level = level or EVENT_LEVELS.get(event_type, "INFO")
        if LEVELS.index(level) < LEVELS.index(self.min_level):
            return

        record = LogEvent(
            ts=get_iso_timestamp(),
            run_id=self.run_id,
            level=level,
            event=event_type,
            data=data or {},
            stage=stage or self.current_stage,
            rid=rid,
        )
        json.dump(asdict(record), self._file, ensure_ascii=False, separators=(",", ":"))
        self._file.write("\n")
        self._file.flush()
        self.counts[level] += 1

    # ------------------------------------------------------------------
    # Run and stage lifecycle
    # ------------------------------------------------------------------

    def run_started(self, command: list[str], parameters: dict[str, Any]) -> None:
        self.event("run_started", {"command": command, "parameters": parameters})

    def run_finished(
        self,
        status: str,
        duration_seconds: float,
        packages_written: int | None = None,
    ) -> None:
        self.event(
            "run_finished",
            _payload(
                status=status,
                duration_seconds=duration_seconds,
                packages_written=packages_written,
            ),
        )

    def stage_started(self, stage: str, expected_items: int | None = None) -> None:
        """Make ``stage`` current and log its start."""
        self.set_stage(stage)
        self.event("stage_started", _payload(expected_items=expected_items), stage=stage)

    def stage_finished(
        self,
        stage: str,
        duration_seconds: float,
        counters: dict[str, int] | None = None,
    ) -> None:
        self.event(
            "stage_finished",
            _payload(duration_seconds=duration_seconds, counters=counters or None),
            stage=stage,
        )

    # ------------------------------------------------------------------
    # Conversion events
    # ------------------------------------------------------------------

    def file_skipped(
        self, path: str, reason: str, stage: str | None = None, level: str | None = None
    ) -> None:
        """An export, or an input path, was not read at all."""
        self.event("file_skipped", {"path": path, "reason": reason}, level=level, stage=stage)

    def row_rejected(self, path: str, message: str, stage: str | None = None) -> None:
        """One row of an export was dropped; the rest of the file was read."""
        self.event("row_rejected", {"path": path, "message": message}, stage=stage)

    def record_warning(self, rid: str | None, message: str, stage: str | None = None) -> None:
        """Advisory problem with a record (unknown record type, unapproved format)."""
        self.event("record_warning", {"message": message}, stage=stage, rid=rid)

    def package_written(
        self, rid: str, path: str, records: int, stage: str | None = None
    ) -> None:
        self.event("package_written", {"path": path, "records": records}, stage=stage, rid=rid)

    def root_failed(
        self, rid: str, exception_class: str, message: str, stage: str | None = None
    ) -> None:
        """The package of root ``rid`` was abandoned."""
        self.event(
            "root_failed",
            {"exception_class": exception_class, "message": message},
            stage=stage,
            rid=rid,
        )

    def artifact_written(
        self,
        path: str,
        sha256: str,
        stage: str | None = None,
        bytes_written: int | None = None,
        record_count: int | None = None,
    ) -> None:
        self.event(
            "artifact_written",
            _payload(path=path, sha256=sha256, bytes=bytes_written, record_count=record_count),
            stage=stage,
        )

    def error(
        self,
        exception_class: str,
        message: str,
        stage: str | None = None,
        rid: str | None = None,
        traceback: str | None = None,
    ) -> None:
        """An error that ended the run."""
        self.event(
            "error",
            _payload(exception_class=exception_class, message=message, traceback=traceback),
            stage=stage,
            rid=rid,
        )
