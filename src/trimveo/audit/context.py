"""Run context tying the event log and run.json together.

A RunContext is what the conversion runner talks to: it opens the event
log, builds the manifest, and on exit writes the final status to both.
"""

import traceback
from pathlib import Path
from typing import Any

from trimveo.audit.helpers import (
    describe_command,
    describe_environment,
    generate_run_id,
    transform_version,
)
from trimveo.audit.logger import AuditLogger
from trimveo.audit.manifest import ManifestWriter
from trimveo.audit.models import (
    ArtifactInfo,
    ErrorInfo,
    FileInfo,
    InputsInfo,
    PackageInfo,
)
from trimveo.utils import get_iso_timestamp

__all__ = ["RunContext", "EVENTS_FILENAME"]

EVENTS_FILENAME = "events.jsonl"


class RunContext:
    """Audit trail of one conversion run.

    Use ``RunContext.start`` and the ``with`` statement; leaving the block
    normally writes ``status``, leaving it with an exception writes
    "failed" and the traceback.

    Attributes
    ----------
    run_id : str
        Run identifier shared by events.jsonl and run.json.
    output_dir : Path
        Directory holding both files.
    audit_logger : AuditLogger
        Event log, also handed to the emitter.
    manifest_writer : ManifestWriter
        run.json builder.
    status : str
        Status for a clean exit; the runner lowers it to "partial".
    packages_written : int | None
        Reported in the run_finished event when set.
    """

    def __init__(
        self,
        run_id: str,
        output_dir: Path,
        audit_logger: AuditLogger,
        manifest_writer: ManifestWriter,
    ) -> None:
        self.run_id = run_id
        self.output_dir = output_dir
        self.audit_logger = audit_logger
        self.manifest_writer = manifest_writer
        self.status = "success"
        self.packages_written: int | None = None

    @classmethod
    def start(
        cls,
        output_dir: Path,
        parameters: dict[str, Any],
        command_argv: list[str] | None = None,
        min_level: str = "INFO",
    ) -> "RunContext":
        """Create the output directory, open the log and log run_started.

        Parameters
        ----------
        output_dir : Path
            Directory for events.jsonl and run.json.
        parameters : dict[str, Any]
            Configuration snapshot recorded in both files.
        command_argv : list[str] | None, optional
            Command line; ``sys.argv`` when None.
        min_level : str, optional
            Lowest event level logged, by default "INFO".
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        run_id = generate_run_id()
        command = describe_command(command_argv)
        logger = AuditLogger(run_id, output_dir / EVENTS_FILENAME, min_level=min_level)
        writer = ManifestWriter(
            run_id=run_id,
            output_dir=output_dir,
            command=command,
            environment=describe_environment(),
            transform_version=transform_version(),
            parameters=parameters,
        )
        logger.run_started(command=command.argv, parameters=parameters)
        return cls(run_id, output_dir, logger, writer)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def start_stage(self, stage_name: str, expected_items: int | None = None) -> None:
        self.manifest_writer.open_stage(stage_name)
        self.audit_logger.stage_started(stage_name, expected_items=expected_items)

    def finish_stage(self, stage_name: str, counters: dict[str, int] | None = None) -> None:
        """Close a stage in run.json and log stage_finished.

        Raises
        ------
        ValueError
            If the stage was not started.
        """
        duration = self.manifest_writer.close_stage(stage_name, counters)
        self.audit_logger.stage_finished(stage_name, duration, counters=counters)

    # ------------------------------------------------------------------
    # Inputs and outputs
    # ------------------------------------------------------------------

    def record_inputs(self, paths: list[str], files: list[FileInfo]) -> None:
        self.manifest_writer.set_inputs(InputsInfo.from_files(paths, files))

    def record_package(self, rid: str, path: Path, records: int) -> None:
        """List a sealed package in run.json (package_written is logged by the emitter)."""
        self.manifest_writer.add_package(
            PackageInfo.describe(rid, path, self.output_dir, records)
        )

    def record_artifact(
        self,
        path: Path,
        stage: str | None = None,
        record_count: int | None = None,
    ) -> None:
        """List a report in run.json and log artifact_written."""
        artifact = ArtifactInfo.describe(path, self.output_dir, record_count)
        self.manifest_writer.add_artifact(artifact)
        self.audit_logger.artifact_written(
            path=artifact.path,
            sha256=artifact.sha256,
            stage=stage,
            bytes_written=artifact.bytes,
            record_count=record_count,
        )

    # ------------------------------------------------------------------
    # Failures
    # ------------------------------------------------------------------

    def record_failure(
        self,
        exception_class: str,
        message: str,
        stage: str | None = None,
        rid: str | None = None,
    ) -> None:
        """List a handled failure (skipped file, failed root) in run.json.

        The event itself (file_skipped, root_failed) is logged where the
        failure is handled.
        """
        self.manifest_writer.add_error(
            ErrorInfo(
                timestamp=get_iso_timestamp(),
                exception_class=exception_class,
                message=message,
                stage=stage,
                rid=rid,
            )
        )

    def record_error(
        self,
        exception: BaseException,
        stage: str | None = None,
        rid: str | None = None,
        include_traceback: bool = False,
    ) -> None:
        """List an unhandled error in run.json and log it."""
        tb = None
        if include_traceback:
            tb = "".join(traceback.format_exception(exception))

        error = ErrorInfo(
            timestamp=get_iso_timestamp(),
            exception_class=type(exception).__name__,
            message=str(exception),
            stage=stage or self.audit_logger.current_stage,
            traceback=tb,
            rid=rid,
        )
        self.manifest_writer.add_error(error)
        self.audit_logger.error(
            error.exception_class, error.message, stage=error.stage, rid=rid, traceback=tb
        )

    # ------------------------------------------------------------------
    # End of run
    # ------------------------------------------------------------------

    def finish(self, status: str | None = None) -> None:
        """Log run_finished, close the log and write run.json.

        The log is closed first so its digest in run.json covers every
        event.
        """
        status = status or self.status
        self.audit_logger.run_finished(
            status=status,
            duration_seconds=self.manifest_writer.elapsed(),
            packages_written=self.packages_written,
        )
        self.audit_logger.close()

        events_path = self.output_dir / EVENTS_FILENAME
        if events_path.exists():
            self.manifest_writer.add_artifact(ArtifactInfo.describe(events_path, self.output_dir))
        self.manifest_writer.finish(status)

    def __enter__(self) -> "RunContext":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is not None:
            self.record_error(exc_val, include_traceback=True)
            self.finish(status="failed")
        else:
            self.finish()
