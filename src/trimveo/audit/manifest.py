"""Builder for ``run.json``.

The manifest is assembled in memory while the run progresses and written
once, atomically, when the run finishes. It lists the exports read, the
parameters used, one entry per stage, every package and report written
(with digests) and every failure.
"""

import json
import os
import time
from dataclasses import asdict
from pathlib import Path
from typing import Any

from trimveo.audit.models import (
    ArtifactInfo,
    CommandInfo,
    EnvironmentInfo,
    ErrorInfo,
    InputsInfo,
    OutputsInfo,
    PackageInfo,
    RunManifest,
    StageInfo,
)
from trimveo.utils import get_iso_timestamp

__all__ = ["ManifestWriter", "MANIFEST_FILENAME", "MANIFEST_VERSION", "RUN_STATUSES"]

MANIFEST_FILENAME = "run.json"
MANIFEST_VERSION = "1.0.0"
RUN_STATUSES = ("success", "partial", "failed")


class ManifestWriter:
    """Collects run facts and writes run.json.

    Until ``finish`` is called the manifest status is "partial", so a
    manifest dumped mid-run never claims success.

    Parameters
    ----------
    run_id : str
        Run identifier shared with the event log.
    output_dir : Path
        Directory receiving run.json; artifact paths are relative to it.
    command : CommandInfo
        How the run was invoked.
    environment : EnvironmentInfo
        Interpreter and library versions.
    transform_version : str
        ``git:<sha>`` or the package version.
    parameters : dict[str, Any]
        Configuration snapshot.
    """

    def __init__(
        self,
        run_id: str,
        output_dir: Path,
        command: CommandInfo,
        environment: EnvironmentInfo,
        transform_version: str,
        parameters: dict[str, Any],
    ) -> None:
        self.output_dir = output_dir
        self.manifest_path = output_dir / MANIFEST_FILENAME
        self.manifest = RunManifest(
            manifest_version=MANIFEST_VERSION,
            run_id=run_id,
            created_at=get_iso_timestamp(),
            status="partial",
            transform_version=transform_version,
            command=command,
            environment=environment,
            inputs=InputsInfo(paths=[], files=[], total_records_defined=0),
            parameters=parameters,
            stages=[],
            outputs=OutputsInfo(),
        )
        self._open_stages: dict[str, tuple[StageInfo, float]] = {}
        self._started = time.monotonic()

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def open_stage(self, name: str) -> StageInfo:
        """Append a stage entry and start timing it."""
        stage = StageInfo(name=name, started_at=get_iso_timestamp())
        self.manifest.stages.append(stage)
        self._open_stages[name] = (stage, time.monotonic())
        return stage

    def close_stage(self, name: str, counters: dict[str, int] | None = None) -> float:
        """Stamp the end of an open stage and merge its counters.

        Returns
        -------
        float
            Stage duration in seconds.

        Raises
        ------
        ValueError
            If no stage of that name is open.
        """
        try:
            stage, started = self._open_stages.pop(name)
        except KeyError:
            raise ValueError(f"Stage not started: {name}") from None

        stage.finished_at = get_iso_timestamp()
        stage.duration_seconds = time.monotonic() - started
        if counters:
            stage.counters.update(counters)
        return stage.duration_seconds

    # ------------------------------------------------------------------
    # Inputs, outputs, failures
    # ------------------------------------------------------------------

    def set_inputs(self, inputs: InputsInfo) -> None:
        self.manifest.inputs = inputs

    def add_package(self, package: PackageInfo) -> None:
        self.manifest.outputs.packages.append(package)

    def add_artifact(self, artifact: ArtifactInfo) -> None:
        self.manifest.outputs.artifacts.append(artifact)

    def add_error(self, error: ErrorInfo) -> None:
        self.manifest.errors.append(error)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def elapsed(self) -> float:
        """Seconds since the writer was created."""
        return time.monotonic() - self._started

    def finish(self, status: str) -> Path:
        """Set the final status and write run.json.

        Raises
        ------
        ValueError
            If ``status`` is not one of RUN_STATUSES.
        """
        if status not in RUN_STATUSES:
            raise ValueError(f"Unknown run status: {status!r}")

        self.manifest.status = status
        self.manifest.finished_at = get_iso_timestamp()
        self.manifest.duration_seconds = self.elapsed()
        self._write_atomic(self.manifest_path)
        return self.manifest_path

    def _write_atomic(self, path: Path) -> None:
        """Write to a temp file, fsync, then rename over ``path``."""
        temp_path = path.with_suffix(".tmp")
        with temp_path.open("w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        temp_path.replace(path)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self.manifest)
