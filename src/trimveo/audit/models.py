"""Records kept in ``run.json`` and ``events.jsonl``.

Field names are the JSON keys; ``dataclasses.asdict`` is the only
serializer, so renaming a field changes the file format (see
``schemas/``).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from trimveo.utils import calculate_file_sha256

__all__ = [
    "CommandInfo",
    "EnvironmentInfo",
    "FileInfo",
    "InputsInfo",
    "ArtifactInfo",
    "PackageInfo",
    "StageInfo",
    "ErrorInfo",
    "OutputsInfo",
    "RunManifest",
    "LogEvent",
]


def _relative(path: Path, output_dir: Path) -> str:
    try:
        return path.relative_to(output_dir).as_posix()
    except ValueError:
        return str(path)


@dataclass
class CommandInfo:
    """How the run was invoked; ``cwd`` is a basename only."""

    argv: list[str]
    cwd: str | None = None


@dataclass
class EnvironmentInfo:
    """Interpreter, platform and library versions of the run."""

    python_version: str
    platform: str
    package_version: str
    dependencies: dict[str, str] = field(default_factory=dict)


@dataclass
class FileInfo:
    """One export file as seen by the ingest stage.

    Attributes
    ----------
    name : str
        Basename of the export.
    encoding : str
        Codec it was decoded with; empty when it could not be read.
    bytes : int
        Size on disk.
    sha256 : str
        ``sha256:<hex>`` digest, empty when unread.
    records_defined : int
        Records the export defines (stubs excluded).
    rows_rejected : int
        Rows dropped for a malformed identifier or a rejected duplicate.
    skipped : bool
        The whole export was skipped.
    mtime : str | None
        Modification time, ISO8601 UTC.
    """

    name: str
    encoding: str
    bytes: int
    sha256: str
    records_defined: int
    rows_rejected: int = 0
    skipped: bool = False
    mtime: str | None = None


@dataclass
class InputsInfo:
    paths: list[str]
    files: list[FileInfo]
    total_records_defined: int

    @classmethod
    def from_files(cls, paths: list[str], files: list[FileInfo]) -> "InputsInfo":
        return cls(
            paths=paths,
            files=files,
            total_records_defined=sum(f.records_defined for f in files),
        )


@dataclass
class ArtifactInfo:
    """A report or log written next to the packages."""

    path: str
    sha256: str
    bytes: int | None = None
    record_count: int | None = None

    @classmethod
    def describe(
        cls, path: Path, output_dir: Path, record_count: int | None = None
    ) -> "ArtifactInfo":
        """Hash and size ``path``, naming it relative to ``output_dir``."""
        return cls(
            path=_relative(path, output_dir),
            sha256=calculate_file_sha256(path),
            bytes=path.stat().st_size,
            record_count=record_count,
        )


@dataclass
class PackageInfo:
    """A sealed ``<name>.veo.zip`` and the root it was built from."""

    root: str
    path: str
    sha256: str
    records: int

    @classmethod
    def describe(cls, root: str, path: Path, output_dir: Path, records: int) -> "PackageInfo":
        return cls(
            root=root,
            path=_relative(path, output_dir),
            sha256=calculate_file_sha256(path),
            records=records,
        )


@dataclass
class StageInfo:
    """Timing and counters of one stage (ingest, emit, report)."""

    name: str
    started_at: str
    counters: dict[str, int] = field(default_factory=dict)
    finished_at: str | None = None
    duration_seconds: float | None = None


@dataclass
class ErrorInfo:
    """A failure listed in run.json.

    Handled failures (a skipped export, an abandoned root) carry the
    class name of the error that caused them; ``traceback`` is only set
    for an error that ended the run.
    """

    timestamp: str
    exception_class: str
    message: str
    stage: str | None = None
    traceback: str | None = None
    rid: str | None = None


@dataclass
class OutputsInfo:
    artifacts: list[ArtifactInfo] = field(default_factory=list)
    packages: list[PackageInfo] = field(default_factory=list)


@dataclass
class RunManifest:
    """Contents of run.json.

    ``status`` is "success" when every export was read and every root
    sealed, "partial" when the run finished with skipped exports or failed
    roots, and "failed" when an error ended it early.
    """

    manifest_version: str
    run_id: str
    created_at: str
    status: str
    transform_version: str
    command: CommandInfo
    environment: EnvironmentInfo
    inputs: InputsInfo
    parameters: dict[str, Any]
    stages: list[StageInfo]
    outputs: OutputsInfo
    finished_at: str | None = None
    duration_seconds: float | None = None
    errors: list[ErrorInfo] = field(default_factory=list)


@dataclass
class LogEvent:
    """One line of events.jsonl.

    Attributes
    ----------
    ts : str
        ISO8601 UTC with microseconds.
    run_id : str
        Run the event belongs to.
    level : str
        "DEBUG", "INFO", "WARN" or "ERROR".
    event : str
        Event name, e.g. "package_written".
    data : dict[str, Any]
        Event payload.
    stage : str | None
        Stage the event was raised in.
    rid : str | None
        Canonical identifier of the record concerned.
    """

    ts: str
    run_id: str
    level: str
    event: str
    data: dict[str, Any]
    stage: str | None = None
    rid: str | None = None
