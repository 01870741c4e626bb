"""Recursive package emission.

One package is emitted per root record. The subtree under the root is
walked depth first, children in identifier order, and every record in it
becomes one information object at its depth. A failure anywhere in the
subtree (bad date, unattachable content, container cycle, builder error)
abandons that root's package only; the next root is tried regardless.
"""

import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from trimveo.audit.logger import AuditLogger
from trimveo.emit.builder import PackageBuilder, PackageHandle
from trimveo.emit.formats import FormatAllowList
from trimveo.emit.metadata import (
    AGLS_ENCODING,
    AGLS_SCHEMA,
    DEFAULT_LABEL_PREFIX,
    TRIM_ENCODING,
    TRIM_SCHEMA,
    information_object_label,
    make_agls_metadata,
    make_trim_metadata,
    rdf_about,
)
from trimveo.errors import ContentAttachError, CycleDetected, PackageError, TrimVeoError
from trimveo.graph import ChildrenIndex, build_children_index
from trimveo.models import ExportState, Record, RecordTable
from trimveo.utils import vers_datetime

__all__ = [
    "PLACEHOLDER_FILENAME",
    "PLACEHOLDER_TEXT",
    "HISTORY_EVENT",
    "HISTORY_DESCRIPTION",
    "RootResult",
    "EmissionResult",
    "PackageEmitter",
]

PLACEHOLDER_FILENAME = "DummyContentFile.txt"
PLACEHOLDER_TEXT = "This Information Piece has no content in an approved long term preservation format\n"

HISTORY_EVENT = "Converted to VEO"
HISTORY_DESCRIPTION = "Created with trimveo"

STAGE = "emit"


@dataclass(frozen=True)
class RootResult:
    """Outcome of emitting one root.

    Attributes
    ----------
    root : str
        Canonical identifier of the root.
    package_name : str
        Package name ('/' replaced by '-').
    success : bool
        True if the package was sealed.
    package_path : str | None
        Sealed artifact path (None on failure).
    records_emitted : tuple[str, ...]
        Records emitted into the package, in emission order.
    depths : tuple[int, ...]
        Depth of each emitted record, aligned with ``records_emitted``.
    warnings : tuple[str, ...]
        Advisory warnings (non-approved formats).
    error_type : str | None
        Exception class name on failure.
    error_message : str | None
        Failure message.
    """

    root: str
    package_name: str
    success: bool
    package_path: str | None = None
    records_emitted: tuple[str, ...] = ()
    depths: tuple[int, ...] = ()
    warnings: tuple[str, ...] = ()
    error_type: str | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for the run manifest."""
        return {
            "root": self.root,
            "package_name": self.package_name,
            "success": self.success,
            "package_path": self.package_path,
            "records_emitted": list(self.records_emitted),
            "warnings": list(self.warnings),
            "error_type": self.error_type,
            "error_message": self.error_message,
        }


@dataclass(frozen=True)
class EmissionResult:
    """Outcome of emitting every root of one table."""

    roots: tuple[RootResult, ...] = ()

    @property
    def packages_written(self) -> int:
        return sum(1 for r in self.roots if r.success)

    @property
    def roots_failed(self) -> int:
        return sum(1 for r in self.roots if not r.success)

    @property
    def warnings(self) -> tuple[str, ...]:
        return tuple(w for r in self.roots for w in r.warnings)


class _Placeholder:
    """Placeholder content file, written at most once per root."""

    def __init__(self) -> None:
        self._dir: Path | None = None

    def path(self) -> Path:
        if self._dir is None:
            self._dir = Path(tempfile.mkdtemp(prefix="trimveo-"))
            (self._dir / PLACEHOLDER_FILENAME).write_text(PLACEHOLDER_TEXT, encoding="utf-8")
        return self._dir / PLACEHOLDER_FILENAME

    def cleanup(self) -> None:
        if self._dir is not None:
            shutil.rmtree(self._dir, ignore_errors=True)
            self._dir = None


def _path_to(key: str | None, parents: dict[str, str | None]) -> tuple[str, ...]:
    """Keys from the root down to ``key``, following recorded parents."""
    path: list[str] = []
    while key is not None:
        path.append(key)
        key = parents[key]
    return tuple(reversed(path))


class PackageEmitter:
    """Emit one package per root record.

    The emitter holds the run-wide export counter, so one instance should
    be used for every table of a run.

    Parameters
    ----------
    builder : PackageBuilder
        Package factory.
    output_dir : Path
        Directory receiving packages.
    formats : FormatAllowList
        Approved content file extensions.
    hash_algorithm : str, optional
        Package hash algorithm, by default "SHA-512".
    sign : bool, optional
        Sign packages when sealing, by default True.
    user_id : str, optional
        Initiator recorded in the package history.
    source_dir : Path | None, optional
        Content directory; each record's export directory when None.
    rdf_id_prefix : str | None, optional
        Prefix for ``rdf:about`` URIs; ``file:///`` when None.
    label_prefix : str, optional
        Prefix of information object labels.
    agls_common : str | None, optional
        Common AGLS fragment added to every descriptive package.
    readme : Path | None, optional
        Readme added to every package.
    logger : AuditLogger | None, optional
        Audit logger for warnings and per-root outcomes.
    """

    def __init__(
        self,
        builder: PackageBuilder,
        output_dir: Path,
        formats: FormatAllowList,
        hash_algorithm: str = "SHA-512",
        sign: bool = True,
        user_id: str = "Unknown user",
        source_dir: Path | None = None,
        rdf_id_prefix: str | None = None,
        label_prefix: str = DEFAULT_LABEL_PREFIX,
        agls_common: str | None = None,
        readme: Path | None = None,
        logger: AuditLogger | None = None,
    ) -> None:
        self.builder = builder
        self.output_dir = output_dir
        self.formats = formats
        self.hash_algorithm = hash_algorithm
        self.sign = sign
        self.user_id = user_id
        self.source_dir = source_dir
        self.rdf_id_prefix = rdf_id_prefix
        self.label_prefix = label_prefix
        self.agls_common = agls_common
        self.readme = readme
        self.logger = logger
        self.export_count = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def emit_table(self, table: RecordTable) -> EmissionResult:
        """Emit a package for every root of an assembled table.

        Parameters
        ----------
        table : RecordTable
            Table after assembly (stubs added).

        Returns
        -------
        EmissionResult
            One RootResult per root, in identifier order.
        """
        children = build_children_index(table)
        results = [self.emit_root(root, table, children) for root in table.roots()]
        return EmissionResult(roots=tuple(results))

    def emit_root(
        self,
        root: Record,
        table: RecordTable,
        children: ChildrenIndex | None = None,
    ) -> RootResult:
        """Emit the package for one root.

        Errors scoped to the root are caught and returned as a failed
        RootResult; the package is abandoned and every record visited in
        the pass is marked failed.

        Parameters
        ----------
        root : Record
            Record to start the package at.
        table : RecordTable
            Table the record belongs to.
        children : ChildrenIndex | None, optional
            Prebuilt children index for ``table``.

        Returns
        -------
        RootResult
            Outcome of the root.
        """
        if children is None:
            children = build_children_index(table)

        root.is_root = True
        name = root.id.package_name
        visited: list[Record] = []
        warnings: list[str] = []
        placeholder = _Placeholder()
        handle: PackageHandle | None = None

        try:
            plan = self._plan(root, children, visited)
            handle = self.builder.open(self.output_dir, name, self.hash_algorithm)
            if self.readme is not None:
                handle.add_readme(self.readme)
            handle.add_event(vers_datetime(), HISTORY_EVENT, self.user_id, HISTORY_DESCRIPTION)
            for record, depth in plan:
                self._emit_record(handle, record, depth, placeholder, warnings)
            package_path = handle.finalize(self.sign)
        except TrimVeoError as e:
            if handle is not None:
                handle.abandon()
            for record in visited:
                record.export_state = ExportState.FAILED
            if self.logger:
                self.logger.root_failed(root.key, type(e).__name__, str(e), stage=STAGE)
            return RootResult(
                root=root.key,
                package_name=name,
                success=False,
                warnings=tuple(warnings),
                error_type=type(e).__name__,
                error_message=str(e),
            )
        finally:
            placeholder.cleanup()

        for record, _ in plan:
            record.export_state = ExportState.EXPORTED
        self.export_count += 1

        if self.logger:
            self.logger.package_written(root.key, str(package_path), len(plan), stage=STAGE)

        return RootResult(
            root=root.key,
            package_name=name,
            success=True,
            package_path=str(package_path),
            records_emitted=tuple(r.key for r, _ in plan),
            depths=tuple(d for _, d in plan),
            warnings=tuple(warnings),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _plan(
        self,
        root: Record,
        children: ChildrenIndex,
        visited: list[Record],
    ) -> list[tuple[Record, int]]:
        """Walk the subtree into ``(record, depth)`` pairs in emission order.

        Raises
        ------
        CycleDetected
            If a record is reached twice in the same pass.
        """
        plan: list[tuple[Record, int]] = []
        parents: dict[str, str | None] = {}
        # Explicit stack: container chains can be deeper than the recursion limit.
        stack: list[tuple[Record, int, str | None]] = [(root, 1, None)]

        while stack:
            record, depth, parent = stack.pop()
            if record.key in parents:
                raise CycleDetected(record.key, _path_to(parent, parents))
            parents[record.key] = parent
            visited.append(record)
            record.export_state = ExportState.EMITTING
            plan.append((record, depth))
            stack.extend(
                (child, depth + 1, record.key)
                for child in reversed(children.get(record.key, ()))
            )

        return plan

    def _emit_record(
        self,
        handle: PackageHandle,
        record: Record,
        depth: int,
        placeholder: _Placeholder,
        warnings: list[str],
    ) -> None:
        name = record.id.package_name
        handle.add_information_object(information_object_label(record, self.label_prefix), depth)
        handle.add_metadata_package(
            AGLS_SCHEMA,
            AGLS_ENCODING,
            make_agls_metadata(record, rdf_about(name, self.rdf_id_prefix), self.agls_common),
        )
        handle.add_metadata_package(TRIM_SCHEMA, TRIM_ENCODING, make_trim_metadata(record))

        if record.content_file_spec and record.content_file_spec.strip():
            self._attach_content(handle, record, placeholder, warnings)

    def _attach_content(
        self,
        handle: PackageHandle,
        record: Record,
        placeholder: _Placeholder,
        warnings: list[str],
    ) -> None:
        """Attach the last file named in the DOS file cell, plus a placeholder if needed."""
        spec = record.content_file_spec or ""
        filename = spec.split("|")[-1].strip()
        if not filename:
            raise ContentAttachError(record.key, spec, "no content file name")

        source_dir = self.source_dir or record.source_dir or Path(".")
        path = source_dir / filename
        if not path.exists():
            raise ContentAttachError(record.key, path, "does not exist")
        if path.is_dir():
            raise ContentAttachError(record.key, path, "is a directory not a file")

        name = record.id.package_name
        try:
            handle.add_information_piece(None)
            handle.add_content_file(f"{name}/{filename}", path)
            if not self.formats.is_approved_file(filename):
                warning = f"File '{path}' has no long term sustainable format"
                warnings.append(warning)
                if self.logger:
                    self.logger.record_warning(record.key, warning, stage=STAGE)
                handle.add_content_file(f"{name}/{PLACEHOLDER_FILENAME}", placeholder.path())
        except (PackageError, OSError) as e:
            raise ContentAttachError(record.key, path, str(e)) from e
