"""End-to-end conversion runner.

Chains the conversion stages into a single deterministic, auditable run.

Architecture Flow:
    Startup: load the format allow-list, template and readme
    Stage ingest: discover exports, read each one, assemble its record
        graph and merge it into the run-wide registry
    Stage emit: one package per root, table by table
    Stage report: audit reports and the run summary

Only startup can stop a run (ConfigurationError). A skipped file or a
failed root is recorded and the run carries on.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from trimveo.audit.context import RunContext
from trimveo.audit.logger import AuditLogger
from trimveo.audit.models import FileInfo
from trimveo.emit import (
    DigestSigner,
    DirectoryPackageBuilder,
    FormatAllowList,
    PackageBuilder,
    PackageEmitter,
    load_agls_common,
)
from trimveo.emit.builder import README_FILENAME
from trimveo.emit.formats import LTSF_FILENAME
from trimveo.engine.config import ConversionConfig, ConversionResult
from trimveo.errors import ConfigurationError
from trimveo.graph import assemble_table, merge_into_registry
from trimveo.models import GlobalRegistry, RecordTable
from trimveo.parse import FileIngestionResult, discover_exports, read_export
from trimveo.report import RunSummary, write_audit_reports, write_summary

__all__ = ["Resources", "load_resources", "run_conversion"]


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Resources:
    """Files loaded once at startup."""

    formats: FormatAllowList
    agls_common: str | None
    readme: Path | None


def load_resources(config: ConversionConfig) -> Resources:
    """Load and validate everything the run needs before it starts.

    Raises
    ------
    ConfigurationError
        If the support directory is missing, the allow-list cannot be
        loaded, or a template directory was given but has no template.
    """
    if config.support_dir is None:
        raise ConfigurationError("A support directory (holding validLTSF.txt) is required")
    if not config.support_dir.is_dir():
        raise ConfigurationError(f"Support directory does not exist: {config.support_dir}")
    if config.source_dir is not None and not config.source_dir.is_dir():
        raise ConfigurationError(f"Source directory does not exist: {config.source_dir}")

    formats = FormatAllowList.load(config.support_dir / LTSF_FILENAME)
    agls_common = load_agls_common(config.template_dir)
    readme = config.support_dir / README_FILENAME

    return Resources(
        formats=formats,
        agls_common=agls_common,
        readme=readme if readme.is_file() else None,
    )


# ---------------------------------------------------------------------------
# Stage helpers
# ---------------------------------------------------------------------------


def _file_info(ingestion: FileIngestionResult) -> FileInfo:
    return FileInfo(
        name=ingestion.filename,
        encoding=ingestion.encoding_used,
        bytes=ingestion.file_size,
        sha256=ingestion.file_digest,
        records_defined=ingestion.records_defined,
        rows_rejected=ingestion.rows_rejected,
        skipped=ingestion.skipped,
        mtime=ingestion.file_mtime or None,
    )


class _Stages:
    """Stage bookkeeping that is a no-op when no RunContext is attached."""

    def __init__(self, context: RunContext | None) -> None:
        self.context = context
        self.logger: AuditLogger | None = context.audit_logger if context else None

    def start(self, name: str, expected_items: int | None = None) -> None:
        if self.context:
            self.context.start_stage(name, expected_items=expected_items)

    def finish(self, name: str, counters: dict[str, int]) -> None:
        if self.context:
            self.context.finish_stage(name, counters=counters)

    def inputs(self, paths: list[Path], ingested: list[FileIngestionResult]) -> None:
        if self.context:
            self.context.record_inputs([str(p) for p in paths], [_file_info(r) for r in ingested])

    def failure(
        self,
        exception_class: str,
        message: str,
        stage: str,
        rid: str | None = None,
    ) -> None:
        if self.context:
            self.context.record_failure(exception_class, message, stage=stage, rid=rid)


def _stage_ingest(
    paths: list[Path],
    config: ConversionConfig,
    registry: GlobalRegistry,
    result: ConversionResult,
    stages: _Stages,
) -> list[RecordTable]:
    """Stage ingest: read, assemble and register every export."""
    stage = "ingest"
    logger = stages.logger

    files, missing, ignored = discover_exports(
        paths,
        recursive=config.recursive,
        glob_pattern=config.glob_pattern,
        exclude=[config.output_dir],
    )
    result.files_found = len(files)
    result.files_ignored = len(ignored)
    stages.start(stage, expected_items=len(files))

    for path in ignored:
        if logger:
            logger.file_skipped(str(path), "not an export", stage=stage, level="DEBUG")

    for path in missing:
        message = f"Input does not exist: {path}"
        result.files_skipped += 1
        result.file_failures.append(message)
        if logger:
            logger.file_skipped(str(path), message, stage=stage)
        stages.failure("FileNotFoundError", message, stage)

    tables: list[RecordTable] = []
    ingested: list[FileIngestionResult] = []
    for path in files:
        table, ingestion = read_export(path, duplicate_policy=config.duplicate_policy)
        ingested.append(ingestion)

        if table is None:
            reason = "; ".join(ingestion.errors)
            result.files_skipped += 1
            result.file_failures.append(f"{path}: {reason}")
            if logger:
                logger.file_skipped(str(path), reason, stage=stage)
            stages.failure(ingestion.error_type or "SchemaError", f"{path}: {reason}", stage)
            continue

        result.files_read += 1
        result.records_defined += ingestion.records_defined
        result.rows_rejected += ingestion.rows_rejected
        for message in ingestion.errors:
            if logger:
                logger.row_rejected(str(path), message, stage=stage)

        assembly = assemble_table(table)
        result.stubs_created += len(assembly.stubs_created)
        for message in (*ingestion.warnings, *assembly.warnings):
            result.warnings += 1
            if logger:
                logger.record_warning(None, f"{path.name}: {message}", stage=stage)

        merge_into_registry(table, registry)
        tables.append(table)

    stages.inputs(paths, ingested)
    stages.finish(
        stage,
        {
            "files_found": result.files_found,
            "files_read": result.files_read,
            "files_skipped": result.files_skipped,
            "files_ignored": result.files_ignored,
            "rows_rejected": result.rows_rejected,
            "records_defined": result.records_defined,
            "stubs_created": result.stubs_created,
            "registry_size": len(registry),
        },
    )
    return tables


def _stage_emit(
    tables: list[RecordTable],
    emitter: PackageEmitter,
    result: ConversionResult,
    stages: _Stages,
) -> None:
    """Stage emit: one package per root, tables in input order."""
    stage = "emit"
    stages.start(stage, expected_items=sum(len(t.roots()) for t in tables))

    for table in tables:
        emission = emitter.emit_table(table)
        for root in emission.roots:
            result.roots += 1
            result.warnings += len(root.warnings)
            if root.success and root.package_path is not None:
                result.packages_written += 1
                if stages.context:
                    stages.context.record_package(
                        root.root, Path(root.package_path), len(root.records_emitted)
                    )
            else:
                result.roots_failed += 1
                result.root_failures.append(f"{root.root}: {root.error_message}")
                stages.failure(
                    root.error_type or "TrimVeoError",
                    root.error_message or "",
                    stage,
                    rid=root.root,
                )

    stages.finish(
        stage,
        {
            "roots": result.roots,
            "packages_written": result.packages_written,
            "roots_failed": result.roots_failed,
            "export_count": emitter.export_count,
        },
    )


def _stage_report(
    paths: list[Path],
    config: ConversionConfig,
    registry: GlobalRegistry,
    emitter: PackageEmitter,
    result: ConversionResult,
    stages: _Stages,
) -> None:
    """Stage report: tabular audit reports and Report.txt."""
    stage = "report"
    stages.start(stage, expected_items=len(registry))

    written = write_audit_reports(registry, config.output_dir)
    for path, count in written.items():
        result.output_files[path.stem] = str(path)
        if stages.context:
            stages.context.record_artifact(path, stage=stage, record_count=count)

    summary = RunSummary(
        run_at=datetime.now().astimezone(),
        user_id=config.user_id or "",
        inputs=[str(p) for p in paths],
        hash_algorithm=config.hash_algorithm,
        output_dir=config.output_dir,
        export_count=emitter.export_count,
        source_dir=config.source_dir,
        template_dir=config.template_dir,
        signer_id=config.signer_id if config.sign else None,
        files_skipped=result.file_failures,
        roots_failed=result.root_failures,
    )
    summary_path = write_summary(summary, registry, config.output_dir)
    result.output_files[summary_path.stem] = str(summary_path)
    if stages.context:
        stages.context.record_artifact(summary_path, stage=stage)

    stages.finish(stage, {"reports_written": len(written) + 1})


# ---------------------------------------------------------------------------
# Conversion runner
# ---------------------------------------------------------------------------


def run_conversion(
    paths: Iterable[Path | str],
    config: ConversionConfig | None = None,
    context: RunContext | None = None,
    builder: PackageBuilder | None = None,
    resources: Resources | None = None,
) -> ConversionResult:
    """Convert TRIM exports into VEO packages.

    This is the main entry point for running a complete conversion.

    Parameters
    ----------
    paths : Iterable[Path | str]
        Export files, or directories holding exports.
    config : ConversionConfig | None, optional
        Conversion configuration. If None, uses defaults (which lack a
        support directory, so a config is needed in practice).
    context : RunContext | None, optional
        Run context for events.jsonl and run.json. If None, nothing is
        logged and results are only returned.
    builder : PackageBuilder | None, optional
        Package factory. Defaults to a DirectoryPackageBuilder set up
        from ``config``.
    resources : Resources | None, optional
        Startup resources already loaded with load_resources. Loaded
        here when None.

    Returns
    -------
    ConversionResult
        Counters, report paths and per-file/per-root failures.

    Raises
    ------
    ConfigurationError
        If startup validation fails. Nothing is written in that case.

    Examples
    --------
        >>> from pathlib import Path
        >>> from trimveo.engine import ConversionConfig, run_conversion
        >>> config = ConversionConfig(output_dir=Path("out"), support_dir=Path("support"))
        >>> result = run_conversion([Path("exports/")], config)
        >>> print(f"{result.packages_written} packages written")
    """
    if config is None:
        config = ConversionConfig()

    if resources is None:
        resources = load_resources(config)
    path_list = [Path(p) for p in paths]

    try:
        config.output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(f"Cannot create output directory {config.output_dir}: {e}") from e

    if builder is None:
        signer = DigestSigner(config.signer_id) if config.sign and config.signer_id else None
        builder = DirectoryPackageBuilder(signer=signer, keep_dirs=config.keep_package_dirs)

    stages = _Stages(context)
    emitter = PackageEmitter(
        builder=builder,
        output_dir=config.output_dir,
        formats=resources.formats,
        hash_algorithm=config.hash_algorithm,
        sign=config.sign,
        user_id=config.user_id or "Unknown user",
        source_dir=config.source_dir,
        rdf_id_prefix=config.rdf_id_prefix,
        label_prefix=config.label_prefix,
        agls_common=resources.agls_common,
        readme=resources.readme,
        logger=stages.logger,
    )

    registry = GlobalRegistry()
    result = ConversionResult(success=False)

    tables = _stage_ingest(path_list, config, registry, result, stages)
    _stage_emit(tables, emitter, result, stages)
    _stage_report(path_list, config, registry, emitter, result, stages)

    result.success = True
    if context:
        context.packages_written = result.packages_written
        if result.failures:
            context.status = "partial"

    return result
