"""Command-line interface for trimveo.

Provides CLI commands for converting TRIM exports and inspecting them.
"""

import importlib.metadata
import sys
from pathlib import Path

import click

__all__ = ["cli"]

try:
    __version__ = importlib.metadata.version("trimveo")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.4.0"  # Fallback for development


@click.group()
@click.version_option(version=__version__, prog_name="trimveo")
def cli() -> None:
    """Convert TRIM record exports into nested VEO archival packages.

    Use 'trimveo COMMAND --help' for command-specific help.
    """


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default="out",
    help="Output directory for packages and reports (default: out)",
)
@click.option(
    "--support",
    "support_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    required=True,
    help="Support directory holding validLTSF.txt (and optionally VEOReadme.txt)",
)
@click.option(
    "--source",
    "source_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory holding content files (default: each export's directory)",
)
@click.option(
    "--templates",
    "template_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Template directory holding aglsCommon.txt",
)
@click.option(
    "--hash-algorithm",
    default="SHA-512",
    help="Package hash algorithm (default: SHA-512)",
)
@click.option(
    "--rdf-prefix",
    default=None,
    help="Prefix for rdf:about identifiers (default: file:///)",
)
@click.option("--user-id", default=None, help="User recorded in package histories")
@click.option("--signer-id", default=None, help="Signing identity (default: the user)")
@click.option("--no-sign", is_flag=True, help="Seal packages without signing them")
@click.option("--keep-dirs", is_flag=True, help="Keep unzipped package directories")
@click.option(
    "--reject-duplicates",
    is_flag=True,
    help="Reject repeated identifiers instead of keeping the last row",
)
@click.option(
    "--recursive/--no-recursive",
    default=True,
    help="Search directories recursively (default: on)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output and DEBUG events",
)
def convert(
    paths: tuple[Path, ...],
    output_dir: Path,
    support_dir: Path,
    source_dir: Path | None,
    template_dir: Path | None,
    hash_algorithm: str,
    rdf_prefix: str | None,
    user_id: str | None,
    signer_id: str | None,
    no_sign: bool,
    keep_dirs: bool,
    reject_duplicates: bool,
    recursive: bool,
    verbose: bool,
) -> None:
    """Convert the TRIM exports in PATHS into VEO packages.

    PATHS can be export files or folders of exports. One package
    (<id>.veo.zip) is written per root record, plus the audit reports,
    Report.txt, events.jsonl and run.json.

    Examples
    --------
        trimveo convert export.txt -o veos --support support
        trimveo convert exports/ -o veos --support support --templates templates --no-sign
    """
    from trimveo.audit import RunContext
    from trimveo.engine import ConversionConfig, load_resources, run_conversion
    from trimveo.errors import ConfigurationError

    try:
        config = ConversionConfig(
            output_dir=output_dir,
            support_dir=support_dir,
            source_dir=source_dir,
            template_dir=template_dir,
            hash_algorithm=hash_algorithm,
            rdf_id_prefix=rdf_prefix,
            user_id=user_id,
            sign=not no_sign,
            signer_id=signer_id,
            keep_package_dirs=keep_dirs,
            duplicate_policy="reject" if reject_duplicates else "last_wins",
            recursive=recursive,
            log_level="DEBUG" if verbose else "INFO",
        )
        resources = load_resources(config)
    except ConfigurationError as e:
        click.secho(f"✗ Configuration error: {e}", fg="red", err=True)
        sys.exit(1)

    if verbose:
        click.echo("Starting conversion...", err=True)
        click.echo(f"  Inputs: {', '.join(str(p) for p in paths)}", err=True)
        click.echo(f"  Output: {output_dir}", err=True)
        click.echo(f"  Hash algorithm: {hash_algorithm}", err=True)
        click.echo(f"  Signing: {'off' if no_sign else config.signer_id}", err=True)

    try:
        with RunContext.start(
            output_dir, parameters=config.to_dict(), min_level=config.log_level
        ) as context:
            result = run_conversion(paths, config, context=context, resources=resources)
    except Exception as e:
        click.secho(f"✗ Error: {e}", fg="red", err=True)
        if verbose:
            import traceback

            click.echo(traceback.format_exc(), err=True)
        sys.exit(1)

    if verbose:
        click.echo("\nResults:", err=True)
        click.echo(f"  Files read: {result.files_read} of {result.files_found}", err=True)
        click.echo(f"  Records defined: {result.records_defined}", err=True)
        click.echo(f"  Rows rejected: {result.rows_rejected}", err=True)
        click.echo(f"  Warnings: {result.warnings}", err=True)
        for failure in result.failures:
            click.echo(f"  ✗ {failure}", err=True)
        click.echo("\nOutputs:", err=True)
        for name, path in result.output_files.items():
            click.echo(f"  {name}: {path}", err=True)

    click.secho(
        f"✓ {result.packages_written} packages written "
        f"({result.roots_failed} roots failed, {result.files_skipped} files skipped)",
        fg="yellow" if result.failures else "green",
    )


@cli.command()
@click.argument("export_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def inspect(export_file: Path) -> None:
    """Show the record tree of one export without writing packages.

    Records are indented by depth under their root. Orphan container
    references, container cycles and rejected rows are listed after
    the tree.

    Examples
    --------
        trimveo inspect export.txt
    """
    from trimveo.graph import assemble_table, build_children_index
    from trimveo.models import Record
    from trimveo.parse import read_export

    table, ingestion = read_export(export_file)
    if table is None:
        click.secho(f"✗ Skipped {export_file}: {'; '.join(ingestion.errors)}", fg="red", err=True)
        sys.exit(1)

    assembly = assemble_table(table)
    children = build_children_index(table)

    def show(root: Record) -> None:
        stack = [(root, 1)]
        while stack:
            record, depth = stack.pop()
            title = f"  {record.title}" if record.title else ""
            click.echo(f"{'  ' * (depth - 1)}{record.key}{title}")
            stack.extend((child, depth + 1) for child in reversed(children.get(record.key, ())))

    click.echo(
        f"{export_file.name}: {ingestion.records_defined} records, "
        f"{len(assembly.roots)} roots ({ingestion.encoding_used})"
    )
    for root in table.roots():
        show(root)

    if assembly.orphans:
        click.echo("\nContainers not defined in this export:")
        for rid, container in assembly.orphans:
            click.echo(f"  {rid} -> {container}")

    if assembly.cycles:
        click.secho("\nContainer cycles (never emitted):", fg="yellow")
        for cycle in assembly.cycles:
            click.echo("  " + " -> ".join((*cycle, cycle[0])))

    if ingestion.errors:
        click.secho("\nRejected rows:", fg="yellow")
        for message in ingestion.errors:
            click.echo(f"  {message}")

    for message in ingestion.warnings:
        click.secho(f"Warning: {message}", fg="yellow", err=True)


if __name__ == "__main__":
    cli()
