"""Public API for converting TRIM exports.

This module provides the main public API for trimveo, enabling:
- Loading an export into an assembled RecordTable
- Running a complete conversion with a single call
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from trimveo.errors import TrimVeoError
from trimveo.graph import assemble_table
from trimveo.parse import read_export

if TYPE_CHECKING:
    from trimveo.engine.config import ConversionResult
    from trimveo.models import RecordTable

__all__ = [
    "load_export",
    "convert",
    "ExportReadError",
]


class ExportReadError(TrimVeoError):
    """Raised when an export is skipped whole."""

    def __init__(
        self,
        message: str,
        file: str | None = None,
    ) -> None:
        """Initialize export read error.

        Parameters
        ----------
        message : str
            Error message.
        file : str | None, optional
            Export that could not be read.
        """
        super().__init__(message)
        self.file = file


def load_export(
    path: str | Path,
    *,
    duplicate_policy: str = "last_wins",
) -> RecordTable:
    """Read and assemble a single export.

    Parameters
    ----------
    path : str | Path
        Path to a tab-separated TRIM export.
    duplicate_policy : str, optional
        "last_wins" (default) or "reject".

    Returns
    -------
    RecordTable
        Assembled table, stubs included. Rejected rows are left out.

    Raises
    ------
    ExportReadError
        If the export cannot be read or its header cannot be bound.

    Examples
    --------
        >>> table = load_export("export.txt")
        >>> [r.key for r in table.roots()]
        ['AB/21/1']
    """
    path = Path(path)
    table, result = read_export(path, duplicate_policy=duplicate_policy)
    if table is None:
        raise ExportReadError("; ".join(result.errors), file=str(path))
    assemble_table(table)
    return table


def convert(
    paths: str | Path | list[str | Path],
    output_dir: str | Path = "out",
    *,
    support_dir: str | Path,
    audit: bool = True,
    **options: Any,
) -> ConversionResult:
    """Convert TRIM exports into VEO packages.

    Parameters
    ----------
    paths : str | Path | list[str | Path]
        Export file(s) or folder(s).
    output_dir : str | Path, optional
        Output directory, by default "out".
    support_dir : str | Path
        Directory holding validLTSF.txt.
    audit : bool, optional
        Write events.jsonl and run.json, by default True.
    **options
        Further ConversionConfig fields (template_dir, sign, ...).

    Returns
    -------
    ConversionResult
        Run counters and failures.

    Raises
    ------
    ConfigurationError
        If the configuration or startup resources are invalid.

    Examples
    --------
        >>> result = convert("exports/", "veos", support_dir="support", sign=False)
        >>> result.packages_written
        3
    """
    from trimveo.audit import RunContext
    from trimveo.engine import ConversionConfig, load_resources, run_conversion

    path_list = [paths] if isinstance(paths, (str, Path)) else list(paths)
    config = ConversionConfig(output_dir=Path(output_dir), support_dir=Path(support_dir), **options)
    resources = load_resources(config)

    if not audit:
        return run_conversion(path_list, config, resources=resources)

    with RunContext.start(
        config.output_dir, parameters=config.to_dict(), min_level=config.log_level
    ) as context:
        return run_conversion(path_list, config, context=context, resources=resources)
