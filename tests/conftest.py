"""Pytest configuration and fixtures for test suite."""

import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# Add src directory to path for imports
SRC_PATH = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_PATH))

from trimveo.models import Record, RecordTable, parse_identifier  # noqa: E402

HEADER: tuple[str, ...] = (
    "Expanded Number",
    "Folder",
    "Title (Free Text Part)",
    "Classification",
    "Date Created",
    "Date Registered",
    "Record Type",
    "DOS file",
    "Retention schedule",
)


def _export_row(
    rid: str,
    container: str = "",
    title: str | None = None,
    classification: str = "Cabinet-in-Confidence",
    date_created: str = "20210504",
    date_registered: str = "20210505093000",
    record_type: str = "CABINET FILE",
    content: str = "",
    retention: str = "PROS 07/01",
) -> list[str]:
    """Build one export row aligned with HEADER."""
    return [
        rid,
        container,
        title if title is not None else f"Title of {rid}",
        classification,
        date_created,
        date_registered,
        record_type,
        content,
        retention,
    ]


def _write_export(
    path: Path,
    rows: list[list[str]],
    header: tuple[str, ...] = HEADER,
    encoding: str = "utf-16",
) -> Path:
    """Write a tab-separated export the way TRIM does (UTF-16 with BOM, CRLF)."""
    lines = ["\t".join(header), *("\t".join(row) for row in rows)]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(("\r\n".join(lines) + "\r\n").encode(encoding))
    return path


@pytest.fixture
def export_row() -> Callable[..., list[str]]:
    """Row builder aligned with the standard export header."""
    return _export_row


@pytest.fixture
def write_export() -> Callable[..., Path]:
    """Writer for UTF-16 tab-separated exports."""
    return _write_export


@pytest.fixture
def make_record() -> Callable[..., Record]:
    """Factory for defined records with minimal boilerplate."""

    def _factory(
        rid: str,
        container: str | None = None,
        *,
        title: str | None = None,
        date_created: str = "20210504",
        record_type_raw: str = "",
        record_type_normalized: str = "",
        content_file_spec: str | None = None,
        source_dir: Path | None = None,
    ) -> Record:
        return Record(
            id=parse_identifier(rid),
            container=parse_identifier(container) if container else None,
            veo_name=rid,
            title=title if title is not None else f"Title of {rid}",
            date_created=date_created,
            record_type_raw=record_type_raw,
            record_type_normalized=record_type_normalized,
            content_file_spec=content_file_spec,
            source_dir=source_dir,
            is_defined=True,
        )

    return _factory


@pytest.fixture
def make_table(make_record: Callable[..., Record]) -> Callable[..., RecordTable]:
    """Factory for tables from ``(rid, container)`` pairs."""

    def _factory(*pairs: tuple[str, str | None], source: Path | None = None) -> RecordTable:
        table = RecordTable(source=source)
        for rid, container in pairs:
            table.put(make_record(rid, container))
        return table

    return _factory


@pytest.fixture
def support_dir(tmp_path: Path) -> Path:
    """Support directory with a small format allow-list and a readme."""
    path = tmp_path / "support"
    path.mkdir()
    (path / "validLTSF.txt").write_text("! approved formats\n.pdf\n.txt\n.tif\n", encoding="utf-8")
    (path / "VEOReadme.txt").write_text("Read me first.\n", encoding="utf-8")
    return path
