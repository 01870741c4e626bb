"""Tests for recursive package emission."""

import json
import sys
from collections.abc import Callable
from pathlib import Path

import pytest
from recording import RecordingBuilder

from trimveo.audit import AuditLogger
from trimveo.emit import FormatAllowList, PackageEmitter
from trimveo.emit.emitter import HISTORY_EVENT, PLACEHOLDER_FILENAME, PLACEHOLDER_TEXT
from trimveo.emit.metadata import AGLS_SCHEMA, TRIM_SCHEMA
from trimveo.graph import assemble_table
from trimveo.models import ExportState, Record, RecordTable


@pytest.fixture
def emitter(
    builder: RecordingBuilder, formats: FormatAllowList, tmp_path: Path
) -> PackageEmitter:
    """Emitter writing through the recording builder."""
    return PackageEmitter(
        builder=builder,
        output_dir=tmp_path,
        formats=formats,
        sign=False,
        user_id="tester",
        source_dir=tmp_path,
    )


# ---------------------------------------------------------------------------
# Tree shape
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_siblings_share_depth(
    emitter: PackageEmitter,
    builder: RecordingBuilder,
    make_table: Callable[..., RecordTable],
) -> None:
    """Test one root with three children yields depths 1, 2, 2, 2 in identifier order."""
    table = make_table(
        ("AB/21/1", None),
        ("AB/21/4", "AB/21/1"),
        ("AB/21/2", "AB/21/1"),
        ("AB/21/3", "AB/21/1"),
    )
    assemble_table(table)

    result = emitter.emit_table(table)

    assert result.packages_written == 1
    root = result.roots[0]
    assert root.success
    assert root.package_name == "AB-21-1"
    assert root.records_emitted == ("AB/21/1", "AB/21/2", "AB/21/3", "AB/21/4")
    assert root.depths == (1, 2, 2, 2)
    assert builder.packages[0].depths == [1, 2, 2, 2]
    assert all(r.export_state is ExportState.EXPORTED for r in table)
    assert table.get("AB/21/1").is_root
    assert emitter.export_count == 1


@pytest.mark.unit
def test_nested_subtrees_depth_first(
    emitter: PackageEmitter,
    builder: RecordingBuilder,
    make_table: Callable[..., RecordTable],
) -> None:
    """Test a subtree is emitted completely before the next sibling."""
    table = make_table(
        ("AB/21/1", None),
        ("AB/21/2", "AB/21/1"),
        ("AB/21/3", "AB/21/2"),
        ("AB/21/4", "AB/21/1"),
    )

    result = emitter.emit_table(table)

    assert result.roots[0].records_emitted == ("AB/21/1", "AB/21/2", "AB/21/3", "AB/21/4")
    assert builder.packages[0].depths == [1, 2, 3, 2]


@pytest.mark.unit
def test_chain_deeper_than_recursion_limit(
    emitter: PackageEmitter,
    builder: RecordingBuilder,
    make_table: Callable[..., RecordTable],
) -> None:
    """Test a container chain deeper than the interpreter's recursion limit is emitted."""
    length = sys.getrecursionlimit() + 100
    table = make_table(
        ("AB/21/1", None),
        *((f"AB/21/{i}", f"AB/21/{i - 1}") for i in range(2, length + 1)),
    )

    result = emitter.emit_table(table)

    root = result.roots[0]
    assert root.success
    assert len(root.records_emitted) == length
    assert builder.packages[0].depths == list(range(1, length + 1))


@pytest.mark.unit
def test_one_package_per_root(
    emitter: PackageEmitter,
    builder: RecordingBuilder,
    make_table: Callable[..., RecordTable],
) -> None:
    """Test every root gets its own package and stubs get none."""
    table = make_table(("AB/21/1", None), ("CD/21/1", None), ("EF/21/1", "XY/20/1"))
    assemble_table(table)

    result = emitter.emit_table(table)

    assert [r.root for r in result.roots] == ["AB/21/1", "CD/21/1"]
    assert [p.name for p in builder.packages] == ["AB-21-1", "CD-21-1"]
    assert table.get("EF/21/1").export_state is ExportState.UNVISITED
    assert emitter.export_count == 2


# ---------------------------------------------------------------------------
# Package contents
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_package_history_metadata_and_readme(
    builder: RecordingBuilder,
    formats: FormatAllowList,
    make_record: Callable[..., Record],
    tmp_path: Path,
) -> None:
    """Test history, readme, labels and both metadata packages are added."""
    readme = tmp_path / "VEOReadme.txt"
    readme.write_text("readme")
    emitter = PackageEmitter(
        builder=builder,
        output_dir=tmp_path,
        formats=formats,
        user_id="tester",
        rdf_id_prefix="https://records.example.org",
        label_prefix="Records: ",
        agls_common=" <dcterms:rights>Crown</dcterms:rights>\n",
        readme=readme,
    )
    table = RecordTable()
    table.put(
        make_record(
            "AB/21/1", record_type_raw="CABINET FILE", record_type_normalized="Cabinet File"
        )
    )

    emitter.emit_table(table)

    package = builder.packages[0]
    assert package.readme == readme
    assert package.events == [(HISTORY_EVENT, "tester", "Created with trimveo")]
    assert package.objects == [("Records: Cabinet File", 1)]
    assert [schema for schema, _ in package.metadata] == [AGLS_SCHEMA, TRIM_SCHEMA]
    agls = package.metadata[0][1]
    assert 'rdf:about="https://records.example.org/AB-21-1"' in agls
    assert "dcterms:rights" in agls
    assert package.signed is True
    assert package.pieces == 0


@pytest.mark.unit
def test_approved_content_attached_once(
    emitter: PackageEmitter,
    builder: RecordingBuilder,
    make_record: Callable[..., Record],
    tmp_path: Path,
) -> None:
    """Test only the last file of the DOS file cell is attached."""
    (tmp_path / "minutes.pdf").write_bytes(b"%PDF")
    table = RecordTable()
    table.put(make_record("AB/21/1", content_file_spec="draft.doc|minutes.pdf"))

    result = emitter.emit_table(table)

    package = builder.packages[0]
    assert package.pieces == 1
    assert package.content == [("AB-21-1/minutes.pdf", b"%PDF")]
    assert result.roots[0].warnings == ()


@pytest.mark.unit
def test_unapproved_content_gets_placeholder(
    emitter: PackageEmitter,
    builder: RecordingBuilder,
    make_record: Callable[..., Record],
    tmp_path: Path,
) -> None:
    """Test a non-approved format keeps the file, adds the placeholder and warns once."""
    (tmp_path / "minutes.doc").write_bytes(b"DOC")
    table = RecordTable()
    table.put(make_record("AB/21/1", content_file_spec="minutes.doc"))

    result = emitter.emit_table(table)

    package = builder.packages[0]
    assert package.content == [
        ("AB-21-1/minutes.doc", b"DOC"),
        (f"AB-21-1/{PLACEHOLDER_FILENAME}", PLACEHOLDER_TEXT.encode("utf-8")),
    ]
    assert len(result.roots[0].warnings) == 1
    assert "has no long term sustainable format" in result.roots[0].warnings[0]
    assert result.roots[0].success
    # the placeholder lives only as long as its root's pass
    assert not package.sources[1].exists()


@pytest.mark.unit
def test_blank_content_spec_attaches_nothing(
    emitter: PackageEmitter,
    builder: RecordingBuilder,
    make_record: Callable[..., Record],
) -> None:
    """Test records without content get no information piece."""
    table = RecordTable()
    table.put(make_record("AB/21/1", content_file_spec="   "))

    emitter.emit_table(table)

    assert builder.packages[0].pieces == 0


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_missing_content_aborts_root_only(
    emitter: PackageEmitter,
    builder: RecordingBuilder,
    make_record: Callable[..., Record],
) -> None:
    """Test an unattachable file abandons its root and the next root still succeeds."""
    table = RecordTable()
    table.put(make_record("AB/21/1"))
    table.put(make_record("AB/21/2", "AB/21/1", content_file_spec="missing.pdf"))
    table.put(make_record("CD/21/1"))

    result = emitter.emit_table(table)

    failed, ok = result.roots
    assert not failed.success
    assert failed.error_type == "ContentAttachError"
    assert "missing.pdf" in (failed.error_message or "")
    assert builder.packages[0].abandoned
    assert table.get("AB/21/1").export_state is ExportState.FAILED
    assert table.get("AB/21/2").export_state is ExportState.FAILED
    assert ok.success
    assert result.packages_written == 1
    assert result.roots_failed == 1
    assert emitter.export_count == 1


@pytest.mark.unit
def test_directory_as_content_fails(
    emitter: PackageEmitter,
    make_record: Callable[..., Record],
    tmp_path: Path,
) -> None:
    """Test a content name that resolves to a directory fails the root."""
    (tmp_path / "folder.pdf").mkdir()
    table = RecordTable()
    table.put(make_record("AB/21/1", content_file_spec="folder.pdf"))

    result = emitter.emit_table(table)

    assert result.roots[0].error_type == "ContentAttachError"
    assert "is a directory" in (result.roots[0].error_message or "")


@pytest.mark.unit
def test_bad_date_aborts_root(
    emitter: PackageEmitter,
    builder: RecordingBuilder,
    make_record: Callable[..., Record],
) -> None:
    """Test an unsupported creation date abandons the package."""
    table = RecordTable()
    table.put(make_record("AB/21/1", date_created="2021051"))

    result = emitter.emit_table(table)

    assert result.roots[0].error_type == "DateFormatError"
    assert builder.packages[0].abandoned
    assert builder.packages[0].signed is None


@pytest.mark.unit
def test_cycle_is_detected_before_any_package_is_opened(
    emitter: PackageEmitter,
    builder: RecordingBuilder,
    make_table: Callable[..., RecordTable],
) -> None:
    """Test emitting a record on a container loop fails without opening a package."""
    table = make_table(("CY/21/1", "CY/21/2"), ("CY/21/2", "CY/21/1"), ("AB/21/1", None))
    assemble_table(table)

    result = emitter.emit_root(table.get("CY/21/1"), table)

    assert not result.success
    assert result.error_type == "CycleDetected"
    assert "CY/21/1 -> CY/21/2 -> CY/21/1" in (result.error_message or "")
    assert builder.packages == []

    sibling = emitter.emit_root(table.get("AB/21/1"), table)
    assert sibling.success
    assert [p.name for p in builder.packages] == ["AB-21-1"]


@pytest.mark.unit
def test_builder_open_failure_fails_root(
    formats: FormatAllowList,
    make_table: Callable[..., RecordTable],
    tmp_path: Path,
) -> None:
    """Test a package that cannot be created is reported as a failed root."""
    builder = RecordingBuilder(fail_open=("AB-21-1",))
    emitter = PackageEmitter(builder=builder, output_dir=tmp_path, formats=formats)
    table = make_table(("AB/21/1", None), ("CD/21/1", None))

    result = emitter.emit_table(table)

    assert [r.error_type for r in result.roots] == ["PackageCreateError", None]


@pytest.mark.unit
def test_outcomes_are_logged(
    builder: RecordingBuilder,
    formats: FormatAllowList,
    make_record: Callable[..., Record],
    tmp_path: Path,
) -> None:
    """Test warnings, written packages and failed roots reach the audit log."""
    (tmp_path / "a.doc").write_bytes(b"DOC")
    log_path = tmp_path / "events.jsonl"
    table = RecordTable()
    table.put(make_record("AB/21/1", content_file_spec="a.doc"))
    table.put(make_record("CD/21/1", date_created="1"))

    with AuditLogger(run_id="r1", log_path=log_path) as logger:
        emitter = PackageEmitter(
            builder=builder,
            output_dir=tmp_path,
            formats=formats,
            sign=False,
            source_dir=tmp_path,
            logger=logger,
        )
        emitter.emit_table(table)

    events = [json.loads(line) for line in log_path.read_text().splitlines()]
    assert [(e["event"], e["rid"]) for e in events] == [
        ("record_warning", "AB/21/1"),
        ("package_written", "AB/21/1"),
        ("root_failed", "CD/21/1"),
    ]
    assert events[2]["data"]["exception_class"] == "DateFormatError"
