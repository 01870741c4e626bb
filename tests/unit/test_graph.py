"""Tests for record graph assembly, cycle detection and the children index."""

from collections.abc import Callable
from pathlib import Path

import pytest

from trimveo.graph import (
    assemble_table,
    build_children_index,
    find_container_cycles,
    merge_into_registry,
)
from trimveo.models import GlobalRegistry, RecordTable

# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_assemble_links_defined_containers(make_table: Callable[..., RecordTable]) -> None:
    """Test a defined container learns which records reference it."""
    table = make_table(("AB/21/1", None), ("AB/21/2", "AB/21/1"), ("AB/21/3", "AB/21/1"))

    result = assemble_table(table)

    assert result.roots == ("AB/21/1",)
    assert result.stubs_created == ()
    assert result.orphans == ()
    assert table.get("AB/21/1").referenced_by == {"AB/21/2", "AB/21/3"}
    assert not table.get("AB/21/1").is_referenced


@pytest.mark.unit
def test_assemble_creates_one_stub_per_missing_container(
    make_table: Callable[..., RecordTable], tmp_path: Path
) -> None:
    """Test an undefined container becomes a single stub shared by its children."""
    table = make_table(
        ("AB/21/1", None),
        ("AB/21/2", "XY/20/9"),
        ("AB/21/3", "XY/2020/9"),
        source=tmp_path / "export.txt",
    )

    result = assemble_table(table)

    assert result.stubs_created == ("XY/20/9",)
    assert result.orphans == (("AB/21/2", "XY/20/9"), ("AB/21/3", "XY/20/9"))
    stub = table.get("XY/20/9")
    assert not stub.is_defined
    assert stub.is_referenced
    assert stub.referenced_by == {"AB/21/2", "AB/21/3"}
    assert stub.source_dir == tmp_path


@pytest.mark.unit
def test_stubs_and_contained_records_are_not_roots(
    make_table: Callable[..., RecordTable],
) -> None:
    """Test only defined records without a container are roots."""
    table = make_table(("AB/21/2", "XY/20/9"))

    assemble_table(table)

    assert table.roots() == []
    assert len(table) == 2


@pytest.mark.unit
def test_assemble_reports_cycles(make_table: Callable[..., RecordTable]) -> None:
    """Test records on a container cycle are reported with a warning."""
    table = make_table(
        ("CY/21/2", "CY/21/1"),
        ("CY/21/1", "CY/21/2"),
        ("AB/21/1", None),
    )

    result = assemble_table(table)

    assert result.cycles == (("CY/21/1", "CY/21/2"),)
    assert result.warnings == (
        "Container cycle, records never emitted: CY/21/1 -> CY/21/2 -> CY/21/1",
    )
    assert result.roots == ("AB/21/1",)


# ---------------------------------------------------------------------------
# Cycles
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_find_cycles_self_loop_and_tail(make_table: Callable[..., RecordTable]) -> None:
    """Test a self-loop is a cycle and a tail leading into a loop is not part of it."""
    table = make_table(
        ("SL/21/1", "SL/21/1"),
        ("LP/21/3", "LP/21/1"),
        ("LP/21/1", "LP/21/2"),
        ("LP/21/2", "LP/21/3"),
        ("LP/21/9", "LP/21/2"),
    )

    assert find_container_cycles(table) == [("LP/21/1", "LP/21/2", "LP/21/3"), ("SL/21/1",)]


@pytest.mark.unit
def test_find_cycles_none_in_a_tree(make_table: Callable[..., RecordTable]) -> None:
    """Test a plain tree and a dangling container have no cycles."""
    table = make_table(("AB/21/1", None), ("AB/21/2", "AB/21/1"), ("AB/21/3", "XY/20/9"))

    assert find_container_cycles(table) == []


# ---------------------------------------------------------------------------
# Children index
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_children_index_in_identifier_string_order(
    make_table: Callable[..., RecordTable],
) -> None:
    """Test children are listed in identifier-string order."""
    table = make_table(
        ("AB/21/1", None),
        ("AB/21/3", "AB/21/1"),
        ("AB/21/10", "AB/21/1"),
        ("AB/21/2", "AB/21/1"),
        ("AB/21/4", "AB/21/2"),
    )

    index = build_children_index(table)

    assert [r.key for r in index["AB/21/1"]] == ["AB/21/10", "AB/21/2", "AB/21/3"]
    assert [r.key for r in index["AB/21/2"]] == ["AB/21/4"]
    assert "AB/21/4" not in index


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_registry_defined_record_replaces_stub(
    make_table: Callable[..., RecordTable],
) -> None:
    """Test a later export defining a stubbed container upgrades the entry."""
    first = make_table(("AB/21/2", "AB/21/1"))
    assemble_table(first)
    second = make_table(("AB/21/1", None))
    assemble_table(second)
    registry = GlobalRegistry()

    merge_into_registry(first, registry)
    merge_into_registry(second, registry)

    entry = registry.get("AB/21/1")
    assert entry is second.get("AB/21/1")
    assert entry.is_defined
    assert entry.is_referenced
    assert entry.referenced_by == {"AB/21/2"}
    assert len(registry) == 2


@pytest.mark.unit
def test_registry_stub_never_overwrites_defined(
    make_table: Callable[..., RecordTable],
) -> None:
    """Test a stub arriving after the definition only adds references."""
    defined = make_table(("AB/21/1", None))
    assemble_table(defined)
    referencing = make_table(("AB/21/2", "AB/21/1"))
    assemble_table(referencing)
    registry = GlobalRegistry()

    merge_into_registry(defined, registry)
    added = merge_into_registry(referencing, registry)

    assert added == 1
    entry = registry.get("AB/21/1")
    assert entry is defined.get("AB/21/1")
    assert entry.referenced_by == {"AB/21/2"}


@pytest.mark.unit
def test_registry_iterates_in_key_order(make_table: Callable[..., RecordTable]) -> None:
    """Test registry iteration is deterministic."""
    registry = GlobalRegistry()
    registry.merge(make_table(("ZZ/21/1", None), ("AA/21/1", None)))

    assert [r.key for r in registry] == ["AA/21/1", "ZZ/21/1"]
