"""Record graph assembly.

After every row of an export has been normalized, the assembler resolves
container references within the table, creates stubs for containers the
export never defines, and merges the table into the run-wide registry.
Tree edges between defined records stay implicit; the emitter resolves
them through a children index.
"""

from dataclasses import dataclass

from trimveo.graph.cycles import find_container_cycles
from trimveo.models import GlobalRegistry, Record, RecordTable

__all__ = ["AssemblyResult", "assemble_table", "merge_into_registry"]


@dataclass(frozen=True)
class AssemblyResult:
    """Outcome of assembling one table.

    Attributes
    ----------
    roots : tuple[str, ...]
        Canonical keys of defined records without a container.
    stubs_created : tuple[str, ...]
        Keys of stub records added for unresolved containers.
    orphans : tuple[tuple[str, str], ...]
        ``(record, container)`` pairs whose container is not defined in
        the table.
    cycles : tuple[tuple[str, ...], ...]
        Container cycles (records unreachable from any root).
    """

    roots: tuple[str, ...]
    stubs_created: tuple[str, ...]
    orphans: tuple[tuple[str, str], ...]
    cycles: tuple[tuple[str, ...], ...]

    @property
    def warnings(self) -> tuple[str, ...]:
        """One warning per unreachable container cycle."""
        return tuple(
            "Container cycle, records never emitted: " + " -> ".join((*cycle, cycle[0]))
            for cycle in self.cycles
        )


def assemble_table(table: RecordTable) -> AssemblyResult:
    """Resolve container references and add stubs for missing containers.

    For a container defined in the table the child's key is added to the
    container's ``referenced_by``. For one that is not, a single stub is
    created (``is_defined`` False, ``is_referenced`` True) and every
    referencing key is added to it.

    Parameters
    ----------
    table : RecordTable
        Table built from one export; modified in place.

    Returns
    -------
    AssemblyResult
        Roots, stubs, orphan references and container cycles.
    """
    source_dir = table.source.parent if table.source is not None else None
    stubs: list[str] = []
    orphans: list[tuple[str, str]] = []

    # Snapshot: stubs are added while iterating.
    for record in list(table):
        if record.container is None or not record.is_defined:
            continue

        parent = table.get(record.container)
        if parent is None:
            parent = Record.stub(record.container, source_dir=source_dir)
            table.put(parent)
            stubs.append(parent.key)

        if not parent.is_defined:
            parent.is_referenced = True
            orphans.append((record.key, parent.key))
        parent.referenced_by.add(record.key)

    return AssemblyResult(
        roots=tuple(r.key for r in table.roots()),
        stubs_created=tuple(stubs),
        orphans=tuple(orphans),
        cycles=tuple(find_container_cycles(table)),
    )


def merge_into_registry(table: RecordTable, registry: GlobalRegistry) -> int:
    """Merge an assembled table into the run-wide registry.

    Defined records replace whatever the registry holds for their key;
    stubs only fill gaps.

    Returns
    -------
    int
        Number of registry entries added or replaced.
    """
    return registry.merge(table)
