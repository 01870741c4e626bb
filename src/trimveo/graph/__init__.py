"""Record graph assembly.

- assemble_table: stubs for unresolved containers, orphan and cycle report
- build_children_index: container key to ordered children
- merge_into_registry: fold a table into the run-wide registry
"""

from trimveo.graph.assembler import AssemblyResult, assemble_table, merge_into_registry
from trimveo.graph.children import ChildrenIndex, build_children_index
from trimveo.graph.cycles import find_container_cycles

__all__ = [
    "AssemblyResult",
    "ChildrenIndex",
    "assemble_table",
    "build_children_index",
    "find_container_cycles",
    "merge_into_registry",
]
