"""Container-to-children index."""

from trimveo.models import Record, RecordTable

__all__ = ["ChildrenIndex", "build_children_index"]

ChildrenIndex = dict[str, list[Record]]


def build_children_index(table: RecordTable) -> ChildrenIndex:
    """Index every record under the canonical key of its container.

    Built once per table so emission never rescans the table to find the
    children of a node. Each child list keeps table iteration order
    (identifier-string order), which is the sibling order of emission.

    Parameters
    ----------
    table : RecordTable
        Assembled table.

    Returns
    -------
    ChildrenIndex
        Container key to ordered list of child records. Records without
        children have no entry.
    """
    index: ChildrenIndex = {}
    for record in table:
        if record.container is not None:
            index.setdefault(str(record.container), []).append(record)
    return index
