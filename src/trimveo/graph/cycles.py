"""Detection of container cycles.

Every record has at most one container, so following container links from
any record either ends at a root, ends at an identifier missing from the
table, or enters a loop. Records on a loop can never be reached from a
root and are never emitted.
"""

from trimveo.models import RecordTable

__all__ = ["find_container_cycles"]


def find_container_cycles(table: RecordTable) -> list[tuple[str, ...]]:
    """Find every container cycle in a table.

    Parameters
    ----------
    table : RecordTable
        Table to scan.

    Returns
    -------
    list[tuple[str, ...]]
        One tuple per cycle, listing canonical keys in container order
        starting from the smallest key. Sorted.
    """
    settled: set[str] = set()
    cycles: list[tuple[str, ...]] = []

    for record in table:
        if record.key in settled:
            continue

        chain: list[str] = []
        position: dict[str, int] = {}
        current = record
        while current is not None and current.key not in settled:
            if current.key in position:
                loop = chain[position[current.key] :]
                start = loop.index(min(loop))
                cycles.append(tuple(loop[start:] + loop[:start]))
                break
            position[current.key] = len(chain)
            chain.append(current.key)
            current = table.get(current.container) if current.container is not None else None

        settled.update(chain)

    cycles.sort()
    return cycles
