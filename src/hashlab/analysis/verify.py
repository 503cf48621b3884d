"""Invariant checks for table layouts."""

from __future__ import annotations

from collections import Counter
from typing import List, Tuple, Union

from hashlab.core.cells import CellState
from hashlab.core.chained import ChainedTable
from hashlab.core.hashing import HashKind
from hashlab.core.open_table import OpenTable


def verify_chained(
    table: ChainedTable, kind: HashKind | str = HashKind.DIVISION, verbose: bool = False
) -> Tuple[bool, List[str]]:
    hash_kind = HashKind.parse(kind)
    msgs: List[str] = []
    ok = True
    counts: Counter[int] = Counter()
    misplaced = 0
    for idx in range(table.capacity):
        for key in table.chain(idx):
            counts[key] += 1
            if table.bucket_index(key, hash_kind) != idx:
                misplaced += 1
    total = sum(counts.values())
    if total != table.size():
        ok = False
        msgs.append(f"Size mismatch: size={table.size()}, counted={total}")
    duplicates = sorted(key for key, seen in counts.items() if seen > 1)
    if duplicates:
        ok = False
        msgs.append(f"Duplicate keys: {duplicates[:10]}")
    if misplaced:
        ok = False
        msgs.append(f"{misplaced} key(s) stored outside their {hash_kind.value} bucket")
    if verbose:
        stats = table.statistics()
        msgs.append(
            f"Capacity={table.capacity}, Size={table.size()}, LF={table.load_factor():.3f}, "
            f"LongestChain={stats.longest_chain}, Collisions={stats.total_collisions}"
        )
    return ok, msgs


def verify_open(
    table: OpenTable, kind: HashKind | str = HashKind.DIVISION, verbose: bool = False
) -> Tuple[bool, List[str]]:
    hash_kind = HashKind.parse(kind)
    msgs: List[str] = []
    cells = table.cells()
    occupied = sum(1 for cell in cells if cell.state is CellState.OCCUPIED)
    buried = sum(1 for cell in cells if cell.state is CellState.TOMBSTONE)
    ok = True
    if occupied != table.size():
        ok = False
        msgs.append(f"Occupied count={occupied} != size={table.size()}")
    if buried != table.tombstones():
        ok = False
        msgs.append(f"Tombstone count={buried} != tombstones={table.tombstones()}")
    if table.size() + table.tombstones() > table.capacity:
        ok = False
        msgs.append(
            f"Bound violated: size+tombstones={table.size() + table.tombstones()} > cap={table.capacity}"
        )
    counts = Counter(table.keys())
    duplicates = sorted(key for key, seen in counts.items() if seen > 1)
    if duplicates:
        ok = False
        msgs.append(f"Duplicate keys: {duplicates[:10]}")
    unreachable = [key for key in counts if not table.search(key, hash_kind)]
    if unreachable:
        ok = False
        msgs.append(f"{len(unreachable)} key(s) unreachable by {hash_kind.value} probing")
    if verbose:
        msgs.append(
            f"Cap={table.capacity}, Size={table.size()}, Tombstones={table.tombstones()}, "
            f"LF={table.load_factor():.3f}, OF={table.occupancy_factor():.3f}"
        )
    return ok, msgs


def verify_table(
    table: Union[ChainedTable, OpenTable],
    kind: HashKind | str = HashKind.DIVISION,
    verbose: bool = False,
) -> Tuple[bool, List[str]]:
    if isinstance(table, OpenTable):
        return verify_open(table, kind, verbose)
    if isinstance(table, ChainedTable):
        return verify_chained(table, kind, verbose)
    raise TypeError(f"Unsupported table type: {type(table)!r}")


__all__ = ["verify_chained", "verify_open", "verify_table"]
