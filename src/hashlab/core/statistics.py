"""Read-only collision and clustering analysis over table layouts."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Sequence

from .cells import Cell, CellState
from .hashing import division_index

if TYPE_CHECKING:  # pragma: no cover
    from .chained import ChainedTable
    from .open_table import OpenTable


@dataclass(frozen=True)
class ChainStatistics:
    """Distribution of chain lengths across the buckets of a chained table."""

    capacity: int
    size: int
    empty_buckets: int
    longest_chain: int
    mean_chain_length: float
    total_collisions: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ProbeStatistics:
    """Probe cost and clustering of an open-addressing table.

    Probe counts are measured from each key's division-method home slot regardless of
    the hash kind that produced the layout, so runs stay comparable.
    """

    capacity: int
    size: int
    tombstones: int
    total_probes: int
    mean_probes: float
    max_probes: int
    clusters: int
    largest_cluster: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def summarize_chain_lengths(lengths: Sequence[int]) -> ChainStatistics:
    empty = 0
    longest = 0
    occupied_buckets = 0
    total = 0
    collisions = 0
    for length in lengths:
        if length == 0:
            empty += 1
            continue
        occupied_buckets += 1
        total += length
        longest = max(longest, length)
        collisions += length - 1
    mean = total / occupied_buckets if occupied_buckets else 0.0
    return ChainStatistics(
        capacity=len(lengths),
        size=total,
        empty_buckets=empty,
        longest_chain=longest,
        mean_chain_length=mean,
        total_collisions=collisions,
    )


def chain_statistics(table: "ChainedTable") -> ChainStatistics:
    return summarize_chain_lengths(table.chain_lengths())


def probe_distance(capacity: int, home: int, slot: int) -> int:
    """Wrap-aware number of steps from ``home`` forward to ``slot``."""

    return slot - home if slot >= home else (slot + capacity) - home


def cluster_runs(cells: Sequence[Cell]) -> List[int]:
    """Return the lengths of maximal non-empty runs, treating the array as circular."""

    capacity = len(cells)
    used = [cell.state is not CellState.EMPTY for cell in cells]
    if capacity and all(used):
        return [capacity]
    runs: List[int] = []
    current = 0
    for flag in used:
        if flag:
            current += 1
        elif current:
            runs.append(current)
            current = 0
    if current:
        if used[0] and runs:
            # tail run continues into the run that starts at slot 0
            runs[0] += current
        else:
            runs.append(current)
    return runs


def summarize_cells(cells: Sequence[Cell]) -> ProbeStatistics:
    capacity = len(cells)
    size = 0
    tombstones = 0
    total_probes = 0
    max_probes = 0
    for slot, cell in enumerate(cells):
        if cell.state is CellState.TOMBSTONE:
            tombstones += 1
            continue
        if cell.state is not CellState.OCCUPIED or cell.key is None:
            continue
        size += 1
        probes = probe_distance(capacity, division_index(cell.key, capacity), slot) + 1
        total_probes += probes
        max_probes = max(max_probes, probes)

    clusters = [run for run in cluster_runs(cells) if run > 1]
    return ProbeStatistics(
        capacity=capacity,
        size=size,
        tombstones=tombstones,
        total_probes=total_probes,
        mean_probes=total_probes / size if size else 0.0,
        max_probes=max_probes,
        clusters=len(clusters),
        largest_cluster=max(clusters, default=0),
    )


def probe_statistics(table: "OpenTable") -> ProbeStatistics:
    return summarize_cells(table.cells())


__all__ = [
    "ChainStatistics",
    "ProbeStatistics",
    "chain_statistics",
    "cluster_runs",
    "probe_distance",
    "probe_statistics",
    "summarize_cells",
    "summarize_chain_lengths",
]
