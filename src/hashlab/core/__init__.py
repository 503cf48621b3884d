from .cells import Cell, CellState
from .chained import ChainedTable
from .hashing import (
    MULTIPLICATION_CONSTANT,
    HashKind,
    check_capacity,
    division_index,
    multiplication_index,
    slot_index,
)
from .open_table import DEFAULT_MAX_LOAD_FACTOR, DEFAULT_MAX_OCCUPANCY, OpenTable
from .statistics import (
    ChainStatistics,
    ProbeStatistics,
    chain_statistics,
    cluster_runs,
    probe_statistics,
)

__all__ = [
    "Cell",
    "CellState",
    "ChainedTable",
    "ChainStatistics",
    "DEFAULT_MAX_LOAD_FACTOR",
    "DEFAULT_MAX_OCCUPANCY",
    "HashKind",
    "MULTIPLICATION_CONSTANT",
    "OpenTable",
    "ProbeStatistics",
    "chain_statistics",
    "check_capacity",
    "cluster_runs",
    "division_index",
    "multiplication_index",
    "probe_statistics",
    "slot_index",
]
