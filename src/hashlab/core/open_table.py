"""Open-addressing hash table with linear probing and lazy deletion."""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Tuple

from hashlab.contracts.error import CapacityExceededError, InvalidConfigurationError

from .cells import Cell, CellState
from .hashing import HashKind, check_capacity, slot_index
from .statistics import ProbeStatistics, probe_statistics

logger = logging.getLogger("hashlab")

DEFAULT_MAX_LOAD_FACTOR = 0.7
DEFAULT_MAX_OCCUPANCY = 0.5

_NOT_FOUND = -1


def _check_threshold(name: str, value: float) -> float:
    if not 0.0 < value <= 1.0:
        raise InvalidConfigurationError(f"{name} must be in (0, 1], got {value!r}")
    return float(value)


class OpenTable:
    """Flat array of tri-state cells resolved by linear probing.

    Removed keys leave tombstones behind so later searches keep walking past them.
    Tombstones are reused by inserts but still count towards the occupancy factor;
    inserts are refused once either the load factor or the occupancy factor is over
    its mark. The table never resizes itself; ``needs_rehash`` tells the owner when it
    should.
    """

    __slots__ = ("_capacity", "_cells", "_size", "_tombstones", "max_load_factor", "max_occupancy")

    def __init__(
        self,
        capacity: int,
        *,
        max_load_factor: float = DEFAULT_MAX_LOAD_FACTOR,
        max_occupancy: float = DEFAULT_MAX_OCCUPANCY,
    ) -> None:
        self._capacity = check_capacity(capacity)
        self.max_load_factor = _check_threshold("max_load_factor", max_load_factor)
        self.max_occupancy = _check_threshold("max_occupancy", max_occupancy)
        self._cells: List[Cell] = [Cell() for _ in range(self._capacity)]
        self._size = 0
        self._tombstones = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return self._size

    def size(self) -> int:
        return self._size

    def tombstones(self) -> int:
        return self._tombstones

    def is_empty(self) -> bool:
        return self._size == 0

    def load_factor(self) -> float:
        return self._size / self._capacity

    def occupancy_factor(self) -> float:
        return (self._size + self._tombstones) / self._capacity

    def needs_rehash(self) -> bool:
        return (
            self.load_factor() > self.max_load_factor
            or self.occupancy_factor() > self.max_occupancy
        )

    def home_slot(self, key: int, kind: HashKind | str = HashKind.DIVISION) -> int:
        return slot_index(key, self._capacity, HashKind.parse(kind))

    def _locate(self, key: int, start: int) -> int:
        """Follow the probe sequence from ``start``; return the slot holding ``key``."""

        idx = start
        for _ in range(self._capacity):
            cell = self._cells[idx]
            if cell.state is CellState.EMPTY:
                return _NOT_FOUND
            if cell.holds(key):
                return idx
            idx = (idx + 1) % self._capacity
        return _NOT_FOUND

    def _insertion_slot(self, key: int, start: int) -> Tuple[int, bool]:
        """Return ``(slot, duplicate)`` for an insert probing from ``start``.

        The target is the first empty or tombstoned cell. Probing continues past a
        tombstone until an empty cell so a copy of ``key`` further along the run is
        still detected.
        """

        first_free = _NOT_FOUND
        idx = start
        for _ in range(self._capacity):
            cell = self._cells[idx]
            if cell.holds(key):
                return idx, True
            if cell.state is CellState.EMPTY:
                return (idx if first_free == _NOT_FOUND else first_free), False
            if cell.state is CellState.TOMBSTONE and first_free == _NOT_FOUND:
                first_free = idx
            idx = (idx + 1) % self._capacity
        return first_free, False

    def insert(self, key: int, kind: HashKind | str = HashKind.DIVISION) -> bool:
        """Store ``key``; return ``False`` when it was already present.

        Raises ``CapacityExceededError`` without touching the table when the load
        thresholds are exceeded or no cell is available.
        """

        if self.needs_rehash():
            logger.debug(
                "Rejected insert of %d (load=%.3f, occupancy=%.3f)",
                key,
                self.load_factor(),
                self.occupancy_factor(),
            )
            raise CapacityExceededError(
                f"load thresholds exceeded (load={self.load_factor():.3f} > {self.max_load_factor} "
                f"or occupancy={self.occupancy_factor():.3f} > {self.max_occupancy})",
                hint="Rebuild the table with a larger capacity.",
            )
        slot, duplicate = self._insertion_slot(key, self.home_slot(key, kind))
        if duplicate:
            return False
        if slot == _NOT_FOUND:
            logger.debug("Rejected insert of %d: probe sequence exhausted", key)
            raise CapacityExceededError(
                f"no free cell for key {key} in table of capacity {self._capacity}",
                hint="Rebuild the table with a larger capacity.",
            )
        cell = self._cells[slot]
        if cell.state is CellState.TOMBSTONE:
            self._tombstones -= 1
        cell.occupy(key)
        self._size += 1
        return True

    def search(self, key: int, kind: HashKind | str = HashKind.DIVISION) -> bool:
        return self._locate(key, self.home_slot(key, kind)) != _NOT_FOUND

    def remove(self, key: int, kind: HashKind | str = HashKind.DIVISION) -> Optional[int]:
        """Tombstone ``key`` and return it, or return ``None`` when it is absent."""

        slot = self._locate(key, self.home_slot(key, kind))
        if slot == _NOT_FOUND:
            return None
        cell = self._cells[slot]
        removed = cell.key
        cell.bury()
        self._size -= 1
        self._tombstones += 1
        return removed

    def clear(self) -> None:
        for cell in self._cells:
            cell.reset()
        self._size = 0
        self._tombstones = 0
        logger.debug("Cleared open table (capacity=%d)", self._capacity)

    def cell(self, index: int) -> Cell:
        """Return a copy of the cell at ``index``."""

        source = self._cells[index]
        return Cell(source.state, source.key)

    def cells(self) -> Tuple[Cell, ...]:
        return tuple(Cell(cell.state, cell.key) for cell in self._cells)

    def keys(self) -> Iterator[int]:
        for cell in self._cells:
            if cell.state is CellState.OCCUPIED and cell.key is not None:
                yield cell.key

    def statistics(self) -> ProbeStatistics:
        return probe_statistics(self)

    def __repr__(self) -> str:
        return (
            f"OpenTable(capacity={self._capacity}, size={self._size}, "
            f"tombstones={self._tombstones})"
        )


__all__ = ["DEFAULT_MAX_LOAD_FACTOR", "DEFAULT_MAX_OCCUPANCY", "OpenTable"]
