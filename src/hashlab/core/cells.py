"""Cell representation for the open-addressing table."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CellState(Enum):
    EMPTY = "empty"
    OCCUPIED = "occupied"
    TOMBSTONE = "tombstone"


@dataclass(slots=True)
class Cell:
    """One slot of an open-addressing table.

    ``key`` is only meaningful while the cell is ``OCCUPIED``; it is cleared when the
    cell becomes a tombstone.
    """

    state: CellState = CellState.EMPTY
    key: Optional[int] = None

    def is_available(self) -> bool:
        return self.state is not CellState.OCCUPIED

    def holds(self, key: int) -> bool:
        return self.state is CellState.OCCUPIED and self.key == key

    def occupy(self, key: int) -> None:
        self.state = CellState.OCCUPIED
        self.key = key

    def bury(self) -> None:
        self.state = CellState.TOMBSTONE
        self.key = None

    def reset(self) -> None:
        self.state = CellState.EMPTY
        self.key = None


__all__ = ["Cell", "CellState"]
