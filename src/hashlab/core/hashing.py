"""Index functions shared by the chained and open-addressing tables."""

from __future__ import annotations

import math
from enum import Enum

from hashlab.contracts.error import BadInputError, InvalidConfigurationError

# Golden-ratio fraction (sqrt(5) - 1) / 2, truncated.
MULTIPLICATION_CONSTANT: float = 0.6180339887


class HashKind(str, Enum):
    """Selects the index function a table applies to a key."""

    DIVISION = "division"
    MULTIPLICATION = "multiplication"

    @classmethod
    def parse(cls, value: "HashKind | str") -> "HashKind":
        if isinstance(value, HashKind):
            return value
        normalized = str(value).strip().lower()
        alias = _ALIASES.get(normalized, normalized)
        try:
            return cls(alias)
        except ValueError as exc:
            choices = ", ".join(kind.value for kind in cls)
            raise BadInputError(f"Unknown hash kind {value!r}", hint=f"Use one of: {choices}") from exc


_ALIASES = {
    "div": HashKind.DIVISION.value,
    "mod": HashKind.DIVISION.value,
    "mul": HashKind.MULTIPLICATION.value,
    "mult": HashKind.MULTIPLICATION.value,
}


def check_capacity(capacity: int) -> int:
    """Validate a table capacity; every index function assumes ``capacity > 0``."""

    if isinstance(capacity, bool) or not isinstance(capacity, int):
        raise InvalidConfigurationError(f"capacity must be an integer, got {capacity!r}")
    if capacity <= 0:
        raise InvalidConfigurationError(
            f"capacity must be > 0 (got {capacity})", hint="Pick a positive table size, ideally prime."
        )
    return capacity


def division_index(key: int, capacity: int) -> int:
    return abs(key) % capacity


def multiplication_index(key: int, capacity: int) -> int:
    product = abs(key) * MULTIPLICATION_CONSTANT
    fraction = product - math.floor(product)
    # float rounding can push capacity * fraction up to capacity itself
    return min(int(math.floor(capacity * fraction)), capacity - 1)


def slot_index(key: int, capacity: int, kind: HashKind) -> int:
    """Return the home slot of ``key`` for a table of ``capacity`` slots."""

    if kind is HashKind.MULTIPLICATION:
        return multiplication_index(key, capacity)
    return division_index(key, capacity)


__all__ = [
    "HashKind",
    "MULTIPLICATION_CONSTANT",
    "check_capacity",
    "division_index",
    "multiplication_index",
    "slot_index",
]
