"""Random key generation and workload file preparation."""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable
from pathlib import Path
from typing import List, Optional

from hashlab.contracts.error import BadInputError, InvalidConfigurationError

from .loader import save_keys

logger = logging.getLogger(__name__)

DEFAULT_UNIQUE_LIMIT = 10_000
DEFAULT_WORKLOAD_SIZES = (100, 500, 1000, 5000, 10000, 50000)
DEFAULT_SEARCH_COUNT = 1000


def _check_count(count: int) -> None:
    if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
        raise BadInputError(f"Key count must be a positive integer, got {count!r}")


class KeyGenerator:
    """Draw integer keys uniformly from ``[min_value, max_value]``."""

    def __init__(
        self,
        seed: Optional[int] = None,
        min_value: int = 1,
        max_value: int = 1_000_000,
        *,
        unique_limit: int = DEFAULT_UNIQUE_LIMIT,
    ) -> None:
        if min_value >= max_value:
            raise InvalidConfigurationError(
                f"min_value ({min_value}) must be smaller than max_value ({max_value})",
                hint="Pick a non-empty key range.",
            )
        self.seed = seed
        self.min_value = min_value
        self.max_value = max_value
        self.unique_limit = unique_limit
        self._rng = random.Random(seed)  # noqa: S311  # nosec B311 - deterministic workload sampler

    @property
    def span(self) -> int:
        return self.max_value - self.min_value + 1

    def with_repeats(self, count: int) -> List[int]:
        _check_count(count)
        lo, hi = self.min_value, self.max_value
        randint = self._rng.randint
        return [randint(lo, hi) for _ in range(count)]

    def unique(self, count: int) -> List[int]:
        """Distinct keys in draw order; above ``unique_limit`` repeats are allowed."""

        _check_count(count)
        if count > self.unique_limit:
            logger.debug("Requested %d keys > unique limit %d; allowing repeats", count, self.unique_limit)
            return self.with_repeats(count)
        if count > self.span:
            raise InvalidConfigurationError(
                f"Cannot draw {count} unique keys from a range of {self.span} values"
            )
        seen: set[int] = set()
        keys: List[int] = []
        lo, hi = self.min_value, self.max_value
        while len(keys) < count:
            value = self._rng.randint(lo, hi)
            if value not in seen:
                seen.add(value)
                keys.append(value)
        return keys


def generate_workload_files(
    directory: str | Path,
    generator: KeyGenerator,
    sizes: Iterable[int] = DEFAULT_WORKLOAD_SIZES,
    search_count: int = DEFAULT_SEARCH_COUNT,
) -> List[Path]:
    """Write one ``random_keys_<n>.txt`` per size and a ``search_keys_<n>.txt`` file."""

    root = Path(directory)
    written: List[Path] = []
    for size in sizes:
        keys = generator.unique(size)
        written.append(save_keys(keys, root / f"random_keys_{size}.txt"))
    search_keys = generator.with_repeats(search_count)
    written.append(save_keys(search_keys, root / f"search_keys_{search_count}.txt"))
    logger.info("Generated %d workload files under %s", len(written), root)
    return written


__all__ = [
    "DEFAULT_SEARCH_COUNT",
    "DEFAULT_UNIQUE_LIMIT",
    "DEFAULT_WORKLOAD_SIZES",
    "KeyGenerator",
    "generate_workload_files",
]
