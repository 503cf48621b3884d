"""Timing for key generation with and without repeats."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from hashlab.datasets.generator import KeyGenerator

logger = logging.getLogger(__name__)


@dataclass
class GenerationTiming:
    count: int
    repeats_ms: float
    unique_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def time_generation(generator: KeyGenerator, counts: Iterable[int]) -> List[GenerationTiming]:
    """Time ``with_repeats`` for every count and ``unique`` up to the generator's unique limit.

    Counts above ``unique_limit`` would silently fall back to repeats, so their
    ``unique_ms`` stays ``None``.
    """

    timings: List[GenerationTiming] = []
    for count in counts:
        start = time.perf_counter()
        generator.with_repeats(count)
        repeats_ms = (time.perf_counter() - start) * 1000.0

        unique_ms: Optional[float] = None
        if count <= generator.unique_limit:
            start = time.perf_counter()
            generator.unique(count)
            unique_ms = (time.perf_counter() - start) * 1000.0
        else:
            logger.debug("Skipping unique generation for %d keys (limit %d)", count, generator.unique_limit)
        timings.append(GenerationTiming(count=count, repeats_ms=repeats_ms, unique_ms=unique_ms))
    return timings


def format_generation_report(timings: Iterable[GenerationTiming]) -> str:
    header = f"{'keys':>8}{'repeats ms':>14}{'unique ms':>14}"
    lines = [header, "-" * len(header)]
    for t in timings:
        unique = f"{t.unique_ms:.3f}" if t.unique_ms is not None else "-"
        lines.append(f"{t.count:>8}{t.repeats_ms:>14.3f}{unique:>14}")
    return "\n".join(lines)


__all__ = ["GenerationTiming", "format_generation_report", "time_generation"]
