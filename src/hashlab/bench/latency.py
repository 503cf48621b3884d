from __future__ import annotations

import random

DEFAULT_PERCENTILES: tuple[float, ...] = (0.5, 0.9, 0.99)


class Reservoir:
    """Fixed-size sample of search latencies (ms) with uniform replacement."""

    __slots__ = ("k", "buf", "n", "rng")

    def __init__(self, k: int = 1000, seed: int | None = 0xC0FFEE) -> None:
        self.k = max(1, k)
        self.buf: list[float] = []
        self.n = 0
        self.rng = random.Random(seed)  # noqa: S311  # nosec B311 - sampling, not security

    def __len__(self) -> int:
        return len(self.buf)

    def offer(self, value_ms: float) -> None:
        self.n += 1
        if len(self.buf) < self.k:
            self.buf.append(value_ms)
            return
        j = self.rng.randrange(self.n)
        if j < self.k:
            self.buf[j] = value_ms

    def percentiles(self, ps: tuple[float, ...] | list[float] = DEFAULT_PERCENTILES) -> dict[str, float]:
        if not self.buf:
            return {f"p{int(p * 100)}": 0.0 for p in ps}
        data = sorted(self.buf)
        out: dict[str, float] = {}
        for p in ps:
            idx = min(len(data) - 1, max(0, int(round(p * (len(data) - 1)))))
            out[f"p{int(p * 100)}"] = data[idx]
        return out


__all__ = ["DEFAULT_PERCENTILES", "Reservoir"]
