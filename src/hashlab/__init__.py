"""Hash table lab: chained and open-addressing tables with analysis tooling."""

from . import contracts, core
from . import analysis, bench, datasets

__all__ = [
    "analysis",
    "bench",
    "contracts",
    "core",
    "datasets",
]
