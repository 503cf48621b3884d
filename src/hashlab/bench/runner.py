"""Timing harness comparing the chained and open-addressing tables.

Every case inserts one dataset into a fresh table, then searches the shared search-key
set. The open table is not resized: the first ``CapacityExceededError`` ends its insert
phase and the case is marked ``saturated``.
"""

from __future__ import annotations

import csv
import json
import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, fields
from datetime import UTC, datetime
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from jsonschema import Draft202012Validator

from hashlab.config import AppConfig, BenchmarkPolicy, OpenTablePolicy
from hashlab.contracts.error import CapacityExceededError
from hashlab.core.chained import ChainedTable
from hashlab.core.hashing import HashKind
from hashlab.core.open_table import OpenTable

from .latency import Reservoir

logger = logging.getLogger(__name__)

SUMMARY_SCHEMA = "hashlab.bench.v1"
TABLE_KINDS: tuple[str, ...] = ("chained", "open")

Table = Union[ChainedTable, OpenTable]


@dataclass
class BenchmarkResult:
    table: str
    capacity: int
    hash: str
    dataset_size: int
    insert_ms: float
    search_ms: float
    attempted: int
    inserted: int
    duplicates: int
    rejected: int
    saturated: bool
    searches: int
    found: int
    load_factor: float
    occupancy_factor: float
    collisions: int
    longest_run: int
    search_p50_ms: float
    search_p90_ms: float
    search_p99_ms: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


CSV_HEADER: tuple[str, ...] = tuple(f.name for f in fields(BenchmarkResult))


def _build_table(kind: str, capacity: int, policy: OpenTablePolicy) -> Table:
    if kind == "chained":
        return ChainedTable(capacity)
    if kind == "open":
        return OpenTable(
            capacity,
            max_load_factor=policy.max_load_factor,
            max_occupancy=policy.max_occupancy,
        )
    raise ValueError(f"Unknown table kind: {kind}")


def _shape(table: Table) -> Tuple[float, int, int]:
    """Return (fraction of slots in use, collisions, longest run) for a populated table."""

    if isinstance(table, OpenTable):
        probe = table.statistics()
        return table.occupancy_factor(), probe.total_probes - probe.size, probe.largest_cluster
    chain = table.statistics()
    used = (chain.capacity - chain.empty_buckets) / chain.capacity
    return used, chain.total_collisions, chain.longest_chain


def run_case(
    table_kind: str,
    capacity: int,
    hash_kind: HashKind | str,
    keys: Sequence[int],
    search_keys: Sequence[int],
    *,
    open_policy: OpenTablePolicy | None = None,
    latency_sample_k: int = 1000,
    latency_sample_every: int = 16,
) -> BenchmarkResult:
    kind = HashKind.parse(hash_kind)
    table = _build_table(table_kind, capacity, open_policy or OpenTablePolicy())

    attempted = inserted = rejected = 0
    saturated = False
    start = time.perf_counter()
    for key in keys:
        attempted += 1
        try:
            if table.insert(key, kind):
                inserted += 1
        except CapacityExceededError:
            rejected += 1
            saturated = True
            break
    insert_ms = (time.perf_counter() - start) * 1000.0
    if saturated:
        logger.debug(
            "%s/%d/%s saturated after %d of %d keys",
            table_kind,
            capacity,
            kind.value,
            inserted,
            len(keys),
        )

    reservoir = Reservoir(k=latency_sample_k)
    found = 0
    search = table.search
    start = time.perf_counter()
    for idx, key in enumerate(search_keys):
        if idx % latency_sample_every == 0:
            t0 = time.perf_counter()
            hit = search(key, kind)
            reservoir.offer((time.perf_counter() - t0) * 1000.0)
        else:
            hit = search(key, kind)
        if hit:
            found += 1
    search_ms = (time.perf_counter() - start) * 1000.0

    occupancy, collisions, longest_run = _shape(table)
    pct = reservoir.percentiles()
    return BenchmarkResult(
        table=table_kind,
        capacity=capacity,
        hash=kind.value,
        dataset_size=len(keys),
        insert_ms=insert_ms,
        search_ms=search_ms,
        attempted=attempted,
        inserted=inserted,
        duplicates=attempted - inserted - rejected,
        rejected=rejected,
        saturated=saturated,
        searches=len(search_keys),
        found=found,
        load_factor=table.load_factor(),
        occupancy_factor=occupancy,
        collisions=collisions,
        longest_run=longest_run,
        search_p50_ms=pct["p50"],
        search_p90_ms=pct["p90"],
        search_p99_ms=pct["p99"],
    )


def run_benchmark(
    keys_by_size: Mapping[int, Sequence[int]],
    search_keys: Sequence[int],
    cfg: AppConfig | None = None,
) -> List[BenchmarkResult]:
    """Run every (dataset, table kind, capacity, hash) combination."""

    config = cfg or AppConfig()
    bench: BenchmarkPolicy = config.benchmark
    results: List[BenchmarkResult] = []
    for dataset_size in sorted(keys_by_size):
        keys = keys_by_size[dataset_size]
        logger.info("Benchmarking dataset of %d keys", len(keys))
        for table_kind in TABLE_KINDS:
            for capacity in bench.table_sizes:
                for hash_kind in bench.hash_kinds:
                    results.append(
                        run_case(
                            table_kind,
                            capacity,
                            hash_kind,
                            keys,
                            search_keys,
                            open_policy=config.open_table,
                            latency_sample_k=bench.latency_sample_k,
                            latency_sample_every=bench.latency_sample_every,
                        )
                    )
    logger.info("Benchmark finished: %d cases", len(results))
    return results


def write_results_csv(results: Sequence[BenchmarkResult], path: str | Path) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8", newline="") as fh:
        writer = csv.DictWriter(fh, fieldnames=list(CSV_HEADER))
        writer.writeheader()
        for result in results:
            row = result.to_dict()
            for name in ("insert_ms", "search_ms", "load_factor", "occupancy_factor"):
                row[name] = f"{row[name]:.6f}"
            writer.writerow(row)
    logger.info("Wrote %d benchmark rows to %s", len(results), target)
    return target


def format_report(results: Sequence[BenchmarkResult]) -> str:
    header = (
        f"{'table':<8}{'cap':>6}  {'hash':<15}{'keys':>7}{'stored':>8}{'LF':>8}"
        f"{'coll':>8}{'run':>6}{'ins ms':>10}{'srch ms':>10}{'found':>7}"
    )
    lines = [header, "-" * len(header)]
    for r in results:
        mark = "*" if r.saturated else ""
        lines.append(
            f"{r.table:<8}{r.capacity:>6}  {r.hash:<15}{r.dataset_size:>7}"
            f"{str(r.inserted) + mark:>8}{r.load_factor:>8.3f}{r.collisions:>8}"
            f"{r.longest_run:>6}{r.insert_ms:>10.3f}{r.search_ms:>10.3f}{r.found:>7}"
        )
    if any(r.saturated for r in results):
        lines.append("* open table reached its load threshold; remaining keys skipped")
    return "\n".join(lines)


def build_summary(results: Sequence[BenchmarkResult]) -> Dict[str, Any]:
    saturated = sum(1 for r in results if r.saturated)
    return {
        "schema": SUMMARY_SCHEMA,
        "generated_at": datetime.now(UTC).isoformat(),
        "case_count": len(results),
        "saturated_cases": saturated,
        "cases": [r.to_dict() for r in results],
    }


def _schema_text() -> str:
    schema_resource = resources.files("hashlab.contracts") / "bench_schema.json"
    with schema_resource.open(encoding="utf-8") as stream:
        return stream.read()


def summary_validator() -> Draft202012Validator:
    return Draft202012Validator(json.loads(_schema_text()))


def validate_summary(payload: Any) -> Tuple[bool, List[str]]:
    """Check ``payload`` against the bundled benchmark summary schema."""

    validator = summary_validator()
    errors = sorted(validator.iter_errors(payload), key=lambda err: list(err.path))
    msgs = [f"{err.message} @ {list(err.path)}" for err in errors]
    if not errors and isinstance(payload, dict):
        declared = payload.get("case_count")
        actual = len(payload.get("cases", []))
        if declared != actual:
            msgs.append(f"case_count={declared} but {actual} case(s) present")
    return not msgs, msgs


__all__ = [
    "BenchmarkResult",
    "CSV_HEADER",
    "SUMMARY_SCHEMA",
    "TABLE_KINDS",
    "build_summary",
    "format_report",
    "run_benchmark",
    "run_case",
    "summary_validator",
    "validate_summary",
    "write_results_csv",
]
