"""Probe-path tracing utilities for the chained and open-addressing tables."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from hashlab.core.cells import CellState
from hashlab.core.chained import ChainedTable
from hashlab.core.hashing import HashKind
from hashlab.core.open_table import OpenTable
from hashlab.core.statistics import probe_distance

ProbeTrace = Dict[str, Any]


def trace_open_search(table: OpenTable, key: int, kind: HashKind | str = HashKind.DIVISION) -> ProbeTrace:
    hash_kind = HashKind.parse(kind)
    cap = table.capacity
    start_idx = table.home_slot(key, hash_kind)
    idx = start_idx
    path: List[Dict[str, Any]] = []
    found = False
    terminal = "exhausted"
    for scanned in range(cap):
        cell = table.cell(idx)
        step: Dict[str, Any] = {"step": scanned, "slot": idx}
        if cell.state is CellState.EMPTY:
            step["state"] = "empty"
            path.append(step)
            terminal = "empty"
            break
        if cell.state is CellState.TOMBSTONE:
            step.update({"state": "tombstone", "action": "skip"})
            path.append(step)
            idx = (idx + 1) % cap
            continue
        matches = cell.key == key
        step.update(
            {
                "state": "occupied",
                "occupant": cell.key,
                "matches": matches,
            }
        )
        path.append(step)
        if matches:
            terminal = "match"
            found = True
            break
        idx = (idx + 1) % cap
    return {
        "backend": "open",
        "operation": "search",
        "hash": hash_kind.value,
        "key": key,
        "home_slot": start_idx,
        "found": found,
        "terminal": terminal,
        "capacity": cap,
        "path": path,
    }


def trace_open_insert(table: OpenTable, key: int, kind: HashKind | str = HashKind.DIVISION) -> ProbeTrace:
    """Describe what ``table.insert(key, kind)`` would do, without mutating the table."""

    hash_kind = HashKind.parse(kind)
    cap = table.capacity
    start_idx = table.home_slot(key, hash_kind)
    trace: ProbeTrace = {
        "backend": "open",
        "operation": "insert",
        "hash": hash_kind.value,
        "key": key,
        "home_slot": start_idx,
        "capacity": cap,
        "load_factor": table.load_factor(),
        "occupancy_factor": table.occupancy_factor(),
        "path": [],
    }
    if table.needs_rehash():
        trace["terminal"] = "rejected"
        trace["target_slot"] = None
        return trace

    path: List[Dict[str, Any]] = trace["path"]
    target: Optional[int] = None
    terminal = "overflow"
    idx = start_idx
    for scanned in range(cap):
        cell = table.cell(idx)
        step: Dict[str, Any] = {"step": scanned, "slot": idx, "state": cell.state.value}
        if cell.state is CellState.OCCUPIED:
            matches = cell.key == key
            step.update({"occupant": cell.key, "matches": matches})
            if matches:
                step["action"] = "duplicate"
                path.append(step)
                target = idx
                terminal = "duplicate"
                break
            step["action"] = "advance"
        elif cell.state is CellState.TOMBSTONE:
            if target is None:
                target = idx
                step["action"] = "candidate"
            else:
                step["action"] = "advance"
            terminal = "reuse-tombstone"
        else:
            if target is None:
                target = idx
                terminal = "insert"
                step["action"] = "insert"
            else:
                step["action"] = "stop"
            path.append(step)
            break
        path.append(step)
        idx = (idx + 1) % cap
    trace["terminal"] = terminal
    trace["target_slot"] = target
    if target is not None and terminal != "duplicate":
        trace["probe_distance"] = probe_distance(cap, start_idx, target)
    return trace


def trace_chained_search(
    table: ChainedTable, key: int, kind: HashKind | str = HashKind.DIVISION
) -> ProbeTrace:
    hash_kind = HashKind.parse(kind)
    bucket_idx = table.bucket_index(key, hash_kind)
    entries: List[Dict[str, Any]] = []
    found = False
    for pos, occupant in enumerate(table.chain(bucket_idx)):
        matches = occupant == key
        entries.append({"position": pos, "occupant": occupant, "matches": matches})
        if matches:
            found = True
            break
    return {
        "backend": "chained",
        "operation": "search",
        "hash": hash_kind.value,
        "key": key,
        "bucket": bucket_idx,
        "chain_length": sum(1 for _ in table.chain(bucket_idx)),
        "found": found,
        "terminal": "match" if found else "end-of-chain",
        "path": entries,
    }


def trace_search(
    table: Union[ChainedTable, OpenTable], key: int, kind: HashKind | str = HashKind.DIVISION
) -> ProbeTrace:
    if isinstance(table, OpenTable):
        return trace_open_search(table, key, kind)
    if isinstance(table, ChainedTable):
        return trace_chained_search(table, key, kind)
    raise TypeError(f"Unsupported table type: {type(table)!r}")


def trace_insert(
    table: Union[ChainedTable, OpenTable], key: int, kind: HashKind | str = HashKind.DIVISION
) -> ProbeTrace:
    if isinstance(table, OpenTable):
        return trace_open_insert(table, key, kind)
    if isinstance(table, ChainedTable):
        base = trace_chained_search(table, key, kind)
        base.update(
            {
                "operation": "insert",
                "terminal": "duplicate" if base.get("found") else "prepend",
            }
        )
        return base
    raise TypeError(f"Unsupported table type: {type(table)!r}")


def format_trace_lines(
    trace: Dict[str, Any],
    *,
    seeds: Optional[Sequence[int]] = None,
    export_path: Optional[Union[str, Path]] = None,
) -> List[str]:
    """Return a human-friendly rendering of a probe trace."""

    lines: List[str] = []
    backend = trace.get("backend", "?")
    operation = trace.get("operation", "?")
    lines.append(
        f"Probe trace [{backend}/{trace.get('hash', '?')}] {str(operation).upper()} key={trace.get('key', '?')}"
    )
    if "found" in trace:
        lines.append(f"Found: {trace.get('found')} | Terminal: {trace.get('terminal')}")
    else:
        lines.append(f"Terminal: {trace.get('terminal')} | Target slot: {trace.get('target_slot')}")
    if "capacity" in trace:
        lines.append(f"Capacity: {trace['capacity']} | Home slot: {trace.get('home_slot')}")
    if "bucket" in trace:
        lines.append(f"Bucket: {trace['bucket']} | Chain length: {trace.get('chain_length')}")
    if seeds:
        lines.append("Seed keys: " + ", ".join(str(seed) for seed in seeds))
    lines.append("Steps:")
    path = trace.get("path")
    if not isinstance(path, list) or not path:
        lines.append("  (no path recorded)")
    else:
        for item in path:
            if not isinstance(item, dict):
                lines.append(f"  {item!r}")
                continue
            if "step" in item:
                prefix = f"  Step {item['step']}: "
            elif "position" in item:
                prefix = f"  Node {item['position']}: "
            else:
                prefix = "  Item: "
            attrs: List[str] = []
            for name in ("slot", "state", "action", "occupant", "matches"):
                if name in item and item[name] is not None:
                    value = item[name]
                    if isinstance(value, bool):
                        value = str(value).lower()
                    attrs.append(f"{name}={value}")
            if not attrs:
                attrs.append(", ".join(f"{k}={v}" for k, v in item.items()))
            lines.append(prefix + ", ".join(attrs))
    if export_path:
        lines.append(f"Trace JSON written to: {export_path}")
    return lines


__all__ = [
    "ProbeTrace",
    "format_trace_lines",
    "trace_chained_search",
    "trace_insert",
    "trace_open_insert",
    "trace_open_search",
    "trace_search",
]
