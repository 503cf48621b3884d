from __future__ import annotations

import pytest

from hashlab.analysis.probe import format_trace_lines, trace_insert, trace_search
from hashlab.core import ChainedTable, HashKind, OpenTable


def _open_with(capacity: int, *keys: int) -> OpenTable:
    table = OpenTable(capacity)
    for key in keys:
        table.insert(key)
    return table


def test_open_search_miss_wraps_to_empty_slot() -> None:
    table = _open_with(5, 2, 7, 12)
    trace = trace_search(table, 17, HashKind.DIVISION)
    assert trace["backend"] == "open"
    assert trace["found"] is False
    assert trace["terminal"] == "empty"
    assert [step["slot"] for step in trace["path"]] == [2, 3, 4, 0]
    assert trace["path"][-1]["state"] == "empty"


def test_open_search_match() -> None:
    table = _open_with(5, 2, 7)
    trace = trace_search(table, 7)
    assert trace["found"] is True
    assert trace["terminal"] == "match"
    assert trace["path"][-1]["matches"] is True
    assert trace["home_slot"] == 2


def test_open_search_skips_tombstones() -> None:
    table = _open_with(10, 1, 11)
    table.remove(1)
    trace = trace_search(table, 11)
    assert trace["path"][0]["state"] == "tombstone"
    assert trace["path"][0]["action"] == "skip"
    assert trace["found"] is True


def test_open_insert_reports_tombstone_reuse_without_mutation() -> None:
    table = _open_with(10, 1, 11)
    table.remove(1)
    trace = trace_insert(table, 21)
    assert trace["operation"] == "insert"
    assert trace["terminal"] == "reuse-tombstone"
    assert trace["target_slot"] == 1
    assert trace["probe_distance"] == 0
    assert table.tombstones() == 1
    assert table.search(21) is False


def test_open_insert_detects_duplicate_behind_tombstone() -> None:
    table = _open_with(10, 1, 11)
    table.remove(1)
    trace = trace_insert(table, 11)
    assert trace["terminal"] == "duplicate"
    assert trace["target_slot"] == 2
    assert trace["path"][-1]["action"] == "duplicate"


def test_open_insert_into_empty_home() -> None:
    trace = trace_insert(OpenTable(5), 3)
    assert trace["terminal"] == "insert"
    assert trace["target_slot"] == 3
    assert trace["probe_distance"] == 0


def test_open_insert_rejected_over_threshold() -> None:
    table = _open_with(5, 2, 7, 12)
    trace = trace_insert(table, 1)
    assert trace["terminal"] == "rejected"
    assert trace["target_slot"] is None
    assert trace["path"] == []


def test_open_insert_overflow_when_probe_exhausted() -> None:
    table = OpenTable(2, max_load_factor=1.0, max_occupancy=1.0)
    table.insert(0)
    table.insert(1)
    trace = trace_insert(table, 2)
    assert trace["terminal"] == "overflow"
    assert trace["target_slot"] is None
    assert len(trace["path"]) == 2


def test_chained_search_trace() -> None:
    table = ChainedTable(7)
    for key in (10, 17, 24):
        table.insert(key)
    trace = trace_search(table, 10)
    assert trace["backend"] == "chained"
    assert trace["bucket"] == 3
    assert trace["chain_length"] == 3
    assert [item["occupant"] for item in trace["path"]] == [24, 17, 10]
    assert trace["terminal"] == "match"


def test_chained_insert_trace_terminals() -> None:
    table = ChainedTable(7)
    table.insert(10)
    assert trace_insert(table, 17)["terminal"] == "prepend"
    assert trace_insert(table, 10)["terminal"] == "duplicate"


def test_trace_rejects_unknown_table() -> None:
    with pytest.raises(TypeError):
        trace_search(object(), 1)  # type: ignore[arg-type]


def test_format_trace_lines_renders_steps() -> None:
    table = _open_with(5, 2, 7, 12)
    trace = trace_search(table, 17)
    lines = format_trace_lines(trace, seeds=[2, 7, 12], export_path="trace.json")
    assert lines[0] == "Probe trace [open/division] SEARCH key=17"
    assert "Found: False | Terminal: empty" in lines
    assert "Seed keys: 2, 7, 12" in lines
    assert any(line.startswith("  Step 0: slot=2") for line in lines)
    assert lines[-1] == "Trace JSON written to: trace.json"


def test_format_trace_lines_without_path() -> None:
    lines = format_trace_lines({"backend": "open", "operation": "insert", "terminal": "rejected"})
    assert "  (no path recorded)" in lines
