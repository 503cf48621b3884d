from __future__ import annotations

import logging
from pathlib import Path

import pytest

from hashlab.contracts.error import BadInputError, InvalidConfigurationError, IOErrorEnvelope
from hashlab.datasets import (
    KeyGenerator,
    analyze_dataset,
    dataset_report,
    format_dataset_info,
    generate_workload_files,
    list_datasets,
    load_keys,
    save_keys,
    summarize_keys,
    validate_dataset,
)


@pytest.fixture
def _propagating_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    # the CLI detaches the package logger from the root; caplog listens on the root
    monkeypatch.setattr(logging.getLogger("hashlab"), "propagate", True)


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_save_then_load(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "keys.txt"
    save_keys([5, -3, 0, 12], target)
    assert target.read_text(encoding="utf-8") == "4\n5\n-3\n0\n12\n"
    assert load_keys(target) == [5, -3, 0, 12]
    assert [p.name for p in target.parent.iterdir()] == ["keys.txt"]


def test_save_refuses_empty(tmp_path: Path) -> None:
    with pytest.raises(BadInputError):
        save_keys([], tmp_path / "empty.txt")


@pytest.mark.usefixtures("_propagating_logs")
def test_load_skips_invalid_and_blank_lines(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = _write(tmp_path / "messy.txt", "3\n1\n\nabc\n2\n3\n")
    with caplog.at_level(logging.WARNING, logger="hashlab.datasets.loader"):
        keys = load_keys(path)
    assert keys == [1, 2, 3]
    assert any("Skipping invalid line 4" in rec.getMessage() for rec in caplog.records)


@pytest.mark.usefixtures("_propagating_logs")
def test_load_warns_on_count_mismatch(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = _write(tmp_path / "short.txt", "5\n1\n2\n3\n")
    with caplog.at_level(logging.WARNING, logger="hashlab.datasets.loader"):
        assert load_keys(path) == [1, 2, 3]
    assert any("Expected 5 keys" in rec.getMessage() for rec in caplog.records)


def test_load_stops_at_declared_count(tmp_path: Path) -> None:
    path = _write(tmp_path / "long.txt", "2\n1\n2\n3\n4\n")
    assert load_keys(path) == [1, 2]


@pytest.mark.parametrize("text", ["", "abc\n1\n", "0\n", "-2\n5\n", "2\nfoo\nbar\n"])
def test_load_rejects_bad_files(tmp_path: Path, text: str) -> None:
    path = _write(tmp_path / "bad.txt", text)
    with pytest.raises(BadInputError):
        load_keys(path)


def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(IOErrorEnvelope):
        load_keys(tmp_path / "missing.txt")


def test_validate_dataset(tmp_path: Path) -> None:
    good = save_keys([1, 2, 3], tmp_path / "good.txt")
    ok, msgs = validate_dataset(good)
    assert ok and msgs == ["3 keys"]

    ok, msgs = validate_dataset(_write(tmp_path / "bad.txt", "2\n1\nx\n"))
    assert not ok and "line 3" in msgs[0]

    ok, msgs = validate_dataset(_write(tmp_path / "short.txt", "3\n1\n2\n"))
    assert not ok and "Declared 3" in msgs[0]

    ok, msgs = validate_dataset(tmp_path / "missing.txt")
    assert not ok


def test_analyze_dataset(tmp_path: Path) -> None:
    path = save_keys([5, 1, 5, 3], tmp_path / "dups.txt")
    info = analyze_dataset(path)
    assert (info.count, info.minimum, info.maximum) == (4, 1, 5)
    assert info.mean == pytest.approx(3.5)
    assert info.duplicates == 1
    assert info.has_duplicates is True
    assert info.to_dict()["has_duplicates"] is True
    lines = format_dataset_info(info)
    assert "  Duplicates: yes (1)" in lines
    assert "  Range: [1, 5]" in lines


def test_summarize_keys_rejects_empty() -> None:
    with pytest.raises(BadInputError):
        summarize_keys([])


def test_list_and_report(tmp_path: Path) -> None:
    save_keys([1, 2], tmp_path / "b.txt")
    save_keys([3], tmp_path / "a.txt")
    _write(tmp_path / "broken.txt", "nope\n")
    _write(tmp_path / "notes.md", "ignored")

    assert [p.name for p in list_datasets(tmp_path)] == ["a.txt", "b.txt", "broken.txt"]
    infos, errors = dataset_report(tmp_path)
    assert [Path(info.path).name for info in infos] == ["a.txt", "b.txt"]
    assert len(errors) == 1 and errors[0].startswith("broken.txt")
    assert list_datasets(tmp_path / "missing") == []


def test_generator_rejects_empty_range() -> None:
    with pytest.raises(InvalidConfigurationError):
        KeyGenerator(min_value=10, max_value=10)
    with pytest.raises(InvalidConfigurationError):
        KeyGenerator(min_value=10, max_value=1)


def test_generator_is_deterministic_with_seed() -> None:
    a = KeyGenerator(seed=42)
    b = KeyGenerator(seed=42)
    assert a.with_repeats(50) == b.with_repeats(50)
    assert a.unique(50) == b.unique(50)


def test_unique_keys_are_distinct_and_in_range() -> None:
    gen = KeyGenerator(seed=1, min_value=1, max_value=100)
    keys = gen.unique(100)
    assert sorted(keys) == list(range(1, 101))


def test_unique_falls_back_to_repeats_above_limit() -> None:
    gen = KeyGenerator(seed=3, min_value=1, max_value=3, unique_limit=5)
    keys = gen.unique(20)
    assert len(keys) == 20
    assert set(keys) <= {1, 2, 3}


def test_unique_more_than_range_rejected() -> None:
    gen = KeyGenerator(seed=3, min_value=1, max_value=3)
    with pytest.raises(InvalidConfigurationError):
        gen.unique(4)


@pytest.mark.parametrize("count", [0, -1])
def test_generator_rejects_non_positive_count(count: int) -> None:
    gen = KeyGenerator(seed=0)
    with pytest.raises(BadInputError):
        gen.with_repeats(count)
    with pytest.raises(BadInputError):
        gen.unique(count)


def test_generate_workload_files(tmp_path: Path) -> None:
    written = generate_workload_files(tmp_path / "data", KeyGenerator(seed=5), [10, 20], 5)
    assert [p.name for p in written] == ["random_keys_10.txt", "random_keys_20.txt", "search_keys_5.txt"]
    assert len(set(load_keys(written[1]))) == 20
    assert len(load_keys(written[2])) == 5


def test_undecodable_dataset_is_bad_input(tmp_path: Path) -> None:
    binary = tmp_path / "bin.txt"
    binary.write_bytes(b"2\n\xff\xfe\n3\n")

    with pytest.raises(BadInputError, match="not valid UTF-8"):
        load_keys(binary)

    ok, msgs = validate_dataset(binary)
    assert not ok and "not valid UTF-8" in msgs[0]

    save_keys([1, 2], tmp_path / "good.txt")
    infos, errors = dataset_report(tmp_path)
    assert [Path(info.path).name for info in infos] == ["good.txt"]
    assert len(errors) == 1 and errors[0].startswith("bin.txt")
