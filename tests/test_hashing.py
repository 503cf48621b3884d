from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from hashlab.contracts.error import BadInputError, InvalidConfigurationError
from hashlab.core.hashing import (
    MULTIPLICATION_CONSTANT,
    HashKind,
    check_capacity,
    division_index,
    multiplication_index,
    slot_index,
)


def test_division_index_discards_sign() -> None:
    assert division_index(10, 7) == 3
    assert division_index(-10, 7) == 3
    assert division_index(0, 7) == 0


def test_multiplication_index_known_values() -> None:
    assert MULTIPLICATION_CONSTANT == pytest.approx(0.6180339887)
    # 1 * A = 0.618... -> floor(10 * 0.618) = 6
    assert multiplication_index(1, 10) == 6
    # 2 * A = 1.236... -> frac 0.236 -> 2
    assert multiplication_index(2, 10) == 2
    assert multiplication_index(-1, 10) == multiplication_index(1, 10)
    assert multiplication_index(0, 10) == 0


def test_slot_index_dispatches_on_kind() -> None:
    assert slot_index(12, 10, HashKind.DIVISION) == 2
    assert slot_index(1, 10, HashKind.MULTIPLICATION) == 6


@given(st.integers(-(10**12), 10**12), st.integers(1, 5000))
def test_indices_stay_in_range(key: int, capacity: int) -> None:
    assert 0 <= division_index(key, capacity) < capacity
    assert 0 <= multiplication_index(key, capacity) < capacity


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("division", HashKind.DIVISION),
        ("DIVISION", HashKind.DIVISION),
        (" div ", HashKind.DIVISION),
        ("mod", HashKind.DIVISION),
        ("multiplication", HashKind.MULTIPLICATION),
        ("mul", HashKind.MULTIPLICATION),
        ("mult", HashKind.MULTIPLICATION),
        (HashKind.MULTIPLICATION, HashKind.MULTIPLICATION),
    ],
)
def test_hash_kind_parse_accepts_names_and_aliases(raw: object, expected: HashKind) -> None:
    assert HashKind.parse(raw) is expected  # type: ignore[arg-type]


def test_hash_kind_parse_rejects_unknown() -> None:
    with pytest.raises(BadInputError) as excinfo:
        HashKind.parse("sha256")
    assert excinfo.value.hint and "division" in excinfo.value.hint


@pytest.mark.parametrize("capacity", [0, -3, 2.5, True, "7"])
def test_check_capacity_rejects_invalid(capacity: object) -> None:
    with pytest.raises(InvalidConfigurationError):
        check_capacity(capacity)  # type: ignore[arg-type]


def test_check_capacity_returns_value() -> None:
    assert check_capacity(29) == 29
