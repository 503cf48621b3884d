from __future__ import annotations

import json

import pytest

from hashlab.contracts.error import (
    BadInputError,
    CapacityExceededError,
    ErrorEnvelope,
    Exit,
    InvalidConfigurationError,
    InvariantError,
    IOErrorEnvelope,
    PolicyError,
    classify,
    guard_cli,
)


@pytest.mark.parametrize(
    "exc, code, label",
    [
        (InvalidConfigurationError("capacity must be > 0"), Exit.BAD_INPUT, "InvalidConfiguration"),
        (BadInputError("bad"), Exit.BAD_INPUT, "BadInput"),
        (InvariantError("broken"), Exit.INVARIANT, "Invariant"),
        (CapacityExceededError("full", hint="grow it"), Exit.POLICY, "CapacityExceeded"),
        (PolicyError("nope"), Exit.POLICY, "Policy"),
        (IOErrorEnvelope("disk"), Exit.IO, "IO"),
        (FileNotFoundError("gone.txt"), Exit.IO, "FileNotFound"),
        (PermissionError("read-only"), Exit.IO, "IO"),
    ],
)
def test_guard_cli_maps_exceptions(
    exc: Exception, code: Exit, label: str, capsys: pytest.CaptureFixture[str]
) -> None:
    @guard_cli
    def handler() -> int:
        raise exc

    with pytest.raises(SystemExit) as excinfo:
        handler()
    assert excinfo.value.code == int(code)
    envelope = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert envelope["error"] == label
    if getattr(exc, "hint", None):
        assert envelope["hint"] == exc.hint  # type: ignore[attr-defined]


def test_guard_cli_passes_through_results() -> None:
    assert guard_cli(lambda: 0)() == 0


def test_hierarchy_keeps_specific_errors_catchable() -> None:
    assert issubclass(InvalidConfigurationError, BadInputError)
    assert issubclass(CapacityExceededError, PolicyError)


def test_envelope_omits_empty_hint() -> None:
    assert json.loads(ErrorEnvelope("BadInput", "x").to_json()) == {"error": "BadInput", "detail": "x"}


def test_classify_prefers_most_specific_label() -> None:
    assert classify(CapacityExceededError("full")) == (Exit.POLICY, "CapacityExceeded")
    assert classify(InvalidConfigurationError("cap")) == (Exit.BAD_INPUT, "InvalidConfiguration")


def test_envelope_from_error_carries_hint() -> None:
    env = ErrorEnvelope.from_error(BadInputError("not utf-8", hint="re-save the file"))
    assert env.to_dict() == {"error": "BadInput", "detail": "not utf-8", "hint": "re-save the file"}
