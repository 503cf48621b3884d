"""Exit codes and the JSON error envelope written by hashlab commands.

Table and dataset code raises the ``EnvelopeError`` subclasses below; ``guard_cli``
turns them into one JSON line on stderr plus a stable exit code. Subclasses are
listed before their parents in ``_EXCEPTION_ORDER`` so the most specific label wins.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from functools import wraps
from typing import Any, NoReturn, TypeVar

logger = logging.getLogger(__name__)
T = TypeVar("T")


class Exit(IntEnum):
    """Process exit codes for hashlab commands."""

    OK = 0
    BAD_INPUT = 2
    INVARIANT = 3
    POLICY = 4
    IO = 5


@dataclass(slots=True)
class ErrorEnvelope:
    error: str
    detail: str
    hint: str | None = None

    @classmethod
    def from_error(cls, exc: EnvelopeError) -> ErrorEnvelope:
        _, label = classify(exc)
        return cls(error=label, detail=str(exc), hint=exc.hint)

    def to_dict(self) -> dict[str, str]:
        payload = {"error": self.error, "detail": self.detail}
        if self.hint:
            payload["hint"] = self.hint
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


def die(code: Exit, kind: str, detail: str, hint: str | None = None) -> NoReturn:
    """Write the envelope to stderr and exit with ``code``."""

    env = ErrorEnvelope(error=kind, detail=detail, hint=hint)
    sys.stderr.write(env.to_json() + "\n")
    try:
        sys.stderr.flush()
    finally:
        sys.exit(int(code))


class EnvelopeError(Exception):
    """Base for errors reported through the envelope; ``hint`` tells the user what to change."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class BadInputError(EnvelopeError):
    """Malformed dataset files, summaries, flags or config values."""


class InvalidConfigurationError(BadInputError):
    """A table or key generator was constructed with unusable parameters."""


class InvariantError(EnvelopeError):
    """A table, dataset or summary failed a consistency check."""


class PolicyError(EnvelopeError):
    """An operation the tables refuse to perform."""


class CapacityExceededError(PolicyError):
    """An open-addressing insert would cross a load threshold."""


class IOErrorEnvelope(EnvelopeError):  # noqa: N818 - mirrors Exit.IO naming
    """A dataset, summary or output path could not be read or written."""


_EXCEPTION_ORDER: tuple[tuple[type[EnvelopeError], Exit, str], ...] = (
    (InvalidConfigurationError, Exit.BAD_INPUT, "InvalidConfiguration"),
    (BadInputError, Exit.BAD_INPUT, "BadInput"),
    (InvariantError, Exit.INVARIANT, "Invariant"),
    (CapacityExceededError, Exit.POLICY, "CapacityExceeded"),
    (PolicyError, Exit.POLICY, "Policy"),
    (IOErrorEnvelope, Exit.IO, "IO"),
)


def classify(exc: EnvelopeError) -> tuple[Exit, str]:
    """Return the exit code and envelope label for ``exc``."""

    for exc_type, exit_code, label in _EXCEPTION_ORDER:
        if isinstance(exc, exc_type):
            return exit_code, label
    return Exit.POLICY, "UnhandledEnvelope"


def guard_cli(fn: Callable[..., T]) -> Callable[..., T]:
    """Decorate a command handler so every failure ends in an envelope and exit code."""

    @wraps(fn)
    def _wrapped(*args: Any, **kwargs: Any) -> T:
        try:
            return fn(*args, **kwargs)
        except EnvelopeError as exc:
            code, _ = classify(exc)
            env = ErrorEnvelope.from_error(exc)
            die(code, env.error, env.detail, hint=env.hint)
        except FileNotFoundError as exc:
            die(Exit.IO, "FileNotFound", str(exc))
        except OSError as exc:
            die(Exit.IO, "IO", str(exc))
        except Exception as exc:  # pragma: no cover - last-resort envelope
            logger.exception("Unhandled CLI exception")
            die(Exit.POLICY, "Unhandled", f"{type(exc).__name__}: {exc}")

    return _wrapped


__all__ = [
    "Exit",
    "ErrorEnvelope",
    "EnvelopeError",
    "BadInputError",
    "InvalidConfigurationError",
    "InvariantError",
    "PolicyError",
    "CapacityExceededError",
    "IOErrorEnvelope",
    "classify",
    "guard_cli",
    "die",
]
