"""Contract helpers for hashlab."""

from .error import (
    BadInputError,
    CapacityExceededError,
    EnvelopeError,
    ErrorEnvelope,
    Exit,
    InvalidConfigurationError,
    InvariantError,
    IOErrorEnvelope,
    PolicyError,
    classify,
    die,
    guard_cli,
)

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
