"""Typed configuration loader for the hashlab CLI."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .contracts.error import BadInputError, InvalidConfigurationError
from .core.hashing import HashKind
from .core.open_table import DEFAULT_MAX_LOAD_FACTOR, DEFAULT_MAX_OCCUPANCY


def _int_list(raw: str) -> list[int]:
    return [int(part) for part in raw.replace(";", ",").split(",") if part.strip()]


@dataclass
class OpenTablePolicy:
    max_load_factor: float = DEFAULT_MAX_LOAD_FACTOR
    max_occupancy: float = DEFAULT_MAX_OCCUPANCY

    def validate(self) -> None:
        if not 0.0 < self.max_load_factor <= 1.0:
            raise InvalidConfigurationError("open_table.max_load_factor must be in (0, 1]")
        if not 0.0 < self.max_occupancy <= 1.0:
            raise InvalidConfigurationError("open_table.max_occupancy must be in (0, 1]")


@dataclass
class BenchmarkPolicy:
    table_sizes: list[int] = field(default_factory=lambda: [29, 97, 251, 499, 911])
    dataset_sizes: list[int] = field(default_factory=lambda: [100, 500, 1000, 5000, 10000, 50000])
    search_count: int = 1000
    hash_kinds: list[str] = field(default_factory=lambda: [kind.value for kind in HashKind])
    latency_sample_k: int = 1000
    latency_sample_every: int = 16

    def validate(self) -> None:
        for name in ("table_sizes", "dataset_sizes"):
            values = getattr(self, name)
            if not values:
                raise BadInputError(f"benchmark.{name} must not be empty")
            if any(isinstance(v, bool) or not isinstance(v, int) or v <= 0 for v in values):
                raise BadInputError(f"benchmark.{name} must contain positive integers")
        if self.search_count <= 0:
            raise BadInputError("benchmark.search_count must be > 0")
        if not self.hash_kinds:
            raise BadInputError("benchmark.hash_kinds must not be empty")
        self.hash_kinds = [HashKind.parse(kind).value for kind in self.hash_kinds]
        if self.latency_sample_k <= 0:
            raise BadInputError("benchmark.latency_sample_k must be > 0")
        if self.latency_sample_every <= 0:
            raise BadInputError("benchmark.latency_sample_every must be > 0")


@dataclass
class DatasetPolicy:
    directory: str = "data"
    min_value: int = 1
    max_value: int = 1_000_000
    seed: int | None = None
    unique_limit: int = 10_000

    def validate(self) -> None:
        if self.min_value >= self.max_value:
            raise InvalidConfigurationError(
                f"datasets.min_value ({self.min_value}) must be < datasets.max_value ({self.max_value})"
            )
        if self.unique_limit < 0:
            raise BadInputError("datasets.unique_limit must be >= 0")
        if not self.directory:
            raise BadInputError("datasets.directory must not be empty")


@dataclass
class AppConfig:
    open_table: OpenTablePolicy = field(default_factory=OpenTablePolicy)
    benchmark: BenchmarkPolicy = field(default_factory=BenchmarkPolicy)
    datasets: DatasetPolicy = field(default_factory=DatasetPolicy)

    @classmethod
    def load(cls, path: Path | None) -> AppConfig:
        if path is None:
            cfg = cls()
        else:
            try:
                data = tomllib.loads(path.read_text(encoding="utf-8"))
            except FileNotFoundError as exc:
                raise BadInputError(f"Config file not found: {path}") from exc
            except tomllib.TOMLDecodeError as exc:
                raise BadInputError(f"Invalid TOML: {exc}") from exc
            cfg = cls.from_dict(data)
        cfg.apply_env_overrides(os.environ)
        cfg.validate()
        return cfg

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        sections: dict[str, Any] = {}
        for name, policy_cls in (
            ("open_table", OpenTablePolicy),
            ("benchmark", BenchmarkPolicy),
            ("datasets", DatasetPolicy),
        ):
            section = data.get(name, {})
            if not isinstance(section, dict):
                raise BadInputError(f"[{name}] section must be a table")
            try:
                sections[name] = policy_cls(**section)
            except TypeError as exc:
                raise BadInputError(f"Unknown key in [{name}]: {exc}") from exc
        return cls(**sections)

    def apply_env_overrides(self, env: Mapping[str, str]) -> None:
        mapping: dict[str, tuple[object, str, Callable[[str], Any]]] = {
            "HASHLAB_MAX_LOAD_FACTOR": (self.open_table, "max_load_factor", float),
            "HASHLAB_MAX_OCCUPANCY": (self.open_table, "max_occupancy", float),
            "HASHLAB_TABLE_SIZES": (self.benchmark, "table_sizes", _int_list),
            "HASHLAB_DATASET_SIZES": (self.benchmark, "dataset_sizes", _int_list),
            "HASHLAB_SEARCH_COUNT": (self.benchmark, "search_count", int),
            "HASHLAB_DATA_DIR": (self.datasets, "directory", str),
            "HASHLAB_MIN_VALUE": (self.datasets, "min_value", int),
            "HASHLAB_MAX_VALUE": (self.datasets, "max_value", int),
            "HASHLAB_SEED": (self.datasets, "seed", int),
        }
        for key, (target, attr, caster) in mapping.items():
            raw_value = env.get(key)
            if raw_value is None:
                continue
            try:
                value = caster(raw_value)
            except ValueError as exc:
                raise BadInputError(f"Invalid env override {key}={raw_value!r}") from exc
            setattr(target, attr, value)

    def validate(self) -> None:
        self.open_table.validate()
        self.benchmark.validate()
        self.datasets.validate()


DEFAULT_CONFIG = AppConfig()


def load_app_config(path: str | None) -> AppConfig:
    config_path = Path(path) if path else None
    return AppConfig.load(config_path)


__all__ = [
    "AppConfig",
    "BenchmarkPolicy",
    "DEFAULT_CONFIG",
    "DatasetPolicy",
    "OpenTablePolicy",
    "load_app_config",
]
