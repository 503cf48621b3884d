"""Read, write, validate and summarise key dataset files.

A dataset file holds the declared number of keys on its first line followed by one
integer per line. Blank lines are ignored everywhere.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Sequence
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Tuple

from hashlab.contracts.error import BadInputError, IOErrorEnvelope

logger = logging.getLogger(__name__)

_FORMAT_HINT = "First line holds the key count, then one integer per line."


def _read_lines(path: Path) -> List[str]:
    try:
        return path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError as exc:
        raise IOErrorEnvelope(f"Dataset not found: {path}") from exc
    except IsADirectoryError as exc:
        raise IOErrorEnvelope(f"Dataset path is a directory: {path}") from exc
    except UnicodeDecodeError as exc:
        raise BadInputError(f"Dataset is not valid UTF-8: {path}", hint=_FORMAT_HINT) from exc
    except OSError as exc:
        raise IOErrorEnvelope(str(exc)) from exc


def _declared_count(lines: Sequence[str], path: Path) -> int:
    if not lines:
        raise BadInputError(f"Dataset is empty: {path}", hint=_FORMAT_HINT)
    header = lines[0].strip()
    try:
        declared = int(header)
    except ValueError as exc:
        raise BadInputError(f"Invalid count on first line of {path}: {header!r}", hint=_FORMAT_HINT) from exc
    if declared <= 0:
        raise BadInputError(f"Declared key count must be > 0 in {path}", hint=_FORMAT_HINT)
    return declared


def load_keys(path: str | Path) -> List[int]:
    """Load up to the declared number of keys, skipping malformed lines."""

    dataset = Path(path)
    lines = _read_lines(dataset)
    declared = _declared_count(lines, dataset)
    keys: List[int] = []
    for line_no, raw in enumerate(lines[1:], start=2):
        if len(keys) >= declared:
            break
        text = raw.strip()
        if not text:
            continue
        try:
            keys.append(int(text))
        except ValueError:
            logger.warning("Skipping invalid line %d in %s: %r", line_no, dataset, text)
    if not keys:
        raise BadInputError(f"No valid keys found in {dataset}", hint=_FORMAT_HINT)
    if len(keys) != declared:
        logger.warning("Expected %d keys in %s but read %d", declared, dataset, len(keys))
    logger.info("Loaded %d keys from %s", len(keys), dataset)
    return keys


def save_keys(keys: Sequence[int], path: str | Path) -> Path:
    """Write ``keys`` atomically in dataset format and return the target path."""

    if not keys:
        raise BadInputError("Refusing to write an empty dataset")
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        delete=False,
        dir=target.parent,
        prefix=f".{target.name}.",
        suffix=".tmp",
    )
    tmp_path = Path(tmp.name)
    try:
        with tmp:
            tmp.write(f"{len(keys)}\n")
            tmp.writelines(f"{key}\n" for key in keys)
        os.replace(tmp_path, target)
    except Exception:
        with suppress(FileNotFoundError):
            tmp_path.unlink()
        raise
    logger.info("Saved %d keys to %s", len(keys), target)
    return target


def validate_dataset(path: str | Path) -> Tuple[bool, List[str]]:
    """Strict check: every line must parse and the declared count must match."""

    dataset = Path(path)
    if not dataset.is_file():
        return False, [f"Dataset does not exist: {dataset}"]
    try:
        lines = _read_lines(dataset)
        declared = _declared_count(lines, dataset)
    except (BadInputError, IOErrorEnvelope) as exc:
        return False, [str(exc)]
    msgs: List[str] = []
    found = 0
    for line_no, raw in enumerate(lines[1:], start=2):
        text = raw.strip()
        if not text:
            continue
        try:
            int(text)
        except ValueError:
            msgs.append(f"Invalid key on line {line_no}: {text!r}")
            return False, msgs
        found += 1
    if found != declared:
        msgs.append(f"Declared {declared} keys but found {found}")
        return False, msgs
    msgs.append(f"{found} keys")
    return True, msgs


@dataclass(frozen=True)
class DatasetInfo:
    path: str
    count: int
    minimum: int
    maximum: int
    mean: float
    duplicates: int

    @property
    def has_duplicates(self) -> bool:
        return self.duplicates > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "count": self.count,
            "minimum": self.minimum,
            "maximum": self.maximum,
            "mean": self.mean,
            "duplicates": self.duplicates,
            "has_duplicates": self.has_duplicates,
        }


def summarize_keys(keys: Sequence[int], *, path: str = "<memory>") -> DatasetInfo:
    if not keys:
        raise BadInputError("Cannot summarise an empty key sequence")
    return DatasetInfo(
        path=path,
        count=len(keys),
        minimum=min(keys),
        maximum=max(keys),
        mean=sum(keys) / len(keys),
        duplicates=len(keys) - len(set(keys)),
    )


def analyze_dataset(path: str | Path) -> DatasetInfo:
    return summarize_keys(load_keys(path), path=str(path))


def format_dataset_info(info: DatasetInfo) -> List[str]:
    dup = "yes" if info.has_duplicates else "no"
    if info.has_duplicates:
        dup += f" ({info.duplicates})"
    return [
        f"Dataset: {info.path}",
        f"  Keys: {info.count}",
        f"  Range: [{info.minimum}, {info.maximum}]",
        f"  Mean: {info.mean:.2f}",
        f"  Duplicates: {dup}",
    ]


def list_datasets(directory: str | Path) -> List[Path]:
    root = Path(directory)
    if not root.is_dir():
        return []
    return sorted(p for p in root.iterdir() if p.is_file() and p.suffix == ".txt")


def dataset_report(directory: str | Path) -> Tuple[List[DatasetInfo], List[str]]:
    """Summarise every dataset in ``directory``; unreadable files become error lines."""

    infos: List[DatasetInfo] = []
    errors: List[str] = []
    for dataset in list_datasets(directory):
        try:
            infos.append(analyze_dataset(dataset))
        except (BadInputError, IOErrorEnvelope) as exc:
            logger.warning("Failed to analyse %s: %s", dataset, exc)
            errors.append(f"{dataset.name}: {exc}")
    return infos, errors


__all__ = [
    "DatasetInfo",
    "analyze_dataset",
    "dataset_report",
    "format_dataset_info",
    "list_datasets",
    "load_keys",
    "save_keys",
    "summarize_keys",
    "validate_dataset",
]
