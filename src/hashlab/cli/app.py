#!/usr/bin/env python3
"""
app.py

Command-line front end for the hashlab tables:
- key dataset generation, inspection and validation
- table statistics (chain lengths, probe counts, clusters) with invariant checks
- probe-path tracing for single search/insert operations
- chained vs open-addressing benchmark with CSV output and a JSON summary
  (search latency percentiles via reservoir sampling)
"""

from __future__ import annotations

import argparse
import contextlib
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Union

from hashlab.cli.commands import CLIContext, register_subcommands
from hashlab.config import AppConfig, load_app_config
from hashlab.contracts.error import BadInputError, PolicyError, guard_cli
from hashlab.core.chained import ChainedTable
from hashlab.core.open_table import OpenTable

# --------------------------------------------------------------------
# Logging
# --------------------------------------------------------------------
logger = logging.getLogger("hashlab")
logger.setLevel(logging.INFO)
logger.propagate = False

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"
DEFAULT_LOG_MAX_BYTES = 5_000_000
DEFAULT_LOG_BACKUP_COUNT = 5

TABLE_CHOICES = ("chained", "open")


class JsonFormatter(logging.Formatter):
    """Render log records as JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, DEFAULT_LOG_DATEFMT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    use_json: bool = False,
    log_file: str | None = None,
    *,
    max_bytes: int = DEFAULT_LOG_MAX_BYTES,
    backup_count: int = DEFAULT_LOG_BACKUP_COUNT,
) -> None:
    """Configure console (and optional rotating file) logging."""

    formatter: logging.Formatter
    if use_json:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(DEFAULT_LOG_FORMAT, DEFAULT_LOG_DATEFMT)

    for handler in list(logger.handlers):
        with contextlib.suppress(Exception):
            handler.close()
        logger.removeHandler(handler)

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if log_file:
        if max_bytes <= 0:
            raise BadInputError("--log-max-bytes must be > 0")
        if backup_count < 0:
            raise BadInputError("--log-backup-count must be >= 0")
        handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        handler.setFormatter(formatter)
        logger.addHandler(handler)


configure_logging()

APP_CONFIG: AppConfig = AppConfig()
OUTPUT_JSON: bool = False


def set_app_config(cfg: AppConfig) -> None:
    global APP_CONFIG
    APP_CONFIG = cfg


def emit_success(
    command: str, *, text: str | None = None, data: dict[str, Any] | None = None
) -> None:
    if OUTPUT_JSON:
        payload: dict[str, Any] = {"ok": True, "command": command}
        if data:
            payload.update(data)
        if text is not None and "result" not in payload:
            payload["result"] = text
        print(json.dumps(payload, ensure_ascii=False))
    else:
        if text is not None:
            print(text)


def build_table(kind: str, capacity: int) -> Union[ChainedTable, OpenTable]:
    """Create an empty table of ``kind`` using the active open-table policy."""

    if kind == "chained":
        return ChainedTable(capacity)
    if kind == "open":
        policy = APP_CONFIG.open_table
        return OpenTable(
            capacity,
            max_load_factor=policy.max_load_factor,
            max_occupancy=policy.max_occupancy,
        )
    raise BadInputError(f"Unknown table kind: {kind}", hint=f"Choose one of {', '.join(TABLE_CHOICES)}")


def main(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        description=(
            "Hash table lab: chained and open-addressing tables, dataset tooling, "
            "statistics, probe tracing and benchmarks."
        )
    )
    p.add_argument("--log-json", action="store_true", help="Emit logs in JSON format")
    p.add_argument(
        "--log-file",
        default=None,
        help="Optional log file path (rotates at 5MB, keeps 5 backups by default)",
    )
    p.add_argument(
        "--log-max-bytes",
        type=int,
        default=DEFAULT_LOG_MAX_BYTES,
        help="Max bytes per log file before rotation (default: %(default)s)",
    )
    p.add_argument(
        "--log-backup-count",
        type=int,
        default=DEFAULT_LOG_BACKUP_COUNT,
        help="Number of rotated log files to keep (default: %(default)s)",
    )
    p.add_argument(
        "--json", action="store_true", help="Emit machine-readable success output to stdout"
    )
    p.add_argument(
        "--config",
        default=None,
        help="Path to TOML config file (env overrides still apply on top)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    ctx = CLIContext(
        emit_success=emit_success,
        build_table=build_table,
        app_config=lambda: APP_CONFIG,
        logger=logger,
        json_enabled=lambda: OUTPUT_JSON,
        guard=guard_cli,
        table_choices=list(TABLE_CHOICES),
    )

    handlers = register_subcommands(sub, ctx)

    args = p.parse_args(argv)

    global OUTPUT_JSON
    OUTPUT_JSON = bool(args.json)

    guard_cli(configure_logging)(
        args.log_json,
        args.log_file,
        max_bytes=args.log_max_bytes,
        backup_count=args.log_backup_count,
    )

    cfg_path = args.config or os.getenv("HASHLAB_CONFIG")
    cfg = guard_cli(load_app_config)(cfg_path)
    set_app_config(cfg)
    if cfg_path:
        logger.info("Loaded config from %s", cfg_path)

    handler = handlers.get(args.cmd)
    if handler is None:
        raise PolicyError(f"Unknown command {args.cmd}")
    return handler(args)


def console_main() -> None:
    """Entry point for console_scripts."""

    try:
        raise SystemExit(main(sys.argv[1:]))
    except SystemExit:
        raise
    except Exception as e:  # noqa: BLE001
        logger.exception("Fatal error: %s", e)
        raise SystemExit(2) from e


__all__ = [
    "JsonFormatter",
    "build_table",
    "configure_logging",
    "console_main",
    "emit_success",
    "main",
    "set_app_config",
]


if __name__ == "__main__":
    console_main()
