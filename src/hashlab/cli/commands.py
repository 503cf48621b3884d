"""CLI command registration and handlers for hashlab."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from hashlab.analysis import format_trace_lines, trace_insert, trace_search, verify_table
from hashlab.bench import (
    build_summary,
    format_generation_report,
    format_report,
    run_benchmark,
    time_generation,
    validate_summary,
    write_results_csv,
)
from hashlab.config import AppConfig
from hashlab.contracts.error import (
    BadInputError,
    CapacityExceededError,
    Exit,
    InvariantError,
    IOErrorEnvelope,
)
from hashlab.core.hashing import HashKind
from hashlab.datasets import (
    KeyGenerator,
    analyze_dataset,
    dataset_report,
    format_dataset_info,
    generate_workload_files,
    load_keys,
    save_keys,
    validate_dataset,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CLIContext:
    """Runtime hooks supplied by the top-level CLI entrypoint."""

    emit_success: Callable[..., None]
    build_table: Callable[[str, int], Any]
    app_config: Callable[[], AppConfig]
    logger: logging.Logger
    json_enabled: Callable[[], bool]
    guard: Callable[[Callable[[argparse.Namespace], int]], Callable[[argparse.Namespace], int]]
    table_choices: List[str]


def register_subcommands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ctx: CLIContext,
) -> Dict[str, Callable[[argparse.Namespace], int]]:
    """Define CLI subcommands and return their handlers."""

    handlers: Dict[str, Callable[[argparse.Namespace], int]] = {}

    def _register(
        name: str,
        help_text: Optional[str],
        configure: Callable[[argparse.ArgumentParser], Callable[[argparse.Namespace], int]],
    ) -> None:
        parser = subparsers.add_parser(name, help=help_text)
        handler = configure(parser)
        handlers[name] = ctx.guard(handler)

    _register(
        "generate",
        "Write one dataset file of random keys.",
        lambda parser: _configure_generate(parser, ctx),
    )
    _register(
        "generate-datasets",
        "Write the standard benchmark dataset files plus a search-key file.",
        lambda parser: _configure_generate_datasets(parser, ctx),
    )
    _register(
        "inspect-dataset",
        "Summarise a dataset file (range, mean, duplicates).",
        lambda parser: _configure_inspect_dataset(parser, ctx),
    )
    _register(
        "dataset-report",
        "Summarise every *.txt dataset in a directory.",
        lambda parser: _configure_dataset_report(parser, ctx),
    )
    _register(
        "validate-dataset",
        "Strictly validate a dataset file's format.",
        lambda parser: _configure_validate_dataset(parser, ctx),
    )
    _register(
        "stats",
        "Load a dataset into a table and report its statistics.",
        lambda parser: _configure_stats(parser, ctx),
    )
    _register(
        "probe",
        "Trace the probe path of a single search or insert.",
        lambda parser: _configure_probe(parser, ctx),
    )
    _register(
        "bench",
        "Benchmark chained vs open addressing across table sizes and hash kinds.",
        lambda parser: _configure_bench(parser, ctx),
    )
    _register(
        "bench-generation",
        "Time key generation with and without repeats.",
        lambda parser: _configure_bench_generation(parser, ctx),
    )
    _register(
        "validate-summary",
        "Validate a benchmark JSON summary against the bundled schema.",
        lambda parser: _configure_validate_summary(parser, ctx),
    )
    return handlers


def _key_generator(args: argparse.Namespace, cfg: AppConfig) -> KeyGenerator:
    datasets = cfg.datasets
    seed = args.seed if args.seed is not None else datasets.seed
    min_value = args.min_value if args.min_value is not None else datasets.min_value
    max_value = args.max_value if args.max_value is not None else datasets.max_value
    return KeyGenerator(seed, min_value, max_value, unique_limit=datasets.unique_limit)


def _add_generator_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--seed", type=int, default=None, help="RNG seed (default: config)")
    parser.add_argument("--min-value", type=int, default=None)
    parser.add_argument("--max-value", type=int, default=None)


def _configure_generate(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("--count", type=int, required=True)
    parser.add_argument("--out", required=True, help="Dataset file to write")
    parser.add_argument(
        "--unique", action="store_true", help="Draw distinct keys (up to the unique limit)"
    )
    _add_generator_args(parser)

    def handler(args: argparse.Namespace) -> int:
        generator = _key_generator(args, ctx.app_config())
        keys = generator.unique(args.count) if args.unique else generator.with_repeats(args.count)
        try:
            target = save_keys(keys, args.out)
        except OSError as exc:
            raise IOErrorEnvelope(str(exc)) from exc
        ctx.logger.info("Wrote %d keys to %s", len(keys), target)
        ctx.emit_success(
            "generate",
            data={
                "out": str(target),
                "count": len(keys),
                "unique": bool(args.unique),
                "seed": generator.seed,
            },
        )
        return int(Exit.OK)

    return handler


def _configure_generate_datasets(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("--out-dir", default=None, help="Directory (default: config data dir)")
    parser.add_argument("--sizes", type=int, nargs="+", default=None)
    parser.add_argument("--search-count", type=int, default=None)
    _add_generator_args(parser)

    def handler(args: argparse.Namespace) -> int:
        cfg = ctx.app_config()
        out_dir = args.out_dir or cfg.datasets.directory
        sizes = args.sizes or cfg.benchmark.dataset_sizes
        search_count = (
            args.search_count if args.search_count is not None else cfg.benchmark.search_count
        )
        if search_count <= 0:
            raise BadInputError("--search-count must be > 0")
        generator = _key_generator(args, cfg)
        try:
            written = generate_workload_files(out_dir, generator, sizes, search_count)
        except OSError as exc:
            raise IOErrorEnvelope(str(exc)) from exc
        text = "\n".join(f"Wrote {path}" for path in written)
        ctx.emit_success(
            "generate-datasets",
            text=text,
            data={"out_dir": str(out_dir), "files": [str(path) for path in written]},
        )
        return int(Exit.OK)

    return handler


def _configure_inspect_dataset(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("path", help="Dataset file")

    def handler(args: argparse.Namespace) -> int:
        info = analyze_dataset(args.path)
        ctx.emit_success(
            "inspect-dataset",
            text="\n".join(format_dataset_info(info)),
            data={"dataset": info.to_dict()},
        )
        return int(Exit.OK)

    return handler


def _configure_dataset_report(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("--dir", dest="directory", default=None, help="Dataset directory")

    def handler(args: argparse.Namespace) -> int:
        directory = Path(args.directory or ctx.app_config().datasets.directory)
        if not directory.is_dir():
            raise IOErrorEnvelope(f"Dataset directory not found: {directory}")
        infos, errors = dataset_report(directory)
        lines: List[str] = [f"Dataset report for {directory} ({len(infos)} file(s))"]
        for info in infos:
            lines.extend(format_dataset_info(info))
        lines.extend(f"ERROR {message}" for message in errors)
        ctx.emit_success(
            "dataset-report",
            text="\n".join(lines),
            data={
                "directory": str(directory),
                "datasets": [info.to_dict() for info in infos],
                "errors": errors,
            },
        )
        return int(Exit.OK)

    return handler


def _configure_validate_dataset(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("path", help="Dataset file")

    def handler(args: argparse.Namespace) -> int:
        ok, msgs = validate_dataset(args.path)
        if not ok:
            raise InvariantError(f"Dataset validation failed: {'; '.join(msgs)}")
        ctx.emit_success(
            "validate-dataset",
            text=f"{args.path}: OK ({'; '.join(msgs)})",
            data={"path": args.path, "messages": msgs},
        )
        return int(Exit.OK)

    return handler


def _add_table_args(parser: argparse.ArgumentParser, ctx: CLIContext) -> None:
    parser.add_argument("--table", choices=ctx.table_choices, required=True)
    parser.add_argument("--capacity", type=int, required=True)
    parser.add_argument(
        "--hash",
        dest="hash_kind",
        default=HashKind.DIVISION.value,
        help="Hash method: division or multiplication (default: %(default)s)",
    )


def _fill_table(table: Any, keys: Sequence[int], kind: HashKind) -> Tuple[int, int, bool]:
    """Insert ``keys`` in order; returns (inserted, duplicates, saturated)."""

    inserted = duplicates = 0
    for key in keys:
        try:
            if table.insert(key, kind):
                inserted += 1
            else:
                duplicates += 1
        except CapacityExceededError:
            return inserted, duplicates, True
    return inserted, duplicates, False


def _configure_stats(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    _add_table_args(parser, ctx)
    parser.add_argument("--input", required=True, help="Dataset file with the keys to insert")
    parser.add_argument("--verbose", action="store_true")

    def handler(args: argparse.Namespace) -> int:
        kind = HashKind.parse(args.hash_kind)
        table = ctx.build_table(args.table, args.capacity)
        keys = load_keys(args.input)
        inserted, duplicates, saturated = _fill_table(table, keys, kind)
        if saturated:
            ctx.logger.warning(
                "Open table reached its threshold after %d insert(s); %d key(s) skipped",
                inserted,
                len(keys) - inserted - duplicates,
            )
        ok, msgs = verify_table(table, kind, verbose=args.verbose)
        if not ok:
            raise InvariantError(f"Table verification failed: {'; '.join(msgs)}")
        stats = table.statistics()
        lines = [
            f"Table: {args.table} | Hash: {kind.value} | {table!r}",
            f"Inserted: {inserted} | Duplicates: {duplicates} | Saturated: {saturated}",
            f"Load factor: {table.load_factor():.4f}",
        ]
        lines.extend(f"  {name}: {value}" for name, value in stats.to_dict().items())
        lines.extend(msgs)
        ctx.emit_success(
            "stats",
            text="\n".join(lines),
            data={
                "table": args.table,
                "hash": kind.value,
                "capacity": table.capacity,
                "inserted": inserted,
                "duplicates": duplicates,
                "saturated": saturated,
                "load_factor": table.load_factor(),
                "statistics": stats.to_dict(),
                "messages": msgs,
            },
        )
        return int(Exit.OK)

    return handler


def _parse_seed_keys(raw: Optional[str]) -> List[int]:
    if not raw:
        return []
    seeds: List[int] = []
    for part in raw.split(","):
        text = part.strip()
        if not text:
            continue
        try:
            seeds.append(int(text))
        except ValueError as exc:
            raise BadInputError(f"Seed key '{text}' is not an integer") from exc
    return seeds


def _configure_probe(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    _add_table_args(parser, ctx)
    parser.add_argument(
        "--operation", choices=["search", "insert"], required=True, help="Operation to trace"
    )
    parser.add_argument("--key", type=int, required=True, help="Key to probe")
    parser.add_argument(
        "--seed-keys",
        default=None,
        metavar="K1,K2,...",
        help="Insert these keys before tracing",
    )
    parser.add_argument("--export-json", help="Write the trace payload to a JSON file (indent=2)")

    def handler(args: argparse.Namespace) -> int:
        kind = HashKind.parse(args.hash_kind)
        table = ctx.build_table(args.table, args.capacity)
        seeds = _parse_seed_keys(args.seed_keys)
        for key in seeds:
            table.insert(key, kind)

        if args.operation == "search":
            trace = trace_search(table, args.key, kind)
        else:
            trace = trace_insert(table, args.key, kind)

        export_path: Optional[Path] = None
        if args.export_json:
            export_path = Path(args.export_json).expanduser().resolve()
            try:
                export_path.parent.mkdir(parents=True, exist_ok=True)
                export_path.write_text(json.dumps(trace, indent=2), encoding="utf-8")
            except OSError as exc:
                raise IOErrorEnvelope(str(exc)) from exc

        text_output = "\n".join(format_trace_lines(trace, seeds=seeds, export_path=export_path))
        payload: Dict[str, Any] = {"trace": trace}
        if seeds:
            payload["seed_keys"] = seeds
        if export_path is not None:
            payload["export_json"] = str(export_path)
        ctx.emit_success("probe", text=text_output, data=payload)
        return int(Exit.OK)

    return handler


def _load_bench_inputs(
    directory: Path, cfg: AppConfig
) -> Tuple[Dict[int, List[int]], List[int]]:
    if not directory.is_dir():
        raise IOErrorEnvelope(f"Data directory not found: {directory}")
    keys_by_size: Dict[int, List[int]] = {}
    for size in cfg.benchmark.dataset_sizes:
        path = directory / f"random_keys_{size}.txt"
        if path.is_file():
            keys_by_size[size] = load_keys(path)
    if not keys_by_size:
        raise IOErrorEnvelope(
            f"No random_keys_<n>.txt datasets in {directory}",
            hint="Run 'hashlab generate-datasets' first.",
        )
    return keys_by_size, load_keys(_find_search_keys(directory, cfg.benchmark.search_count))


def _search_file_count(path: Path) -> int:
    suffix = path.stem.rpartition("_")[2]
    return int(suffix) if suffix.isdigit() else -1


def _find_search_keys(directory: Path, search_count: int) -> Path:
    """Prefer ``search_keys_<search_count>.txt``; otherwise take the largest one present."""

    exact = directory / f"search_keys_{search_count}.txt"
    if exact.is_file():
        return exact
    candidates = sorted(
        (p for p in directory.glob("search_keys_*.txt") if p.is_file()),
        key=lambda p: (_search_file_count(p), p.name),
    )
    if not candidates:
        raise IOErrorEnvelope(
            f"No search_keys_<n>.txt file in {directory}",
            hint="Run 'hashlab generate-datasets' first.",
        )
    chosen = candidates[-1]
    logger.warning("Search key file %s not found; using %s", exact.name, chosen.name)
    return chosen


def _generate_bench_inputs(cfg: AppConfig) -> Tuple[Dict[int, List[int]], List[int]]:
    datasets = cfg.datasets
    generator = KeyGenerator(
        datasets.seed, datasets.min_value, datasets.max_value, unique_limit=datasets.unique_limit
    )
    keys_by_size = {size: generator.unique(size) for size in cfg.benchmark.dataset_sizes}
    return keys_by_size, generator.with_repeats(cfg.benchmark.search_count)


def _configure_bench(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Read random_keys_<n>.txt / search_keys_<n>.txt from here (default: generate in memory)",
    )
    parser.add_argument("--csv-out", default=None, help="Write per-case results to this CSV")
    parser.add_argument("--json-summary-out", default=None, help="Write a JSON summary here")
    parser.add_argument("--table-sizes", type=int, nargs="+", default=None)
    parser.add_argument("--dataset-sizes", type=int, nargs="+", default=None)
    parser.add_argument("--search-count", type=int, default=None)
    parser.add_argument(
        "--hash",
        dest="hash_kinds",
        action="append",
        default=None,
        help="Hash method to include (repeatable; default: config)",
    )

    def handler(args: argparse.Namespace) -> int:
        base = ctx.app_config()
        bench_policy = replace(
            base.benchmark,
            table_sizes=args.table_sizes or base.benchmark.table_sizes,
            dataset_sizes=args.dataset_sizes or base.benchmark.dataset_sizes,
            search_count=(
                args.search_count
                if args.search_count is not None
                else base.benchmark.search_count
            ),
            hash_kinds=args.hash_kinds or base.benchmark.hash_kinds,
        )
        bench_policy.validate()
        cfg = replace(base, benchmark=bench_policy)

        if args.data_dir:
            keys_by_size, search_keys = _load_bench_inputs(Path(args.data_dir), cfg)
        else:
            keys_by_size, search_keys = _generate_bench_inputs(cfg)

        results = run_benchmark(keys_by_size, search_keys, cfg)
        summary = build_summary(results)
        data: Dict[str, Any] = {
            "case_count": summary["case_count"],
            "saturated_cases": summary["saturated_cases"],
        }
        try:
            if args.csv_out:
                data["csv_out"] = str(write_results_csv(results, args.csv_out))
            if args.json_summary_out:
                out = Path(args.json_summary_out)
                out.parent.mkdir(parents=True, exist_ok=True)
                out.write_text(json.dumps(summary, indent=2), encoding="utf-8")
                data["json_summary_out"] = str(out)
                ctx.logger.info("Wrote benchmark summary to %s", out)
        except OSError as exc:
            raise IOErrorEnvelope(str(exc)) from exc
        ctx.emit_success("bench", text=format_report(results), data=data)
        return int(Exit.OK)

    return handler


def _configure_bench_generation(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument(
        "--counts",
        type=int,
        nargs="+",
        default=None,
        help="Key counts to time (default: config dataset sizes)",
    )
    _add_generator_args(parser)

    def handler(args: argparse.Namespace) -> int:
        cfg = ctx.app_config()
        counts = args.counts or cfg.benchmark.dataset_sizes
        if any(count <= 0 for count in counts):
            raise BadInputError("--counts values must be > 0")
        generator = _key_generator(args, cfg)
        timings = time_generation(generator, counts)
        ctx.emit_success(
            "bench-generation",
            text=format_generation_report(timings),
            data={
                "unique_limit": generator.unique_limit,
                "timings": [t.to_dict() for t in timings],
            },
        )
        return int(Exit.OK)

    return handler


def _configure_validate_summary(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("path", help="Benchmark JSON summary")

    def handler(args: argparse.Namespace) -> int:
        path = Path(args.path)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise IOErrorEnvelope(f"Summary not found: {path}") from exc
        except UnicodeDecodeError as exc:
            raise BadInputError(f"Summary is not valid UTF-8: {path}") from exc
        except json.JSONDecodeError as exc:
            raise BadInputError(f"Summary is not valid JSON: {exc}") from exc
        except OSError as exc:
            raise IOErrorEnvelope(str(exc)) from exc
        ok, msgs = validate_summary(payload)
        if not ok:
            raise InvariantError(f"Summary validation failed: {'; '.join(msgs[:5])}")
        ctx.emit_success(
            "validate-summary",
            text=f"{path}: valid {payload['schema']} summary ({payload['case_count']} case(s))",
            data={"path": str(path), "case_count": payload["case_count"]},
        )
        return int(Exit.OK)

    return handler


__all__ = ["CLIContext", "register_subcommands"]
