"""Benchmark harness for the hash tables."""

from .generation import GenerationTiming, format_generation_report, time_generation
from .latency import Reservoir
from .runner import (
    CSV_HEADER,
    SUMMARY_SCHEMA,
    BenchmarkResult,
    build_summary,
    format_report,
    run_benchmark,
    run_case,
    validate_summary,
    write_results_csv,
)

__all__ = [
    "BenchmarkResult",
    "CSV_HEADER",
    "GenerationTiming",
    "Reservoir",
    "SUMMARY_SCHEMA",
    "build_summary",
    "format_generation_report",
    "format_report",
    "run_benchmark",
    "run_case",
    "time_generation",
    "validate_summary",
    "write_results_csv",
]
