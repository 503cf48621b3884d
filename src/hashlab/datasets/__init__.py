"""Key dataset files: generation, loading and summaries."""

from .generator import KeyGenerator, generate_workload_files
from .loader import (
    DatasetInfo,
    analyze_dataset,
    dataset_report,
    format_dataset_info,
    list_datasets,
    load_keys,
    save_keys,
    summarize_keys,
    validate_dataset,
)

__all__ = [
    "DatasetInfo",
    "KeyGenerator",
    "analyze_dataset",
    "dataset_report",
    "format_dataset_info",
    "generate_workload_files",
    "list_datasets",
    "load_keys",
    "save_keys",
    "summarize_keys",
    "validate_dataset",
]
