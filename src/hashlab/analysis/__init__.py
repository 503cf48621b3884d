"""Probe tracing and invariant checks for hashlab tables."""

from .probe import format_trace_lines, trace_insert, trace_search
from .verify import verify_table

__all__ = ["trace_search", "trace_insert", "format_trace_lines", "verify_table"]
