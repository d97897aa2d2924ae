"""tools/cppcheck

cppcheck adapter package.

This package contains the tool-specific pieces: how the analyzer is invoked
(runner) and how its line-oriented output becomes findings (parse).
Orchestration lives in ``pipeline``.
"""

from __future__ import annotations

from .parse import OUTPUT_TEMPLATE, SEPARATOR, parse_line, parse_output
from .runner import (
    CPPCHECK_FALLBACKS,
    SOURCE_EXTENSIONS,
    build_cppcheck_command,
    compute_concurrency,
    count_source_files,
    filter_source_files,
    run_cppcheck,
)

__all__ = [
    "CPPCHECK_FALLBACKS",
    "OUTPUT_TEMPLATE",
    "SEPARATOR",
    "SOURCE_EXTENSIONS",
    "build_cppcheck_command",
    "compute_concurrency",
    "count_source_files",
    "filter_source_files",
    "parse_line",
    "parse_output",
    "run_cppcheck",
]
