"""pipeline.config

The immutable run configuration.

One :class:`RunConfig` is built once by the composition root
(:mod:`pipeline.wiring`) and handed to every job at construction. Jobs only
read it; nothing in the pipeline writes back into shared option state.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Pattern, Tuple

from tools.core_git import DEFAULT_TAIL_COMMITS

REPORT_FORMATS = ("markdown", "csv", "xml")
OUTPUT_MODES = ("summary", "detail", "both")

SECTION_DELIMITER = "|"

# Hard deadline for one analyzer run. There is no "unlimited" setting.
DEFAULT_TIMEOUT_SECONDS = 1800.0

DEFAULT_SUMMARY_SECTION = "moduleName|path|error|warning|performance|style|information"
DEFAULT_DETAIL_SECTION = "filename|line|severity|id|message|commitId|author|authorMail|theLine"

# Detail fields that only exist after provenance enrichment.
PROVENANCE_FIELDS = frozenset({"commitId", "author", "authorMail", "theLine"})

# Rule ids cppcheck emits for translation problems rather than defects.
NOISE_RULE_IDS = frozenset({"syntaxError", "unknownMacro"})
NOISE_SEVERITY = "information"
NOISE_LINE = "0"


def default_worker_count() -> int:
    return os.cpu_count() or 1


def parse_section_spec(value: Optional[str]) -> Optional[Tuple[str, ...]]:
    """``"a|b"`` -> ``("a", "b")``. Empty means "all keys" (``None``)."""
    if not value:
        return None
    keys = tuple(k.strip() for k in value.split(SECTION_DELIMITER) if k.strip())
    return keys or None


def parse_list(value: Optional[str], delimiter: str = ",") -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(v.strip() for v in value.split(delimiter) if v.strip())


def _compile(what: str, pattern: str) -> Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ValueError(f"invalid {what} regex {pattern!r}: {e}") from e


@dataclass(frozen=True)
class RunConfig:
    # Scheduling
    num_workers: int = 1
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_threads: int = 4

    # Analyzer
    cppcheck_bin: str = "cppcheck"
    enable: str = "all"
    ignore_files: Tuple[str, ...] = ()

    # History
    git_opts: str = ""
    ignore_commits: Tuple[str, ...] = ()
    ignore_initial_commit: bool = False
    tail_commits: int = DEFAULT_TAIL_COMMITS

    # Aggregation
    author_match: Optional[str] = None
    suppress_noise: bool = False

    # Output
    mode: str = "both"
    report_format: str = "markdown"
    report_out_path: Optional[Path] = None
    summary_section: Optional[Tuple[str, ...]] = parse_section_spec(DEFAULT_SUMMARY_SECTION)
    detail_section: Optional[Tuple[str, ...]] = parse_section_spec(DEFAULT_DETAIL_SECTION)
    link: bool = False
    link_base: Optional[str] = None

    # Compiled once from ignore_files; every job shares them.
    ignore_patterns: Tuple[Pattern[str], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.mode not in OUTPUT_MODES:
            raise ValueError(f"mode must be one of {OUTPUT_MODES}, got {self.mode!r}")
        if self.report_format not in REPORT_FORMATS:
            raise ValueError(f"report_format must be one of {REPORT_FORMATS}, got {self.report_format!r}")
        if self.num_workers < 1:
            raise ValueError("num_workers must be >= 1")
        if not self.timeout_seconds or self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds!r}")
        if self.author_match:
            _compile("author match", self.author_match)
        object.__setattr__(
            self, "ignore_patterns", tuple(_compile("ignore-files", p) for p in self.ignore_files if p)
        )

    @property
    def wants_summary(self) -> bool:
        return self.mode in ("summary", "both")

    @property
    def wants_detail(self) -> bool:
        return self.mode in ("detail", "both")

    @property
    def links_enabled(self) -> bool:
        return bool(self.link and self.link_base)

    @property
    def needs_provenance(self) -> bool:
        """Whether jobs must run blame over their findings."""
        if self.ignore_commits or self.ignore_initial_commit or self.author_match:
            return True
        if not self.wants_detail:
            return False
        if self.links_enabled:
            return True
        if self.detail_section is None:
            return True
        return any(k in PROVENANCE_FIELDS for k in self.detail_section)
