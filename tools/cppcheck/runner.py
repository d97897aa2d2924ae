"""tools/cppcheck/runner.py

Tool-specific execution plumbing for cppcheck.
Keeps cppcheck CLI quirks (template, file lists, -j) close to the tool.
"""

from __future__ import annotations

import math
import os
import tempfile
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from tools.core_cmd import CmdResult, run_cmd

from .parse import OUTPUT_TEMPLATE

CPPCHECK_FALLBACKS = ["/usr/local/bin/cppcheck", "/opt/homebrew/bin/cppcheck"]

SOURCE_EXTENSIONS = frozenset(
    {".c", ".cc", ".cpp", ".cxx", ".c++", ".h", ".hh", ".hpp", ".hxx", ".h++", ".inl"}
)

# Directories that never contain sources worth counting.
_SKIP_DIRS = frozenset({".git", ".repo", ".svn", ".hg"})

# Above this many explicit targets, pass them through --file-list.
FILE_LIST_THRESHOLD = 64

Runner = Callable[..., CmdResult]


def is_source_file(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in SOURCE_EXTENSIONS


def filter_source_files(paths: Iterable[str]) -> List[str]:
    return [p for p in paths if is_source_file(p)]


def count_source_files(root: Path) -> int:
    """Number of recognized source/header files under ``root``."""
    n = 0
    for _dirpath, dirnames, filenames in os.walk(str(root)):
        dirnames[:] = [d for d in dirnames if d not in _SKIP_DIRS]
        n += sum(1 for f in filenames if is_source_file(f))
    return n


def compute_concurrency(file_count: int, max_threads: int) -> int:
    """Intra-job ``-j`` value: ``clamp(floor(ln(n) + 0.9), 2, max_threads)``.

    The log term collapses toward zero for small trees, hence the floor of 2.
    The lower bound wins when ``max_threads`` is below it. Returns 0 when
    there is nothing to analyze.
    """
    if file_count <= 0:
        return 0
    value = int(math.floor(math.log(file_count) + 0.9))
    return max(2, min(value, max_threads))


def build_cppcheck_command(
    *,
    cppcheck_bin: str,
    concurrency: int,
    enable: str = "all",
    targets: Sequence[str] = (),
    file_list: Optional[Path] = None,
) -> List[str]:
    cmd = [
        cppcheck_bin,
        f"--template={OUTPUT_TEMPLATE}",
        "--quiet",
        f"-j{concurrency}",
    ]
    if enable:
        cmd.append(f"--enable={enable}")
    if file_list is not None:
        cmd.append(f"--file-list={file_list}")
    else:
        cmd.extend(targets or ["."])
    return cmd


def run_cppcheck(
    *,
    cppcheck_bin: str,
    repo_path: Path,
    concurrency: int,
    enable: str = "all",
    targets: Sequence[str] = (),
    timeout_seconds: float = 0,
    runner: Runner = run_cmd,
) -> CmdResult:
    """Run cppcheck once over ``targets`` (or the whole tree when empty).

    cppcheck writes findings to stderr, so stderr is merged into the captured
    output.
    """
    list_path: Optional[Path] = None
    try:
        if len(targets) > FILE_LIST_THRESHOLD:
            fd, name = tempfile.mkstemp(prefix="cppcheck-files.", suffix=".txt")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write("\n".join(targets) + "\n")
            list_path = Path(name)

        cmd = build_cppcheck_command(
            cppcheck_bin=cppcheck_bin,
            concurrency=concurrency,
            enable=enable,
            targets=targets,
            file_list=list_path,
        )
        return runner(cmd, cwd=repo_path, timeout_seconds=timeout_seconds, merge_stderr=True)
    finally:
        if list_path is not None:
            try:
                list_path.unlink()
            except OSError:
                pass
