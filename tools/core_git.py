"""tools/core_git.py

Git history helpers.

These are pure functions over an explicit repository path. They are used for:

1) candidate selection: files touched by commits matching user-supplied
   ``git log`` options (:func:`list_changed_files`);
2) provenance: line-level ``git blame`` (:func:`blame_line`);
3) the "effective initial commit" heuristic
   (:func:`find_effective_initial_commit`).

Every helper is best-effort: a failing git invocation yields ``None`` or an
empty list, never an exception.
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import List, Optional, Sequence

from repo_cppcheck.domain import Provenance

from .core_cmd import run_cmd

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 20

# How many of the oldest commits are inspected when looking for the first
# commit that actually changed files.
DEFAULT_TAIL_COMMITS = 5


def _git(repo_path: Path, args: Sequence[str], *, timeout_seconds: float = GIT_TIMEOUT_SECONDS) -> Optional[List[str]]:
    """Run ``git -C <repo> <args>`` and return stdout lines, or None on failure."""
    try:
        res = run_cmd(
            ["git", "-C", str(repo_path), *args],
            timeout_seconds=timeout_seconds,
        )
    except OSError as e:
        logger.debug("git unavailable: %s", e)
        return None
    if res.exit_code != 0 or res.timed_out:
        logger.debug("git %s failed (%s): %s", " ".join(args), res.exit_code, res.stderr.strip())
        return None
    return res.lines()


def is_git_repo(repo_path: Path) -> bool:
    return (Path(repo_path) / ".git").exists()


def list_changed_files(repo_path: Path, git_opts: str) -> List[str]:
    """Files touched by the commits selected with ``git log <git_opts>``.

    Paths are repo-relative, unique, in first-seen order (newest commit
    first), and limited to files that still exist in the working tree.
    """
    lines = _git(repo_path, ["log", "--name-only", "--pretty=format:", *shlex.split(git_opts or "")])
    if not lines:
        return []

    root = Path(repo_path)
    seen = set()
    out: List[str] = []
    for raw in lines:
        p = raw.strip()
        if not p or p in seen:
            continue
        seen.add(p)
        if (root / p).is_file():
            out.append(p)
    return out


def parse_blame_porcelain(lines: Sequence[str]) -> Optional[Provenance]:
    """Parse one ``git blame --porcelain`` record.

    The first row starts with the commit id. Metadata rows are ``key value``;
    keys are located by prefix match and the first match wins. The source
    line is the single tab-prefixed row.
    """
    if not lines:
        return None
    head = lines[0].split()
    if not head:
        return None

    commit_id = head[0]
    author: Optional[str] = None
    author_mail: Optional[str] = None
    source_line: Optional[str] = None

    for row in lines[1:]:
        if row.startswith("\t"):
            if source_line is None:
                source_line = row[1:]
            continue
        if author is None and row.startswith("author "):
            author = row[len("author "):].strip()
        elif author_mail is None and row.startswith("author-mail "):
            author_mail = row[len("author-mail "):].strip().strip("<>")

    return Provenance(
        commit_id=commit_id,
        author=author or None,
        author_mail=author_mail or None,
        source_line=source_line,
    )


def blame_line(repo_path: Path, file_path: str, line: int) -> Optional[Provenance]:
    """Blame a single line. Returns None if git cannot attribute it.

    No deadline beyond the per-query git timeout; callers run one query per
    finding.
    """
    lines = _git(repo_path, ["blame", "--porcelain", "-L", f"{line},{line}", "--", file_path])
    if not lines:
        return None
    return parse_blame_porcelain(lines)


def list_tail_commits(repo_path: Path, count: int = DEFAULT_TAIL_COMMITS) -> List[str]:
    """The ``count`` oldest commits reachable from HEAD, oldest first."""
    lines = _git(repo_path, ["rev-list", "--reverse", "HEAD"], timeout_seconds=60)
    if not lines:
        return []
    commits = [c.strip() for c in lines if c.strip()]
    return commits[:count]


def commit_changed_files(repo_path: Path, commit: str) -> List[str]:
    """Files changed by ``commit`` (root commits are diffed against the empty tree)."""
    lines = _git(repo_path, ["show", "--root", "--name-only", "--pretty=format:", commit])
    if not lines:
        return []
    return [p.strip() for p in lines if p.strip()]


def find_effective_initial_commit(
    repo_path: Path,
    tail_count: int = DEFAULT_TAIL_COMMITS,
) -> Optional[str]:
    """First commit near the root of history that actually changed files.

    Empty root commits (e.g. created by import tooling) are skipped so blame
    attribution to the real initial import can be ignored.
    """
    for commit in list_tail_commits(repo_path, tail_count):
        if commit_changed_files(repo_path, commit):
            return commit
    return None
