"""pipeline.enrich

Provenance enrichment: attach ``git blame`` attribution to findings.

Rules
-----
- Best-effort: a finding whose blame is unavailable is kept as-is.
- A finding blamed on an ignored commit is dropped (pre-existing noise).
- One history query per finding, run sequentially. There is no deadline of
  its own beyond the per-query git timeout, so enrichment time grows with the
  finding count.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Set

from repo_cppcheck.domain import NO_FILE, Finding, Provenance
from tools.core_git import DEFAULT_TAIL_COMMITS, blame_line, find_effective_initial_commit

logger = logging.getLogger(__name__)

BlameFn = Callable[[Path, str, int], Optional[Provenance]]
InitialCommitFn = Callable[[Path, int], Optional[str]]


def _blame_target(finding: Finding) -> Optional[int]:
    """Line number to blame, or None when the finding has no real location."""
    if not finding.file_path or finding.file_path == NO_FILE or not finding.line:
        return None
    try:
        n = int(finding.line)
    except ValueError:
        return None
    return n if n > 0 else None


def enrich_findings(
    repo_path: Path,
    findings: Iterable[Finding],
    ignore_commits: Iterable[str] = (),
    *,
    ignore_initial_commit: bool = False,
    tail_commits: int = DEFAULT_TAIL_COMMITS,
    blame: BlameFn = blame_line,
    initial_commit: InitialCommitFn = find_effective_initial_commit,
) -> List[Finding]:
    """Return findings with provenance attached, minus ignored-commit hits."""
    ignored: Set[str] = {c for c in ignore_commits if c}
    if ignore_initial_commit:
        first = initial_commit(repo_path, tail_commits)
        if first:
            logger.debug("%s: ignoring initial commit %s", repo_path, first)
            ignored.add(first)

    out: List[Finding] = []
    for f in findings:
        line = _blame_target(f)
        if line is None:
            out.append(f)
            continue

        prov = blame(repo_path, f.file_path, line)
        if prov is None:
            out.append(f)
            continue

        if prov.commit_id in ignored:
            continue

        out.append(f.with_provenance(prov))
    return out
