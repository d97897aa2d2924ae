"""pipeline.job

One analysis job per component.

A job is a plain callable returning a :class:`ComponentResult`. It owns its
result until the scheduler hands it to the collector, and it reads the run
configuration without ever writing to it.

Steps
-----
1. candidate files (history filter, or the whole tree as one target)
2. intra-job ``-j`` via :func:`tools.cppcheck.compute_concurrency`
3. one cppcheck run under a hard deadline
4. parse output lines
5. optional provenance enrichment
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from repo_cppcheck.domain import Component, ComponentResult, Finding
from tools.core_cmd import CmdResult, run_cmd
from tools.core_git import is_git_repo, list_changed_files
from tools.cppcheck import (
    compute_concurrency,
    count_source_files,
    filter_source_files,
    parse_output,
    run_cppcheck,
)

from .config import RunConfig
from .enrich import enrich_findings

logger = logging.getLogger(__name__)

# Directory that marks the top of a `repo` multi-project checkout.
PROJECT_ROOT_MARKER = ".repo"

Enricher = Callable[..., List[Finding]]


def find_project_root(path: Path) -> Optional[Path]:
    """Nearest ancestor (inclusive) holding the project-root marker."""
    p = Path(path).resolve()
    for candidate in (p, *p.parents):
        if (candidate / PROJECT_ROOT_MARKER).is_dir():
            return candidate
    return None


def path_descriptor(component: Component) -> str:
    """Component path relative to the project root, for display."""
    root = find_project_root(Path(component.root_path))
    if root is not None:
        try:
            rel = Path(component.root_path).resolve().relative_to(root)
            return rel.as_posix() if str(rel) != "." else component.relative_path
        except ValueError:
            pass
    return component.relative_path


class AnalysisJob:
    """Analyze one component. Calling the job runs it."""

    def __init__(
        self,
        component: Component,
        config: RunConfig,
        *,
        runner: Callable[..., CmdResult] = run_cmd,
        enricher: Enricher = enrich_findings,
    ) -> None:
        self.component = component
        self.config = config
        self._runner = runner
        self._enricher = enricher

    def __repr__(self) -> str:
        return f"AnalysisJob({self.component.relative_path!r})"

    @property
    def repo_path(self) -> Path:
        return Path(self.component.root_path)

    def select_targets(self) -> Optional[List[str]]:
        """Explicit target files, or None when the whole tree is the target."""
        if self.config.git_opts and is_git_repo(self.repo_path):
            return filter_source_files(list_changed_files(self.repo_path, self.config.git_opts))
        return None

    def _result(self, findings: Sequence[Finding] = (), *, status: str = "ok", messages: Sequence[str] = ()) -> ComponentResult:
        return ComponentResult(
            component=self.component,
            findings=tuple(findings),
            path_descriptor=path_descriptor(self.component),
            status=status,
            messages=tuple(messages),
        )

    def __call__(self) -> ComponentResult:
        cfg = self.config
        targets = self.select_targets()
        file_count = len(targets) if targets is not None else count_source_files(self.repo_path)

        if file_count == 0:
            logger.info("%s: no source files, skipping", self.component.relative_path)
            return self._result(status="skipped", messages=["no candidate source files"])

        concurrency = compute_concurrency(file_count, cfg.max_threads)
        res = run_cppcheck(
            cppcheck_bin=cfg.cppcheck_bin,
            repo_path=self.repo_path,
            concurrency=concurrency,
            enable=cfg.enable,
            targets=targets or (),
            timeout_seconds=cfg.timeout_seconds,
            runner=self._runner,
        )

        status = "ok"
        messages: List[str] = []
        if res.timed_out:
            status = "timeout"
            messages.append(f"cppcheck timed out after {cfg.timeout_seconds}s")

        findings = parse_output(res.lines(), cfg.ignore_patterns)

        if findings and cfg.needs_provenance and is_git_repo(self.repo_path):
            findings = self._enricher(
                self.repo_path,
                findings,
                cfg.ignore_commits,
                ignore_initial_commit=cfg.ignore_initial_commit,
                tail_commits=cfg.tail_commits,
            )

        logger.info(
            "%s: %d findings (files=%d, -j%d, %.1fs, %s)",
            self.component.relative_path,
            len(findings),
            file_count,
            concurrency,
            res.elapsed_seconds,
            status,
        )
        return self._result(findings, status=status, messages=messages)
