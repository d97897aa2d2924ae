"""pipeline.orchestrator

High-level orchestration entrypoint.

Design principles
-----------------
- Keep the CLI thin: parse args + resolve components + call :func:`run`.
- All component-local failures are absorbed: a failing or timed-out
  component simply has no entry in the reports.
- Never lose the other reports because one report could not be written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from repo_cppcheck.domain import Component, ComponentResult, GlobalResultSet

from .aggregate import aggregate, summarize
from .config import RunConfig
from .job import AnalysisJob
from .manifest import existing_components
from .projection import assign_output_names, detail_records, summary_records
from .reporters import Reporter, get_reporter
from .scheduler import JobOutcome, TaskScheduler, collect_results, record_on_completion

logger = logging.getLogger(__name__)

SUMMARY_NAME = "summary"

JobFactory = Callable[[Component, RunConfig], Callable[[], ComponentResult]]


@dataclass(frozen=True)
class ReportOutcome:
    name: str
    path: Optional[Path]
    ok: bool
    error: Optional[str] = None


@dataclass
class RunSummary:
    components: List[Component]
    result_set: GlobalResultSet
    outcomes: List[JobOutcome]
    results: List[ComponentResult]
    reports: List[ReportOutcome] = field(default_factory=list)

    @property
    def failed_jobs(self) -> List[JobOutcome]:
        return [o for o in self.outcomes if not o.ok]


def unique_components(components: Sequence[Component]) -> List[Component]:
    """One entry per component identity, first occurrence wins."""
    seen = set()
    out: List[Component] = []
    for c in components:
        if c.root_path in seen:
            logger.warning("duplicate component ignored: %s", c.root_path)
            continue
        seen.add(c.root_path)
        out.append(c)
    return out


def run_jobs(
    config: RunConfig,
    components: Sequence[Component],
    *,
    job_factory: JobFactory = AnalysisJob,
) -> Tuple[GlobalResultSet, List[JobOutcome]]:
    """Run one job per component and join on all of them."""
    result_set = GlobalResultSet()
    with TaskScheduler(config.num_workers) as scheduler:
        for c in components:
            scheduler.submit(record_on_completion(job_factory(c, config), result_set), key=c.root_path)
        outcomes = scheduler.run_all()

    collect_results(outcomes, {c.root_path: c for c in components}, result_set)
    return result_set, outcomes


def _report_path(config: RunConfig, name: str, reporter_cls: type) -> Optional[Path]:
    if config.report_out_path is None:
        return None
    return Path(config.report_out_path) / f"{name}{reporter_cls.extension}"


def _emit(reporter: Reporter, name: str, records, section) -> ReportOutcome:
    try:
        reporter.render(records, section)
        reporter.close()
    except OSError as e:
        logger.error("report %s could not be written: %s", name, e)
        return ReportOutcome(name=name, path=reporter.out_path, ok=False, error=str(e))
    return ReportOutcome(name=name, path=reporter.out_path, ok=True)


def write_reports(config: RunConfig, results: Sequence[ComponentResult]) -> List[ReportOutcome]:
    reporter_cls = get_reporter(config.report_format)
    outcomes: List[ReportOutcome] = []

    if config.wants_summary:
        reporter = reporter_cls(_report_path(config, SUMMARY_NAME, reporter_cls), title=SUMMARY_NAME)
        records = summary_records(summarize(results))
        outcomes.append(_emit(reporter, SUMMARY_NAME, records, config.summary_section))

    if config.wants_detail:
        names: Dict[str, str] = assign_output_names((r.component for r in results), reserved=(SUMMARY_NAME,))
        link_base = config.link_base if config.links_enabled else None
        for r in results:
            name = names[r.component.root_path]
            reporter = reporter_cls(_report_path(config, name, reporter_cls), title=name)
            outcomes.append(_emit(reporter, name, detail_records(r, link_base=link_base), config.detail_section))

    return outcomes


def run(
    config: RunConfig,
    components: Sequence[Component],
    *,
    job_factory: JobFactory = AnalysisJob,
) -> RunSummary:
    """Analyze every component, aggregate, and write reports."""
    kept = existing_components(unique_components(components))
    logger.info("analyzing %d components with %d workers", len(kept), config.num_workers)

    result_set, outcomes = run_jobs(config, kept, job_factory=job_factory)

    results = aggregate(
        result_set,
        author_match=config.author_match,
        suppress=config.suppress_noise,
    )

    reports = write_reports(config, results)
    return RunSummary(
        components=kept,
        result_set=result_set,
        outcomes=outcomes,
        results=results,
        reports=reports,
    )
