"""pipeline.aggregate

Deterministic filtering, de-duplication, ordering and summaries.

Runs once, after the scheduler's join barrier, over the complete result set.
Jobs finish in arbitrary order; everything here imposes order with stable
sorts so equal keys keep their first-seen order.

Stage order (fixed)
-------------------
1. author filter
2. noise suppression
3. de-duplication
4. group by file, sort by line
5. empty-component elision
"""

from __future__ import annotations

import functools
import re
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Tuple, Union

from repo_cppcheck.domain import SEVERITY_ORDER, ComponentResult, Finding, GlobalResultSet, line_sort_key

from .config import NOISE_LINE, NOISE_RULE_IDS, NOISE_SEVERITY

SeverityCounts = Dict[str, int]


def matches_author(finding: Finding, pattern: Pattern[str]) -> bool:
    """Findings without author metadata always pass."""
    author, mail = finding.author, finding.author_mail
    if not author and not mail:
        return True
    return any(v and pattern.search(v) for v in (author, mail))


def filter_by_author(findings: Iterable[Finding], pattern: Union[str, Pattern[str]]) -> List[Finding]:
    pat = re.compile(pattern) if isinstance(pattern, str) else pattern
    return [f for f in findings if matches_author(f, pat)]


def is_noise(finding: Finding) -> bool:
    return (
        finding.line == NOISE_LINE
        or finding.rule_id in NOISE_RULE_IDS
        or finding.severity == NOISE_SEVERITY
    )


def suppress_noise(findings: Iterable[Finding]) -> List[Finding]:
    return [f for f in findings if not is_noise(f)]


def deduplicate(findings: Iterable[Finding]) -> List[Finding]:
    """Collapse identical findings; the first occurrence wins."""
    seen = set()
    out: List[Finding] = []
    for f in findings:
        k = f.key()
        if k in seen:
            continue
        seen.add(k)
        out.append(f)
    return out


def group_and_sort(findings: Iterable[Finding]) -> List[Finding]:
    """Group by file in first-seen order, sort each group by numeric line."""
    groups: Dict[str, List[Finding]] = {}
    for f in findings:
        groups.setdefault(f.file_path, []).append(f)

    out: List[Finding] = []
    for group in groups.values():
        out.extend(sorted(group, key=lambda f: line_sort_key(f.line)))
    return out


def aggregate_findings(
    findings: Iterable[Finding],
    *,
    author_match: Optional[str] = None,
    suppress: bool = False,
) -> List[Finding]:
    out = list(findings)
    if author_match:
        out = filter_by_author(out, author_match)
    if suppress:
        out = suppress_noise(out)
    out = deduplicate(out)
    return group_and_sort(out)


def aggregate(
    results: Union[GlobalResultSet, Iterable[ComponentResult]],
    *,
    author_match: Optional[str] = None,
    suppress: bool = False,
) -> List[ComponentResult]:
    """Filter every component and drop the ones left without findings.

    Components come back ordered by path so detail output does not depend on
    job completion order.
    """
    items = results.values() if isinstance(results, GlobalResultSet) else list(results)
    items = sorted(items, key=lambda r: (r.path_descriptor, r.component.root_path))

    out: List[ComponentResult] = []
    for r in items:
        findings = aggregate_findings(r.findings, author_match=author_match, suppress=suppress)
        if not findings:
            continue
        out.append(
            ComponentResult(
                component=r.component,
                findings=tuple(findings),
                path_descriptor=r.path_descriptor,
                status=r.status,
                messages=r.messages,
            )
        )
    return out


def count_severities(findings: Iterable[Finding]) -> SeverityCounts:
    counts: SeverityCounts = {}
    for f in findings:
        counts[f.severity] = counts.get(f.severity, 0) + 1
    return counts


def compare_severity_counts(
    a: SeverityCounts,
    b: SeverityCounts,
    keys: Sequence[str] = SEVERITY_ORDER,
) -> int:
    """Descending comparison: negative when ``a`` should come first.

    A key is only compared when both sides have it; otherwise it is skipped
    for this pair (it is not treated as zero).
    """
    for k in keys:
        if k not in a or k not in b:
            continue
        if a[k] != b[k]:
            return -1 if a[k] > b[k] else 1
    return 0


def summarize(results: Iterable[ComponentResult]) -> List[Tuple[ComponentResult, SeverityCounts]]:
    """Per-component severity counts, ordered by the composite comparison."""
    rows = [(r, count_severities(r.findings)) for r in results]
    return sorted(rows, key=functools.cmp_to_key(lambda x, y: compare_severity_counts(x[1], y[1])))
