"""pipeline.projection

Turn typed results into the flat records reporters consume.

This is the only place where findings become ``str -> str`` mappings. Two
transforms happen here so reporters never need to know about them:

- hyperlink derivation for the ``line`` field
- output-name collision resolution between components
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from repo_cppcheck.domain import SEVERITY_ORDER, Component, ComponentResult, Finding

from .aggregate import SeverityCounts

Record = Dict[str, str]

SUMMARY_KEYS = ("moduleName", "path")
DETAIL_KEYS = (
    "filename",
    "line",
    "severity",
    "id",
    "message",
    "commitId",
    "author",
    "authorMail",
    "theLine",
)


def build_link(
    base_url: str,
    git_identity: Optional[str],
    commit_id: Optional[str],
    file_path: str,
    line: str,
) -> Optional[str]:
    """Gitiles-style URL to a line at a commit, or None if unknown."""
    if not base_url or not git_identity or not commit_id or not file_path:
        return None
    base = base_url.rstrip("/")
    return f"{base}/{git_identity.strip('/')}/+/{commit_id}/{file_path}#{line}"


def finding_record(
    finding: Finding,
    component: Optional[Component] = None,
    *,
    link_base: Optional[str] = None,
) -> Record:
    prov = finding.provenance
    line = finding.line
    if link_base and component is not None:
        url = build_link(link_base, component.git_identity, finding.commit_id, finding.file_path, finding.line)
        if url:
            line = f"[{finding.line}]({url})"

    return {
        "filename": finding.file_path,
        "line": line,
        "severity": finding.severity,
        "id": finding.rule_id,
        "message": finding.message,
        "commitId": (prov.commit_id if prov else "") or "",
        "author": (prov.author if prov else "") or "",
        "authorMail": (prov.author_mail if prov else "") or "",
        "theLine": (prov.source_line if prov else "") or "",
    }


def detail_records(result: ComponentResult, *, link_base: Optional[str] = None) -> List[Record]:
    return [finding_record(f, result.component, link_base=link_base) for f in result.findings]


def summary_record(result: ComponentResult, counts: SeverityCounts, severities: Sequence[str]) -> Record:
    rec: Record = {
        "moduleName": result.component.display_name,
        "path": result.path_descriptor,
    }
    for s in severities:
        rec[s] = str(counts.get(s, 0))
    return rec


def summary_records(rows: Iterable[Tuple[ComponentResult, SeverityCounts]]) -> List[Record]:
    """Summary rows; columns are the fixed severities plus any others seen."""
    rows = list(rows)
    severities: List[str] = list(SEVERITY_ORDER)
    for _r, counts in rows:
        for s in counts:
            if s not in severities:
                severities.append(s)
    return [summary_record(r, counts, severities) for r, counts in rows]


def assign_output_names(components: Iterable[Component], reserved: Iterable[str] = ()) -> Dict[str, str]:
    """Destination name per component (keyed by root path).

    The first component keeps its display name. A later component whose
    name is already taken (or reserved, e.g. by the summary report) is
    re-keyed to its relative path with ``/`` replaced by ``_``; a numeric
    suffix is added if that is taken as well.
    """
    names: Dict[str, str] = {}
    used = set(reserved)
    for c in components:
        name = c.display_name
        if name in used:
            name = c.relative_path.strip("/").replace("/", "_") or name
        base, n = name, 2
        while name in used:
            name = f"{base}_{n}"
            n += 1
        used.add(name)
        names[c.root_path] = name
    return names
