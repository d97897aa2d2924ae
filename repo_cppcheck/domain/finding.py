"""repo_cppcheck.domain.finding

Canonical representation of one cppcheck finding.

Why dataclasses instead of untyped dicts?
----------------------------------------
Report backends consume flat ``str -> str`` records, and it is tempting to
build those records straight out of the parser. That makes it easy for the
aggregation stage to silently disagree with the renderer about field names
(``filename`` vs ``file``, ``authorMail`` vs ``author_mail``...).

Keeping a typed record until the render boundary gives:

* one place that defines the de-duplication identity
* explicit, optional provenance fields (absence is a normal state)
* a single conversion point to report records (see ``pipeline.projection``)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple


# Fixed severity order used for summary columns and summary ordering.
SEVERITY_ORDER: Tuple[str, ...] = (
    "error",
    "warning",
    "performance",
    "style",
    "information",
)

# cppcheck reports configuration-level issues against this pseudo file.
NO_FILE = "nofile"


@dataclass(frozen=True)
class Provenance:
    """Line-level history attribution for a finding (``git blame``)."""

    commit_id: str
    author: Optional[str] = None
    author_mail: Optional[str] = None
    source_line: Optional[str] = None


@dataclass(frozen=True)
class Finding:
    """One analyzer-reported issue.

    ``line`` keeps the analyzer's literal token. cppcheck reports ``0`` for
    findings that are not tied to a real line, and those are matched as text
    by noise suppression.
    """

    file_path: str
    line: str
    severity: str
    rule_id: str
    message: str
    provenance: Optional[Provenance] = None

    def key(self) -> Tuple[str, str, str, str, str]:
        """Identity used for de-duplication (provenance excluded)."""
        return (self.file_path, self.line, self.severity, self.rule_id, self.message)

    def with_provenance(self, provenance: Provenance) -> "Finding":
        return replace(self, provenance=provenance)

    @property
    def author(self) -> Optional[str]:
        return self.provenance.author if self.provenance else None

    @property
    def author_mail(self) -> Optional[str]:
        return self.provenance.author_mail if self.provenance else None

    @property
    def commit_id(self) -> Optional[str]:
        return self.provenance.commit_id if self.provenance else None


def line_sort_key(line: str) -> Tuple[int, int, str]:
    """Sort key for a line token: numeric ascending, non-numeric last."""
    try:
        return (0, int(line), "")
    except (TypeError, ValueError):
        return (1, 0, str(line))
