"""repo_cppcheck.domain.component

Components (the unit of scheduling) and their per-run results.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from .finding import Finding


@dataclass(frozen=True)
class Component:
    """One independently analyzable source directory.

    Identity is ``root_path``. ``git_identity`` is the project name the
    manifest gives the component (used to build hyperlinks); it is ``None``
    for components that were not resolved from a manifest.
    """

    root_path: str
    display_name: str
    relative_path: str
    git_identity: Optional[str] = None


@dataclass(frozen=True)
class ComponentResult:
    """Outcome of one analysis job.

    ``status`` is one of:
    - ``ok``: the analyzer ran to completion
    - ``skipped``: no candidate files, nothing was spawned
    - ``timeout``: the analyzer hit its deadline; ``findings`` holds whatever
      partial output was parsed
    - ``error``: the job raised; ``findings`` is empty
    """

    component: Component
    findings: Tuple[Finding, ...] = ()
    path_descriptor: str = ""
    status: str = "ok"
    messages: Tuple[str, ...] = ()

    @property
    def key(self) -> str:
        return self.component.root_path

    def is_empty(self) -> bool:
        return not self.findings


@dataclass
class GlobalResultSet:
    """Results keyed by component identity, filled by concurrent jobs.

    Every job owns exactly one key, so the values never alias. Only the
    structural insertion is serialized.
    """

    _results: Dict[str, ComponentResult] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record(self, result: ComponentResult) -> None:
        with self._lock:
            if result.key in self._results:
                raise KeyError(f"result already recorded for {result.key!r}")
            self._results[result.key] = result

    def get(self, key: str) -> Optional[ComponentResult]:
        return self._results.get(key)

    def values(self) -> List[ComponentResult]:
        with self._lock:
            return list(self._results.values())

    def __len__(self) -> int:
        return len(self._results)

    def __contains__(self, key: object) -> bool:
        return key in self._results

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._results.keys())
