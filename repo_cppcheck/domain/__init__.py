"""repo_cppcheck.domain

Domain objects that form the *contract* between pipeline stages.

Key idea
--------
cppcheck produces line-oriented text. The parser turns each line into a typed
:class:`Finding`; everything downstream (enrichment, aggregation, projection)
works on those types and only projects to flat string records at the render
boundary.
"""

from __future__ import annotations

from .component import Component, ComponentResult, GlobalResultSet
from .finding import SEVERITY_ORDER, NO_FILE, Finding, Provenance, line_sort_key

__all__ = [
    "Component",
    "ComponentResult",
    "Finding",
    "GlobalResultSet",
    "NO_FILE",
    "Provenance",
    "SEVERITY_ORDER",
    "line_sort_key",
]
