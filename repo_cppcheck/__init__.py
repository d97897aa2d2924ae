"""repo_cppcheck

Core package namespace for the multi-repository cppcheck pipeline.

Why this exists
---------------
Orchestration code lives under the top-level ``pipeline`` package and the
subprocess adapters (cppcheck, git) live under ``tools``. Both need to agree
on the same vocabulary, so this package owns:

* domain types (components, findings, per-component results)
* IO helpers (atomic report writes)

The CLI stays a thin composition root that wires these together.
"""

from __future__ import annotations
