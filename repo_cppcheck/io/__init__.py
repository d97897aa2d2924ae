"""repo_cppcheck.io

Filesystem helpers for report output.

Reports are the only durable artifact of a run, so every report file goes
through one atomic writer: an interrupted run leaves the previous file (or no
file), never a truncated one.
"""

from __future__ import annotations

from .fs import write_text_atomic

__all__ = [
    "write_text_atomic",
]
