"""tools/core_cmd.py

Command-execution helpers shared by the cppcheck and git adapters.

This module deliberately avoids tool-specific knowledge. It provides:

* :func:`which_or_raise` - resolve executables reliably across environments.
* :func:`run_cmd` - run subprocesses (no shell=True) with a hard deadline and
  capture output.
"""

from __future__ import annotations

import logging
import os
import shutil
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)

# Same convention as coreutils `timeout`.
TIMEOUT_EXIT_CODE = 124


@dataclass(frozen=True)
class CmdResult:
    exit_code: int
    elapsed_seconds: float
    command_str: str
    stdout: str
    stderr: str
    timed_out: bool = False

    def lines(self) -> List[str]:
        return self.stdout.splitlines()


def which_or_raise(bin_name: str, fallbacks: Optional[List[str]] = None) -> str:
    """Locate an executable and return its absolute path.

    Why this exists:
    - prevents a bare "FileNotFoundError" deep inside a worker thread
    - avoids PATH surprises across distro packages / local builds
    """
    found = shutil.which(bin_name)
    if found:
        return found

    for candidate in fallbacks or []:
        p = Path(candidate)
        if p.exists() and os.access(str(p), os.X_OK):
            return str(p)

    raise FileNotFoundError(
        f"Executable '{bin_name}' not found on PATH.\n"
        f"Install it and ensure it's available to this Python process.\n"
        f"Tried fallbacks: {fallbacks or []}"
    )


def _as_text(data: Union[bytes, str, None]) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def _kill(proc: subprocess.Popen) -> None:
    """Kill the child and anything it spawned (cppcheck -j forks workers)."""
    if os.name == "posix":
        try:
            os.killpg(proc.pid, signal.SIGKILL)
            return
        except (ProcessLookupError, PermissionError):
            pass
    proc.kill()


def run_cmd(
    cmd: List[str],
    *,
    cwd: Optional[Path] = None,
    timeout_seconds: float = 0,
    env: Optional[Dict[str, str]] = None,
    merge_stderr: bool = False,
) -> CmdResult:
    """Run a subprocess and capture stdout/stderr (no ``shell=True``).

    Never raises on non-zero exit codes; only raises on execution errors
    (e.g. binary not found).

    On timeout the whole process group is killed and the output captured so
    far is returned with ``timed_out=True`` and exit code 124.
    """
    t0 = time.monotonic()

    # If env is provided, merge it onto the current process environment.
    env2 = None
    if env is not None:
        env2 = os.environ.copy()
        env2.update(env)

    proc = subprocess.Popen(
        cmd,
        cwd=str(cwd) if cwd else None,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
        stdin=subprocess.DEVNULL,
        env=env2,
        start_new_session=(os.name == "posix"),
    )

    timed_out = False
    try:
        out, err = proc.communicate(
            timeout=timeout_seconds if timeout_seconds and timeout_seconds > 0 else None
        )
    except subprocess.TimeoutExpired:
        timed_out = True
        _kill(proc)
        # communicate() keeps what it already read; this drains the rest.
        out, err = proc.communicate()
        logger.warning("timeout after %ss: %s", timeout_seconds, " ".join(cmd))

    elapsed = time.monotonic() - t0

    return CmdResult(
        exit_code=TIMEOUT_EXIT_CODE if timed_out else int(proc.returncode),
        elapsed_seconds=elapsed,
        command_str=" ".join(cmd),
        stdout=_as_text(out),
        stderr=_as_text(err),
        timed_out=timed_out,
    )
