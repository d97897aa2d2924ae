"""pipeline.wiring

This module is the **composition root** for the Python runtime.

"Composition root" means: the single place where we *assemble* the running
application from its building blocks:

- load configuration / environment variables (``.env`` via python-dotenv)
- configure logging
- turn parsed CLI arguments into one immutable :class:`RunConfig`

Keeping this wiring in one place prevents option handling from being
duplicated across entrypoints (CLI, scripts, tests).
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .config import (
    RunConfig,
    default_worker_count,
    parse_list,
    parse_section_spec,
)

ROOT_DIR: Path = Path(__file__).resolve().parents[1]
ENV_PATH: Path = ROOT_DIR / ".env"

# Environment defaults (overridden by explicit CLI flags).
ENV_CPPCHECK_BIN = "CPPCHECK_BIN"
ENV_LINK_BASE = "CPPCHECK_LINK_BASE"


def load_environment(dotenv_path: Optional[Path] = None) -> None:
    """Load ``.env`` (repo root, then cwd) without overriding the shell."""
    load_dotenv(dotenv_path or ENV_PATH, override=False)
    load_dotenv(Path.cwd() / ".env", override=False)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_config(args: argparse.Namespace) -> RunConfig:
    """Build the run configuration from parsed CLI args + environment."""
    num_workers = args.num_threads or default_worker_count()
    link_base = args.link_base or os.environ.get(ENV_LINK_BASE) or None

    return RunConfig(
        num_workers=num_workers,
        timeout_seconds=float(args.timeout_seconds),
        max_threads=args.max_threads or num_workers,
        cppcheck_bin=args.cppcheck_bin or os.environ.get(ENV_CPPCHECK_BIN) or "cppcheck",
        enable=args.enable,
        ignore_files=parse_list(args.ignore_files),
        git_opts=args.git_opts or "",
        ignore_commits=parse_list(args.ignore_commits),
        ignore_initial_commit=bool(args.ignore_initial_commit),
        author_match=args.author_match or None,
        suppress_noise=bool(args.optimize),
        mode=args.mode,
        report_format=args.report_format,
        report_out_path=Path(args.report_out_path).resolve() if args.report_out_path else None,
        summary_section=parse_section_spec(args.summary_section),
        detail_section=parse_section_spec(args.detail_section),
        link=bool(args.link),
        link_base=link_base,
    )
