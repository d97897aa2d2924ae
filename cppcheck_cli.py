#!/usr/bin/env python3
"""
CLI for running cppcheck across every project of a multi-repository checkout.

Usage:
  python cppcheck_cli.py ~/work/android-s
  python cppcheck_cli.py ~/work/android-s -p ~/tmp/cppcheck -r csv -j 8
  python cppcheck_cli.py ~/work/android-s -g "--since=2023-01-01" -c https://android.googlesource.com/ -f system/

Outputs (with --report-out-path):
  <report-out-path>/
    - summary.<ext>            per-project severity counts
    - <project>.<ext>          findings of one project

Without --report-out-path every report is written to stdout.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence

# ---------------------------------------------------------------------------
# Minimal bootstrap so this file can be executed directly while using
# clean package imports.
# ---------------------------------------------------------------------------
if __package__ in (None, ""):
    sys.path.insert(0, str(Path(__file__).resolve().parent))

from pipeline.config import (
    DEFAULT_DETAIL_SECTION,
    DEFAULT_SUMMARY_SECTION,
    DEFAULT_TIMEOUT_SECONDS,
    OUTPUT_MODES,
    REPORT_FORMATS,
)
from pipeline.manifest import resolve_components
from pipeline.orchestrator import run
from pipeline.wiring import build_config, configure_logging, load_environment
from tools.core_cmd import which_or_raise
from tools.cppcheck import CPPCHECK_FALLBACKS


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        usage="%(prog)s [options] TARGET_ROOT",
        description="Run cppcheck over every project of a repo checkout and report findings.",
    )
    ap.add_argument("target", nargs="?", help="Checkout root (a directory holding .repo/, or a single project).")

    # Output
    ap.add_argument(
        "-r",
        "--report-format",
        type=str.lower,
        choices=REPORT_FORMATS,
        default="markdown",
        help="Report format. Default: markdown.",
    )
    ap.add_argument("-p", "--report-out-path", help="Report output folder. Default: stdout.")
    ap.add_argument("-m", "--mode", choices=OUTPUT_MODES, default="both", help="Which reports to write. Default: both.")
    ap.add_argument(
        "-s",
        "--summary-section",
        default=DEFAULT_SUMMARY_SECTION,
        help=f"'|'-separated summary columns; empty = all. Default: {DEFAULT_SUMMARY_SECTION}",
    )
    ap.add_argument(
        "-d",
        "--detail-section",
        default=DEFAULT_DETAIL_SECTION,
        help=f"'|'-separated detail columns; empty = all. Default: {DEFAULT_DETAIL_SECTION}",
    )
    ap.add_argument("-l", "--link", action="store_true", help="Turn the line column into a link (needs --link-base).")
    ap.add_argument("-c", "--link-base", help="Base URL of the git web frontend, e.g. https://android.googlesource.com/")

    # Execution
    ap.add_argument("-j", "--num-threads", type=int, default=0, help="Parallel projects. Default: CPU count.")
    ap.add_argument("--max-threads", type=int, default=0, help="Upper bound of cppcheck -j per project. Default: -j value.")
    ap.add_argument(
        "-t",
        "--timeout-seconds",
        type=float,
        default=DEFAULT_TIMEOUT_SECONDS,
        help=f"Hard cppcheck deadline per project, seconds (> 0). Default: {DEFAULT_TIMEOUT_SECONDS:g}.",
    )
    ap.add_argument("--cppcheck-bin", help="cppcheck executable (env: CPPCHECK_BIN).")
    ap.add_argument("-e", "--enable", default="all", help="cppcheck --enable categories. Default: all.")

    # Selection / filtering
    ap.add_argument("-f", "--path-filter", default="", help="Regex on manifest project paths.")
    ap.add_argument("--group-filter", default="", help="Regex on manifest project groups.")
    ap.add_argument("-x", "--ignore-files", default="", help="Comma-separated regexes of files to ignore.")
    ap.add_argument("-g", "--git-opts", default="", help="git log options selecting the files to analyze, e.g. '--since=2023-01-01'.")
    ap.add_argument("-i", "--ignore-commits", default="", help="Comma-separated full commit ids whose findings are dropped.")
    ap.add_argument("-u", "--ignore-initial-commit", action="store_true", help="Also drop findings blamed on the initial commit.")
    ap.add_argument("-a", "--author-match", default="", help="Keep only findings whose author/mail matches this regex.")
    ap.add_argument("-o", "--optimize", action="store_true", help="Drop noise (line 0, syntaxError, unknownMacro, information).")

    ap.add_argument("--verbose", action="store_true", help="Enable verbose status output.")
    return ap


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    ap = build_parser()
    ns = ap.parse_args(argv)

    # Fail before any scheduling.
    if not ns.target:
        ap.print_usage(sys.stderr)
        raise SystemExit(2)
    if not Path(ns.target).is_dir():
        ap.print_usage(sys.stderr)
        print(f"{ns.target} is not found", file=sys.stderr)
        raise SystemExit(2)
    if ns.link and not ns.link_base:
        print("WARN: --link without --link-base has no effect unless CPPCHECK_LINK_BASE is set.", file=sys.stderr)
    if ns.link_base and not ns.link:
        print("WARN: --link-base is only used together with --link.", file=sys.stderr)

    return ns


def _run(argv: Optional[List[str]] = None) -> int:
    # Always load .env so terminal runs behave like IDE runs
    load_environment()

    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = build_config(args)
    except ValueError as e:
        # Invalid regexes and timeouts exit like any other usage error.
        build_parser().error(str(e))
    config = replace(config, cppcheck_bin=which_or_raise(config.cppcheck_bin, fallbacks=CPPCHECK_FALLBACKS))

    components = resolve_components(Path(args.target), args.path_filter, args.group_filter)
    if args.verbose:
        print(f"🔍 {len(components)} projects under {args.target}", file=sys.stderr)

    summary = run(config, components)

    for o in summary.failed_jobs:
        print(f"⚠️  {o.key}: {o.error}", file=sys.stderr)
    for rep in summary.reports:
        if not rep.ok:
            print(f"❌ report {rep.name} not written: {rep.error}", file=sys.stderr)
        elif rep.path is not None and args.verbose:
            print(f"📄 Report saved to: {rep.path}", file=sys.stderr)

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    try:
        return _run(argv)
    except FileNotFoundError as e:
        # Make missing cppcheck a clean error (not a giant traceback)
        print(f"❌ {e}", file=sys.stderr)
        return 127


if __name__ == "__main__":
    raise SystemExit(main())
