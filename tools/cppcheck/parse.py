"""tools/cppcheck/parse.py

Parse cppcheck ``--template`` output into :class:`Finding` objects.

cppcheck is run with :data:`OUTPUT_TEMPLATE`, so every finding arrives as::

    [file],[line],[severity],[id],[message]

The message is free text and may itself contain ``],[``. Only the first four
tokens are positional; everything after them is the message.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Pattern, Sequence, Union

from repo_cppcheck.domain import Finding

logger = logging.getLogger(__name__)

OUTPUT_TEMPLATE = "[{file}],[{line}],[{severity}],[{id}],[{message}]"
SEPARATOR = "],["
MIN_TOKENS = 5

IgnorePattern = Union[str, Pattern[str]]


def compile_patterns(patterns: Iterable[IgnorePattern]) -> List[Pattern[str]]:
    return [p if isinstance(p, re.Pattern) else re.compile(p) for p in patterns if p]


def is_ignored(file_path: str, patterns: Sequence[IgnorePattern]) -> bool:
    for p in patterns:
        if isinstance(p, re.Pattern):
            if p.search(file_path):
                return True
        elif p and re.search(p, file_path):
            return True
    return False


def parse_line(line: str, ignore_patterns: Sequence[IgnorePattern] = ()) -> Optional[Finding]:
    """Parse one output line. Returns None for chatter and ignored files."""
    tokens = line.rstrip("\r\n").split(SEPARATOR)
    if len(tokens) < MIN_TOKENS:
        return None

    file_path = tokens[0]
    if file_path.startswith("["):
        file_path = file_path[1:]

    message = SEPARATOR.join(tokens[4:])
    if message.endswith("]"):
        message = message[:-1]

    if ignore_patterns and is_ignored(file_path, ignore_patterns):
        logger.debug("ignored by pattern: %s", file_path)
        return None

    return Finding(
        file_path=file_path,
        line=tokens[1],
        severity=tokens[2],
        rule_id=tokens[3],
        message=message,
    )


def parse_output(lines: Iterable[str], ignore_patterns: Sequence[IgnorePattern] = ()) -> List[Finding]:
    """Parse analyzer output lines, keeping input order."""
    patterns = compile_patterns(ignore_patterns)
    findings: List[Finding] = []
    for line in lines:
        f = parse_line(line, patterns)
        if f is not None:
            findings.append(f)
    return findings
