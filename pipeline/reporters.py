"""pipeline.reporters

Report backends behind one render contract.

Each reporter receives an ordered sequence of flat records (string keys,
string values) plus a section spec: an ordered allow-list of keys, or
``None`` for "all keys". ``render()`` may be called more than once;
``close()`` writes the accumulated output to the sink.

The sink is a file path (written atomically) or stdout when no path is
given. The set of backends is closed: markdown, csv, xml.
"""

from __future__ import annotations

import csv
import io
import sys
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Type

from repo_cppcheck.io import write_text_atomic


def resolve_columns(records: Sequence[Mapping[str, str]], section: Optional[Sequence[str]]) -> List[str]:
    """Columns to emit: the section spec, or every key in first-seen order."""
    if section:
        return list(section)
    cols: List[str] = []
    seen = set()
    for r in records:
        for k in r.keys():
            if k not in seen:
                seen.add(k)
                cols.append(k)
    return cols


class Reporter:
    """Base class: accumulate text chunks, flush on close."""

    extension = ""

    def __init__(self, out_path: Optional[Path] = None, *, title: Optional[str] = None) -> None:
        self.out_path = Path(out_path) if out_path is not None else None
        self.title = title
        self._chunks: List[str] = []
        self._closed = False

    def render(self, records: Sequence[Mapping[str, str]], section: Optional[Sequence[str]] = None) -> None:
        raise NotImplementedError

    def getvalue(self) -> str:
        return "".join(self._chunks)

    def _write(self, text: str) -> None:
        write_text_atomic(self.out_path, text)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        text = self.getvalue()
        if self.out_path is None:
            sys.stdout.write(text)
            sys.stdout.flush()
        else:
            self._write(text)


def _md_cell(value: str) -> str:
    return str(value).replace("|", "\\|").replace("\r", " ").replace("\n", " ")


class MarkdownReporter(Reporter):
    extension = ".md"

    def render(self, records: Sequence[Mapping[str, str]], section: Optional[Sequence[str]] = None) -> None:
        cols = resolve_columns(records, section)
        lines: List[str] = []
        if self.title:
            lines.append(f"# {self.title}")
            lines.append("")
        if cols:
            lines.append("| " + " | ".join(cols) + " |")
            lines.append("| " + " | ".join(":---" for _ in cols) + " |")
            for r in records:
                lines.append("| " + " | ".join(_md_cell(r.get(c, "")) for c in cols) + " |")
        lines.append("")
        self._chunks.append("\n".join(lines) + "\n")


class CsvReporter(Reporter):
    extension = ".csv"

    def __init__(self, out_path: Optional[Path] = None, *, title: Optional[str] = None) -> None:
        super().__init__(out_path, title=title)
        self._columns: Optional[List[str]] = None

    def render(self, records: Sequence[Mapping[str, str]], section: Optional[Sequence[str]] = None) -> None:
        cols = resolve_columns(records, section)
        if not cols:
            return
        # One header per file: every render must share it.
        if self._columns is not None and cols != self._columns:
            raise ValueError(f"CSV columns changed from {self._columns} to {cols}")
        buf = io.StringIO()
        w = csv.DictWriter(buf, fieldnames=cols, extrasaction="ignore", lineterminator="\n")
        if self._columns is None:
            w.writeheader()
            self._columns = cols
        for r in records:
            w.writerow({c: r.get(c, "") for c in cols})
        self._chunks.append(buf.getvalue())

    def _write(self, text: str) -> None:
        # The csv module already wrote the line terminators.
        write_text_atomic(self.out_path, text, newline="")


class XmlReporter(Reporter):
    extension = ".xml"

    def __init__(self, out_path: Optional[Path] = None, *, title: Optional[str] = None) -> None:
        super().__init__(out_path, title=title)
        self._root = ET.Element("report")
        if title:
            self._root.set("name", title)

    def render(self, records: Sequence[Mapping[str, str]], section: Optional[Sequence[str]] = None) -> None:
        cols = resolve_columns(records, section)
        for r in records:
            el = ET.SubElement(self._root, "record")
            for c in cols:
                ET.SubElement(el, c).text = r.get(c, "")

    def getvalue(self) -> str:
        tree = ET.ElementTree(self._root)
        ET.indent(tree)
        return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(self._root, encoding="unicode") + "\n"


REPORTERS: Dict[str, Type[Reporter]] = {
    "markdown": MarkdownReporter,
    "csv": CsvReporter,
    "xml": XmlReporter,
}


def get_reporter(name: str) -> Type[Reporter]:
    key = (name or "").strip().lower()
    if key not in REPORTERS:
        raise ValueError(f"Unknown report format {name!r}; expected one of {sorted(REPORTERS)}")
    return REPORTERS[key]
