"""pipeline.manifest

Resolve a multi-project checkout into components.

A ``repo`` checkout keeps its manifest under ``.repo/``. Each
``<project path=... name=... groups=...>`` element is one component;
``<include name=...>`` elements pull in further manifests from the same
directories. A directory without a manifest is analyzed as one component.

Pure functions over explicit parameters; no module-level state.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional, Set

from repo_cppcheck.domain import Component

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST = "manifest.xml"
MANIFEST_DIRS = (".repo", ".repo/manifests")


def find_manifest(base_path: Path, manifest_name: str = DEFAULT_MANIFEST) -> Optional[Path]:
    for d in MANIFEST_DIRS:
        p = Path(base_path) / d / manifest_name
        if p.is_file():
            return p
    return None


def _matches(pattern: str, value: str) -> bool:
    return not pattern or bool(re.search(pattern, value))


def _collect(
    base_path: Path,
    manifest_name: str,
    out: List[Component],
    *,
    path_filter: str,
    group_filter: str,
    visited: Set[Path],
) -> None:
    manifest = find_manifest(base_path, manifest_name)
    if manifest is None:
        logger.debug("manifest %s not found under %s", manifest_name, base_path)
        return
    manifest = manifest.resolve()
    if manifest in visited:
        return
    visited.add(manifest)

    try:
        root = ET.parse(str(manifest)).getroot()
    except ET.ParseError as e:
        logger.warning("cannot parse %s: %s", manifest, e)
        return

    for inc in root.findall("include"):
        name = inc.get("name")
        if name:
            _collect(base_path, name, out, path_filter=path_filter, group_filter=group_filter, visited=visited)

    for proj in root.findall("project"):
        rel = proj.get("path") or proj.get("name")
        if not rel:
            continue
        if not _matches(path_filter, rel):
            continue
        groups = proj.get("groups") or ""
        if groups and group_filter and not re.search(group_filter, groups):
            continue
        out.append(
            Component(
                root_path=str(Path(base_path) / rel),
                display_name=Path(rel).name,
                relative_path=rel,
                git_identity=proj.get("name"),
            )
        )


def resolve_components(base_path: Path, path_filter: str = "", group_filter: str = "") -> List[Component]:
    """Components of the checkout at ``base_path``, in manifest order."""
    base = Path(base_path).resolve()
    out: List[Component] = []
    if find_manifest(base) is not None:
        _collect(base, DEFAULT_MANIFEST, out, path_filter=path_filter, group_filter=group_filter, visited=set())
        return out

    return [Component(root_path=str(base), display_name=base.name, relative_path=base.name)]


def existing_components(components: List[Component]) -> List[Component]:
    """Drop components whose root is missing (never scheduled)."""
    kept: List[Component] = []
    for c in components:
        if Path(c.root_path).is_dir():
            kept.append(c)
        else:
            logger.warning("component root missing, skipped: %s", c.root_path)
    return kept
