"""Output naming rules for cluster exports.

This module provides:
- Display names for clusters and pseudo-clusters
- File name sanitization and the extension resolution chain
- Candidate file names for items
- Collision resolution by digest insertion
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from cluster_export.models import Item

UNCLUSTERABLE_ID = -1
IGNORABLE_ID = -2

PSEUDO_CLUSTER_NAMES = {
    UNCLUSTERABLE_ID: "unclusterable",
    IGNORABLE_ID: "ignorable",
}

DEFAULT_FALLBACK_EXTENSION = "BIN"

# Characters illegal in file names on common filesystems, plus control characters
_ILLEGAL_CHARACTERS = re.compile(r'[<>:"|?*\[\]()\\/\t\x00-\x1f\x7f]')


@dataclass(frozen=True)
class ExportTarget:
    """An item paired with its finalized output path."""

    item: Item
    path: Path


def is_pseudo_cluster(cluster_id: int) -> bool:
    """Return True for the unclusterable and ignorable pseudo-clusters."""
    return cluster_id in PSEUDO_CLUSTER_NAMES


def cluster_display_name(cluster_id: int) -> str:
    """Name used for a cluster in paths and reports."""
    return PSEUDO_CLUSTER_NAMES.get(cluster_id, str(cluster_id))


def cluster_key(run_name: str, cluster_id: int) -> str:
    """Composite ``<run>-<clusterName>`` identifier of a cluster."""
    return f"{run_name}-{cluster_display_name(cluster_id)}"


def run_target_directory(export_dir: Union[str, Path], run_name: str) -> Path:
    """Root directory of one run's export."""
    return Path(export_dir) / run_name.strip()


def sanitize(value: str) -> str:
    """Replace characters that are illegal in file names with underscores."""
    return _ILLEGAL_CHARACTERS.sub("_", value)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def resolve_extension(item: Item, fallback: str = DEFAULT_FALLBACK_EXTENSION) -> str:
    """
    Resolve the extension for an item.

    Tries the original extension, then the corrected extension, then the
    item type's preferred extension, skipping blank values.

    Args:
        item: Item to resolve
        fallback: Extension used when no stage yields one

    Returns:
        Extension without the leading dot
    """
    for ext in (item.original_extension, item.corrected_extension, item.type_preferred_extension):
        if not _is_blank(ext):
            return ext
    return fallback


def candidate_file_name(item: Item, fallback: str = DEFAULT_FALLBACK_EXTENSION) -> str:
    """
    Build the file name an item is exported under before collision checks.

    File data items already carry an extension in their name, so only
    other items get the resolved extension appended.
    """
    name = sanitize(item.name)
    # "", "." and ".." would resolve to the cluster directory or its parent
    if not name.strip("."):
        name = item.guid
    if item.is_file_data:
        return name
    return f"{name}.{resolve_extension(item, fallback)}"


def insert_before_extension(path: Path, text: str) -> Path:
    """Insert text into a file name, just before its extension."""
    name = path.name
    dot = name.rfind(".")
    if dot == -1:
        return path.with_name(name + text)
    return path.with_name(name[:dot] + text + name[dot:])


def insert_digest(path: Path, digest: str) -> Path:
    """Insert ``" (digest)"`` into a file name, just before its extension."""
    return insert_before_extension(path, f" ({digest})")


def resolve_collisions(
    items: Sequence[Item],
    directory: Path,
    fallback: str = DEFAULT_FALLBACK_EXTENSION,
) -> List[ExportTarget]:
    """
    Compute collision-free export targets for one cluster's items.

    Every item whose candidate file name is shared with another item gets
    its MD5 digest inserted before the extension. Items that still collide
    afterwards (same name and same digest) also get their GUID inserted.

    Args:
        items: Deduplicated items of one cluster, in export order
        directory: Cluster output directory
        fallback: Fallback extension

    Returns:
        One ExportTarget per item, in the order of items
    """
    names = [candidate_file_name(item, fallback) for item in items]
    counts = Counter(names)

    targets: List[ExportTarget] = []
    taken: set[Path] = set()
    for item, name in zip(items, names):
        path = directory / name
        if counts[name] > 1:
            path = insert_digest(path, item.md5 or item.guid)
        if path in taken:
            path = insert_before_extension(path, f" ({item.guid})")
        taken.add(path)
        targets.append(ExportTarget(item=item, path=path))

    return targets


def count_renamed(targets: Sequence[ExportTarget], fallback: str = DEFAULT_FALLBACK_EXTENSION) -> int:
    """Number of targets whose path differs from the item's candidate name."""
    return sum(1 for t in targets if t.path.name != candidate_file_name(t.item, fallback))
