"""Local implementations of the host collaborators."""

import shutil
from pathlib import Path
from typing import Dict, List, Sequence

import structlog

from cluster_export.host.adapter import (
    BinaryExporter,
    CaseSource,
    Deduplicator,
    ExportFilesystemError,
    FileSystem,
    ItemExportError,
)
from cluster_export.models import CaseSnapshot, Cluster, ClusterRun, Item


logger = structlog.get_logger()


class InMemoryCase(CaseSource):
    """Case source backed by a CaseSnapshot."""

    def __init__(self, snapshot: CaseSnapshot) -> None:
        self.snapshot = snapshot
        self._items: Dict[str, Item] = {item.guid: item for item in snapshot.items}

    def _run(self, run_name: str) -> ClusterRun:
        for run in self.snapshot.cluster_runs:
            if run.name == run_name:
                return run
        raise ValueError(f"Unknown cluster run: {run_name}")

    def cluster_run_names(self) -> List[str]:
        return [run.name for run in self.snapshot.cluster_runs]

    def clusters(self, run_name: str) -> List[Cluster]:
        return sorted(self._run(run_name).clusters, key=lambda c: c.id)

    def cluster_items(self, run_name: str, cluster: Cluster) -> List[Item]:
        items = []
        for guid in cluster.item_guids:
            item = self._items.get(guid)
            if item is None:
                logger.warning(
                    "cluster_item_missing",
                    cluster_run=run_name,
                    cluster_id=cluster.id,
                    guid=guid,
                )
                continue
            items.append(item)
        return items


def load_case_json(case_path: str) -> InMemoryCase:
    """
    Load a case snapshot from JSON.

    Args:
        case_path: Path to the JSON file

    Returns:
        InMemoryCase serving the snapshot
    """
    snapshot = CaseSnapshot.model_validate_json(Path(case_path).read_text(encoding="utf-8"))
    logger.debug(
        "case_snapshot_loaded",
        case_path=str(case_path),
        items=len(snapshot.items),
        cluster_runs=len(snapshot.cluster_runs),
    )
    return InMemoryCase(snapshot)


class DigestDeduplicator(Deduplicator):
    """
    Keeps the first item for each MD5 digest.

    Items without a digest cannot be compared and are always kept.
    """

    def deduplicate(self, items: Sequence[Item]) -> List[Item]:
        seen: set[str] = set()
        unique: List[Item] = []
        for item in items:
            if item.md5:
                digest = item.md5.lower()
                if digest in seen:
                    continue
                seen.add(digest)
            unique.append(item)
        return unique


class LocalBinaryExporter(BinaryExporter):
    """Writes inline item content, or copies the item's source file."""

    def export_item(self, item: Item, path: Path) -> None:
        try:
            if item.binary is not None:
                Path(path).write_bytes(item.binary)
            elif item.source_path:
                shutil.copyfile(item.source_path, path)
            else:
                raise ItemExportError("Item has no binary content", guid=item.guid)
        except OSError as e:
            raise ItemExportError(str(e), guid=item.guid) from e


class LocalFileSystem(FileSystem):
    """Creates directories on the local filesystem."""

    def mkdir_all(self, path: Path) -> None:
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExportFilesystemError(f"Cannot create directory ({e.strerror or e})", path) from e
