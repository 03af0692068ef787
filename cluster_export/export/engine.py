"""Cluster export engine.

Exports the deduplicated items of each selected cluster into one
directory per cluster, writing a manifest row for every attempt and an
errors report for the items that could not be exported.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import structlog

from cluster_export.config import Settings, settings
from cluster_export.export.context import ExportContext
from cluster_export.export.manifest import ManifestRow, ManifestWriter
from cluster_export.export.naming import (
    ExportTarget,
    cluster_display_name,
    count_renamed,
    resolve_collisions,
    run_target_directory,
)
from cluster_export.host.adapter import BinaryExporter, CaseSource, Deduplicator, FileSystem
from cluster_export.host.local import LocalFileSystem
from cluster_export.models import Cluster, ClusterState, Item, RunStatus

logger = structlog.get_logger()


@dataclass(frozen=True)
class ExportSucceeded:
    """The item was written to path."""

    path: Path


@dataclass(frozen=True)
class ExportFailed:
    """The binary exporter rejected the item."""

    message: str


ExportOutcome = Union[ExportSucceeded, ExportFailed]


@dataclass
class ClusterExportResult:
    """Accounting for one cluster of a run."""

    cluster_id: int
    name: str
    directory: Path
    item_count: int = 0
    deduplicated_count: int = 0
    renamed_count: int = 0
    exported_count: int = 0
    failed_count: int = 0
    state: ClusterState = ClusterState.PREPARING


@dataclass
class ExportRunResult:
    """Outcome of an export run."""

    # As named in the case; only the target directory uses the trimmed name
    run_name: str
    target_directory: Path
    manifest_path: Path
    status: RunStatus = RunStatus.COMPLETED
    errors_path: Optional[Path] = None
    clusters: List[ClusterExportResult] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def aborted(self) -> bool:
        return self.status == RunStatus.ABORTED

    @property
    def items_attempted(self) -> int:
        return sum(c.exported_count + c.failed_count for c in self.clusters)

    @property
    def items_exported(self) -> int:
        return sum(c.exported_count for c in self.clusters)

    @property
    def items_failed(self) -> int:
        return sum(c.failed_count for c in self.clusters)


class ClusterExporter:
    """
    Exports items by cluster.

    Per cluster the engine creates the output directory, loads and
    deduplicates the items, computes collision-free names for all of them
    and only then exports them one by one. Cancellation is checked after
    every item and after every cluster.
    """

    def __init__(
        self,
        source: CaseSource,
        deduplicator: Deduplicator,
        exporter: BinaryExporter,
        filesystem: Optional[FileSystem] = None,
        config: Optional[Settings] = None,
    ) -> None:
        """
        Initialize the exporter.

        Args:
            source: Case the clusters and items are read from
            deduplicator: Deduplication service
            exporter: Binary export primitive
            filesystem: Directory creation (local filesystem if None)
            config: Configuration object (uses global settings if None)
        """
        self.source = source
        self.deduplicator = deduplicator
        self.exporter = exporter
        self.filesystem = filesystem or LocalFileSystem()
        self.config = config or settings

    def run(
        self,
        export_dir: Union[str, Path],
        cluster_run: str,
        clusters: Sequence[Cluster],
        context: Optional[ExportContext] = None,
    ) -> ExportRunResult:
        """
        Export the selected clusters of a cluster run.

        Args:
            export_dir: Directory the run directory is created in
            cluster_run: Name of the cluster run
            clusters: Selected clusters, in export order
            context: Cancellation, logging and progress (a fresh one if None)

        Returns:
            ExportRunResult with per-cluster accounting and failures

        Raises:
            ValueError: If no export directory or no clusters are given
            ExportFilesystemError: If an output directory cannot be created
        """
        if not str(export_dir).strip():
            raise ValueError("Please select export directory")
        if not clusters:
            raise ValueError("Please select clusters")

        context = context or ExportContext()
        target = run_target_directory(export_dir, cluster_run)
        context.bind(cluster_run=cluster_run, target_directory=str(target))

        context.status(f"Exporting {len(clusters)} clusters from {cluster_run.strip()}")
        context.logger.info("target_directory", path=str(target))
        self.filesystem.mkdir_all(target)

        result = ExportRunResult(
            run_name=cluster_run,
            target_directory=target,
            manifest_path=target / self.config.manifest_filename,
        )

        with ManifestWriter(
            target, self.config.manifest_filename, self.config.errors_filename
        ) as manifest:
            for index, cluster in enumerate(clusters):
                context.on_main_progress(index, len(clusters))
                cluster_result = self.run_cluster(result, cluster, manifest, context)
                result.clusters.append(cluster_result)
                if context.cancel_requested:
                    result.status = RunStatus.ABORTED
                    break
            else:
                context.on_main_progress(len(clusters), len(clusters))

            if manifest.has_errors_report:
                result.errors_path = manifest.errors_path

        if result.aborted:
            context.status("Aborted")
        context.logger.info(
            "export_run_finished",
            status=result.status.value,
            clusters=len(result.clusters),
            items_attempted=result.items_attempted,
            items_failed=result.items_failed,
        )
        return result

    def run_cluster(
        self,
        result: ExportRunResult,
        cluster: Cluster,
        manifest: ManifestWriter,
        context: ExportContext,
    ) -> ClusterExportResult:
        """Export one cluster, appending its rows to the manifest."""
        name = cluster_display_name(cluster.id)
        cluster_result = ClusterExportResult(
            cluster_id=cluster.id,
            name=name,
            directory=result.target_directory / name,
        )
        log = context.logger.bind(cluster=name)

        context.status(f"Exporting Cluster {name}")
        self.filesystem.mkdir_all(cluster_result.directory)

        items = self.source.cluster_items(result.run_name, cluster)
        cluster_result.item_count = len(items)
        log.info("cluster_items_loaded", items=len(items))

        self._advance(cluster_result, ClusterState.DEDUPLICATING, log)
        deduplicated = self.deduplicate(items)
        cluster_result.deduplicated_count = len(deduplicated)
        log.info("cluster_items_deduplicated", items=len(deduplicated))

        self._advance(cluster_result, ClusterState.NAMING, log)
        targets = resolve_collisions(
            deduplicated, cluster_result.directory, self.config.fallback_extension
        )
        cluster_result.renamed_count = count_renamed(targets, self.config.fallback_extension)
        log.info("collisions_resolved", renamed=cluster_result.renamed_count)

        self._advance(cluster_result, ClusterState.EXPORTING, log)
        for index, target in enumerate(targets):
            context.on_sub_progress(index, len(targets))
            self._export_target(result, cluster, cluster_result, target, manifest, context)
            if context.cancel_requested:
                self._advance(cluster_result, ClusterState.ABORTED, log)
                return cluster_result
        context.on_sub_progress(len(targets), len(targets))

        self._advance(cluster_result, ClusterState.DONE, log)
        return cluster_result

    def deduplicate(self, items: Sequence[Item]) -> List[Item]:
        """
        Deduplicate items, keeping source order.

        The deduplication service may return its subset in any order, so
        the kept GUIDs are re-applied to the source list.
        """
        kept = {item.guid for item in self.deduplicator.deduplicate(list(items))}
        ordered: List[Item] = []
        for item in items:
            if item.guid in kept:
                ordered.append(item)
                kept.discard(item.guid)
        return ordered

    def attempt_export(self, target: ExportTarget, log: Optional[Any] = None) -> ExportOutcome:
        """
        Export one item without letting a failure escape.

        Args:
            target: Item and finalized path
            log: Logger to report to (module logger if None)

        Returns:
            ExportSucceeded with the path, or ExportFailed with the message
        """
        log = log or logger
        log.info("exporting_item", guid=target.item.guid, path=str(target.path))
        try:
            self.exporter.export_item(target.item, target.path)
        except Exception as e:
            message = getattr(e, "message", None) or str(e) or type(e).__name__
            log.warning(
                "item_export_failed",
                guid=target.item.guid,
                path=str(target.path),
                error=message,
            )
            return ExportFailed(message)
        return ExportSucceeded(target.path)

    def _export_target(
        self,
        result: ExportRunResult,
        cluster: Cluster,
        cluster_result: ClusterExportResult,
        target: ExportTarget,
        manifest: ManifestWriter,
        context: ExportContext,
    ) -> None:
        outcome = self.attempt_export(target, context.logger)
        export_path: Optional[Path] = None
        if isinstance(outcome, ExportFailed):
            result.failures[target.item.guid] = outcome.message
            manifest.write_failure(target.item.guid, outcome.message)
            cluster_result.failed_count += 1
        else:
            export_path = outcome.path
            cluster_result.exported_count += 1
        manifest.write_row(ManifestRow.for_item(target.item, result.run_name, cluster.id, export_path))

    @staticmethod
    def _advance(cluster_result: ClusterExportResult, state: ClusterState, log) -> None:
        log.debug("cluster_state", previous=cluster_result.state.value, state=state.value)
        cluster_result.state = state


def format_run_text(result: ExportRunResult) -> str:
    """
    Format an export run result as human-readable text.

    Args:
        result: The run result to format

    Returns:
        Formatted text string
    """
    lines = [
        "=" * 60,
        "Cluster Export",
        "=" * 60,
        f"Cluster Run: {result.run_name}",
        f"Target Directory: {result.target_directory}",
        f"Status: {'Aborted' if result.aborted else 'Completed'}",
        "",
    ]

    for cluster in result.clusters:
        lines.append(
            f"  [{cluster.state.value}] {cluster.name}: "
            f"{cluster.exported_count}/{cluster.deduplicated_count} exported "
            f"({cluster.item_count} items before deduplication, {cluster.renamed_count} renamed)"
        )

    lines.extend([
        "",
        f"Items exported: {result.items_exported}",
        f"Manifest: {result.manifest_path}",
    ])

    if result.items_failed:
        lines.append(
            f"{result.items_failed} item(s) failed to export; "
            f"see errors report at {result.errors_path}"
        )

    lines.append("=" * 60)
    return "\n".join(lines)
