"""Cluster export pipeline."""

from .context import ExportContext
from .engine import (
    ClusterExporter,
    ClusterExportResult,
    ExportFailed,
    ExportRunResult,
    ExportSucceeded,
    format_run_text,
)
from .manifest import ERROR_PATH, ERRORS_HEADER, MANIFEST_HEADER, ManifestRow, ManifestWriter
from .naming import (
    ExportTarget,
    candidate_file_name,
    cluster_display_name,
    resolve_collisions,
    resolve_extension,
    run_target_directory,
    sanitize,
)
from .selection import ClusterRow, list_cluster_rows, select_clusters

__all__ = [
    "ExportContext",
    "ClusterExporter",
    "ClusterExportResult",
    "ExportFailed",
    "ExportRunResult",
    "ExportSucceeded",
    "format_run_text",
    "ERROR_PATH",
    "ERRORS_HEADER",
    "MANIFEST_HEADER",
    "ManifestRow",
    "ManifestWriter",
    "ExportTarget",
    "candidate_file_name",
    "cluster_display_name",
    "resolve_collisions",
    "resolve_extension",
    "run_target_directory",
    "sanitize",
    "ClusterRow",
    "list_cluster_rows",
    "select_clusters",
]
