"""CSV audit trail for cluster exports."""

from __future__ import annotations

import csv
from dataclasses import astuple, dataclass
from pathlib import Path
from typing import IO, Any, List, Optional

import structlog

from cluster_export.export.naming import cluster_key
from cluster_export.host.adapter import ExportFilesystemError
from cluster_export.models import Item

logger = structlog.get_logger()

MANIFEST_HEADER = [
    "Item GUID",
    "Item Name",
    "Cluster ID",
    "Cluster Thread",
    "Cluster Endpoint Status",
    "MD5 Digest",
    "Original Path",
    "Tags",
    "Export Path",
]

ERRORS_HEADER = ["Item GUID", "Error Message"]

# Export Path value for items that failed to export
ERROR_PATH = "ERROR"

TAG_SEPARATOR = "; "


@dataclass(frozen=True)
class ManifestRow:
    """One manifest line; field order matches MANIFEST_HEADER."""

    guid: str
    name: str
    cluster_id: str
    cluster_thread: str
    cluster_endpoint_status: str
    md5: str
    original_path: str
    tags: str
    export_path: str

    @classmethod
    def for_item(
        cls,
        item: Item,
        run_name: str,
        cluster_id: int,
        export_path: Optional[Path],
    ) -> ManifestRow:
        """
        Build the row for one export attempt.

        Args:
            item: Item that was exported
            run_name: Cluster run name
            cluster_id: Cluster ID (pseudo-clusters are rendered by name)
            export_path: Finalized path, or None when the export failed
        """
        key = cluster_key(run_name, cluster_id)
        membership = item.cluster_memberships.get(key)
        thread = ""
        status = ""
        if membership is not None:
            thread = "" if membership.thread_index is None else str(membership.thread_index)
            status = membership.endpoint_status

        return cls(
            guid=item.guid,
            name=item.name,
            cluster_id=key,
            cluster_thread=thread,
            cluster_endpoint_status=status,
            md5=item.md5 or "",
            original_path=item.path,
            tags=TAG_SEPARATOR.join(item.tags),
            export_path=ERROR_PATH if export_path is None else str(export_path),
        )

    def as_list(self) -> List[str]:
        return list(astuple(self))


class ManifestWriter:
    """
    Writes the manifest CSV and, once an item fails, the errors CSV.

    Rows are flushed as they are written so an interrupted run still
    leaves a truthful record of every attempt made.

    Example:
        with ManifestWriter(target, "manifest.csv", "errors.csv") as manifest:
            manifest.write_row(row)
            manifest.write_failure(item.guid, "Disk full")
    """

    def __init__(self, directory: Path, manifest_filename: str, errors_filename: str) -> None:
        self.manifest_path = Path(directory) / manifest_filename
        self.errors_path = Path(directory) / errors_filename
        self.rows_written = 0
        self.failures_written = 0
        self._manifest_file: Optional[IO[str]] = None
        self._manifest: Any = None
        self._errors_file: Optional[IO[str]] = None
        self._errors: Any = None

    @staticmethod
    def _create(path: Path) -> IO[str]:
        try:
            return path.open("w", newline="", encoding="utf-8")
        except OSError as e:
            raise ExportFilesystemError(f"Cannot create report ({e.strerror or e})", path) from e

    def open(self) -> ManifestWriter:
        """
        Create the manifest and write its header.

        Raises:
            ExportFilesystemError: If the manifest cannot be created
        """
        self._manifest_file = self._create(self.manifest_path)
        self._manifest = csv.writer(self._manifest_file)
        self._manifest.writerow(MANIFEST_HEADER)
        self._manifest_file.flush()
        logger.debug("manifest_opened", path=str(self.manifest_path))
        return self

    def _open_errors(self) -> None:
        self._errors_file = self._create(self.errors_path)
        self._errors = csv.writer(self._errors_file)
        self._errors.writerow(ERRORS_HEADER)
        logger.debug("errors_report_opened", path=str(self.errors_path))

    def write_row(self, row: ManifestRow) -> None:
        """Append one manifest row."""
        if self._manifest is None:
            raise RuntimeError("Manifest is not open")
        self._manifest.writerow(row.as_list())
        self._manifest_file.flush()
        self.rows_written += 1

    def write_failure(self, guid: str, message: str) -> None:
        """Append one row to the errors CSV, creating it on first use."""
        if self._errors is None:
            self._open_errors()
        self._errors.writerow([guid, message])
        self._errors_file.flush()
        self.failures_written += 1

    @property
    def has_errors_report(self) -> bool:
        return self.failures_written > 0

    def close(self) -> None:
        """Close both files; safe to call more than once."""
        for handle in (self._manifest_file, self._errors_file):
            if handle is not None and not handle.closed:
                handle.close()
        self._manifest = None
        self._errors = None

    def __enter__(self) -> ManifestWriter:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
