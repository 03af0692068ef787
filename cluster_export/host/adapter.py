"""Host collaborator interfaces and test doubles.

The export engine never touches the host case, its deduplication service,
its binary exporter or the filesystem directly. It talks to them through
the abstract interfaces below so they can be swapped for local
implementations or for the recording/failing doubles used in tests.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from cluster_export.models import Cluster, Item


class ItemExportError(Exception):
    """Exception raised when the binary exporter cannot export one item."""

    def __init__(self, message: str, guid: Optional[str] = None):
        self.message = message
        self.guid = guid
        super().__init__(message)


class ExportFilesystemError(Exception):
    """Exception raised when an output directory cannot be created."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.message = message
        self.path = path
        super().__init__(f"{message}: {path}" if path is not None else message)


class CaseSource(ABC):
    """Read-only view of the clusters and items of a case."""

    @abstractmethod
    def cluster_run_names(self) -> List[str]:
        """Names of the cluster runs in the case."""

    @abstractmethod
    def clusters(self, run_name: str) -> List[Cluster]:
        """
        Clusters of a cluster run, sorted by ID.

        Raises:
            ValueError: If the case has no cluster run with that name
        """

    @abstractmethod
    def cluster_items(self, run_name: str, cluster: Cluster) -> List[Item]:
        """Items of one cluster, in cluster order."""


class Deduplicator(ABC):
    """Reduces items to one representative per distinct content."""

    @abstractmethod
    def deduplicate(self, items: Sequence[Item]) -> List[Item]:
        """Return the subset of items representing distinct content."""


class BinaryExporter(ABC):
    """Writes the binary content of an item to a path."""

    @abstractmethod
    def export_item(self, item: Item, path: Path) -> None:
        """
        Export an item's binary to path.

        Raises:
            ItemExportError: If the item cannot be exported
        """


class FileSystem(ABC):
    """Directory creation on the export target."""

    @abstractmethod
    def mkdir_all(self, path: Path) -> None:
        """
        Create path and its parents; existing directories are fine.

        Raises:
            ExportFilesystemError: If the directory cannot be created
        """


class RecordingBinaryExporter(BinaryExporter):
    """
    Binary exporter for testing.

    Records every export call instead of writing bytes. Items whose GUID
    appears in ``failures`` raise ItemExportError with the mapped message.

    Example:
        exporter = RecordingBinaryExporter(failures={"guid-2": "Disk full"})
        exporter.export_item(item, Path("out/doc.pdf"))
        exporter.exported  # [("guid-1", Path("out/doc.pdf"))]
    """

    def __init__(self, failures: Optional[Dict[str, str]] = None, write_files: bool = False):
        """
        Initialize the recording exporter.

        Args:
            failures: Mapping from item GUID to failure message
            write_files: Also create an empty file at each exported path
        """
        self.failures = failures or {}
        self.write_files = write_files
        self.call_count = 0
        self.call_history: List[Dict[str, Any]] = []
        self.exported: List[tuple[str, Path]] = []

    def export_item(self, item: Item, path: Path) -> None:
        """Record the call and fail for configured GUIDs."""
        self.call_count += 1
        self.call_history.append({"guid": item.guid, "path": Path(path)})

        if item.guid in self.failures:
            raise ItemExportError(self.failures[item.guid], guid=item.guid)

        if self.write_files:
            Path(path).touch()
        self.exported.append((item.guid, Path(path)))

    def exported_paths(self) -> List[Path]:
        """Paths of successful exports, in call order."""
        return [path for _, path in self.exported]

    def reset(self) -> None:
        """Reset call counters and history."""
        self.call_count = 0
        self.call_history.clear()
        self.exported.clear()


class FailingBinaryExporter(BinaryExporter):
    """
    Binary exporter that always fails.

    Useful for testing partial-failure accounting.
    """

    def __init__(
        self,
        error_message: str = "Simulated export failure",
        error_type: type[Exception] = ItemExportError,
    ):
        """
        Initialize the failing exporter.

        Args:
            error_message: Message to include in the exception
            error_type: Type of exception to raise
        """
        self.error_message = error_message
        self.error_type = error_type
        self.call_count = 0

    def export_item(self, item: Item, path: Path) -> None:
        """Always raise an exception."""
        self.call_count += 1
        if self.error_type is ItemExportError:
            raise ItemExportError(self.error_message, guid=item.guid)
        raise self.error_type(self.error_message)
