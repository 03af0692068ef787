"""Host integration layer for Cluster Export."""

from .adapter import (
    BinaryExporter,
    CaseSource,
    Deduplicator,
    ExportFilesystemError,
    FailingBinaryExporter,
    FileSystem,
    ItemExportError,
    RecordingBinaryExporter,
)
from .local import (
    DigestDeduplicator,
    InMemoryCase,
    LocalBinaryExporter,
    LocalFileSystem,
    load_case_json,
)

__all__ = [
    "BinaryExporter",
    "CaseSource",
    "Deduplicator",
    "ExportFilesystemError",
    "FailingBinaryExporter",
    "FileSystem",
    "ItemExportError",
    "RecordingBinaryExporter",
    "DigestDeduplicator",
    "InMemoryCase",
    "LocalBinaryExporter",
    "LocalFileSystem",
    "load_case_json",
]
