"""Parsing of per-unit summary-report.xml files.

A unit is one sub-export (for example one custodian). Its summary report
holds the export duration, the export configuration, and three sets of
statistics: export counters, file counters and mime type counts.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import structlog
from lxml import etree

logger = structlog.get_logger()

SUMMARY_REPORT_FILENAME = "summary-report.xml"

EXPORT_STATISTICS_FIELDS = (
    "SelectedItems",
    "ExcludedCount",
    "TotalItemsToExport",
    "FailedItems",
)


class ReportParseError(Exception):
    """Exception raised when a summary report is missing or malformed."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.message = message
        self.path = path
        super().__init__(f"{path}: {message}" if path is not None else message)


def lower_first(name: str) -> str:
    """``SelectedItems`` -> ``selectedItems``."""
    return name[:1].lower() + name[1:]


@dataclass
class ReportUnit:
    """Statistics parsed from one unit's summary report."""

    name: str
    duration: int
    configuration: Any
    export_statistics: Dict[str, int] = field(default_factory=dict)
    file_statistics: Dict[str, int] = field(default_factory=dict)
    mime_types: Dict[str, int] = field(default_factory=dict)
    version: Optional[str] = None
    architecture: Optional[str] = None

    @property
    def details(self) -> Dict[str, Union[str, int]]:
        """Attributes of this unit's entry in the details element."""
        details: Dict[str, Union[str, int]] = {
            "name": self.name,
            "exportDuration": self.duration,
        }
        for name, value in self.export_statistics.items():
            details[lower_first(name)] = value
        return details


def _to_int(text: Optional[str], what: str, path: Path) -> int:
    # Empty counters count as zero; anything else must be an integer
    if text is None or not text.strip():
        return 0
    try:
        return int(text.strip())
    except ValueError:
        raise ReportParseError(f"{what} is not an integer: {text.strip()!r}", path) from None


def read_counters(
    element: Any,
    path: Path,
    fields: Optional[Sequence[str]] = None,
) -> Dict[str, int]:
    """
    Read integer counters from the child elements of a statistics element.

    Args:
        element: Statistics element (e.g. ExportStatistics)
        path: Report path, for error messages
        fields: Required counter names; every child element is read if None

    Returns:
        Mapping from counter name to value, in document or field order

    Raises:
        ReportParseError: If a required counter is missing or a value is not an integer
    """
    if fields is not None:
        counters = {}
        for name in fields:
            child = element.find(name)
            if child is None:
                raise ReportParseError(f"Missing {element.tag}/{name}", path)
            counters[name] = _to_int(child.text, f"{element.tag}/{name}", path)
        return counters

    return {
        child.tag: _to_int(child.text, f"{element.tag}/{child.tag}", path)
        for child in element
        if isinstance(child.tag, str)
    }


def read_mime_types(element: Any, path: Path) -> Dict[str, int]:
    """Read ``name`` -> ``count`` pairs from a MimeTypes element."""
    mime_types: Dict[str, int] = {}
    for child in element:
        if not isinstance(child.tag, str):
            continue
        name = child.get("name")
        if name is None:
            raise ReportParseError("MimeType without a name", path)
        mime_types[name] = mime_types.get(name, 0) + _to_int(
            child.get("count"), f"MimeType[{name}]/@count", path
        )
    return mime_types


def parse_summary_report(file_path: Union[str, Path]) -> ReportUnit:
    """
    Parse one unit's summary report.

    The unit is named after the directory holding the report.

    Args:
        file_path: Path to a summary-report.xml

    Returns:
        ReportUnit with duration, configuration and statistics

    Raises:
        ReportParseError: If the report is missing or malformed
    """
    path = Path(file_path)
    parser = etree.XMLParser(remove_blank_text=True)
    try:
        doc = etree.parse(str(path), parser)
    except (OSError, etree.XMLSyntaxError) as e:
        raise ReportParseError(f"Cannot read summary report ({e})", path) from e

    root = doc.getroot()
    export = root.find("Export") if root.tag == "Nuix" else None
    if export is None:
        raise ReportParseError("Missing Nuix/Export element", path)

    if export.get("exportDuration") is None:
        raise ReportParseError("Missing Export/@exportDuration", path)
    duration = _to_int(export.get("exportDuration"), "Export/@exportDuration", path)

    configuration = export.find("ExportConfiguration")
    if configuration is None:
        raise ReportParseError("Missing ExportConfiguration", path)

    export_stats = export.find("ExportStatistics")
    if export_stats is None:
        raise ReportParseError("Missing ExportStatistics", path)

    file_stats = export.find("FileStatistics")
    mimes = export.find("MimeTypeStatistics/MimeTypes")

    unit = ReportUnit(
        name=path.parent.name,
        duration=duration,
        configuration=copy.deepcopy(configuration),
        export_statistics=read_counters(export_stats, path, EXPORT_STATISTICS_FIELDS),
        file_statistics={} if file_stats is None else read_counters(file_stats, path),
        mime_types={} if mimes is None else read_mime_types(mimes, path),
        version=root.get("version"),
        architecture=root.get("architecture"),
    )
    logger.debug(
        "summary_report_parsed",
        path=str(path),
        unit=unit.name,
        duration=unit.duration,
        mime_types=len(unit.mime_types),
    )
    return unit


def find_summary_reports(
    reports_path: Union[str, Path],
    filename: str = SUMMARY_REPORT_FILENAME,
) -> List[Path]:
    """
    Find the summary reports of the units under a directory.

    Only immediate child directories are searched. Units are sorted by
    directory name so aggregation output does not depend on the order the
    filesystem lists them in.
    """
    root = Path(reports_path)
    reports = [
        child / filename
        for child in root.iterdir()
        if child.is_dir() and (child / filename).is_file()
    ]
    return sorted(reports, key=lambda p: p.parent.name)
