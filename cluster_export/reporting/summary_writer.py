"""XML serialization of aggregate summary reports."""

from __future__ import annotations

import copy
import platform
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Optional

import structlog
from lxml import etree

if TYPE_CHECKING:
    from cluster_export.reporting.aggregator import AggregateSummary

logger = structlog.get_logger()

DEFAULT_HOST_VERSION = "unknown"


def _stats_element(name: str, stats: Mapping[str, int]) -> Any:
    element = etree.Element(name)
    for key, value in stats.items():
        etree.SubElement(element, key).text = str(value)
    return element


def _configuration_element(summary: AggregateSummary) -> Any:
    configuration = copy.deepcopy(summary.configuration)
    directory = configuration.find("ExportDirectory")
    if directory is None:
        directory = etree.SubElement(configuration, "ExportDirectory")
    directory.text = str(summary.export_dir)
    return configuration


def _details_element(summary: AggregateSummary) -> Any:
    element = etree.Element(f"{summary.unit_type}Details")
    for details in summary.details:
        etree.SubElement(
            element, summary.unit_type, {key: str(value) for key, value in details.items()}
        )
    return element


def _throughput_element(summary: AggregateSummary) -> Any:
    element = etree.Element("ThroughputStatistics")
    etree.SubElement(element, "NativeDocRate").text = str(summary.throughput())
    return element


def _mime_types_element(summary: AggregateSummary) -> Any:
    element = etree.Element("MimeTypeStatistics")
    mime_types = etree.SubElement(element, "MimeTypes")
    for name, count in summary.mime_types.items():
        etree.SubElement(mime_types, "MimeType", {"name": name, "count": str(count)})
    return element


def build_summary_element(
    summary: AggregateSummary,
    end_time: datetime,
    host_version: str = DEFAULT_HOST_VERSION,
) -> Any:
    """
    Build the Nuix root element of an aggregate summary report.

    Args:
        summary: Aggregated statistics
        end_time: End of the run
        host_version: Version used when no unit report carried one

    Returns:
        lxml root element
    """
    if summary.configuration is None:
        raise ValueError("Summary has no ExportConfiguration to write")

    root = etree.Element(
        "Nuix",
        {
            "version": summary.version or host_version,
            "architecture": summary.architecture or platform.machine(),
        },
    )
    export = etree.SubElement(
        root,
        "Export",
        {
            "startTime": summary.start_time.isoformat(),
            "endTime": end_time.isoformat(),
            "exportDuration": str(summary.total_duration),
            "processingDuration": str(summary.processing_duration(end_time)),
        },
    )
    export.append(_configuration_element(summary))
    export.append(_stats_element("ExportStatistics", summary.export_statistics))
    export.append(_details_element(summary))
    export.append(_stats_element("FileStatistics", summary.file_statistics))
    export.append(_throughput_element(summary))
    export.append(_mime_types_element(summary))
    return root


def write_summary_report(
    summary: AggregateSummary,
    file_path: Path,
    end_time: Optional[datetime] = None,
    host_version: str = DEFAULT_HOST_VERSION,
) -> Path:
    """
    Write a pretty-printed aggregate summary report.

    Args:
        summary: Aggregated statistics
        file_path: Path of the summary-report.xml to create or overwrite
        end_time: End of the run (now if None)
        host_version: Version used when no unit report carried one

    Returns:
        The written path
    """
    end_time = end_time or datetime.now(summary.start_time.tzinfo)
    root = build_summary_element(summary, end_time, host_version)

    path = Path(file_path)
    logger.info("writing_summary_report", path=str(path), units=summary.unit_count)
    etree.ElementTree(root).write(
        str(path),
        pretty_print=True,
        xml_declaration=True,
        encoding="UTF-8",
    )
    return path
