"""Aggregation of per-unit summary reports into one summary."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import structlog

from cluster_export.config import Settings, settings
from cluster_export.reporting.report_file import (
    ReportParseError,
    ReportUnit,
    find_summary_reports,
    parse_summary_report,
)
from cluster_export.reporting.summary_writer import write_summary_report

logger = structlog.get_logger()

NATIVE_FILES_FIELD = "NativeFilesExported"


class ReportAggregationError(Exception):
    """Exception raised when there is nothing to aggregate."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def merge_counters(target: Dict[str, int], counts: Mapping[str, int]) -> None:
    """Add counts into target key by key; missing keys start at zero."""
    for key, value in counts.items():
        target[key] = target.get(key, 0) + value


@dataclass
class AggregateSummary:
    """Statistics accumulated across all units of an export."""

    start_time: datetime
    export_dir: Path
    unit_type: str
    total_duration: int = 0
    export_statistics: Dict[str, int] = field(default_factory=dict)
    file_statistics: Dict[str, int] = field(default_factory=dict)
    mime_types: Dict[str, int] = field(default_factory=dict)
    details: List[Dict[str, Any]] = field(default_factory=list)
    configuration: Any = None
    version: Optional[str] = None
    architecture: Optional[str] = None
    skipped_reports: List[Path] = field(default_factory=list)

    @property
    def unit_count(self) -> int:
        return len(self.details)

    def throughput(self) -> float:
        """
        Native files exported per second of summed export duration.

        A zero summed duration yields 0.0 rather than a division error.
        """
        native_files = self.file_statistics.get(NATIVE_FILES_FIELD, 0)
        if self.total_duration == 0:
            logger.warning(
                "throughput_zero_duration",
                native_files=native_files,
                units=self.unit_count,
            )
            return 0.0
        return native_files / float(self.total_duration)

    def processing_duration(self, end_time: datetime) -> float:
        """Wall-clock seconds from the run start to end_time."""
        return (end_time - self.start_time).total_seconds()


class SummaryAggregator:
    """
    Folds unit summary reports into an AggregateSummary.

    Example:
        aggregator = SummaryAggregator(start_time, "/exports/matter")
        aggregator.summarize("/exports/matter")
        aggregator.write()
    """

    def __init__(
        self,
        start_time: datetime,
        export_dir: Union[str, Path],
        unit_type: Optional[str] = None,
        config: Optional[Settings] = None,
    ) -> None:
        """
        Initialize the aggregator.

        Args:
            start_time: Start of the overall run
            export_dir: Directory of the overall run; written into the configuration
            unit_type: Unit element name, e.g. "Custodian" (from config if None)
            config: Configuration object (uses global settings if None)
        """
        self.config = config or settings
        self.summary = AggregateSummary(
            start_time=start_time,
            export_dir=Path(export_dir),
            unit_type=unit_type or self.config.unit_type,
        )

    def add(self, unit: ReportUnit) -> None:
        """Fold one unit into the summary."""
        summary = self.summary
        summary.total_duration += unit.duration
        if summary.configuration is None:
            summary.configuration = unit.configuration
            summary.version = unit.version
            summary.architecture = unit.architecture
        summary.details.append(unit.details)
        merge_counters(summary.export_statistics, unit.export_statistics)
        merge_counters(summary.file_statistics, unit.file_statistics)
        merge_counters(summary.mime_types, unit.mime_types)

    def add_file(self, file_path: Union[str, Path]) -> bool:
        """
        Parse and fold one unit report.

        Returns:
            True if the unit was folded, False if it was skipped

        Raises:
            ReportParseError: If the report is malformed and the policy is "abort"
        """
        logger.info("reading_summary_report", path=str(file_path))
        try:
            unit = parse_summary_report(file_path)
        except ReportParseError as e:
            if self.config.report_parse_policy == "abort":
                raise
            logger.warning("summary_report_skipped", path=str(file_path), error=e.message)
            self.summary.skipped_reports.append(Path(file_path))
            return False
        self.add(unit)
        return True

    def summarize(self, reports_path: Union[str, Path]) -> AggregateSummary:
        """
        Fold every unit report found under reports_path.

        Raises:
            ReportAggregationError: If no unit report could be folded
        """
        logger.info("summarizing_reports", reports_path=str(reports_path))
        try:
            reports = find_summary_reports(reports_path, self.config.summary_report_filename)
        except OSError as e:
            raise ReportAggregationError(f"Cannot list reports in {reports_path}: {e}") from e

        for report in reports:
            self.add_file(report)

        if self.summary.unit_count == 0:
            raise ReportAggregationError(f"No summary reports could be read in {reports_path}")

        logger.info(
            "reports_summarized",
            units=self.summary.unit_count,
            skipped=len(self.summary.skipped_reports),
            export_duration=self.summary.total_duration,
        )
        return self.summary

    def write(
        self,
        output_path: Optional[Union[str, Path]] = None,
        end_time: Optional[datetime] = None,
    ) -> Path:
        """
        Write the aggregate summary report.

        Args:
            output_path: Target file (summary-report.xml in export_dir if None)
            end_time: End of the run (now if None)

        Returns:
            Path of the written report
        """
        path = Path(output_path) if output_path else (
            self.summary.export_dir / self.config.summary_report_filename
        )
        return write_summary_report(
            self.summary, path, end_time=end_time, host_version=self.config.host_version
        )


def aggregate_reports(
    reports_path: Union[str, Path],
    export_dir: Optional[Union[str, Path]] = None,
    start_time: Optional[datetime] = None,
    unit_type: Optional[str] = None,
    config: Optional[Settings] = None,
) -> Path:
    """
    Aggregate the unit reports under reports_path into one summary report.

    Args:
        reports_path: Directory holding one sub-directory per unit
        export_dir: Directory of the overall run (reports_path if None)
        start_time: Start of the overall run (now if None)
        unit_type: Unit element name (from config if None)
        config: Configuration object (uses global settings if None)

    Returns:
        Path of the written summary report
    """
    aggregator = SummaryAggregator(
        start_time=start_time or datetime.now(),
        export_dir=export_dir or reports_path,
        unit_type=unit_type,
        config=config,
    )
    aggregator.summarize(reports_path)
    return aggregator.write()
