"""Summary report parsing and aggregation."""

from cluster_export.reporting.aggregator import (
    AggregateSummary,
    ReportAggregationError,
    SummaryAggregator,
    aggregate_reports,
    merge_counters,
)
from cluster_export.reporting.report_file import (
    EXPORT_STATISTICS_FIELDS,
    ReportParseError,
    ReportUnit,
    find_summary_reports,
    parse_summary_report,
)
from cluster_export.reporting.summary_writer import build_summary_element, write_summary_report

__all__ = [
    "AggregateSummary",
    "ReportAggregationError",
    "SummaryAggregator",
    "aggregate_reports",
    "merge_counters",
    "EXPORT_STATISTICS_FIELDS",
    "ReportParseError",
    "ReportUnit",
    "find_summary_reports",
    "parse_summary_report",
    "build_summary_element",
    "write_summary_report",
]
