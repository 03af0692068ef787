"""Tests for summary report aggregation and writing."""

from datetime import datetime, timedelta

import pytest
from lxml import etree

from cluster_export.reporting import (
    AggregateSummary,
    ReportAggregationError,
    ReportParseError,
    SummaryAggregator,
    aggregate_reports,
    build_summary_element,
    merge_counters,
)

START = datetime(2024, 3, 1, 9, 0, 0)
END = START + timedelta(minutes=5)


@pytest.fixture
def two_units(write_unit_report, tmp_path):
    write_unit_report(
        "Bob",
        duration=30,
        selected=9,
        excluded=1,
        total=8,
        failed=3,
        mimes={"application/pdf": 5, "message/rfc822": 3},
    )
    write_unit_report("Alice", duration=10, selected=4, total=4, failed=2)
    return tmp_path / "reports"


def summarize(reports, config, **kwargs):
    aggregator = SummaryAggregator(START, kwargs.pop("export_dir", "/exports/matter"),
                                   config=config, **kwargs)
    return aggregator, aggregator.summarize(reports)


class TestMergeCounters:
    """Test counter merging."""

    def test_merge(self):
        """Test counts add up and new keys start at zero."""
        target = {"a": 1}

        merge_counters(target, {"a": 2, "b": 5})

        assert target == {"a": 3, "b": 5}


class TestSummaryAggregator:
    """Test folding unit reports."""

    def test_sums_statistics(self, two_units, config):
        """Test every statistic is summed across units."""
        _, summary = summarize(two_units, config)

        assert summary.unit_count == 2
        assert summary.total_duration == 40
        assert summary.export_statistics == {
            "SelectedItems": 13,
            "ExcludedCount": 1,
            "TotalItemsToExport": 12,
            "FailedItems": 5,
        }
        assert summary.file_statistics == {"NativeFilesExported": 12, "TextFilesExported": 12}
        assert summary.mime_types == {"application/pdf": 9, "message/rfc822": 3}

    def test_details_in_unit_order(self, two_units, config):
        """Test one details entry per unit, sorted by unit name."""
        _, summary = summarize(two_units, config)

        assert [d["name"] for d in summary.details] == ["Alice", "Bob"]
        assert summary.details[1]["failedItems"] == 3

    def test_throughput(self, two_units, config):
        """Test the native document rate is native files over summed duration."""
        _, summary = summarize(two_units, config)

        assert summary.throughput() == pytest.approx(12 / 40)

    def test_zero_duration(self, write_unit_report, tmp_path, config):
        """Test a zero summed duration gives a rate of zero."""
        write_unit_report("Alice", duration=0)
        write_unit_report("Bob", duration=0)

        _, summary = summarize(tmp_path / "reports", config)

        assert summary.throughput() == 0.0

    def test_idempotent(self, two_units, config):
        """Test summarizing the same reports twice gives the same statistics."""
        _, first = summarize(two_units, config)
        _, second = summarize(two_units, config)

        assert first.export_statistics == second.export_statistics
        assert first.file_statistics == second.file_statistics
        assert first.mime_types == second.mime_types
        assert first.details == second.details

    def test_first_unit_configuration(self, two_units, config):
        """Test the configuration and version come from the first unit."""
        _, summary = summarize(two_units, config)

        assert summary.configuration.findtext("ExportDirectory").endswith("Alice")
        assert summary.version == "9.10.1"

    def test_unit_type_from_config(self, two_units, config):
        """Test the unit type defaults to the configured one."""
        _, summary = summarize(two_units, config)
        _, custom = summarize(two_units, config, unit_type="Mailbox")

        assert summary.unit_type == "Custodian"
        assert custom.unit_type == "Mailbox"

    def test_skips_malformed_report(self, two_units, config):
        """Test a malformed report is skipped under the default policy."""
        broken = two_units / "Carl" / "summary-report.xml"
        broken.parent.mkdir()
        broken.write_text("<Nuix><Export/></Nuix>", encoding="utf-8")

        _, summary = summarize(two_units, config)

        assert summary.unit_count == 2
        assert summary.skipped_reports == [broken]

    def test_abort_policy(self, two_units, config):
        """Test a malformed report stops aggregation under the abort policy."""
        broken = two_units / "Carl" / "summary-report.xml"
        broken.parent.mkdir()
        broken.write_text("not xml", encoding="utf-8")
        strict = config.model_copy(update={"report_parse_policy": "abort"})

        with pytest.raises(ReportParseError):
            summarize(two_units, strict)

    def test_no_reports(self, tmp_path, config):
        """Test an empty reports directory is an error."""
        (tmp_path / "reports").mkdir()

        with pytest.raises(ReportAggregationError, match="No summary reports"):
            summarize(tmp_path / "reports", config)

    def test_missing_directory(self, tmp_path, config):
        """Test a missing reports directory is an error."""
        with pytest.raises(ReportAggregationError, match="Cannot list reports"):
            summarize(tmp_path / "missing", config)


class TestSummaryWriter:
    """Test the aggregate summary report XML."""

    def test_document_shape(self, two_units, config, tmp_path):
        """Test the written report has the expected structure and values."""
        aggregator, _ = summarize(two_units, config, export_dir=tmp_path / "matter")
        output = aggregator.write(tmp_path / "summary.xml", end_time=END)

        root = etree.parse(str(output)).getroot()
        assert root.tag == "Nuix"
        assert root.get("version") == "9.10.1"
        assert root.get("architecture") == "amd64"

        export = root.find("Export")
        assert export.get("startTime") == START.isoformat()
        assert export.get("endTime") == END.isoformat()
        assert export.get("exportDuration") == "40"
        assert float(export.get("processingDuration")) == 300.0
        assert [child.tag for child in export] == [
            "ExportConfiguration",
            "ExportStatistics",
            "CustodianDetails",
            "FileStatistics",
            "ThroughputStatistics",
            "MimeTypeStatistics",
        ]

        assert export.findtext("ExportConfiguration/ExportDirectory") == str(tmp_path / "matter")
        assert export.findtext("ExportConfiguration/Products") == "native"
        assert export.findtext("ExportStatistics/FailedItems") == "5"
        assert export.findtext("FileStatistics/NativeFilesExported") == "12"
        assert float(export.findtext("ThroughputStatistics/NativeDocRate")) == pytest.approx(0.3)

        custodians = export.findall("CustodianDetails/Custodian")
        assert [c.get("name") for c in custodians] == ["Alice", "Bob"]
        assert custodians[1].attrib == {
            "name": "Bob",
            "exportDuration": "30",
            "selectedItems": "9",
            "excludedCount": "1",
            "totalItemsToExport": "8",
            "failedItems": "3",
        }

        mimes = {m.get("name"): m.get("count") for m in export.iter("MimeType")}
        assert mimes == {"application/pdf": "9", "message/rfc822": "3"}

    def test_export_directory_added(self, tmp_path, config):
        """Test ExportDirectory is created when the configuration lacks one."""
        summary = AggregateSummary(
            start_time=START,
            export_dir=tmp_path,
            unit_type="Custodian",
            configuration=etree.Element("ExportConfiguration"),
        )

        root = build_summary_element(summary, END)

        assert root.findtext("Export/ExportConfiguration/ExportDirectory") == str(tmp_path)

    def test_host_version_fallback(self, tmp_path):
        """Test the host version is used when no unit carried one."""
        summary = AggregateSummary(
            start_time=START,
            export_dir=tmp_path,
            unit_type="Custodian",
            configuration=etree.Element("ExportConfiguration"),
        )

        root = build_summary_element(summary, END, host_version="9.2")

        assert root.get("version") == "9.2"
        assert root.get("architecture")

    def test_requires_configuration(self, tmp_path):
        """Test a summary without any configuration cannot be written."""
        summary = AggregateSummary(start_time=START, export_dir=tmp_path, unit_type="Custodian")

        with pytest.raises(ValueError):
            build_summary_element(summary, END)

    def test_unit_configuration_unchanged(self, two_units, config, tmp_path):
        """Test writing does not modify the first unit's configuration."""
        aggregator, summary = summarize(two_units, config, export_dir=tmp_path / "matter")

        aggregator.write(tmp_path / "summary.xml", end_time=END)

        assert summary.configuration.findtext("ExportDirectory").endswith("Alice")


class TestAggregateReports:
    """Test the one-call aggregation helper."""

    def test_writes_into_export_dir(self, two_units, config):
        """Test the summary report lands in the export directory."""
        output = aggregate_reports(two_units, start_time=START, config=config)

        assert output == two_units / "summary-report.xml"
        assert etree.parse(str(output)).getroot().tag == "Nuix"

    def test_rerun_ignores_own_output(self, two_units, config):
        """Test a second run is not affected by the first run's output."""
        first = etree.parse(str(aggregate_reports(two_units, start_time=START, config=config)))
        second = etree.parse(str(aggregate_reports(two_units, start_time=START, config=config)))

        assert first.findtext("Export/ExportStatistics/SelectedItems") == "13"
        assert second.findtext("Export/ExportStatistics/SelectedItems") == "13"
