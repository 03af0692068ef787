"""Command-line interface for Cluster Export."""

import argparse
import signal
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import structlog

from cluster_export import __version__
from cluster_export.config import settings
from cluster_export.export import (
    ClusterExporter,
    ExportContext,
    format_run_text,
    list_cluster_rows,
    select_clusters,
)
from cluster_export.host import (
    DigestDeduplicator,
    ExportFilesystemError,
    LocalBinaryExporter,
    LocalFileSystem,
    load_case_json,
)
from cluster_export.logging_config import configure_logging
from cluster_export.reporting import (
    ReportAggregationError,
    ReportParseError,
    SummaryAggregator,
)

logger = structlog.get_logger()

# Exit code for a run stopped by the user
EXIT_ABORTED = 130


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.version:
        print_version()
        return

    if args.command == "clusters":
        clusters_command(args)
    elif args.command == "export":
        export_command(args)
    elif args.command == "summarize":
        summarize_command(args)
    else:
        parser.print_help()
        sys.exit(1)


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="cluster-export",
        description="Cluster Export - export items by cluster and summarize export reports",
    )
    parser.add_argument("--version", action="store_true", help="Show version and exit")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Clusters command
    clusters_parser = subparsers.add_parser("clusters", help="List cluster runs and clusters")
    clusters_parser.add_argument(
        "case",
        type=str,
        help="Case snapshot JSON file",
    )
    clusters_parser.add_argument(
        "-r", "--run",
        type=str,
        help="Cluster run to list clusters for (lists runs if omitted)",
    )

    # Export command
    export_parser = subparsers.add_parser("export", help="Export items by cluster")
    export_parser.add_argument(
        "case",
        type=str,
        help="Case snapshot JSON file",
    )
    export_parser.add_argument(
        "-r", "--run",
        type=str,
        required=True,
        help="Cluster run to export",
    )
    export_parser.add_argument(
        "-o", "--output-dir",
        type=str,
        required=True,
        help="Export directory (a sub-directory is created for the run)",
    )
    export_parser.add_argument(
        "-c", "--cluster",
        type=int,
        action="append",
        dest="clusters",
        help="Cluster ID to export (repeatable; -1 unclusterable, -2 ignorable). "
             "Default: all clusters",
    )
    export_parser.add_argument(
        "--include-pseudo",
        action="store_true",
        help="Include pseudo-clusters in the default selection",
    )
    export_parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress progress and log output",
    )

    # Summarize command
    summarize_parser = subparsers.add_parser(
        "summarize", help="Aggregate unit summary reports into one summary report"
    )
    summarize_parser.add_argument(
        "reports_dir",
        type=str,
        help="Directory holding one sub-directory per unit with a summary-report.xml",
    )
    summarize_parser.add_argument(
        "-e", "--export-dir",
        type=str,
        help="Directory of the overall export (default: reports_dir)",
    )
    summarize_parser.add_argument(
        "-u", "--unit-type",
        type=str,
        default=None,
        help=f"Unit element name (default: {settings.unit_type})",
    )
    summarize_parser.add_argument(
        "--start-time",
        type=datetime.fromisoformat,
        default=None,
        help="ISO-8601 start time of the overall export (default: now)",
    )
    summarize_parser.add_argument(
        "--strict",
        action="store_true",
        help="Abort on the first malformed unit report instead of skipping it",
    )
    summarize_parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress log output",
    )

    return parser


def print_version() -> None:
    """Print version information."""
    print(f"Cluster Export v{__version__}")
    print()
    print("Commands:")
    print("  - clusters: list cluster runs and clusters of a case")
    print("  - export: export deduplicated items by cluster with a CSV manifest")
    print("  - summarize: aggregate unit summary-report.xml files")


def clusters_command(args: argparse.Namespace) -> None:
    """Execute clusters command."""
    configure_logging(quiet=True)

    case_path = Path(args.case)
    if not case_path.exists():
        print(f"Error: File not found: {args.case}", file=sys.stderr)
        sys.exit(1)

    source = load_case_json(str(case_path))

    if not args.run:
        print("Cluster runs:")
        for name in source.cluster_run_names():
            print(f"  {name}")
        return

    try:
        rows = list_cluster_rows(source, args.run, DigestDeduplicator())
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"{'Cluster Run':<24} {'ID':>14} {'Items':>8} {'Deduplicated Items':>20}")
    for row in rows:
        print(f"{row.cluster_run:<24} {row.cluster:>14} {row.items:>8} {row.deduplicated_items:>20}")


def export_command(args: argparse.Namespace) -> None:
    """Execute export command."""
    configure_logging(quiet=args.quiet)

    case_path = Path(args.case)
    if not case_path.exists():
        print(f"Error: File not found: {args.case}", file=sys.stderr)
        sys.exit(1)

    source = load_case_json(str(case_path))
    try:
        clusters = select_clusters(
            source,
            args.run,
            cluster_ids=args.clusters,
            include_pseudo=args.include_pseudo or settings.include_pseudo_clusters,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    context = ExportContext(on_status=None if args.quiet else print)
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: context.request_cancel())

    exporter = ClusterExporter(
        source=source,
        deduplicator=DigestDeduplicator(),
        exporter=LocalBinaryExporter(),
        filesystem=LocalFileSystem(),
    )

    try:
        result = exporter.run(args.output_dir, args.run, clusters, context)
    except (ValueError, ExportFilesystemError) as e:
        logger.error("export_failed", cluster_run=args.run, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    print(format_run_text(result))

    if result.aborted:
        sys.exit(EXIT_ABORTED)


def summarize_command(args: argparse.Namespace) -> None:
    """Execute summarize command."""
    configure_logging(quiet=args.quiet)

    reports_dir = Path(args.reports_dir)
    if not reports_dir.is_dir():
        print(f"Error: Directory not found: {args.reports_dir}", file=sys.stderr)
        sys.exit(1)

    config = settings
    if args.strict:
        config = settings.model_copy(update={"report_parse_policy": "abort"})

    aggregator = SummaryAggregator(
        start_time=args.start_time or datetime.now(),
        export_dir=args.export_dir or reports_dir,
        unit_type=args.unit_type,
        config=config,
    )

    try:
        summary = aggregator.summarize(reports_dir)
        output = aggregator.write()
    except (ReportParseError, ReportAggregationError, OSError) as e:
        logger.error("summarize_failed", reports_dir=str(reports_dir), error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Summarized {summary.unit_count} {summary.unit_type} report(s)")
    print(f"Export duration: {summary.total_duration}s")
    print(f"Native document rate: {summary.throughput()}")
    for skipped in summary.skipped_reports:
        print(f"Skipped malformed report: {skipped}")
    print(f"Saved to: {output}")


if __name__ == "__main__":
    main()
