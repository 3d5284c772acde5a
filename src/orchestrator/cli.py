"""
Pulse CLI
=========

Command-line interface over review exports and analyses exports.

Commands:
    sniff       - Detect what a CSV contains
    locations   - Location health table of a raw review export
    analyses    - Rollup of an analyses export
    deep-dive   - LLM analysis of selected location groups

Usage:
    python -m src.orchestrator.cli sniff reviews.csv
    python -m src.orchestrator.cli locations reviews.csv --group-by Region --sort avg_asc
    python -m src.orchestrator.cli locations reviews.csv --group-by city --preset
    python -m src.orchestrator.cli analyses analyses.csv --json
    python -m src.orchestrator.cli deep-dive reviews.csv --group-by Region --name Southeast
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict

from src.ai.review_analyzer import DeepDiveService, LLMReviewAnalyzer
from src.data.config import get_settings
from src.data.csv_parser import read_csv_file
from src.data.data_models import AnalysisRecord, DatasetKind
from src.data.schema_sniffer import sniff_kind
from src.reviews.analyses_aggregator import aggregate_analyses
from src.reviews.grouping import GroupingEngine
from src.reviews.location_stats import build_reports, summarize_reports
from src.reviews.views import SortKey, view_reports
from src.scoring.scoring_config import noise_filter_from_settings

from .logging_config import configure_from_settings, timed

logger = logging.getLogger(__name__)


def _load(path):
    """Read a CSV, None when the file cannot be read."""
    try:
        return read_csv_file(path)
    except OSError as e:
        print(f"ERROR: Cannot read {path}: {e}")
        return None


def _group(args, rows):
    engine = GroupingEngine(noise_filter_from_settings())
    if args.preset:
        return engine.group_by_preset(rows, args.group_by)
    return engine.group(rows, args.group_by)


def cmd_sniff(args):
    """Detect the dataset kind of a CSV."""
    rows = _load(args.file)
    if rows is None:
        return 1
    kind = sniff_kind(rows)
    print(f"{args.file}: {kind.value} ({len(rows)} rows)")
    return 0


def cmd_locations(args):
    """Print the location health table."""
    rows = _load(args.file)
    if rows is None:
        return 1

    kind = sniff_kind(rows)
    if kind is not DatasetKind.RAW_REVIEWS:
        print(f"ERROR: {args.file} is not a review export (detected {kind.value})")
        return 1

    try:
        result = _group(args, rows)
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    if not result.groups:
        print(f"No groups for '{args.group_by}': every row was empty or filtered as noise.")
        return 1

    settings = get_settings()
    reports = build_reports(result.groups, comment_preview=settings.aggregation.comment_preview)
    ordered = view_reports(reports, args.filter, args.sort)

    if args.json:
        payload = [
            {"name": r.group.name, "region": r.group.region, "state": r.group.state, **asdict(r.stats)}
            for r in ordered
        ]
        print(json.dumps(payload, indent=2, default=str))
        return 0

    overview = summarize_reports(reports)
    print("=" * 72)
    print(f"LOCATIONS BY {args.group_by.upper()}  ({len(rows)} rows, {result.dropped_rows} dropped)")
    print("=" * 72)
    print(
        f"Healthy: {overview.healthy}  Needs attention: {overview.needs_attention}  "
        f"Critical: {overview.critical}  No ratings: {overview.insufficient_data}"
    )
    print()
    print(f"{'Group':32} {'Avg':>5} {'Rated':>6} {'Neg%':>5} {'Health':>7}  Top source")
    for report in ordered:
        s = report.stats
        avg = f"{s.avg:.1f}" if s.avg is not None else "-"
        print(
            f"{report.name[:32]:32} {avg:>5} {s.rated_count:>6} {s.pct_negative:>5} "
            f"{s.health_score:>7}  {s.top_source or '-'}"
        )
    print()
    print(f"Total: {len(ordered)} of {len(reports)} groups shown")
    return 0


def cmd_analyses(args):
    """Print the analyses rollup."""
    rows = _load(args.file)
    if rows is None:
        return 1

    kind = sniff_kind(rows)
    if kind is not DatasetKind.ANALYSES_EXPORT:
        print(f"ERROR: {args.file} is not an analyses export (detected {kind.value})")
        return 1

    aggregate = aggregate_analyses([AnalysisRecord.from_dict(r) for r in rows])

    if args.json:
        print(json.dumps(asdict(aggregate), indent=2, default=str))
        return 0

    print("=" * 60)
    print(f"ANALYSES ({aggregate.total} records)")
    print("=" * 60)
    avg = f"{aggregate.avg_score:.1f}/10" if aggregate.avg_score is not None else "-"
    print(f"Avg sentiment score: {avg}")
    print("Sentiment: " + ", ".join(f"{k} {v}" for k, v in aggregate.sentiment_counts.items()))
    for title, table in (
        ("Top themes", aggregate.top_themes),
        ("Top pain points", aggregate.top_pains),
        ("Top praise", aggregate.top_praise),
        ("Competitors mentioned", aggregate.top_competitors),
    ):
        if table:
            print()
            print(f"{title}:")
            for value, count in table:
                print(f"  {count:>4}x  {value}")
    print()
    print("By source:")
    for source in aggregate.source_averages:
        avg = f"{source.avg:.1f}" if source.avg is not None else "-"
        print(f"  {source.source:20} {avg:>5}  ({source.count} analyses, {source.pct_negative}% negative)")
    return 0


def cmd_deep_dive(args):
    """Run the LLM deep dive on selected groups."""
    rows = _load(args.file)
    if rows is None:
        return 1

    try:
        result = _group(args, rows)
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    settings = get_settings()
    service = DeepDiveService(
        LLMReviewAnalyzer(config=settings.llm),
        source_type=f"csv_{args.group_by.lower()}",
    )
    with timed(logger, "Deep dive", group_by=args.group_by) as fields:
        results = asyncio.run(service.run(result.groups, names=args.name or None))
        fields["groups"] = len(results)

    if not results:
        print("No matching groups.")
        return 1

    for name, outcome in results.items():
        if outcome.ok:
            record = outcome.record
            print(f"{name}: {record.overall_sentiment} {record.sentiment_score}/10 ({outcome.review_count} reviews)")
            if record.summary:
                print(f"  {record.summary}")
        else:
            print(f"{name}: ERROR {outcome.error}")

    return 0 if any(r.ok for r in results.values()) else 1


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Pulse review dashboards CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    sniff_parser = subparsers.add_parser("sniff", help="Detect what a CSV contains")
    sniff_parser.add_argument("file", help="CSV file")

    def add_grouping(sub):
        sub.add_argument("file", help="Review export CSV")
        sub.add_argument(
            "--group-by",
            default="Region",
            help="Column to group by, or a preset name with --preset (default: Region)",
        )
        sub.add_argument(
            "--preset",
            action="store_true",
            help="Treat --group-by as a preset: region, division, state, city, location",
        )

    loc_parser = subparsers.add_parser("locations", help="Location health table")
    add_grouping(loc_parser)
    loc_parser.add_argument("--filter", default="", help="Match on name, region or state")
    loc_parser.add_argument(
        "--sort",
        default=SortKey.AVG_ASC.value,
        choices=[k.value for k in SortKey],
        help="Ordering (default: avg_asc, worst first)",
    )
    loc_parser.add_argument("--json", action="store_true", help="Output as JSON")

    analyses_parser = subparsers.add_parser("analyses", help="Rollup of an analyses export")
    analyses_parser.add_argument("file", help="Analyses export CSV")
    analyses_parser.add_argument("--json", action="store_true", help="Output as JSON")

    dive_parser = subparsers.add_parser("deep-dive", help="LLM analysis of location groups")
    add_grouping(dive_parser)
    dive_parser.add_argument(
        "--name",
        action="append",
        help="Group to analyze (repeatable, default: all groups)",
    )

    args = parser.parse_args()
    configure_from_settings("DEBUG" if args.verbose else None)

    if args.command is None:
        parser.print_help()
        return 1

    commands = {
        "sniff": cmd_sniff,
        "locations": cmd_locations,
        "analyses": cmd_analyses,
        "deep-dive": cmd_deep_dive,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
