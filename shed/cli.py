"""
SHED Command Line Interface (CLI)
=================================

Runs the whole analysis in one go:

    python -m shed.cli                          # download (once) and analyse
    python -m shed.cli --csv StormData.csv.bz2  # analyse a local copy
    python -m shed.cli --report storms.docx --export-csv totals.csv

Steps: load table -> run pipeline -> print the four top-N lists and the
conclusions -> optionally write the DOCX report and the totals exports.
The input file is never modified.
"""

from __future__ import annotations
import argparse
import os
import sys
from typing import List, Optional

from .config import Settings
from .download import download_dataset
from .errors import ShedError
from .loader import load_storm_table
from .logger import setup_logger
from .models import METRICS
from .pipeline import ON_ERROR_CHOICES, PipelineResult, run_pipeline
from .report import (
    METRIC_LABELS, DatasetCitation, ReportConfig, export_totals_csv,
    export_totals_json, format_value, generate_docx_report, write_conclusions,
)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="shed",
        description="Rank storm event types by health and economic impact.",
    )
    src = ap.add_argument_group("input")
    src.add_argument("--csv", help="Path to a local storm table (.csv, .csv.bz2, .xlsx)")
    src.add_argument("--download", action="store_true", help="Re-download the dataset even if cached")
    src.add_argument("--url", help="Dataset URL (default: course copy of the NOAA storm database)")
    src.add_argument("--data-dir", help="Where the downloaded dataset is kept")

    run = ap.add_argument_group("analysis")
    run.add_argument("--top-n", type=int, help="How many event types to rank per metric (default 10)")
    run.add_argument("--on-error", choices=ON_ERROR_CHOICES, help="Abort on or skip rows with unreadable numbers")
    run.add_argument("--partitions", type=int, default=1, help="Aggregate in this many chunks, then merge")

    out = ap.add_argument_group("output")
    out.add_argument("--report", help="Write a DOCX report to this path")
    out.add_argument("--export-csv", help="Write per-category totals as CSV")
    out.add_argument("--export-json", help="Write per-category totals as JSON")
    out.add_argument("--log-dir", help="Also write a timestamped log file here")
    out.add_argument("--log-level", help="Logging level (default INFO)")
    return ap


def _apply_args(settings: Settings, args: argparse.Namespace) -> Settings:
    if args.url:
        settings.data_url = args.url
    if args.data_dir:
        settings.data_dir = args.data_dir
    if args.top_n is not None:
        settings.top_n = args.top_n
    if args.on_error:
        settings.on_error = args.on_error
    if args.log_dir:
        settings.log_dir = args.log_dir
    if args.log_level:
        settings.log_level = args.log_level.upper()
    return settings


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the SHED CLI. Returns the process exit status."""
    args = build_parser().parse_args(argv)
    try:
        settings = _apply_args(Settings.from_env(), args)
        setup_logger(settings.log_level, log_dir=settings.log_dir)

        if args.csv:
            path = args.csv
        else:
            path = str(download_dataset(
                settings.data_url, settings.data_path,
                timeout=settings.timeout, force=args.download,
            ))

        print("Loading dataset...")
        raw = load_storm_table(path)
        print(f"Loaded {len(raw)} events.")

        result = run_pipeline(
            raw, settings.top_n,
            on_error=settings.on_error, partitions=args.partitions,
        )
        _print_summary(result)

        if args.export_csv:
            export_totals_csv(result.totals, args.export_csv)
            print(f"Exported CSV to {args.export_csv}")
        if args.export_json:
            export_totals_json(result.totals, args.export_json)
            print(f"Exported JSON to {args.export_json}")
        if args.report:
            cfg = ReportConfig(
                citation=DatasetCitation(file_name=os.path.basename(path)),
                command_log=["shed " + " ".join(argv if argv is not None else sys.argv[1:])],
            )
            generate_docx_report(result, args.report, config=cfg)
            print(f"Report written to {args.report}")
    except (ShedError, FileNotFoundError) as e:
        print(f"Error: {e}")
        return 1
    return 0


def _print_summary(result: PipelineResult) -> None:
    print(f"Rows used: {result.records_used} | skipped: {result.skipped} | event types: {len(result.totals)}")
    for metric in METRICS:
        print(f"\nTop {result.n} by {METRIC_LABELS[metric]}:")
        _print_ranked(metric, result.ranking(metric))
    print("\nConclusions:")
    for para in write_conclusions(result):
        print(f"- {para}")


def _print_ranked(metric: str, ranked) -> None:
    for i, (cat, v) in enumerate(ranked, start=1):
        print(f"  {i:>2}. {cat} | {format_value(metric, v)}")


if __name__ == "__main__":
    sys.exit(main())
