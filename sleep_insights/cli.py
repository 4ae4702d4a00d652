"""CLI entry point for the sleep insights pipeline."""

import argparse
import json
import logging
import os

from sleep_insights.bedtime import LANGUAGES
from sleep_insights.config import AnalysisConfig
from sleep_insights.ingest import load_samples
from sleep_insights.report import build_sleep_report
from sleep_insights.visualizations import generate_all_graphs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sleep-insights",
        description="Bedtime recommendation, sleep score and recovery trend from health-data exports.",
    )
    parser.add_argument("--samples", action="append", required=True,
                        help="CSV or JSON export of heart rate / HRV / sleep samples (repeatable)")
    parser.add_argument("--timezone", default=None, help="Convert timestamps into this zone (e.g. UTC-05:00, Europe/Berlin)")
    parser.add_argument("--language", default="en", choices=LANGUAGES)
    parser.add_argument("--days", type=int, default=7, help="Look-back window for the weekly score")
    parser.add_argument("--debt-days", type=int, default=14, help="Look-back window for sleep debt")
    parser.add_argument("--ideal-sleep-min", type=int, default=None, help="Ideal nightly sleep in minutes (300-720)")
    parser.add_argument("--output", default=os.path.join("output", "sleep_report.json"), help="Report JSON path")
    parser.add_argument("--graphs-dir", default=None, help="Write PNG graphs into this directory")
    parser.add_argument("--env-file", default=None, help="Read SLEEP_* settings from this .env file")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.days <= 0 or args.debt_days <= 0:
        parser.error("--days and --debt-days must be positive.")

    try:
        config = AnalysisConfig.from_env(args.env_file)
    except ValueError as e:
        parser.error(str(e))

    print("[sleep] Loading samples...")
    samples = []
    for path in args.samples:
        try:
            loaded = load_samples(path, args.timezone)
        except (OSError, ValueError) as e:
            parser.error(f"Could not load {path}: {e}")
        print(f"[sleep]   {path}: {len(loaded)} samples")
        samples.extend(loaded)

    print("[sleep] Building report...")
    try:
        report = build_sleep_report(
            samples,
            language=args.language,
            days=args.days,
            debt_days=args.debt_days,
            ideal_sleep_minutes=args.ideal_sleep_min,
            config=config,
        )
    except ValueError as e:
        parser.error(str(e))

    os.makedirs(os.path.dirname(args.output) or ".", exist_ok=True)
    with open(args.output, "w") as f:
        json.dump(report, f, indent=2, ensure_ascii=False, default=str)
    print(f"[sleep] report -> {args.output}")

    bedtime = report["bedtime"]
    print(f"[sleep] Recommended bedtime {bedtime['recommended_time']} (confidence {bedtime['confidence']})")
    if bedtime["insufficient_data_reason"]:
        print(f"[sleep]   {bedtime['insufficient_data_reason']}")
    weekly = report["weekly_score"]
    if weekly:
        print(f"[sleep] Weekly score {weekly['average_score']} ({weekly['grade']}) over {weekly['night_count']} nights")
    else:
        print("[sleep] Weekly score: no nights in window")
    recovery = report["recovery"]
    if recovery:
        print(f"[sleep] Recovery {recovery['status']} (trend {recovery['trend']}, ratio {recovery['trend_ratio']})")

    if args.graphs_dir:
        print("[sleep] Generating graphs...")
        written = generate_all_graphs(report, args.graphs_dir)
        print(f"[sleep] {len(written)} graphs written to {args.graphs_dir}/")

    print("Done.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
