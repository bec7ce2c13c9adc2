#!/usr/bin/env python3
"""CLI entry point for the eBird sampling-effort analysis.

Usage:
  analyze.py status  -o OUT            Show which outputs exist
  analyze.py clean   -i DATA [opts]    Load and clean, print the stage counts
  analyze.py analyze -i DATA [opts]    Clean, run all engines, write JSON + CSV
  analyze.py report  -o OUT            Regenerate report.md from results.json
  analyze.py run     -i DATA [opts]    analyze + report
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

import httpx

from ebird_effort.config import AnalysisConfig
from ebird_effort.ebird.columns import PRESETS
from ebird_effort.errors import EbirdEffortError

log = logging.getLogger(__name__)

DEFAULT_OUTPUT = Path("output")


def build_config(args) -> AnalysisConfig:
    """Config file (if any) with command-line values layered on top."""
    config = AnalysisConfig.from_json(args.config) if args.config else AnalysisConfig()
    config = config.with_overrides(
        locality_id=args.locality,
        year_start=args.year_start,
        year_end=args.year_end,
        permutations=args.permutations,
        bootstrap_reps=args.bootstrap_reps,
        seed=args.seed,
        rare_species_pct=args.rare_pct,
        estimator=args.estimator,
        columns=PRESETS[args.columns]() if args.columns else None,
    )
    if args.no_frequent:
        config = replace(config, rare_species_pct=None)
    return config


def load(args, config):
    from ebird_effort.ebird.loader import load_observations
    return load_observations(args.input, columns=config.columns, delimiter=args.delimiter)


def cmd_status(args):
    """Show which outputs exist."""
    from ebird_effort.report.generator import REPORT_FILE, RESULTS_FILE

    out = Path(args.output)
    print(f"=== Sampling Effort Status ({out}) ===\n")
    for name in (RESULTS_FILE, REPORT_FILE):
        p = out / name
        if p.exists():
            print(f"  {name}: {p.stat().st_size / 1024:.1f} KB")
        else:
            print(f"  {name}: NOT FOUND")
    curves = sorted(out.glob("*.csv")) if out.exists() else []
    print(f"\nCSV files: {len(curves)}")
    for p in curves:
        print(f"  {p.name}")


def cmd_clean(args):
    """Load and clean; print the counts removed at each stage."""
    from ebird_effort.analysis.cleaning import clean_observations
    from ebird_effort.pipeline import resolve_entropy, spawn_generators

    config = build_config(args)
    records = load(args, config)
    entropy = resolve_entropy(config)
    # same stream as the pipeline, so a seed keeps the same group members
    rng = spawn_generators(entropy)["cleaning"]
    frequent = config.rare_species_pct is not None
    matrix, summary = clean_observations(records, config, rng, frequent_only=frequent)

    print(f"=== Cleaning Summary (seed {entropy}) ===\n")
    for key, value in summary.to_dict().items():
        if key == "trimmed_species":
            value = len(value)
        print(f"  {key:<22} {value}")
    print(f"\nLocalities: {matrix.localities()}")


def cmd_analyze(args):
    """Clean, run every engine and write results."""
    from ebird_effort.pipeline import resolve_entropy, run_all
    from ebird_effort.report.generator import write_results

    config = build_config(args)
    config = config.with_overrides(seed=resolve_entropy(config))
    records = load(args, config)
    results = run_all(records, config)
    path = write_results(results, config, args.output)
    print(f"Results written to {path}")
    for name, r in results.items():
        for key, recs in r.thresholds.items():
            cells = ", ".join(f"{rec.label}: {rec.sample_size if rec.reached else 'not reached'}"
                              for rec in recs)
            print(f"  {name} {key}: {cells}")


def cmd_report(args):
    """Regenerate report.md from results.json."""
    from ebird_effort.report.generator import generate_report

    report = generate_report(args.output)
    print(f"Report written: {len(report.splitlines())} lines")


def cmd_run(args):
    """analyze -> report."""
    cmd_analyze(args)
    cmd_report(args)


def _add_input_options(p):
    p.add_argument("--input", "-i", required=True, help="Observation table (path or http(s) URL)")
    p.add_argument("--config", "-c", help="JSON config file")
    p.add_argument("--delimiter", help="Field separator (default: ',' for .csv, tab otherwise)")
    p.add_argument("--columns", choices=sorted(PRESETS), help="Header naming convention")
    p.add_argument("--locality", help="Target locality id")
    p.add_argument("--year-start", type=int, help="First year (inclusive)")
    p.add_argument("--year-end", type=int, help="Last year (inclusive)")
    p.add_argument("--permutations", type=int, help="Permutations for accumulation and similarity")
    p.add_argument("--bootstrap-reps", type=int, help="Bootstrap repetitions")
    p.add_argument("--seed", type=int, help="Random seed")
    p.add_argument("--rare-pct", type=float, help="Frequent-species trim percentage")
    p.add_argument("--no-frequent", action="store_true", help="Skip the frequent-species variant")
    p.add_argument("--estimator", choices=["chao", "jack1", "jack2", "boot"],
                   help="Species-pool estimate used as 100%% richness")


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--output", "-o", default=str(DEFAULT_OUTPUT), help="Output directory")
    common.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    parser = argparse.ArgumentParser(
        description="eBird Sampling-Effort Analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", help="Command to run")

    sub.add_parser("status", parents=[common], help="Show which outputs exist")
    for name, help_text in [
        ("clean", "Load and clean, print stage counts"),
        ("analyze", "Run the full analysis and write results"),
        ("run", "Full pipeline: analyze -> report"),
    ]:
        _add_input_options(sub.add_parser(name, parents=[common], help=help_text))
    sub.add_parser("report", parents=[common], help="Regenerate report.md from results.json")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "verbose", False):
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    logging.getLogger("httpx").setLevel(logging.WARNING)

    commands = {
        "status": cmd_status,
        "clean": cmd_clean,
        "analyze": cmd_analyze,
        "report": cmd_report,
        "run": cmd_run,
    }

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        commands[args.command](args)
    except (EbirdEffortError, ValueError, OSError, httpx.HTTPError) as e:
        log.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
