"""Results export and Markdown report for the sampling-effort analysis."""

import csv
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict

from ebird_effort.config import AnalysisConfig
from ebird_effort.pipeline import VariantResult
from lib.formatting import fmt, fmt_mean_sd, fmt_num, fmt_pct, fmt_reached
from lib.tables import md_table, records_table

log = logging.getLogger(__name__)

RESULTS_FILE = "results.json"
REPORT_FILE = "report.md"
CSV_FIELDS = ["sample_size", "mean", "sd", "cv", "lower", "upper", "cumulative_pct"]
MATRIX_SUFFIX = "observations"
MATRIX_FIELDS = ["checklist_id", "locality_id", "species", "count"]

CURVE_TITLES = {
    "accumulation": "Species accumulation",
    "similarity": "Similarity decay (Bray-Curtis)",
}


def curve_title(key: str) -> str:
    if key.startswith("diversity_"):
        return f"Bootstrap Shannon diversity ({key[len('diversity_'):]})"
    return CURVE_TITLES.get(key, key)


def write_results(results: Dict[str, VariantResult], config: AnalysisConfig, out_dir) -> Path:
    """Write results.json, the cleaned observations and one CSV per curve; returns the JSON path."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    payload = {
        "generated": datetime.now(timezone.utc).isoformat(),
        "config": config.to_dict(),
        "variants": {name: r.to_dict() for name, r in results.items()},
    }
    path = out_dir / RESULTS_FILE
    path.write_text(json.dumps(payload, indent=2, default=str))
    log.info("Results saved to %s", path)

    for name, r in results.items():
        matrix_path = out_dir / f"{name}_{MATRIX_SUFFIX}.csv"
        with open(matrix_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=MATRIX_FIELDS)
            writer.writeheader()
            writer.writerows(r.matrix.to_records())
        log.debug("Cleaned observations saved to %s", matrix_path)

        for key, curve in r.curves().items():
            csv_path = out_dir / f"{name}_{key}.csv"
            with open(csv_path, "w", newline="") as f:
                writer = csv.DictWriter(f, fieldnames=CSV_FIELDS, extrasaction="ignore")
                writer.writeheader()
                for p in curve.points:
                    writer.writerow(p.to_dict())
            log.debug("Curve saved to %s", csv_path)
    return path


def load_results(out_dir) -> dict:
    with open(Path(out_dir) / RESULTS_FILE) as f:
        return json.load(f)


def _cleaning_section(cleaning: dict) -> list:
    rows = [
        ["Observation rows read", fmt_num(cleaning["rows_read"])],
        ["Rows outside species/issf", fmt_num(cleaning["rows_other_category"])],
        ["Rows with non-numeric counts", fmt_num(cleaning["rows_malformed_count"])],
        ["Checklists with species records", fmt_num(cleaning["checklists_read"])],
        ["Dropped: other locality", fmt_num(cleaning["dropped_locality"])],
        ["Dropped: incomplete", fmt_num(cleaning["dropped_incomplete"])],
        ["Dropped: protocol", fmt_num(cleaning["dropped_protocol"])],
        ["Dropped: 'X' counts", fmt_num(cleaning["dropped_sentinel"])],
        ["Dropped: outside years", fmt_num(cleaning["dropped_year"])],
        ["Dropped: shared-group duplicates", fmt_num(cleaning["group_duplicates"])],
        ["Dropped: duration", fmt_num(cleaning["dropped_duration"])],
        ["Dropped: distance", fmt_num(cleaning["dropped_distance"])],
        ["Rare locality/species pairs trimmed", fmt_num(len(cleaning["trimmed_species"]))],
        ["**Checklists analysed**", f"**{fmt_num(cleaning['checklists_out'])}**"],
        ["**Species analysed**", f"**{fmt_num(cleaning['species_out'])}**"],
    ]
    return [md_table(["Stage", "Count"], rows, ["l", "r"]), ""]


def _curve_section(key: str, curve: dict, thresholds: list, max_rows: int) -> list:
    lines = [f"### {curve_title(key)}", ""]
    ref = curve["reference"]
    lines.append(f"Reference (100%): {fmt(ref, 3)} ({curve['reference_label']}).")
    pool = curve["details"].get("species_pool")
    if pool:
        lines.append(
            f"Observed species: {pool['S']}; Chao {fmt(pool['chao'], 1)}, "
            f"jackknife-1 {fmt(pool['jack1'], 1)}, jackknife-2 {fmt(pool['jack2'], 1)}, "
            f"bootstrap {fmt(pool['boot'], 1)}."
        )
    lines.append("")

    lines.append(records_table(thresholds, [
        ("Threshold", "threshold", str),
        ("Sample size", "sample_size", fmt_reached),
        ("Reached (%)", "cumulative_pct", fmt_pct),
    ]))
    lines.append("")

    points = curve["points"]
    step = max(1, -(-len(points) // max_rows))
    shown = points[::step]
    if shown[-1] is not points[-1]:
        shown.append(points[-1])
    rows = [[p["sample_size"], fmt_mean_sd(p["mean"], p["sd"], 3), fmt_pct(p["cumulative_pct"])]
            for p in shown]
    if key.startswith("diversity_"):
        for row, p in zip(rows, shown):
            row.append(f"{fmt(p['lower'], 3)} – {fmt(p['upper'], 3)}")
            row.append(fmt(p["cv"], 3))
        headers = ["n", "Mean ± SD", "% of ref.", "95% interval", "CV"]
    else:
        headers = ["n", "Mean ± SD", "% of ref."]
    lines.append(md_table(headers, rows, ["r"] * len(headers)))
    lines.append("")
    return lines


def generate_report(out_dir, max_rows: int = 20) -> str:
    """Render report.md from results.json in *out_dir*; returns the Markdown."""
    data = load_results(out_dir)
    cfg = data["config"]

    lines = ["# eBird Sampling Effort: How Many Checklists Are Enough?", ""]
    lines.append(f"*Generated: {data['generated']}*")
    lines.append("")
    lines.append("## Settings")
    lines.append("")
    years = f"{cfg['year_start'] or 'any'}–{cfg['year_end'] or 'any'}"
    lines.append(md_table(["Setting", "Value"], [
        ["Locality", cfg["locality_id"] or "all"],
        ["Years", years],
        ["Protocols", ", ".join(cfg["protocols"])],
        ["Duration (min)", f"{fmt(cfg['min_duration'], 0)}–{fmt(cfg['max_duration'], 0)}"],
        ["Max distance (km)", fmt(cfg["max_distance_km"], 1)],
        ["Rare-species trim", fmt_pct(cfg["rare_species_pct"], 2)],
        ["Permutations", fmt_num(cfg["permutations"])],
        ["Bootstrap repetitions", fmt_num(cfg["bootstrap_reps"])],
        ["Seed", cfg["seed"]],
    ]))
    lines.append("")

    for name, variant in data["variants"].items():
        lines.append(f"## {name.replace('_', ' ').capitalize()}")
        lines.append("")
        lines.append(f"{variant['checklists']} checklists, {variant['species']} species.")
        lines.append("")
        lines.append("### Cleaning")
        lines.append("")
        lines.extend(_cleaning_section(variant["cleaning"]))
        for key, curve in variant["curves"].items():
            lines.extend(_curve_section(key, curve, variant["thresholds"][key], max_rows))

    report = "\n".join(lines)
    path = Path(out_dir) / REPORT_FILE
    path.write_text(report)
    log.info("Report written to %s (%d lines)", path, len(lines))
    return report
