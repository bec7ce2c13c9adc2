"""Clean -> metric engines -> threshold summaries, for one or both species variants.

The "all species" and "frequent species only" analyses are the same
pipeline; ``frequent_only`` switches on the rare-species trim.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from ebird_effort.analysis.accumulation import species_accumulation
from ebird_effort.analysis.bootstrap import bootstrap_diversity
from ebird_effort.analysis.cleaning import ChecklistMatrix, CleaningSummary, clean_observations
from ebird_effort.analysis.curves import Curve
from ebird_effort.analysis.similarity import similarity_decay
from ebird_effort.analysis.thresholds import ThresholdRecord, summarize_thresholds
from ebird_effort.config import AnalysisConfig
from ebird_effort.ebird.loader import ObservationRecord

log = logging.getLogger(__name__)

ALL_SPECIES = "all_species"
FREQUENT_SPECIES = "frequent_species"


@dataclass
class VariantResult:
    name: str
    matrix: ChecklistMatrix
    summary: CleaningSummary
    accumulation: Curve
    similarity: Curve
    diversity: Dict[str, Curve] = field(default_factory=dict)
    thresholds: Dict[str, List[ThresholdRecord]] = field(default_factory=dict)

    def curves(self) -> Dict[str, Curve]:
        """All curves keyed by a file-friendly name."""
        out = {"accumulation": self.accumulation, "similarity": self.similarity}
        for loc, curve in self.diversity.items():
            out[f"diversity_{loc}"] = curve
        return out

    def to_dict(self) -> dict:
        return {
            "variant": self.name,
            "checklists": self.matrix.n_checklists,
            "species": self.matrix.n_species,
            "localities": self.matrix.localities(),
            "cleaning": self.summary.to_dict(),
            "curves": {k: c.to_dict() for k, c in self.curves().items()},
            "thresholds": {k: [r.to_dict() for r in recs] for k, recs in self.thresholds.items()},
        }


def spawn_generators(entropy: Optional[int]) -> Dict[str, np.random.Generator]:
    """Independent, reproducible streams for each random step."""
    children = np.random.SeedSequence(entropy).spawn(4)
    names = ("cleaning", "accumulation", "similarity", "bootstrap")
    return {name: np.random.default_rng(ss) for name, ss in zip(names, children)}


def resolve_entropy(config: AnalysisConfig) -> int:
    """The configured seed, or fresh OS entropy when none is set."""
    if config.seed is not None:
        return int(config.seed)
    return int(np.random.SeedSequence().entropy)


def run_variant(
    records: Sequence[ObservationRecord],
    config: AnalysisConfig,
    frequent_only: bool = False,
    entropy: Optional[int] = None,
) -> VariantResult:
    """Clean the records and run every engine on the resulting matrix.

    Args:
        records: Raw observation rows.
        config: Analysis settings.
        frequent_only: Trim species below ``config.rare_species_pct``.
        entropy: Seed for all random steps; defaults to ``config.seed``.
            Variants run with the same entropy pick the same checklists
            from shared groups.
    """
    name = FREQUENT_SPECIES if frequent_only else ALL_SPECIES
    rngs = spawn_generators(entropy if entropy is not None else config.seed)

    log.info("=== %s ===", name)
    matrix, summary = clean_observations(records, config, rngs["cleaning"], frequent_only=frequent_only)
    log.info("Matrix: %d checklists x %d species", matrix.n_checklists, matrix.n_species)

    accumulation = species_accumulation(matrix, config.permutations, rngs["accumulation"], config.estimator)
    similarity = similarity_decay(matrix, config.permutations, rngs["similarity"])

    if config.locality_id is not None:
        localities = [config.locality_id]
    else:
        localities = sorted(matrix.localities())
    diversity = {
        loc: bootstrap_diversity(matrix, loc, config.bootstrap_reps, rngs["bootstrap"])
        for loc in localities
    }

    result = VariantResult(name, matrix, summary, accumulation, similarity, diversity)
    for key, curve in result.curves().items():
        result.thresholds[key] = summarize_thresholds(curve, config.thresholds)
    return result


def run_all(records: Sequence[ObservationRecord], config: AnalysisConfig) -> Dict[str, VariantResult]:
    """Run the all-species variant and, when a trim percentage is set, the frequent-species one."""
    entropy = resolve_entropy(config)
    log.info("Random seed: %d", entropy)
    results = {ALL_SPECIES: run_variant(records, config, frequent_only=False, entropy=entropy)}
    if config.rare_species_pct is not None:
        results[FREQUENT_SPECIES] = run_variant(records, config, frequent_only=True, entropy=entropy)
    return results
