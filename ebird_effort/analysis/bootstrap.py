"""Bootstrapped Shannon diversity vs. number of checklists at one locality.

Each repetition sweeps n = 1 .. N: n checklist ids are drawn with
replacement from the locality's N checklists, observations are restricted
to the drawn checklists, the mean count of each species over the
checklists reporting it is taken, and Shannon H' is computed on those
means. Repetitions give an empirical distribution of H' per n.
"""

import logging

import numpy as np

from ebird_effort.analysis.cleaning import ChecklistMatrix
from ebird_effort.analysis.curves import Curve
from lib.stats import shannon

log = logging.getLogger(__name__)


def mean_species_counts(counts: np.ndarray) -> np.ndarray:
    """Mean count per species over the rows where it was recorded."""
    counts = np.asarray(counts, dtype=float)
    reported = (counts > 0).sum(axis=0)
    totals = counts.sum(axis=0)
    keep = reported > 0
    return totals[keep] / reported[keep]


def bootstrap_draws(counts: np.ndarray, repetitions: int, rng: np.random.Generator) -> np.ndarray:
    """Shannon H' for each repetition (rows) and sample size 1..N (columns)."""
    counts = np.asarray(counts, dtype=float)
    n_total = counts.shape[0]
    draws = np.empty((repetitions, n_total), dtype=float)
    for rep in range(repetitions):
        for n in range(1, n_total + 1):
            drawn = np.unique(rng.integers(n_total, size=n))
            draws[rep, n - 1] = shannon(mean_species_counts(counts[drawn]))
    return draws


def bootstrap_diversity(
    matrix: ChecklistMatrix,
    locality_id: str,
    repetitions: int,
    rng: np.random.Generator,
) -> Curve:
    """Bootstrap Shannon diversity curve for one locality.

    Points carry mean, sd, coefficient of variation and 2.5/97.5
    percentile bounds; cumulative % is relative to the mean at n = N.

    Raises:
        UnknownLocalityError: if *locality_id* does not occur in *matrix*.
    """
    local = matrix.restrict_to_locality(locality_id)
    n_total = local.n_checklists
    log.debug("Bootstrapping diversity at %s: %d checklists x %d repetitions",
              locality_id, n_total, repetitions)

    draws = bootstrap_draws(local.counts, repetitions, rng)
    curve = Curve.from_draws(
        "bootstrap_diversity", np.arange(1, n_total + 1), draws,
        reference_label=f"mean Shannon H' at n={n_total}",
        details={"locality_id": locality_id, "repetitions": repetitions, "index": "shannon"},
    )
    log.info("Bootstrap diversity at %s: H'=%.3f with all %d checklists",
             locality_id, curve.reference, n_total)
    return curve
