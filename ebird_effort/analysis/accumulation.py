"""Species accumulation: expected richness vs. number of checklists sampled.

Random-order accumulation: each permutation shuffles the checklists and
records how many distinct species have been seen after 1, 2, ... N
checklists. The mean over permutations is the accumulation curve; the
species-pool estimate for the full matrix is its 100% reference.
"""

import logging

import numpy as np

from ebird_effort.analysis.cleaning import ChecklistMatrix
from ebird_effort.analysis.curves import Curve
from ebird_effort.errors import InsufficientDataError
from lib.stats import species_pool

log = logging.getLogger(__name__)


def accumulation_draws(presence: np.ndarray, permutations: int, rng: np.random.Generator) -> np.ndarray:
    """Running richness for each random checklist order.

    Returns:
        Array (permutations x N); column k-1 is the richness after k checklists.
    """
    presence = np.asarray(presence, dtype=bool)
    n = presence.shape[0]
    draws = np.empty((permutations, n), dtype=float)
    for i in range(permutations):
        order = rng.permutation(n)
        seen = np.logical_or.accumulate(presence[order], axis=0)
        draws[i] = seen.sum(axis=1)
    return draws


def species_accumulation(
    matrix: ChecklistMatrix,
    permutations: int,
    rng: np.random.Generator,
    estimator: str = "chao",
) -> Curve:
    """Species accumulation curve with cumulative % of the species-pool estimate.

    Args:
        matrix: Cleaned checklist x species counts.
        permutations: Number of random checklist orders.
        rng: Random generator for the permutations.
        estimator: Pool estimate used as the reference
            (``chao``, ``jack1``, ``jack2`` or ``boot``).

    Raises:
        InsufficientDataError: with fewer than two checklists.
    """
    if matrix.n_checklists < 2:
        raise InsufficientDataError(
            "Species accumulation needs at least 2 checklists",
            {"checklists": matrix.n_checklists},
        )

    presence = matrix.presence()
    pool = species_pool(presence)
    if estimator not in pool:
        raise ValueError(f"Unknown species-pool estimator {estimator!r}")

    log.debug("Accumulating %d checklists x %d species over %d permutations",
              matrix.n_checklists, matrix.n_species, permutations)
    draws = accumulation_draws(presence, permutations, rng)
    sizes = np.arange(1, matrix.n_checklists + 1)

    curve = Curve.from_draws(
        "species_accumulation", sizes, draws,
        reference=pool[estimator],
        reference_label=f"{estimator} species-pool estimate",
        details={"species_pool": pool, "estimator": estimator, "permutations": permutations},
    )
    log.info("Accumulation: %d species observed, %s estimate %.1f", pool["S"], estimator, pool[estimator])
    return curve
