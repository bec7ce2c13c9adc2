"""Similarity decay ("autosimi"): how alike two samples of k checklists are.

For each sample size k, two groups of k checklists are drawn, each group
without replacement and independently of the other (a checklist may land
in both). The groups' counts are pooled and compared with Bray-Curtis
similarity. Small samples of a rich community differ a lot; as k grows
the pooled samples converge, so mean similarity rises toward 1.
"""

import logging
from typing import Optional

import numpy as np

from ebird_effort.analysis.cleaning import ChecklistMatrix
from ebird_effort.analysis.curves import Curve
from ebird_effort.errors import InsufficientDataError
from lib.stats import bray_curtis_similarity

log = logging.getLogger(__name__)


def similarity_draws(
    counts: np.ndarray,
    sample_sizes,
    permutations: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """Bray-Curtis similarity of pooled random checklist groups.

    For k = 1 the two checklists are always distinct. Undefined
    similarities (both pooled vectors empty) are NaN.

    Returns:
        Array (permutations x len(sample_sizes)).
    """
    counts = np.asarray(counts, dtype=float)
    n = counts.shape[0]
    draws = np.empty((permutations, len(sample_sizes)), dtype=float)

    for col, k in enumerate(sample_sizes):
        for i in range(permutations):
            if k == 1:
                a, b = rng.choice(n, size=2, replace=False)
                draws[i, col] = bray_curtis_similarity(counts[a], counts[b])
            else:
                group_a = rng.choice(n, size=k, replace=False)
                group_b = rng.choice(n, size=k, replace=False)
                draws[i, col] = bray_curtis_similarity(
                    counts[group_a].sum(axis=0), counts[group_b].sum(axis=0))
    return draws


def similarity_decay(
    matrix: ChecklistMatrix,
    permutations: int,
    rng: np.random.Generator,
    max_sample_size: Optional[int] = None,
) -> Curve:
    """Mean pooled-sample similarity for k = 1 .. max_sample_size.

    The mean at the largest k is the curve's 100% reference; it is a
    practical ceiling rather than an asymptote.

    Raises:
        InsufficientDataError: with fewer than two checklists.
    """
    n = matrix.n_checklists
    if n < 2:
        raise InsufficientDataError(
            "Similarity decay needs at least 2 checklists", {"checklists": n})

    k_max = n if max_sample_size is None else min(max_sample_size, n)
    if k_max < 1:
        raise ValueError("max_sample_size must be at least 1")
    sizes = np.arange(1, k_max + 1)

    log.debug("Similarity decay for k=1..%d over %d permutations", k_max, permutations)
    draws = similarity_draws(matrix.counts, sizes, permutations, rng)

    n_undefined = int(np.isnan(draws).sum())
    if n_undefined:
        log.warning("%d similarity draws compared two empty samples and were excluded", n_undefined)

    return Curve.from_draws(
        "similarity_decay", sizes, draws,
        reference_label=f"mean similarity at k={k_max}",
        details={"permutations": permutations, "undefined_draws": n_undefined},
    )
