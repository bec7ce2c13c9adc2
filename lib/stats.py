"""Community-ecology statistics for checklist-based sampling analyses.

Provides the estimators shared by the sampling-effort engines: Shannon
diversity, Bray-Curtis similarity, incidence-based species-pool
estimators (Chao, first/second-order jackknife, bootstrap), summaries of
resampling draws, and cumulative-percentage curves.

Usage::

    from lib.stats import shannon, bray_curtis_similarity, species_pool

    h = shannon([10, 5, 5])                  # 1.0397
    s = bray_curtis_similarity([1, 2], [2, 1])  # 0.6667
    pool = species_pool(presence)            # {'S': 12, 'chao': 14.3, ...}
"""

import math

import numpy as np
from scipy import stats as sp_stats
from scipy.spatial import distance as sp_distance

POOL_ESTIMATORS = ("chao", "jack1", "jack2", "boot")


def shannon(counts) -> float:
    """Shannon diversity index H' (natural logarithm).

    Proportions are taken over the positive entries of *counts*; zero
    entries contribute nothing.

    Args:
        counts: 1D sequence of non-negative abundances (counts or mean
            counts per species).

    Returns:
        H' as a float. Returns 0.0 when fewer than two species have
        positive abundance (a single species has no uncertainty).

    Examples:
        >>> shannon([5, 5])
        0.6931...
        >>> shannon([12])
        0.0
    """
    v = np.asarray(counts, dtype=float)
    v = v[v > 0]
    if len(v) < 2:
        return 0.0
    return float(sp_stats.entropy(v))


def bray_curtis_similarity(a, b) -> float:
    """One minus the Bray-Curtis dissimilarity of two abundance vectors.

    Args:
        a: 1D abundance vector.
        b: 1D abundance vector of the same length.

    Returns:
        Similarity in [0, 1], or NaN when both vectors are all zero
        (the coefficient is undefined for two empty samples).

    Examples:
        >>> bray_curtis_similarity([1, 0, 3], [1, 0, 3])
        1.0
        >>> bray_curtis_similarity([2, 0], [0, 2])
        0.0
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    if a.shape != b.shape:
        raise ValueError(f"vectors differ in length: {a.shape} vs {b.shape}")
    if a.sum() + b.sum() == 0:
        return math.nan
    return float(1.0 - sp_distance.braycurtis(a, b))


def species_pool(presence) -> dict:
    """Incidence-based estimates of the total species pool.

    Uses species frequencies across sampling units (checklists) with the
    small-sample correction (N - 1) / N, matching the classic
    specpool formulation.

    Args:
        presence: 2D array (sites x species); any value > 0 counts as
            present.

    Returns:
        Dict with keys:
            S: Observed number of species.
            chao: Bias-corrected Chao estimate.
            jack1: First-order jackknife.
            jack2: Second-order jackknife.
            boot: Bootstrap estimate.
            n_sites: Number of sites (rows).
            singletons: Species found on exactly one site.
            doubletons: Species found on exactly two sites.
    """
    m = np.asarray(presence) > 0
    if m.ndim != 2:
        raise ValueError("presence must be a 2D sites x species array")
    n = m.shape[0]
    if n == 0:
        raise ValueError("species_pool requires at least one site")

    freq = m.sum(axis=0)
    freq = freq[freq > 0]
    s_obs = int(len(freq))
    a1 = int(np.sum(freq == 1))
    a2 = int(np.sum(freq == 2))
    small = (n - 1) / n

    if a2 > 0:
        chao = s_obs + small * a1 * a1 / (2 * a2)
    else:
        chao = s_obs + small * a1 * (a1 - 1) / 2

    jack1 = s_obs + a1 * small
    if n > 1:
        jack2 = s_obs + a1 * (2 * n - 3) / n - a2 * (n - 2) ** 2 / (n * (n - 1))
    else:
        jack2 = s_obs + a1

    p = freq / n
    boot = s_obs + float(np.sum((1 - p) ** n))

    return {
        "S": s_obs,
        "chao": float(chao),
        "jack1": float(jack1),
        "jack2": float(jack2),
        "boot": float(boot),
        "n_sites": int(n),
        "singletons": a1,
        "doubletons": a2,
    }


def summarize_draws(draws: np.ndarray, percentiles: tuple = (2.5, 97.5)) -> dict:
    """Summarize resampling draws column by column.

    Each column holds the draws for one sample size; NaN draws (undefined
    statistics) are ignored.

    Args:
        draws: 2D array (repetitions x sample sizes).
        percentiles: Lower and upper percentile bounds to report.

    Returns:
        Dict of 1D arrays keyed mean, sd, cv, lower, upper, n_valid.
        ``sd`` is the sample standard deviation (ddof=1) and is NaN for
        columns with fewer than two valid draws. ``cv`` is sd / mean and
        NaN where the mean is zero.
    """
    draws = np.asarray(draws, dtype=float)
    if draws.ndim != 2:
        raise ValueError("draws must be a 2D repetitions x sample-size array")

    valid = ~np.isnan(draws)
    n_valid = valid.sum(axis=0)
    n_cols = draws.shape[1]

    mean = np.full(n_cols, np.nan)
    sd = np.full(n_cols, np.nan)
    lower = np.full(n_cols, np.nan)
    upper = np.full(n_cols, np.nan)

    for j in range(n_cols):
        col = draws[valid[:, j], j]
        if len(col) == 0:
            continue
        mean[j] = col.mean()
        if len(col) > 1:
            sd[j] = col.std(ddof=1)
        lower[j], upper[j] = np.percentile(col, percentiles)

    with np.errstate(divide="ignore", invalid="ignore"):
        cv = np.where(mean != 0, sd / mean, np.nan)

    return {
        "mean": mean,
        "sd": sd,
        "cv": cv,
        "lower": lower,
        "upper": upper,
        "n_valid": n_valid,
    }


def cumulative_pct(values, reference: float) -> np.ndarray:
    """Express *values* as a percentage of *reference*.

    Returns an all-NaN array when the reference is zero, NaN or infinite.

    Examples:
        >>> cumulative_pct([1.0, 2.0, 4.0], 4.0)
        array([ 25.,  50., 100.])
    """
    v = np.asarray(values, dtype=float)
    if reference is None or not math.isfinite(reference) or reference == 0:
        return np.full(v.shape, np.nan)
    return v / reference * 100.0
