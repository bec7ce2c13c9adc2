"""Tests for lib.stats — community-ecology statistics.

Covers:
- Shannon diversity index
- Bray-Curtis similarity, including the all-zero convention
- Incidence-based species-pool estimators
- Column summaries of resampling draws
- Cumulative percentage of a reference value
"""

import math

import numpy as np
import pytest

from lib.stats import (
    bray_curtis_similarity,
    cumulative_pct,
    shannon,
    species_pool,
    summarize_draws,
)


# ── Shannon ──────────────────────────────────────────────────────────────

class TestShannon:
    """Shannon H' with natural logarithm."""

    def test_two_equal_species(self):
        assert shannon([5, 5]) == pytest.approx(math.log(2))

    def test_four_equal_species(self):
        assert shannon([1, 1, 1, 1]) == pytest.approx(math.log(4))

    def test_single_species_is_zero(self):
        assert shannon([12]) == 0.0

    def test_zeros_ignored(self):
        assert shannon([3, 0, 3, 0]) == pytest.approx(math.log(2))

    def test_empty_is_zero(self):
        assert shannon([]) == 0.0

    def test_uneven_lower_than_even(self):
        assert shannon([10, 1, 1]) < shannon([4, 4, 4])

    def test_known_value(self):
        # p = [0.5, 0.25, 0.25]
        expected = -(0.5 * math.log(0.5) + 2 * 0.25 * math.log(0.25))
        assert shannon([10, 5, 5]) == pytest.approx(expected)

    def test_accepts_mean_counts(self):
        assert shannon([2.5, 2.5]) == pytest.approx(math.log(2))


# ── Bray-Curtis ──────────────────────────────────────────────────────────

class TestBrayCurtisSimilarity:
    """One minus Bray-Curtis dissimilarity."""

    def test_identical(self):
        assert bray_curtis_similarity([1, 0, 3], [1, 0, 3]) == pytest.approx(1.0)

    def test_disjoint(self):
        assert bray_curtis_similarity([2, 0], [0, 2]) == pytest.approx(0.0)

    def test_known_value(self):
        # sum|a-b| = 2, sum(a+b) = 6 -> BC = 1/3
        assert bray_curtis_similarity([1, 2], [2, 1]) == pytest.approx(2 / 3)

    def test_all_zero_is_nan(self):
        assert math.isnan(bray_curtis_similarity([0, 0], [0, 0]))

    def test_one_empty_is_zero(self):
        assert bray_curtis_similarity([0, 0], [1, 3]) == pytest.approx(0.0)

    def test_symmetric(self):
        a, b = [4, 1, 0, 2], [1, 1, 3, 0]
        assert bray_curtis_similarity(a, b) == pytest.approx(bray_curtis_similarity(b, a))

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError):
            bray_curtis_similarity([1, 2], [1, 2, 3])


# ── Species pool ─────────────────────────────────────────────────────────

class TestSpeciesPool:
    """Chao, jackknife and bootstrap richness estimates."""

    # 4 sites; sp0 on all, sp1 on two, sp2 on one, sp3 on one
    PRESENCE = np.array([
        [1, 1, 1, 0],
        [1, 1, 0, 0],
        [1, 0, 0, 1],
        [1, 0, 0, 0],
    ])

    def test_observed_and_frequencies(self):
        pool = species_pool(self.PRESENCE)
        assert pool["S"] == 4
        assert pool["n_sites"] == 4
        assert pool["singletons"] == 2
        assert pool["doubletons"] == 1

    def test_chao(self):
        # 4 + (3/4) * 2^2 / (2 * 1) = 5.5
        assert species_pool(self.PRESENCE)["chao"] == pytest.approx(5.5)

    def test_chao_without_doubletons(self):
        m = np.array([[1, 1, 0], [1, 0, 1], [1, 0, 0]])
        # S=3, a1=2, a2=0: 3 + (2/3) * 2 * 1 / 2
        assert species_pool(m)["chao"] == pytest.approx(3 + 2 / 3)

    def test_jack1(self):
        # 4 + 2 * 3/4
        assert species_pool(self.PRESENCE)["jack1"] == pytest.approx(5.5)

    def test_jack2(self):
        # 4 + 2*(5/4) - 1*(2^2)/(4*3)
        assert species_pool(self.PRESENCE)["jack2"] == pytest.approx(4 + 2.5 - 1 / 3)

    def test_boot(self):
        p = np.array([1.0, 0.5, 0.25, 0.25])
        expected = 4 + np.sum((1 - p) ** 4)
        assert species_pool(self.PRESENCE)["boot"] == pytest.approx(expected)

    def test_counts_treated_as_presence(self):
        assert species_pool(self.PRESENCE * 7) == species_pool(self.PRESENCE)

    def test_unseen_columns_ignored(self):
        m = np.hstack([self.PRESENCE, np.zeros((4, 2))])
        assert species_pool(m)["S"] == 4

    def test_no_rare_species_estimates_equal_observed(self):
        m = np.ones((5, 3))
        pool = species_pool(m)
        assert pool["chao"] == pytest.approx(3.0)
        assert pool["jack1"] == pytest.approx(3.0)

    def test_rejects_1d(self):
        with pytest.raises(ValueError):
            species_pool([1, 0, 1])


# ── Draw summaries ───────────────────────────────────────────────────────

class TestSummarizeDraws:
    """Mean, sample sd, CV and percentile bounds per column."""

    def test_mean_and_sd(self):
        draws = np.array([[1.0, 10.0], [3.0, 10.0]])
        s = summarize_draws(draws)
        assert s["mean"].tolist() == pytest.approx([2.0, 10.0])
        assert s["sd"][0] == pytest.approx(math.sqrt(2))
        assert s["sd"][1] == pytest.approx(0.0)

    def test_cv(self):
        s = summarize_draws(np.array([[1.0], [3.0]]))
        assert s["cv"][0] == pytest.approx(math.sqrt(2) / 2)

    def test_cv_nan_for_zero_mean(self):
        s = summarize_draws(np.zeros((3, 1)))
        assert math.isnan(s["cv"][0])

    def test_nan_draws_ignored(self):
        draws = np.array([[1.0], [np.nan], [3.0]])
        s = summarize_draws(draws)
        assert s["mean"][0] == pytest.approx(2.0)
        assert s["n_valid"][0] == 2

    def test_all_nan_column(self):
        s = summarize_draws(np.full((4, 1), np.nan))
        assert math.isnan(s["mean"][0])
        assert math.isnan(s["sd"][0])

    def test_single_draw_has_nan_sd(self):
        s = summarize_draws(np.array([[5.0]]))
        assert s["mean"][0] == 5.0
        assert math.isnan(s["sd"][0])

    def test_percentile_bounds(self):
        draws = np.arange(1, 101, dtype=float).reshape(-1, 1)
        s = summarize_draws(draws)
        assert s["lower"][0] == pytest.approx(np.percentile(draws, 2.5))
        assert s["upper"][0] == pytest.approx(np.percentile(draws, 97.5))
        assert s["lower"][0] < s["mean"][0] < s["upper"][0]

    def test_rejects_1d(self):
        with pytest.raises(ValueError):
            summarize_draws(np.array([1.0, 2.0]))


# ── Cumulative percentage ────────────────────────────────────────────────

class TestCumulativePct:

    def test_basic(self):
        assert cumulative_pct([1.0, 2.0, 4.0], 4.0).tolist() == pytest.approx([25.0, 50.0, 100.0])

    def test_zero_reference_gives_nan(self):
        assert np.isnan(cumulative_pct([1.0, 2.0], 0.0)).all()

    def test_nan_reference_gives_nan(self):
        assert np.isnan(cumulative_pct([1.0], float("nan"))).all()

    def test_can_exceed_100(self):
        assert cumulative_pct([6.0], 5.0)[0] == pytest.approx(120.0)
