"""Tests for lib.formatting — report number formatting helpers."""

import pytest

from lib.formatting import NOT_REACHED, fmt, fmt_mean_sd, fmt_num, fmt_pct, fmt_reached

DASH = "—"


# ── fmt() tests ──────────────────────────────────────────────────────────

class TestFmt:
    """Format a number with fixed decimal places."""

    def test_basic_positive(self):
        assert fmt(1.23456, 3) == "1.235"

    def test_default_decimals(self):
        assert fmt(1.23456) == "1.235"

    def test_integer_input(self):
        assert fmt(42, 1) == "42.0"

    def test_none_returns_dash(self):
        assert fmt(None) == DASH

    def test_nan_returns_dash(self):
        assert fmt(float("nan")) == DASH

    def test_inf_returns_dash(self):
        assert fmt(float("inf")) == DASH

    def test_comma(self):
        assert fmt(12345.6, 1, comma=True) == "12,345.6"


# ── fmt_pct() tests ──────────────────────────────────────────────────────

class TestFmtPct:
    """Percentages already on the 0-100 scale."""

    def test_basic(self):
        assert fmt_pct(72.41) == "72.4%"

    def test_custom_decimals(self):
        assert fmt_pct(5, 2) == "5.00%"

    def test_over_100(self):
        assert fmt_pct(104.0) == "104.0%"

    def test_none_returns_dash(self):
        assert fmt_pct(None) == DASH

    def test_nan_returns_dash(self):
        assert fmt_pct(float("nan")) == DASH


# ── fmt_num() tests ──────────────────────────────────────────────────────

class TestFmtNum:

    def test_integer(self):
        assert fmt_num(1234567) == "1,234,567"

    def test_float(self):
        assert fmt_num(1234.5) == "1,234.5"

    def test_zero(self):
        assert fmt_num(0) == "0"

    def test_none_returns_dash(self):
        assert fmt_num(None) == DASH


# ── fmt_mean_sd() / fmt_reached() tests ─────────────────────────────────

class TestFmtMeanSd:

    def test_basic(self):
        assert fmt_mean_sd(14.2, 1.37) == "14.20 ± 1.37"

    def test_missing_sd_prints_mean(self):
        assert fmt_mean_sd(3.0, float("nan"), 1) == "3.0"

    def test_missing_mean(self):
        assert fmt_mean_sd(None, 1.0) == DASH


class TestFmtReached:

    def test_sample_size(self):
        assert fmt_reached(12) == "12"

    def test_not_reached(self):
        assert fmt_reached(None) == NOT_REACHED == "not reached"
