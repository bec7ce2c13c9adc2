"""Number formatting helpers for sampling-effort reports.

Provides consistent formatting for curve values, percentages, counts and
threshold sample sizes. Uses em-dash ('—') as the standard sentinel
for missing or invalid values (None, NaN, inf).

Usage::

    from lib.formatting import fmt, fmt_pct, fmt_num, fmt_mean_sd, fmt_reached

    fmt(1.23456)            # '1.235'
    fmt_pct(72.41)          # '72.4%'
    fmt_num(12345)          # '12,345'
    fmt_mean_sd(14.2, 1.37) # '14.20 ± 1.37'
    fmt_reached(None)       # 'not reached'
"""

import math
from typing import Optional, Union

# Sentinel for missing/invalid values
_DASH = "—"

NOT_REACHED = "not reached"

Numeric = Optional[Union[int, float]]


def _is_missing(x: Numeric) -> bool:
    """Check if a value is None, NaN, or infinite."""
    if x is None:
        return True
    if isinstance(x, float) and (math.isnan(x) or math.isinf(x)):
        return True
    return False


def fmt(x: Numeric, decimals: int = 3, comma: bool = False) -> str:
    """Format a number with fixed decimal places.

    Args:
        x: The number to format. Returns em-dash for None/NaN/inf.
        decimals: Number of decimal places (default 3).
        comma: If True, add thousands separators (default False).

    Returns:
        Formatted string, or '—' if the value is missing.

    Examples:
        >>> fmt(1.23456)
        '1.235'
        >>> fmt(None)
        '—'
        >>> fmt(12345.6, 1, comma=True)
        '12,345.6'
    """
    if _is_missing(x):
        return _DASH
    sep = "," if comma else ""
    return f"{x:{sep}.{decimals}f}"


def fmt_pct(x: Numeric, decimals: int = 1) -> str:
    """Format a value already on the 0-100 scale as a percentage.

    Examples:
        >>> fmt_pct(72.41)
        '72.4%'
        >>> fmt_pct(float("nan"))
        '—'
    """
    if _is_missing(x):
        return _DASH
    return f"{x:.{decimals}f}%"


def fmt_num(x: Numeric) -> str:
    """Format a number with comma separators.

    Integers get no decimal places; floats get 1 decimal place.

    Examples:
        >>> fmt_num(1234567)
        '1,234,567'
        >>> fmt_num(1234.5)
        '1,234.5'
    """
    if _is_missing(x):
        return _DASH
    if isinstance(x, float):
        return f"{x:,.1f}"
    return f"{x:,}"


def fmt_mean_sd(mean: Numeric, sd: Numeric, decimals: int = 2) -> str:
    """Format a mean with its standard deviation as 'mean ± sd'.

    A missing sd (e.g. a single valid draw) prints the mean alone.
    """
    if _is_missing(mean):
        return _DASH
    if _is_missing(sd):
        return fmt(mean, decimals)
    return f"{mean:.{decimals}f} ± {sd:.{decimals}f}"


def fmt_reached(sample_size: Optional[int]) -> str:
    """Format a threshold sample size; None means the curve never got there."""
    if sample_size is None:
        return NOT_REACHED
    return str(sample_size)
