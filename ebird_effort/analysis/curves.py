"""Resampling curves shared by the accumulation, similarity and bootstrap engines."""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from lib.stats import cumulative_pct, summarize_draws


def _clean(x) -> Optional[float]:
    x = float(x)
    return None if math.isnan(x) else x


@dataclass(frozen=True)
class CurvePoint:
    sample_size: int
    mean: float
    sd: float
    cumulative_pct: float
    cv: float = math.nan
    lower: float = math.nan
    upper: float = math.nan

    def to_dict(self) -> dict:
        """JSON-safe dict; NaN becomes None."""
        return {
            "sample_size": self.sample_size,
            "mean": _clean(self.mean),
            "sd": _clean(self.sd),
            "cv": _clean(self.cv),
            "lower": _clean(self.lower),
            "upper": _clean(self.upper),
            "cumulative_pct": _clean(self.cumulative_pct),
        }


@dataclass(frozen=True)
class Curve:
    """Mean statistic per sample size, with its percentage of a reference value.

    ``reference`` is what 100% means: an asymptotic richness estimate for
    accumulation, the largest-sample value for similarity and diversity.
    """
    metric: str
    points: Tuple[CurvePoint, ...]
    reference: float
    reference_label: str
    details: dict = field(default_factory=dict)

    @classmethod
    def from_draws(
        cls,
        metric: str,
        sample_sizes: Sequence[int],
        draws: np.ndarray,
        reference: Optional[float] = None,
        reference_label: str = "largest sample",
        details: Optional[dict] = None,
    ) -> "Curve":
        """Summarize a (repetitions x sample sizes) draw array.

        Without an explicit *reference* the mean at the largest sample size
        is used.
        """
        s = summarize_draws(draws)
        if reference is None:
            reference = float(s["mean"][-1])
        pct = cumulative_pct(s["mean"], reference)
        points = tuple(
            CurvePoint(
                sample_size=int(n),
                mean=float(s["mean"][i]),
                sd=float(s["sd"][i]),
                cumulative_pct=float(pct[i]),
                cv=float(s["cv"][i]),
                lower=float(s["lower"][i]),
                upper=float(s["upper"][i]),
            )
            for i, n in enumerate(sample_sizes)
        )
        return cls(metric, points, float(reference), reference_label, dict(details or {}))

    def __len__(self) -> int:
        return len(self.points)

    def pct_series(self) -> List[Tuple[int, float]]:
        return [(p.sample_size, p.cumulative_pct) for p in self.points]

    def means(self) -> np.ndarray:
        return np.array([p.mean for p in self.points])

    def to_dict(self) -> dict:
        return {
            "metric": self.metric,
            "reference": _clean(self.reference),
            "reference_label": self.reference_label,
            "details": self.details,
            "points": [p.to_dict() for p in self.points],
        }
