"""Minimum sample sizes reaching 70/80/90% of a curve's reference value."""

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from ebird_effort.analysis.curves import Curve
from ebird_effort.config import DEFAULT_THRESHOLDS
from lib.formatting import fmt_reached


@dataclass(frozen=True)
class ThresholdRecord:
    threshold: float
    sample_size: Optional[int]
    cumulative_pct: Optional[float]

    @property
    def reached(self) -> bool:
        return self.sample_size is not None

    @property
    def label(self) -> str:
        return f"{self.threshold:g}%"

    def to_dict(self) -> dict:
        return {
            "threshold": self.label,
            "sample_size": self.sample_size,
            "cumulative_pct": self.cumulative_pct,
            "status": fmt_reached(self.sample_size),
        }


def summarize_thresholds(
    curve: Union[Curve, Sequence[Tuple[int, float]]],
    thresholds: Iterable[float] = DEFAULT_THRESHOLDS,
) -> List[ThresholdRecord]:
    """First sample size whose cumulative percentage is >= each threshold.

    Args:
        curve: A ``Curve`` or (sample size, cumulative %) pairs in any order.
        thresholds: Percentages to look for.

    Returns:
        One record per threshold, in the order given. A curve that never
        reaches a threshold yields ``sample_size=None`` ("not reached").

    Examples:
        >>> [r.sample_size for r in summarize_thresholds([(1, 50), (2, 65), (3, 72), (4, 91)])]
        [3, 4, 4]
    """
    series = curve.pct_series() if isinstance(curve, Curve) else list(curve)
    series = sorted(
        ((int(n), float(p)) for n, p in series if p is not None and not math.isnan(p)),
        key=lambda pair: pair[0],
    )

    records = []
    for t in thresholds:
        hit = next(((n, p) for n, p in series if p >= t), None)
        if hit is None:
            records.append(ThresholdRecord(float(t), None, None))
        else:
            records.append(ThresholdRecord(float(t), hit[0], hit[1]))
    return records
