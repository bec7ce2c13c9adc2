"""Analysis settings for the sampling-effort pipeline.

Defaults reproduce the reference greenspace run: complete checklists from
area, stationary and traveling protocols, 5-240 minutes, at most 10 km,
1000 permutations/bootstrap repetitions and a 5% frequent-species trim.
"""

import json
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Optional, Tuple

from ebird_effort.ebird.columns import ColumnMap, PRESETS
from lib.stats import POOL_ESTIMATORS

DEFAULT_PROTOCOLS = ("Area", "Stationary", "Traveling")
DEFAULT_THRESHOLDS = (70.0, 80.0, 90.0)


@dataclass(frozen=True)
class AnalysisConfig:
    locality_id: Optional[str] = None
    year_start: Optional[int] = None
    year_end: Optional[int] = None
    protocols: Tuple[str, ...] = DEFAULT_PROTOCOLS
    min_duration: float = 5.0
    max_duration: float = 240.0
    max_distance_km: float = 10.0
    rare_species_pct: Optional[float] = 5.0  # None: skip the frequent-species variant
    permutations: int = 1000
    bootstrap_reps: int = 1000
    seed: Optional[int] = None
    estimator: str = "chao"
    thresholds: Tuple[float, ...] = DEFAULT_THRESHOLDS
    columns: ColumnMap = field(default_factory=ColumnMap)

    def __post_init__(self):
        if self.year_start is not None and self.year_end is not None and self.year_start > self.year_end:
            raise ValueError(f"year_start {self.year_start} is after year_end {self.year_end}")
        if self.min_duration > self.max_duration:
            raise ValueError("min_duration must not exceed max_duration")
        if self.max_distance_km < 0:
            raise ValueError("max_distance_km must be non-negative")
        if self.permutations < 1 or self.bootstrap_reps < 1:
            raise ValueError("permutations and bootstrap_reps must be positive")
        if self.rare_species_pct is not None and not 0 <= self.rare_species_pct <= 100:
            raise ValueError("rare_species_pct must be between 0 and 100")
        if self.estimator not in POOL_ESTIMATORS:
            raise ValueError(f"estimator must be one of {POOL_ESTIMATORS}, got {self.estimator!r}")
        if not self.protocols:
            raise ValueError("at least one protocol type is required")

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisConfig":
        """Build from a plain mapping, e.g. parsed JSON.

        ``columns`` may be a preset name (``"dotted"``) or a mapping of
        field overrides, optionally with a ``"preset"`` key.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {sorted(unknown)}")

        kwargs = dict(data)
        cols = kwargs.pop("columns", None)
        if isinstance(cols, str):
            if cols not in PRESETS:
                raise ValueError(f"Unknown column preset {cols!r}")
            kwargs["columns"] = PRESETS[cols]()
        elif isinstance(cols, dict):
            cols = dict(cols)
            base = cols.pop("preset", "underscore")
            kwargs["columns"] = ColumnMap.from_dict(cols, base=base)
        for key in ("protocols", "thresholds"):
            if key in kwargs:
                kwargs[key] = tuple(kwargs[key])
        return cls(**kwargs)

    @classmethod
    def from_json(cls, path) -> "AnalysisConfig":
        with open(Path(path)) as f:
            return cls.from_dict(json.load(f))

    def with_overrides(self, **overrides) -> "AnalysisConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    def to_dict(self) -> dict:
        d = asdict(self)
        d["protocols"] = list(self.protocols)
        d["thresholds"] = list(self.thresholds)
        return d
