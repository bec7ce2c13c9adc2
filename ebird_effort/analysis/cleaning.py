"""Checklist cleaning and the checklist x species count matrix.

Turns raw observation rows into a numeric matrix of complete, comparable
checklists:

1. year from the observation date (parsed by the loader)
2. checklists carrying the "X" (present, uncounted) sentinel are flagged
3. species and issf rows only; counts summed per (checklist, species) so
   subspecies fold into their species; non-numeric counts are dropped
4. complete checklists of an allowed protocol, no sentinel, inside the
   year window (and the target locality, when one is set)
5. one randomly chosen checklist per shared group
6. duration and distance effort limits
7. optionally, species seen on less than N% of a locality's checklists
"""

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ebird_effort.config import AnalysisConfig
from ebird_effort.ebird.loader import ObservationRecord
from ebird_effort.errors import EmptySelectionError, UnknownLocalityError

log = logging.getLogger(__name__)

KEPT_CATEGORIES = ("species", "issf")

# eBird protocol names as they appear in EBD exports, mapped to the short forms
PROTOCOL_ALIASES = {
    "ebird - traveling count": "traveling",
    "ebird - stationary count": "stationary",
    "ebird - exhaustive area count": "area",
    "exhaustive area": "area",
    "travelling": "traveling",
}


def normalize_protocol(name: str) -> str:
    key = name.strip().lower()
    return PROTOCOL_ALIASES.get(key, key)


@dataclass(frozen=True)
class Checklist:
    checklist_id: str
    locality_id: str
    locality: str
    observation_date: date
    protocol: str
    complete: bool
    distance_km: Optional[float]
    area_ha: Optional[float]
    duration_min: Optional[float]
    group_id: Optional[str]
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def year(self) -> int:
        return self.observation_date.year

    @classmethod
    def from_record(cls, rec: ObservationRecord) -> "Checklist":
        return cls(
            checklist_id=rec.checklist_id,
            locality_id=rec.locality_id,
            locality=rec.locality,
            observation_date=rec.observation_date,
            protocol=rec.protocol,
            complete=rec.complete,
            distance_km=rec.distance_km,
            area_ha=rec.area_ha,
            duration_min=rec.duration_min,
            group_id=rec.group_id,
            latitude=rec.latitude,
            longitude=rec.longitude,
        )


@dataclass(frozen=True)
class ChecklistMatrix:
    """Checklists (rows) x species (columns) of summed counts.

    Cells are filled explicitly: absent (checklist, species) pairs are 0.
    """
    checklists: Tuple[Checklist, ...]
    species: Tuple[str, ...]
    counts: np.ndarray

    def __post_init__(self):
        shape = (len(self.checklists), len(self.species))
        if self.counts.shape != shape:
            raise ValueError(f"counts shape {self.counts.shape} does not match {shape}")
        if not np.all(np.isfinite(self.counts)):
            raise ValueError("counts must be finite numbers")

    @classmethod
    def build(
        cls,
        checklists: Sequence[Checklist],
        totals: Dict[Tuple[str, str], float],
    ) -> "ChecklistMatrix":
        """Build from per-(checklist id, species) totals; missing pairs are 0."""
        checklists = tuple(sorted(checklists, key=lambda c: c.checklist_id))
        row_of = {c.checklist_id: i for i, c in enumerate(checklists)}
        species = tuple(sorted({sp for cid, sp in totals if cid in row_of}))
        col_of = {sp: j for j, sp in enumerate(species)}

        counts = np.zeros((len(checklists), len(species)), dtype=float)
        for (cid, sp), total in totals.items():
            if cid in row_of:
                counts[row_of[cid], col_of[sp]] = total
        return cls(checklists, species, counts)

    @property
    def n_checklists(self) -> int:
        return len(self.checklists)

    @property
    def n_species(self) -> int:
        return len(self.species)

    @property
    def checklist_ids(self) -> List[str]:
        return [c.checklist_id for c in self.checklists]

    def presence(self) -> np.ndarray:
        return self.counts > 0

    def row_totals(self) -> np.ndarray:
        return self.counts.sum(axis=1)

    def localities(self) -> Dict[str, int]:
        """Locality id -> number of checklists."""
        return dict(Counter(c.locality_id for c in self.checklists))

    def restrict_to_locality(self, locality_id: str) -> "ChecklistMatrix":
        """Rows of one locality; species never seen there are dropped.

        Raises:
            UnknownLocalityError: if no checklist has this locality id.
        """
        rows = [i for i, c in enumerate(self.checklists) if c.locality_id == locality_id]
        if not rows:
            raise UnknownLocalityError(
                f"Locality {locality_id!r} not found",
                {"known": ", ".join(sorted(self.localities())) or "none"},
            )
        local = ChecklistMatrix(
            tuple(self.checklists[i] for i in rows), self.species, self.counts[rows])
        return local.drop_empty_species()

    def drop_species(self, names: Iterable[str]) -> "ChecklistMatrix":
        """Copy without the named species columns; unknown names are ignored."""
        names = set(names)
        keep = np.array([sp not in names for sp in self.species], dtype=bool)
        return ChecklistMatrix(
            self.checklists,
            tuple(sp for sp, k in zip(self.species, keep) if k),
            self.counts[:, keep],
        )

    def drop_empty_species(self) -> "ChecklistMatrix":
        """Copy without species that have no counts on any checklist."""
        empty = [sp for sp, total in zip(self.species, self.counts.sum(axis=0)) if total <= 0]
        return self.drop_species(empty) if empty else self

    def to_records(self) -> List[dict]:
        """Long (checklist, species, count) rows with count > 0."""
        out = []
        for i, c in enumerate(self.checklists):
            for j in np.flatnonzero(self.counts[i]):
                out.append({
                    "checklist_id": c.checklist_id,
                    "locality_id": c.locality_id,
                    "species": self.species[j],
                    "count": float(self.counts[i, j]),
                })
        return out


@dataclass
class CleaningSummary:
    rows_read: int = 0
    rows_other_category: int = 0
    rows_malformed_count: int = 0
    checklists_read: int = 0
    sentinel_checklists: int = 0
    dropped_incomplete: int = 0
    dropped_protocol: int = 0
    dropped_sentinel: int = 0
    dropped_year: int = 0
    dropped_locality: int = 0
    group_duplicates: int = 0
    dropped_duration: int = 0
    dropped_distance: int = 0
    trimmed_species: List[Tuple[str, str]] = field(default_factory=list)
    checklists_out: int = 0
    species_out: int = 0

    def to_dict(self) -> dict:
        d = dict(self.__dict__)
        d["trimmed_species"] = [{"locality_id": loc, "species": sp} for loc, sp in self.trimmed_species]
        return d


# ── Stages ───────────────────────────────────────────────────────────────

def count_sentinels(records: Iterable[ObservationRecord]) -> Dict[str, int]:
    """Number of "X" counts on each checklist (checklists without any are absent)."""
    return dict(Counter(r.checklist_id for r in records if r.is_sentinel))


def sum_species_counts(
    records: Iterable[ObservationRecord],
    summary: Optional[CleaningSummary] = None,
) -> Dict[Tuple[str, str], float]:
    """Sum numeric counts per (checklist, species) over species and issf rows.

    Sentinel rows carry no number and are left out of the sums; any other
    non-numeric count is malformed, logged and excluded.
    """
    summary = summary or CleaningSummary()
    totals: Dict[Tuple[str, str], float] = defaultdict(float)
    malformed = []
    for r in records:
        if r.category not in KEPT_CATEGORIES:
            summary.rows_other_category += 1
            continue
        if r.is_sentinel:
            continue
        value = r.numeric_count()
        if value is None:
            summary.rows_malformed_count += 1
            malformed.append((r.checklist_id, r.common_name, r.count))
            continue
        totals[(r.checklist_id, r.common_name)] += value

    if malformed:
        log.warning("Excluded %d rows with non-numeric counts, e.g. %s", len(malformed), malformed[:3])
    return dict(totals)


def filter_quality(
    checklists: Iterable[Checklist],
    sentinels: Dict[str, int],
    config: AnalysisConfig,
    summary: Optional[CleaningSummary] = None,
) -> List[Checklist]:
    """Complete, allowed-protocol, sentinel-free checklists inside the year window."""
    summary = summary or CleaningSummary()
    allowed = {normalize_protocol(p) for p in config.protocols}
    kept = []
    for c in checklists:
        if not c.complete:
            summary.dropped_incomplete += 1
        elif normalize_protocol(c.protocol) not in allowed:
            summary.dropped_protocol += 1
        elif sentinels.get(c.checklist_id, 0) > 0:
            summary.dropped_sentinel += 1
        elif (config.year_start is not None and c.year < config.year_start) or (
                config.year_end is not None and c.year > config.year_end):
            summary.dropped_year += 1
        else:
            kept.append(c)
    return kept


def deduplicate_groups(
    checklists: Sequence[Checklist],
    rng: np.random.Generator,
) -> Tuple[List[Checklist], int]:
    """Keep one uniformly drawn checklist per shared group identifier.

    Any non-blank group identifier marks a shared checklist. Groups are
    visited in sorted order and members in id order so a seeded generator
    always picks the same checklists.

    Returns:
        (kept checklists, number removed)
    """
    groups: Dict[str, List[Checklist]] = defaultdict(list)
    kept = []
    for c in checklists:
        if c.group_id:
            groups[c.group_id].append(c)
        else:
            kept.append(c)

    removed = 0
    for gid in sorted(groups):
        members = sorted(groups[gid], key=lambda c: c.checklist_id)
        kept.append(members[int(rng.integers(len(members)))])
        removed += len(members) - 1
    return kept, removed


def filter_effort(
    checklists: Iterable[Checklist],
    config: AnalysisConfig,
    summary: Optional[CleaningSummary] = None,
) -> List[Checklist]:
    """Duration within [min, max] minutes inclusive, distance at most the cap.

    A missing duration fails; a missing distance counts as 0 km because
    stationary and area counts do not report one.
    """
    summary = summary or CleaningSummary()
    kept = []
    for c in checklists:
        if c.duration_min is None or not config.min_duration <= c.duration_min <= config.max_duration:
            summary.dropped_duration += 1
        elif (c.distance_km or 0.0) > config.max_distance_km:
            summary.dropped_distance += 1
        else:
            kept.append(c)
    return kept


def trim_rare_species(
    matrix: ChecklistMatrix,
    min_pct: float,
) -> Tuple[ChecklistMatrix, List[Tuple[str, str]]]:
    """Zero out species found on less than *min_pct* % of a locality's checklists.

    Frequency is (checklists with the species / checklists at the locality)
    x 100; a species exactly at *min_pct* is kept. Species left with no
    counts anywhere are dropped from the columns.

    Returns:
        (trimmed matrix, list of (locality id, species) removed)
    """
    counts = matrix.counts.copy()
    presence = matrix.presence()
    localities = np.array([c.locality_id for c in matrix.checklists])
    removed = []

    for loc in sorted(set(localities)):
        rows = localities == loc
        n_rows = int(rows.sum())
        present = presence[rows].sum(axis=0)
        for j in np.flatnonzero(present):
            if present[j] * 100.0 / n_rows < min_pct:
                counts[rows, j] = 0.0
                removed.append((str(loc), matrix.species[j]))

    trimmed = ChecklistMatrix(matrix.checklists, matrix.species, counts).drop_empty_species()
    return trimmed, removed


def _require(items, stage: str):
    if not items:
        raise EmptySelectionError(f"No checklists left after {stage}", {"stage": stage})


# ── Pipeline ─────────────────────────────────────────────────────────────

def clean_observations(
    records: Sequence[ObservationRecord],
    config: AnalysisConfig,
    rng: np.random.Generator,
    frequent_only: bool = False,
) -> Tuple[ChecklistMatrix, CleaningSummary]:
    """Run every cleaning stage and build the checklist x species matrix.

    Args:
        records: Raw observation rows from the loader.
        config: Filter settings.
        rng: Generator used for the group deduplication draw.
        frequent_only: Also trim species below ``config.rare_species_pct``.

    Raises:
        EmptySelectionError: when a stage leaves no checklists.
        UnknownLocalityError: when ``config.locality_id`` is absent from the data.
    """
    summary = CleaningSummary(rows_read=len(records))
    _require(records, "loading")

    sentinels = count_sentinels(records)
    summary.sentinel_checklists = len(sentinels)

    kept_rows = [r for r in records if r.category in KEPT_CATEGORIES]
    totals = sum_species_counts(records, summary)

    checklists: Dict[str, Checklist] = {}
    for r in kept_rows:
        if r.checklist_id not in checklists:
            checklists[r.checklist_id] = Checklist.from_record(r)
    summary.checklists_read = len(checklists)
    _require(checklists, "taxonomic filtering")
    log.info("%d rows, %d checklists with species-level records (%d with 'X' counts)",
             summary.rows_read, summary.checklists_read, summary.sentinel_checklists)

    if config.locality_id is not None:
        known = {c.locality_id for c in checklists.values()}
        if config.locality_id not in known:
            raise UnknownLocalityError(
                f"Locality {config.locality_id!r} not found",
                {"known": ", ".join(sorted(known))},
            )
        before = len(checklists)
        checklists = {k: c for k, c in checklists.items() if c.locality_id == config.locality_id}
        summary.dropped_locality = before - len(checklists)

    selected = filter_quality(checklists.values(), sentinels, config, summary)
    log.info("Quality filter: kept %d (incomplete %d, protocol %d, 'X' %d, year %d)",
             len(selected), summary.dropped_incomplete, summary.dropped_protocol,
             summary.dropped_sentinel, summary.dropped_year)
    _require(selected, "quality filtering")

    selected, summary.group_duplicates = deduplicate_groups(selected, rng)
    log.info("Group deduplication removed %d shared checklists", summary.group_duplicates)

    selected = filter_effort(selected, config, summary)
    log.info("Effort filter: kept %d (duration %d, distance %d)",
             len(selected), summary.dropped_duration, summary.dropped_distance)
    _require(selected, "effort filtering")

    matrix = ChecklistMatrix.build(selected, totals)

    if frequent_only:
        if config.rare_species_pct is None:
            raise ValueError("frequent_only requires rare_species_pct to be set")
        matrix, summary.trimmed_species = trim_rare_species(matrix, config.rare_species_pct)
        log.info("Trimmed %d locality/species pairs below %.2f%% of checklists",
                 len(summary.trimmed_species), config.rare_species_pct)

    summary.checklists_out = matrix.n_checklists
    summary.species_out = matrix.n_species
    return matrix, summary
