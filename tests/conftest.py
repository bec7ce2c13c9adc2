"""Shared pytest configuration and fixtures for the sampling-effort tests."""

import sys
from datetime import date
from pathlib import Path

import numpy as np
import pytest

# Ensure lib and ebird_effort are importable when running tests from the repo root
sys.path.insert(0, str(Path(__file__).parent.parent))

from ebird_effort.analysis.cleaning import Checklist, ChecklistMatrix  # noqa: E402
from ebird_effort.ebird.loader import ObservationRecord  # noqa: E402


HEADER = [
    "sampling_event_identifier", "common_name", "observation_count", "category",
    "locality_id", "locality", "observation_date", "protocol_type",
    "all_species_reported", "effort_distance_km", "effort_area_ha",
    "duration_minutes", "group_identifier", "latitude", "longitude",
]


def make_record(checklist_id, species="American Robin", count="1", **kw) -> ObservationRecord:
    """An ObservationRecord that passes every default filter unless overridden."""
    fields = dict(
        checklist_id=checklist_id,
        common_name=species,
        count=str(count),
        category="species",
        locality_id="L1",
        locality="Test Park",
        observation_date=date(2019, 5, 1),
        protocol="Traveling",
        complete=True,
        distance_km=1.0,
        area_ha=None,
        duration_min=60.0,
        group_id=None,
    )
    fields.update(kw)
    return ObservationRecord(**fields)


def make_matrix(counts, localities=None, species=None) -> ChecklistMatrix:
    """A ChecklistMatrix from a nested list of counts (rows = checklists)."""
    counts = np.asarray(counts, dtype=float)
    n, s = counts.shape
    localities = localities or ["L1"] * n
    species = species or [f"sp{j:02d}" for j in range(s)]
    checklists = tuple(
        Checklist(
            checklist_id=f"S{i:03d}",
            locality_id=localities[i],
            locality="Test Park",
            observation_date=date(2019, 5, 1),
            protocol="Traveling",
            complete=True,
            distance_km=1.0,
            area_ha=None,
            duration_min=60.0,
            group_id=None,
        )
        for i in range(n)
    )
    return ChecklistMatrix(checklists, tuple(species), counts)


def write_table(path: Path, rows, header=HEADER, delimiter=","):
    """Write header + rows as delimited text."""
    lines = [delimiter.join(header)]
    lines += [delimiter.join(str(v) for v in row) for row in rows]
    path.write_text("\n".join(lines) + "\n")
    return path


def table_row(checklist_id, species="American Robin", count="1", category="species",
              locality_id="L1", date_text="2019-05-01", protocol="Traveling",
              complete="1", distance="1.0", duration="60", group=""):
    return [checklist_id, species, count, category, locality_id, "Test Park", date_text,
            protocol, complete, distance, "", duration, group, "40.0", "-75.0"]


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def park_records():
    """Ten clean checklists at one locality with overlapping species."""
    species = ["American Robin", "Blue Jay", "Northern Cardinal", "House Sparrow", "Carolina Wren"]
    records = []
    for i in range(10):
        cid = f"S{i:03d}"
        records.append(make_record(cid, "American Robin", 2 + i % 3))
        records.append(make_record(cid, "Blue Jay", 1))
        if i % 2 == 0:
            records.append(make_record(cid, "Northern Cardinal", 2))
        if i % 3 == 0:
            records.append(make_record(cid, "House Sparrow", 5))
        if i == 7:
            records.append(make_record(cid, "Carolina Wren", 1))
    assert {r.common_name for r in records} == set(species)
    return records
