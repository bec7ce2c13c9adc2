"""Column-name mappings for eBird checklist-observation tables.

eBird exports reach analysts with different header conventions: the raw
EBD text file uses upper-case names with spaces, R's ``auk`` package
rewrites them with underscores, and ``read.csv`` turns spaces into dots.
``ColumnMap`` names the column holding each field so the loader never
hard-codes one convention.
"""

from dataclasses import dataclass, fields
from typing import Dict


@dataclass(frozen=True)
class ColumnMap:
    checklist_id: str = "sampling_event_identifier"
    common_name: str = "common_name"
    count: str = "observation_count"
    category: str = "category"
    locality_id: str = "locality_id"
    locality: str = "locality"
    date: str = "observation_date"
    protocol: str = "protocol_type"
    complete: str = "all_species_reported"
    distance_km: str = "effort_distance_km"
    area_ha: str = "effort_area_ha"
    duration_min: str = "duration_minutes"
    group_id: str = "group_identifier"
    latitude: str = "latitude"
    longitude: str = "longitude"

    @classmethod
    def underscore(cls) -> "ColumnMap":
        return cls()

    @classmethod
    def dotted(cls) -> "ColumnMap":
        """Headers as produced by R's ``read.csv`` (``sampling.event.identifier``)."""
        return cls(**{f.name: f.default.replace("_", ".") for f in fields(cls)})

    @classmethod
    def ebd(cls) -> "ColumnMap":
        """Headers of the raw eBird Basic Dataset text file."""
        return cls(
            checklist_id="SAMPLING EVENT IDENTIFIER",
            common_name="COMMON NAME",
            count="OBSERVATION COUNT",
            category="CATEGORY",
            locality_id="LOCALITY ID",
            locality="LOCALITY",
            date="OBSERVATION DATE",
            protocol="PROTOCOL TYPE",
            complete="ALL SPECIES REPORTED",
            distance_km="EFFORT DISTANCE KM",
            area_ha="EFFORT AREA HA",
            duration_min="DURATION MINUTES",
            group_id="GROUP IDENTIFIER",
            latitude="LATITUDE",
            longitude="LONGITUDE",
        )

    @classmethod
    def from_dict(cls, mapping: Dict[str, str], base: str = "underscore") -> "ColumnMap":
        """Start from a named preset and override individual fields.

        Raises:
            ValueError: for an unknown preset or field name.
        """
        if base not in PRESETS:
            raise ValueError(f"Unknown column preset {base!r}; choose from {sorted(PRESETS)}")
        known = {f.name for f in fields(cls)}
        unknown = set(mapping) - known
        if unknown:
            raise ValueError(f"Unknown column fields: {sorted(unknown)}")
        preset = PRESETS[base]()
        return cls(**{**preset.as_dict(), **mapping})

    def as_dict(self) -> Dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def required(self) -> Dict[str, str]:
        """Fields the loader cannot do without (area, coordinates are optional)."""
        optional = {"area_ha", "latitude", "longitude", "locality", "group_id"}
        return {k: v for k, v in self.as_dict().items() if k not in optional}


PRESETS = {
    "underscore": ColumnMap.underscore,
    "dotted": ColumnMap.dotted,
    "ebd": ColumnMap.ebd,
}
