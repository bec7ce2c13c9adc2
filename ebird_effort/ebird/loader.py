"""Load eBird checklist-observation tables from delimited text.

Source: a local file or an http(s) URL serving the same text (e.g. a
shared project copy of an EBD extract). Format: header row plus one row
per (checklist, taxon) observation; comma- or tab-delimited.
"""

import csv
import io
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

import httpx

from ebird_effort.ebird.columns import ColumnMap
from ebird_effort.errors import MissingColumnError

log = logging.getLogger(__name__)

SENTINEL = "X"
DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y")
_TRUE = {"1", "true", "t", "yes", "y"}
_MISSING = {"", "na", "nan", "null", "none"}


@dataclass(frozen=True)
class ObservationRecord:
    """One row of the input table: a taxon count on one checklist."""
    checklist_id: str
    common_name: str
    count: str  # raw text: digits, the "X" sentinel, or junk
    category: str
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

    @property
    def is_sentinel(self) -> bool:
        return self.count.strip().upper() == SENTINEL

    def numeric_count(self) -> Optional[float]:
        """Count as a number, or None for the sentinel and malformed values."""
        try:
            value = float(self.count)
        except ValueError:
            return None
        if not math.isfinite(value) or value < 0:
            return None
        return value


def parse_date(text: str) -> date:
    text = text.strip()
    for f in DATE_FORMATS:
        try:
            return datetime.strptime(text, f).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognised date {text!r}")


def parse_float(text: Optional[str]) -> Optional[float]:
    if text is None or text.strip().lower() in _MISSING:
        return None
    return float(text)


def parse_optional_float(text: Optional[str]) -> Optional[float]:
    """Like ``parse_float`` but junk becomes None, for columns a row can do without."""
    try:
        return parse_float(text)
    except ValueError:
        return None


def parse_flag(text: Optional[str]) -> bool:
    return text is not None and text.strip().lower() in _TRUE


def _blank_to_none(text: Optional[str]) -> Optional[str]:
    if text is None or text.strip().lower() in _MISSING:
        return None
    return text.strip()


def default_delimiter(source: Union[str, Path]) -> str:
    """Comma for ``.csv`` sources, tab otherwise (EBD text files are tab-delimited)."""
    name = str(source).lower().split("?", 1)[0]
    return "," if name.endswith(".csv") else "\t"


def read_text(source: Union[str, Path], client: Optional[httpx.Client] = None) -> str:
    """Read the raw table text from a path or an http(s) URL."""
    src = str(source)
    if src.startswith(("http://", "https://")):
        log.info("Fetching %s", src)
        if client is not None:
            resp = client.get(src)
            resp.raise_for_status()
            return resp.text
        with httpx.Client(timeout=120, follow_redirects=True) as http:
            resp = http.get(src)
            resp.raise_for_status()
            return resp.text
    return Path(src).read_text(encoding="utf-8-sig")


def parse_rows(rows: Iterable[dict], columns: ColumnMap) -> List[ObservationRecord]:
    """Convert header-keyed rows into ``ObservationRecord``s.

    Rows with a blank checklist id, an unparseable date or unparseable
    effort numbers are skipped and counted in a single warning. Junk in the
    optional area and coordinate columns is read as missing instead.
    """
    records = []
    skipped = 0
    c = columns
    for line_no, row in enumerate(rows, start=2):
        try:
            checklist_id = (row.get(c.checklist_id) or "").strip()
            if not checklist_id:
                raise ValueError("blank checklist id")
            records.append(ObservationRecord(
                checklist_id=checklist_id,
                common_name=(row.get(c.common_name) or "").strip(),
                count=(row.get(c.count) or "").strip(),
                category=(row.get(c.category) or "").strip().lower(),
                locality_id=(row.get(c.locality_id) or "").strip(),
                locality=(row.get(c.locality) or "").strip(),
                observation_date=parse_date(row.get(c.date) or ""),
                protocol=(row.get(c.protocol) or "").strip(),
                complete=parse_flag(row.get(c.complete)),
                distance_km=parse_float(row.get(c.distance_km)),
                area_ha=parse_optional_float(row.get(c.area_ha)),
                duration_min=parse_float(row.get(c.duration_min)),
                group_id=_blank_to_none(row.get(c.group_id)),
                latitude=parse_optional_float(row.get(c.latitude)),
                longitude=parse_optional_float(row.get(c.longitude)),
            ))
        except ValueError as e:
            skipped += 1
            log.debug("Skipping line %d: %s", line_no, e)

    if skipped:
        log.warning("Skipped %d malformed rows (bad id, date or effort value)", skipped)
    return records


def load_observations(
    source: Union[str, Path],
    columns: Optional[ColumnMap] = None,
    delimiter: Optional[str] = None,
    client: Optional[httpx.Client] = None,
) -> List[ObservationRecord]:
    """Load a checklist-observation table.

    Args:
        source: File path or http(s) URL.
        columns: Header mapping (default: underscore-separated names).
        delimiter: Field separator; inferred from the suffix if omitted.
        client: Optional ``httpx.Client`` used for URL sources.

    Returns:
        Parsed records in file order.

    Raises:
        MissingColumnError: if required mapped columns are absent.
        httpx.HTTPStatusError: if a URL source answers with an error status.
    """
    columns = columns or ColumnMap()
    delimiter = delimiter or default_delimiter(source)
    text = read_text(source, client=client)

    reader = csv.DictReader(io.StringIO(text), delimiter=delimiter)
    header = set(reader.fieldnames or [])
    missing = sorted(v for v in columns.required().values() if v not in header)
    if missing:
        raise MissingColumnError(
            "Input is missing required columns",
            {"source": str(source), "missing": ", ".join(missing)},
        )

    records = parse_rows(reader, columns)
    log.info("Loaded %d observation rows from %s", len(records), source)
    return records
