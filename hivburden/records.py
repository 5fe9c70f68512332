"""Record parsing for the HIV estimates export.

The export packs every record into a single quoted column, e.g.::

    "Kenya,Africa,2015,1400 thousand [1300 - 1500]"

so each line is split on commas into a fixed list of named fields and the
value field is reduced to a number of people.
"""

from __future__ import annotations

import re
import unicodedata
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from hivburden.config import ParsingParameters

OBSERVATION_COLUMNS: List[str] = ["country", "region", "year", "value"]

_INVISIBLE = {"\ufeff": "", "\u00a0": " ", "\u202f": " ", "\u200b": ""}


def normalize_text(text: object) -> str:
    """Normalize encoding artefacts: NFKC, BOM / non-breaking spaces, quotes."""
    if text is None or (isinstance(text, float) and np.isnan(text)):
        return ""
    s = unicodedata.normalize("NFKC", str(text))
    for char, replacement in _INVISIBLE.items():
        s = s.replace(char, replacement)
    return s.strip().strip('"').strip()


def split_record(line: str, fields: Sequence[str]) -> dict:
    """Split a comma-joined line into ``fields``.

    Extra tokens are dropped and missing trailing fields are filled with the
    empty string, so short rows never raise.
    """
    tokens = [normalize_text(tok) for tok in normalize_text(line).split(",")]
    tokens = (tokens + [""] * len(fields))[:len(fields)]
    return dict(zip(fields, tokens))


def parse_magnitude(text: str, scale: float = 1000.0,
                    missing_markers: Iterable[str] = ("no data", "<")) -> float:
    """Parse the number of people from a value field.

    The magnitude is the token before the first space ("123 thousand" ->
    123), with thousands separators removed, multiplied by ``scale``. Empty
    values and values containing a missing marker are NaN.
    """
    s = normalize_text(text)
    lowered = s.lower()
    if not s or any(marker in lowered for marker in missing_markers):
        return np.nan
    token = s.split(" ", 1)[0].replace(",", "")
    try:
        return float(token) * scale
    except ValueError:
        return np.nan


def parse_year(text: str) -> Optional[int]:
    """Leading four-digit year of a field, or None."""
    found = re.match(r"^\s*(\d{4})", normalize_text(text))
    return int(found.group(1)) if found else None


def parse_records(lines: Iterable[str], params: Optional[ParsingParameters] = None) -> pd.DataFrame:
    """Parse raw HIV lines into an observation table.

    Rows are discarded when the value is missing, the year cannot be parsed
    or the year falls outside ``[params.year_min, params.year_max]``. A
    header line (first field equal to the first field name) is skipped.
    An empty region is stored as missing, so the row counts in the global
    ranking but in no region.

    Returns:
        DataFrame with OBSERVATION_COLUMNS, one row per kept record.
    """
    params = params or ParsingParameters()
    fields = params.record_fields

    rows = []
    n_lines = 0
    for line in lines:
        n_lines += 1
        record = split_record(line, fields)
        if record[fields[0]].lower() == fields[0].lower():
            continue

        year = parse_year(record["year"])
        value = parse_magnitude(record["value"], params.scale, params.missing_markers)
        if not record["country"] or year is None or np.isnan(value) or value < 0:
            continue
        if not params.year_min <= year <= params.year_max:
            continue

        rows.append({
            "country": record["country"],
            "region": record["region"] or None,
            "year": year,
            "value": value,
        })

    df = pd.DataFrame(rows, columns=OBSERVATION_COLUMNS)
    df["year"] = df["year"].astype(int)
    df["value"] = df["value"].astype(float)
    print(f"Parsed {len(df)} HIV observations from {n_lines} raw lines")
    return df


def read_hiv_file(path: Path, params: Optional[ParsingParameters] = None) -> pd.DataFrame:
    """Read the single-column HIV export at ``path`` and parse it."""
    path = Path(path)
    assert path.exists(), f"HIV estimates file {path} not found"
    with open(path, encoding="utf-8-sig") as f:
        lines = [line.rstrip("\r\n") for line in f if line.strip()]
    return parse_records(lines, params)
