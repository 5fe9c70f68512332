"""Table normalization for the poverty and mortality sources.

Both sources arrive with headers that do not line up with the analysis
schema. The functions here map them, once, onto fixed canonical columns and
coerce every numeric field to float or NaN.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from hivburden.config import MortalityColumns, PovertyColumns

POVERTY_INDICATORS: List[str] = [
    "mpi",
    "headcount_pct",
    "intensity_pct",
    "vulnerable_pct",
    "severe_pct",
    "health_contrib_pct",
    "education_contrib_pct",
    "living_contrib_pct",
    "national_poverty_pct",
    "ppp_poverty_pct",
]

POVERTY_COLUMNS: List[str] = ["country", "reporting_year", "survey"] + POVERTY_INDICATORS

MORTALITY_COLUMNS: List[str] = ["country", "indicator", "year", "value", "status"]

MISSING_MARKERS = ("-", "..", "", "nan", "NaN")


class MortalityIndicator(str, Enum):
    UNDER_FIVE = "under_five"
    NEONATAL = "neonatal"


def normalize_country_name(name: object) -> str:
    """
    Normalize country names for matching across datasets.
    Keeps it simple and transparent (no fuzzy matching).
    """
    if pd.isna(name):
        return ""
    s = str(name).strip().lower()
    s = s.replace("&", "and")
    s = re.sub(r"[\.\,'\(\)]", "", s)
    s = re.sub(r"\s+", " ", s)
    return s.strip()


def coerce_numeric_series(s: pd.Series, missing_markers: Iterable[str] = MISSING_MARKERS) -> pd.Series:
    """
    Coerce spreadsheet values to numeric.
    The "-" placeholder and other missing markers become NaN before coercion.
    """
    s2 = s.astype(str).str.strip()
    s2 = s2.mask(s2.isin(list(missing_markers)))
    return pd.to_numeric(s2, errors="coerce")


def _split_year_survey(text: object) -> tuple:
    """'2015/2016 D' -> (2016, 'D'); unparseable -> (NaN, '')."""
    if pd.isna(text):
        return np.nan, ""
    s = str(text).strip()
    years = re.findall(r"(?:19|20)\d{2}", s)
    survey = re.sub(r"[\d/\-\s]+", " ", s).strip()
    return (int(years[-1]) if years else np.nan), survey


def normalize_poverty_table(raw: pd.DataFrame, columns: Optional[PovertyColumns] = None) -> pd.DataFrame:
    """Map the raw MPI spreadsheet onto POVERTY_COLUMNS.

    Columns are selected by position (see PovertyColumns), so the ordinal
    header names of the raw sheet never reach the output. Rows without a
    country name or without any indicator value (blank, regional
    heading and footnote rows) are dropped.

    Args:
        raw: Sheet as read with the title rows skipped
        columns: Position of each canonical field

    Returns:
        DataFrame with exactly POVERTY_COLUMNS.

    Raises:
        ValueError: If the sheet has fewer columns than the mapping needs.
    """
    columns = columns or PovertyColumns()
    positions = columns.positions()
    needed = max(positions.values()) + 1
    if raw.shape[1] < needed:
        raise ValueError(f"Poverty table has {raw.shape[1]} columns, mapping needs {needed}")

    out = pd.DataFrame(index=raw.index)
    country = raw.iloc[:, positions["country"]]
    out["country"] = country.where(country.isna(), country.astype(str).str.strip())

    year_survey = raw.iloc[:, positions["year_survey"]].map(_split_year_survey)
    out["reporting_year"] = pd.array([ys[0] for ys in year_survey], dtype="Int64")
    out["survey"] = [ys[1] for ys in year_survey]

    for name in POVERTY_INDICATORS:
        out[name] = coerce_numeric_series(raw.iloc[:, positions[name]])

    has_country = out["country"].notna() & (out["country"] != "")
    has_data = out[POVERTY_INDICATORS].notna().any(axis=1)
    out = out.loc[has_country & has_data]
    return out[POVERTY_COLUMNS].reset_index(drop=True)


def normalize_mortality_table(raw: pd.DataFrame, columns: Optional[MortalityColumns] = None) -> pd.DataFrame:
    """Select included under-five / neonatal observations with canonical names.

    Rows are kept when the status contains ``columns.included_marker``
    (case-insensitive) and the indicator is one of ``columns.indicators``.
    Fractional reference dates are floored to the calendar year; rows with a
    missing value or year are dropped.

    Returns:
        DataFrame with MORTALITY_COLUMNS, ``indicator`` holding
        MortalityIndicator values.
    """
    columns = columns or MortalityColumns()
    rename = {
        columns.country: "country",
        columns.indicator: "indicator",
        columns.year: "year",
        columns.value: "value",
        columns.status: "status",
    }
    missing = [col for col in rename if col not in raw.columns]
    if missing:
        raise ValueError(f"Mortality table is missing columns {missing}")

    df = raw[list(rename)].rename(columns=rename).copy()
    df["status"] = df["status"].fillna("").astype(str).str.strip()
    df = df.loc[df["status"].str.lower().str.contains(columns.included_marker.lower(), regex=False)].copy()

    df["indicator"] = df["indicator"].astype(str).str.strip().map(columns.indicators)
    df = df.loc[df["indicator"].notna()].copy()
    df["indicator"] = df["indicator"].map(lambda v: MortalityIndicator(v).value)

    df["year"] = np.floor(coerce_numeric_series(df["year"]))
    df["value"] = coerce_numeric_series(df["value"])
    df = df.dropna(subset=["year", "value"]).copy()
    df["year"] = df["year"].astype(int)
    df["country"] = df["country"].astype(str).str.strip()

    return df[MORTALITY_COLUMNS].reset_index(drop=True)


def latest_mortality_wide(mortality: pd.DataFrame) -> pd.DataFrame:
    """One row per country with the latest under-five and neonatal rates.

    For each (country, indicator) the most recent year is kept and the
    included observations of that year are averaged. Columns: ``country``,
    ``under_five``, ``neonatal``, ``under_five_year``, ``neonatal_year``.
    """
    wide_columns = ["country"] + [f"{i.value}{suffix}" for suffix in ("", "_year") for i in MortalityIndicator]
    if mortality.empty:
        return pd.DataFrame(columns=wide_columns)

    df = mortality.assign(indicator=mortality["indicator"].map(lambda i: MortalityIndicator(i).value))
    latest_year = df.groupby(["country", "indicator"])["year"].transform("max")
    latest = (
        df.loc[df["year"] == latest_year]
        .groupby(["country", "indicator"], as_index=False)
        .agg(value=("value", "mean"), year=("year", "first"))
    )

    values = latest.pivot(index="country", columns="indicator", values="value")
    years = latest.pivot(index="country", columns="indicator", values="year").add_suffix("_year")
    wide = values.join(years).reset_index()
    wide.columns.name = None
    for col in wide_columns:
        if col not in wide.columns:
            wide[col] = np.nan
    return wide[wide_columns]
