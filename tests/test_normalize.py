"""Tests for the poverty and mortality table normalizers."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from hivburden.config import MortalityColumns, PovertyColumns
from hivburden.normalize import (
    MORTALITY_COLUMNS,
    POVERTY_COLUMNS,
    POVERTY_INDICATORS,
    MortalityIndicator,
    coerce_numeric_series,
    latest_mortality_wide,
    normalize_country_name,
    normalize_mortality_table,
    normalize_poverty_table,
)


def _raw_poverty_sheet() -> pd.DataFrame:
    """Sheet as read after skipping the title rows: ordinal header names."""
    header = ["Country", "MPI", "Year and survey"] + [f"Unnamed: {i}" for i in range(3, 12)]
    rows = [
        ["Afghanistan", "0.272", "2015/2016 D", "55.9", "49.0", "18.1", "24.9", "10.0", "45.0", "45.0", "54.5", "-"],
        ["Albania", "0.003", "2017/2018 D", "0.7", "39.1", "5.0", "0.1", "28.3", "55.1", "16.7", "14.3", "0.1"],
        ["Arab States", None, None, None, None, None, None, None, None, None, None, None],
        ["Notes: a. estimates", None, None, None, None, None, None, None, None, None, None, None],
        [None, None, None, None, None, None, None, None, None, None, None, None],
    ]
    return pd.DataFrame(rows, columns=header)


# ---------------------------------------------------------------------------
# Helpers


def test_coerce_numeric_series_missing_markers() -> None:
    s = pd.Series(["-", "12.5", " 7 ", "..", "", None, "abc"])
    result = coerce_numeric_series(s)
    assert np.isnan(result[0])
    assert result[1] == pytest.approx(12.5)
    assert result[2] == pytest.approx(7.0)
    assert result[3:].isna().all()


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Bolivia (Plurinational State of)", "bolivia plurinational state of"),
        ("  Trinidad & Tobago ", "trinidad and tobago"),
        ("Cote d'Ivoire", "cote divoire"),
        ("Congo,  Dem. Rep.", "congo dem rep"),
        (None, ""),
    ],
)
def test_normalize_country_name(raw, expected) -> None:
    assert normalize_country_name(raw) == expected


# ---------------------------------------------------------------------------
# Poverty table


def test_normalize_poverty_table_maps_by_position() -> None:
    df = normalize_poverty_table(_raw_poverty_sheet())
    assert list(df.columns) == POVERTY_COLUMNS
    assert df["country"].tolist() == ["Afghanistan", "Albania"]
    assert not any(col.startswith("Unnamed") for col in df.columns)


def test_normalize_poverty_table_values() -> None:
    df = normalize_poverty_table(_raw_poverty_sheet()).set_index("country")
    assert df.loc["Afghanistan", "reporting_year"] == 2016
    assert df.loc["Afghanistan", "survey"] == "D"
    assert df.loc["Afghanistan", "mpi"] == pytest.approx(0.272)
    assert df.loc["Afghanistan", "headcount_pct"] == pytest.approx(55.9)
    assert df.loc["Albania", "severe_pct"] == pytest.approx(0.1)
    # "-" placeholder
    assert np.isnan(df.loc["Afghanistan", "ppp_poverty_pct"])
    for col in POVERTY_INDICATORS:
        assert df[col].dtype == float


def test_normalize_poverty_table_custom_positions() -> None:
    raw = _raw_poverty_sheet()
    raw.insert(0, "HDI rank", ["1", "2", None, None, None])
    positions = {name: pos + 1 for name, pos in PovertyColumns().positions().items()}
    df = normalize_poverty_table(raw, PovertyColumns(**positions))
    assert df["country"].tolist() == ["Afghanistan", "Albania"]
    assert df["intensity_pct"].tolist() == pytest.approx([49.0, 39.1])


def test_normalize_poverty_table_too_few_columns() -> None:
    raw = _raw_poverty_sheet().iloc[:, :5]
    with pytest.raises(ValueError, match="columns"):
        normalize_poverty_table(raw)


# ---------------------------------------------------------------------------
# Mortality table


def _raw_mortality() -> pd.DataFrame:
    return pd.DataFrame({
        "Geographic area": ["Kenya", "Kenya", "Kenya", "Kenya", "Peru", "Peru"],
        "Indicator": [
            "Under-five mortality rate",
            "Under-five mortality rate",
            "Neonatal mortality rate",
            "Infant mortality rate",
            "Under-five mortality rate",
            "Under-five mortality rate",
        ],
        "Reference Date": [2018.5, 2019.5, 2019.5, 2019.5, 2017.5, 2019.5],
        "Observation Value": ["45.2", "43.0", "20.1", "31.0", "15.0", "-"],
        "Observation Status": ["Included in IGME", "Included in IGME", "included",
                               "Included in IGME", "Excluded from IGME", "Included in IGME"],
        "Series Name": ["UN IGME estimate"] * 6,
    })


def test_normalize_mortality_table_filters_and_renames() -> None:
    df = normalize_mortality_table(_raw_mortality())
    assert list(df.columns) == MORTALITY_COLUMNS
    # excluded status, other indicators and missing values are dropped
    assert len(df) == 3
    assert set(df["indicator"]) == {MortalityIndicator.UNDER_FIVE.value, MortalityIndicator.NEONATAL.value}
    assert df["year"].tolist() == [2018, 2019, 2019]
    assert df["value"].tolist() == pytest.approx([45.2, 43.0, 20.1])


def test_normalize_mortality_table_missing_columns() -> None:
    raw = _raw_mortality().drop(columns="Observation Status")
    with pytest.raises(ValueError, match="missing"):
        normalize_mortality_table(raw)


def test_normalize_mortality_table_custom_marker() -> None:
    columns = MortalityColumns(included_marker="excluded")
    df = normalize_mortality_table(_raw_mortality(), columns)
    assert df["country"].tolist() == ["Peru"]


def test_latest_mortality_wide() -> None:
    mortality = pd.DataFrame({
        "country": ["Kenya", "Kenya", "Kenya", "Kenya", "Peru"],
        "indicator": ["under_five", "under_five", "under_five", "neonatal", "under_five"],
        "year": [2018, 2019, 2019, 2017, 2019],
        "value": [50.0, 44.0, 42.0, 21.0, 15.0],
        "status": "Included",
    })
    wide = latest_mortality_wide(mortality).set_index("country")
    assert wide.loc["Kenya", "under_five"] == pytest.approx(43.0)
    assert wide.loc["Kenya", "under_five_year"] == 2019
    assert wide.loc["Kenya", "neonatal"] == pytest.approx(21.0)
    assert wide.loc["Kenya", "neonatal_year"] == 2017
    assert np.isnan(wide.loc["Peru", "neonatal"])


def test_latest_mortality_wide_empty() -> None:
    wide = latest_mortality_wide(pd.DataFrame(columns=MORTALITY_COLUMNS))
    assert wide.empty
    assert list(wide.columns) == ["country", "under_five", "neonatal", "under_five_year", "neonatal_year"]
