#!/usr/bin/env python3
"""Cumulative Burden Module.

Ranks countries by their latest HIV estimate and finds the smallest ranked
set holding a given share of the total burden, globally and within each
region.

The ranking is computed on the most recent observation per country:

    share_i            = value_i / sum(value) * 100
    cumulative_share_i = (value_1 + ... + value_i) / sum(value) * 100    (values sorted descending)

The high-burden set is the prefix whose cumulative share stays at or below
the threshold (75% by default). If the largest country alone exceeds the
threshold the set is empty. Equal values keep their input order.

Example:
    >>> from hivburden.burden import high_burden
    >>> high_burden(observations)["country"].tolist()
    ['X', 'Y']
"""

from typing import List

import pandas as pd
from tqdm import tqdm

from hivburden.merge import latest_per_entity

BURDEN_COLUMNS: List[str] = ["country", "region", "year", "value", "share", "cumulative_share", "rank"]

DEFAULT_THRESHOLD = 75.0


def rank_burden(observations: pd.DataFrame) -> pd.DataFrame:
    """Rank countries by their latest value with shares of the total.

    Args:
        observations: Observation table (country, region, year, value),
            possibly with several years per country.

    Returns:
        DataFrame with BURDEN_COLUMNS sorted descending by value. Empty if
        there are no non-missing values or the total is zero.
    """
    latest = latest_per_entity(observations, "country", "year")
    latest = latest.dropna(subset=["value"])
    total = latest["value"].sum()
    if latest.empty or total <= 0:
        return pd.DataFrame(columns=BURDEN_COLUMNS)

    ranked = latest.sort_values("value", ascending=False, kind="mergesort").reset_index(drop=True)
    ranked["share"] = ranked["value"] / total * 100
    ranked["cumulative_share"] = ranked["value"].cumsum() / total * 100
    ranked["rank"] = range(1, len(ranked) + 1)
    return ranked[BURDEN_COLUMNS]


def select_high_burden(ranking: pd.DataFrame, threshold: float = DEFAULT_THRESHOLD) -> pd.DataFrame:
    """Prefix of a ranking whose cumulative share is <= threshold."""
    # cumulative_share is non-decreasing, so the mask selects a prefix
    return ranking.loc[ranking["cumulative_share"] <= threshold].reset_index(drop=True)


def high_burden(observations: pd.DataFrame, threshold: float = DEFAULT_THRESHOLD) -> pd.DataFrame:
    """Countries that together hold up to ``threshold`` percent of the global burden."""
    return select_high_burden(rank_burden(observations), threshold)


def regional_high_burden(observations: pd.DataFrame, threshold: float = DEFAULT_THRESHOLD) -> pd.DataFrame:
    """High-burden countries within each region.

    Each region is ranked against its own total. Regions are processed in
    sorted order and the results concatenated; shares and ranks are
    regional.
    """
    latest = latest_per_entity(observations, "country", "year")
    regions = sorted(latest["region"].dropna().unique())

    results = []
    for region in tqdm(regions, desc="Ranking regions"):
        selected = high_burden(latest.loc[latest["region"] == region], threshold)
        if not selected.empty:
            results.append(selected)

    if not results:
        return pd.DataFrame(columns=BURDEN_COLUMNS)
    return pd.concat(results, ignore_index=True)


def regional_totals(observations: pd.DataFrame) -> pd.DataFrame:
    """Total latest value, country count and share of the global total per region."""
    latest = latest_per_entity(observations, "country", "year").dropna(subset=["value"])
    totals = (
        latest.groupby("region", as_index=False)
        .agg(total=("value", "sum"), n_countries=("country", "nunique"))
        .sort_values("total", ascending=False, kind="mergesort")
        .reset_index(drop=True)
    )
    grand_total = totals["total"].sum()
    totals["share"] = totals["total"] / grand_total * 100 if grand_total > 0 else float("nan")
    return totals
