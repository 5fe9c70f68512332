"""Shared fixtures for the test suite."""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def scenario_observations() -> pd.DataFrame:
    """X has an older and a newer estimate; Y and Z tie at 30."""
    return pd.DataFrame({
        "country": ["X", "X", "Y", "Z"],
        "region": ["R1", "R1", "R1", "R2"],
        "year": [2001, 2010, 2010, 2010],
        "value": [10.0, 40.0, 30.0, 30.0],
    })


@pytest.fixture
def merged_dataset() -> pd.DataFrame:
    """Synthetic merged table: 24 countries in 4 regions."""
    rng = np.random.default_rng(7)
    n = 24
    regions = np.repeat(["Africa", "Americas", "Asia", "Europe"], n // 4)
    headcount = rng.uniform(1, 80, n)
    intensity = rng.uniform(30, 60, n)
    severe = headcount * rng.uniform(0.2, 0.6, n)
    vulnerable = rng.uniform(5, 30, n)
    region_effect = pd.Series(regions).map({"Africa": 1.5, "Americas": 0.0, "Asia": -0.5, "Europe": -1.0}).values
    log_value = 9 + 0.05 * headcount + region_effect + rng.normal(0, 0.3, n)
    return pd.DataFrame({
        "country": [f"C{i:02d}" for i in range(n)],
        "region": regions,
        "year": 2020,
        "value": np.expm1(log_value),
        "headcount_pct": headcount,
        "intensity_pct": intensity,
        "severe_pct": severe,
        "vulnerable_pct": vulnerable,
    })
