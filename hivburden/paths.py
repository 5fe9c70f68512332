#!/usr/bin/env python3
"""Centralized Path Management for the HIV burden analysis.

Every input and output location of the pipeline is defined here, relative to
the project root, so scripts can run from any working directory.

Directory Structure:
    project_root/
    ├── hivburden/      # Python source code
    ├── data/           # Raw input data
    │   ├── hiv_estimates.csv
    │   ├── mpi_table.xlsx
    │   └── child_mortality.csv
    ├── intermediate/   # Cleaned tables
    ├── output/         # Final analysis tables
    └── figures/        # Generated plots and maps

Usage:
    >>> from hivburden.paths import OUTPUT_DIR, INTERMEDIATE_DIR
    >>> df.to_csv(OUTPUT_DIR / "results.csv")
    >>> hiv_df = pd.read_csv(INTERMEDIATE_DIR / "hiv_observations.csv")
"""

from pathlib import Path

# ============================================================================
# Root Directory
# ============================================================================

# Project root is parent of hivburden/ directory
PROJECT_ROOT = Path(__file__).parent.parent

# ============================================================================
# Input Data (Raw Data)
# ============================================================================

DATA_DIR = PROJECT_ROOT / "data"
"""Root directory for all raw input data."""

HIV_FILE = DATA_DIR / "hiv_estimates.csv"
"""People living with HIV by country and year (malformed single-column CSV)."""

POVERTY_FILE = DATA_DIR / "mpi_table.xlsx"
"""Multidimensional poverty index table (header offset by two rows)."""

MORTALITY_FILE = DATA_DIR / "child_mortality.csv"
"""Under-five and neonatal mortality observations with inclusion status."""

# ============================================================================
# Intermediate Data (Cleaned Tables)
# ============================================================================

INTERMEDIATE_DIR = PROJECT_ROOT / "intermediate"
"""Root directory for cleaned tables."""

# ============================================================================
# Output Directories
# ============================================================================

OUTPUT_DIR = PROJECT_ROOT / "output"
"""Final analysis tables."""

FIGURES_DIR = PROJECT_ROOT / "figures"
"""Generated charts and maps."""


def ensure_directories_exist() -> None:
    """Create the intermediate, output and figures directories if missing.

    Safe to call multiple times. Does NOT create data/, which should contain
    user-provided raw data.
    """
    INTERMEDIATE_DIR.mkdir(parents=True, exist_ok=True)
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    FIGURES_DIR.mkdir(parents=True, exist_ok=True)
