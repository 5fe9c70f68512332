#!/usr/bin/env python3
"""
preprocess.py

This script processes raw data from the `data` folder containing:

1. HIV estimates (people living with HIV by country and year)
2. Multidimensional poverty index (MPI) table
3. Child mortality estimates (under-five and neonatal)

transforming it into `intermediate` data that is used by the analysis.
"""

from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from hivburden.config import AnalysisConfig
from hivburden.normalize import normalize_mortality_table, normalize_poverty_table
from hivburden.paths import HIV_FILE, INTERMEDIATE_DIR, MORTALITY_FILE, POVERTY_FILE
from hivburden.records import read_hiv_file


class DataProcessor:
    """Main class for processing the HIV, poverty and mortality sources."""

    def __init__(self, config: Optional[AnalysisConfig] = None,
                 hiv_file: Path = HIV_FILE, poverty_file: Path = POVERTY_FILE,
                 mortality_file: Path = MORTALITY_FILE,
                 out_dir: Optional[Path] = INTERMEDIATE_DIR):
        """
        Args:
            config: Pipeline configuration
            hiv_file: Raw HIV estimates file
            poverty_file: Raw MPI spreadsheet
            mortality_file: Raw child mortality CSV
            out_dir: Where cleaned tables are written; None disables writing
        """
        self.config = config or AnalysisConfig()
        self.hiv_file = Path(hiv_file)
        self.poverty_file = Path(poverty_file)
        self.mortality_file = Path(mortality_file)
        self.out_dir = Path(out_dir) if out_dir is not None else None

    def _export(self, df: pd.DataFrame, filename: str) -> None:
        if self.out_dir is None:
            return
        self.out_dir.mkdir(parents=True, exist_ok=True)
        df.to_csv(self.out_dir / filename, index=False)
        print(f"Saved {len(df)} rows to {self.out_dir / filename}")

    def process_hiv_data(self) -> pd.DataFrame:
        """
        Parse the single-column HIV estimates file.

        Writes "hiv_observations.csv" to the intermediate directory.

        Returns:
            Observation table (country, region, year, value)
        """
        print(f"Processing HIV data from {self.hiv_file}...")
        hiv_df = read_hiv_file(self.hiv_file, self.config.parsing)
        print(f"Processed HIV data: {len(hiv_df)} observations, "
              f"{hiv_df['country'].nunique()} countries, {hiv_df['region'].nunique()} regions")
        self._export(hiv_df, "hiv_observations.csv")
        return hiv_df

    def process_poverty_data(self) -> pd.DataFrame:
        """
        Read the MPI spreadsheet (title rows skipped) and map it to the
        canonical poverty schema.

        Writes "poverty.csv" to the intermediate directory.
        """
        assert self.poverty_file.exists(), f"Poverty file {self.poverty_file} not found"
        print(f"Processing poverty data from {self.poverty_file}...")

        columns = self.config.poverty
        if self.poverty_file.suffix.lower() == ".csv":
            raw = pd.read_csv(self.poverty_file, skiprows=columns.skiprows, dtype=str)
        else:
            raw = pd.read_excel(self.poverty_file, sheet_name=columns.sheet_name,
                                skiprows=columns.skiprows, dtype=str)
        poverty_df = normalize_poverty_table(raw, columns)

        print(f"Processed poverty data: {len(poverty_df)} records from {len(raw)} raw rows")
        self._export(poverty_df, "poverty.csv")
        return poverty_df

    def process_mortality_data(self) -> pd.DataFrame:
        """
        Keep included under-five and neonatal mortality observations.

        Writes "mortality.csv" to the intermediate directory.
        """
        assert self.mortality_file.exists(), f"Mortality file {self.mortality_file} not found"
        print(f"Processing mortality data from {self.mortality_file}...")

        raw = pd.read_csv(self.mortality_file, low_memory=False)
        mortality_df = normalize_mortality_table(raw, self.config.mortality)

        print(f"Processed mortality data: {len(mortality_df)} included observations "
              f"out of {len(raw)} raw rows")
        self._export(mortality_df, "mortality.csv")
        return mortality_df

    def run_all_processing(self) -> Dict[str, pd.DataFrame]:
        """Run all data processing steps."""
        print("Starting data processing...")
        processed_data = {
            'hiv': self.process_hiv_data(),
            'poverty': self.process_poverty_data(),
            'mortality': self.process_mortality_data(),
        }
        print("Data processing completed successfully!")
        return processed_data


def main():
    """Main function to run all data processing"""
    DataProcessor().run_all_processing()


if __name__ == "__main__":
    main()
