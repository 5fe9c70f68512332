#!/usr/bin/env python3
"""Analysis Module.

Runs the HIV burden and poverty analysis end to end:

1. Parse and normalize the raw sources (see preprocess.py)
2. Rank countries by their latest HIV estimate and select the high-burden
   set, globally and per region
3. Join the latest HIV observation per country with the poverty table, and
   attach the latest child mortality rates
4. Describe the merged data, correlate HIV burden with each indicator and
   fit the random-intercept regression (OLS fallback)
5. Export all tables to the output directory and, optionally, create plots

Example:
    >>> from hivburden.analysis import run_analysis
    >>> results = run_analysis(hiv_df, poverty_df, mortality_df)
    >>> results['high_burden_global']['country'].tolist()

Usage:
    $ hivburden --process_data
    $ hivburden --hiv data/hiv.csv --poverty data/mpi.xlsx --mortality data/u5mr.csv --no_plots
"""

import argparse
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from hivburden.burden import rank_burden, regional_high_burden, regional_totals, select_high_burden
from hivburden.config import AnalysisConfig, BurdenParameters
from hivburden.merge import merge_latest, two_pass_merge
from hivburden.normalize import POVERTY_INDICATORS, latest_mortality_wide
from hivburden.paths import (
    FIGURES_DIR, HIV_FILE, INTERMEDIATE_DIR, MORTALITY_FILE, OUTPUT_DIR, POVERTY_FILE,
    ensure_directories_exist,
)
from hivburden.plot import create_all_plots
from hivburden.preprocess import DataProcessor
from hivburden.stats import FitStatus, describe_indicators, fit_burden_model, pairwise_correlations

MORTALITY_COVARIATES: List[str] = ["under_five", "neonatal"]


def _export_results(results: pd.DataFrame, output_dir: Path, filename: str) -> None:
    """Export results to CSV file"""
    output_dir.mkdir(parents=True, exist_ok=True)
    results.to_csv(output_dir / filename, index=False)
    print(f"Results exported to {output_dir / filename}")


def run_analysis(hiv_df: pd.DataFrame, poverty_df: pd.DataFrame,
                 mortality_df: Optional[pd.DataFrame] = None,
                 config: Optional[AnalysisConfig] = None,
                 output_dir: Optional[Path] = OUTPUT_DIR) -> Dict[str, object]:
    """Run burden ranking, merging and statistics on cleaned tables.

    Args:
        hiv_df: Observation table (country, region, year, value)
        poverty_df: Canonical poverty table
        mortality_df: Canonical mortality table; None skips mortality covariates
        config: Pipeline configuration
        output_dir: Where result tables are written; None disables writing

    Returns:
        Dictionary of result tables plus the regression ModelFit under 'model'.
    """
    config = config or AnalysisConfig()
    threshold = config.burden.threshold

    print("=" * 80)
    print("HIV BURDEN AND POVERTY ANALYSIS")
    print("=" * 80)
    print(f"\n{len(hiv_df)} HIV observations, {hiv_df['country'].nunique()} countries, "
          f"years {hiv_df['year'].min()} - {hiv_df['year'].max()}")

    # Cumulative burden, global and regional
    ranking = rank_burden(hiv_df)
    high_global = select_high_burden(ranking, threshold)
    high_regional = regional_high_burden(hiv_df, threshold)
    totals = regional_totals(hiv_df)
    print(f"{len(high_global)} of {len(ranking)} countries hold up to {threshold:.0f}% of the global burden")

    # Latest HIV observation joined with poverty indicators
    merged = merge_latest(hiv_df, poverty_df, on="country", left_year="year", right_year="reporting_year")

    covariates = list(POVERTY_INDICATORS)
    if mortality_df is not None:
        mortality_wide = latest_mortality_wide(mortality_df)
        merged = two_pass_merge(merged, mortality_wide, on="country", how="left")
        covariates += MORTALITY_COVARIATES

    # Statistics
    outcome = config.regression.outcome
    descriptives = describe_indicators(merged, [outcome] + covariates)
    correlations = pairwise_correlations(merged, outcome, covariates)
    fit = fit_burden_model(merged, config.regression)

    if fit.status is FitStatus.CONVERGED:
        print(f"Random-intercept model by {config.regression.group}: {fit.n_obs} rows, {fit.n_groups} groups")
    elif fit.status is FitStatus.FALLBACK:
        print(f"Warning: random-intercept model unavailable, OLS used instead ({fit.notes})")
    else:
        print(f"Warning: regression skipped ({fit.notes})")

    results = {
        'observations': hiv_df,
        'ranking': ranking,
        'high_burden_global': high_global,
        'high_burden_regional': high_regional,
        'regional_totals': totals,
        'merged': merged,
        'descriptives': descriptives,
        'correlations': correlations,
        'regression': fit.summary_frame(),
        'model': fit,
        'outcome': outcome,
        'covariates': covariates,
    }

    if output_dir is not None:
        output_dir = Path(output_dir)
        for name, filename in [
            ('ranking', 'burden_ranking.csv'),
            ('high_burden_global', 'high_burden_global.csv'),
            ('high_burden_regional', 'high_burden_regional.csv'),
            ('regional_totals', 'regional_totals.csv'),
            ('merged', 'merged.csv'),
            ('descriptives', 'descriptives.csv'),
            ('correlations', 'correlations.csv'),
            ('regression', 'regression.csv'),
        ]:
            _export_results(results[name], output_dir, filename)

    print("\n" + "=" * 80)
    print("ANALYSIS COMPLETE")
    print("=" * 80)
    return results


def load_intermediate(intermediate_dir: Path = INTERMEDIATE_DIR) -> Dict[str, pd.DataFrame]:
    """Load the cleaned tables written by DataProcessor."""
    tables = {}
    for name, filename in [('hiv', 'hiv_observations.csv'), ('poverty', 'poverty.csv'),
                           ('mortality', 'mortality.csv')]:
        file_path = Path(intermediate_dir) / filename
        assert file_path.exists(), f"Intermediate file {file_path} not found, run with --process_data"
        tables[name] = pd.read_csv(file_path)
    tables['poverty']['reporting_year'] = tables['poverty']['reporting_year'].astype('Int64')
    return tables


def main():
    """Main function"""
    parser = argparse.ArgumentParser(description="HIV burden and multidimensional poverty analysis")
    parser.add_argument("--process_data", action="store_true", help="Process raw input data into intermediate tables")
    parser.add_argument("--hiv", type=Path, default=HIV_FILE, help="Raw HIV estimates file")
    parser.add_argument("--poverty", type=Path, default=POVERTY_FILE, help="Raw MPI spreadsheet")
    parser.add_argument("--mortality", type=Path, default=MORTALITY_FILE, help="Raw child mortality CSV")
    parser.add_argument("--threshold", type=float, default=None, help="Cumulative burden threshold in percent")
    parser.add_argument("--no_plots", action="store_true", help="Skip creating figures")
    parser.add_argument("--describe_config", action="store_true", help="Print all parameters and exit")
    args = parser.parse_args()

    config = AnalysisConfig()
    if args.threshold is not None:
        config = config.model_copy(update={'burden': BurdenParameters(threshold=args.threshold)})

    if args.describe_config:
        config.describe_all()
        return

    ensure_directories_exist()

    # Process raw input data (creating intermediate data files)
    if args.process_data:
        tables = DataProcessor(config, args.hiv, args.poverty, args.mortality).run_all_processing()
    else:
        tables = load_intermediate()

    results = run_analysis(tables['hiv'], tables['poverty'], tables['mortality'], config)

    if not args.no_plots:
        create_all_plots(results, FIGURES_DIR, config.burden.threshold)

    print("Analysis completed successfully!")


if __name__ == "__main__":
    main()
