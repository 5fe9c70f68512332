#!/usr/bin/env python3
"""Plotting Utilities for the HIV burden analysis.

Charts are saved to the figures directory as high-resolution PDFs; the
choropleth map is written as a standalone interactive HTML file.

Functions:
    plot_high_burden: Bar chart of the high-burden countries with cumulative share.
    plot_regional_totals: Share of the global burden by region.
    plot_correlation_heatmap: Pairwise-complete correlations of the merged dataset.
    plot_outcome_scatter: log(outcome + 1) against each covariate.
    create_choropleth: World map of the latest HIV estimate per country.
    create_all_plots: Run all of the above on pipeline results.
"""

from pathlib import Path
from typing import Dict, List

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import plotly.express as px
import seaborn as sns

from hivburden.paths import FIGURES_DIR

# Plotting parameters
DPI = 300  # High resolution for publications
FIGSIZE_LARGE = (12, 8)  # For detailed plots
FIGSIZE_MEDIUM = (10, 5)  # For compact comparisons


def _save(fig: plt.Figure, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=DPI, bbox_inches='tight')
    plt.close(fig)
    print(f"Plot saved to: {path}")
    return path


def plot_high_burden(burden: pd.DataFrame, path: Path, threshold: float = 75.0) -> Path:
    """Bar chart of people living with HIV (thousands) with the cumulative share.

    Args:
        burden: High-burden (or full) ranking with BURDEN_COLUMNS
        path: Output file
        threshold: Cumulative share drawn as a reference line
    """
    plt.style.use('default')
    sns.set_palette("husl")

    fig, ax = plt.subplots(figsize=FIGSIZE_LARGE)
    ax.bar(burden['country'], burden['value'] / 1e3, color=sns.color_palette("husl", 1)[0], alpha=0.8)
    ax.set_ylabel('People living with HIV (thousands)')
    ax.set_xlabel('Country')
    ax.tick_params(axis='x', rotation=60)
    ax.grid(True, axis='y', alpha=0.3)

    ax2 = ax.twinx()
    ax2.plot(burden['country'], burden['cumulative_share'], 'o-', color='black', linewidth=1.5)
    ax2.axhline(threshold, color='red', linestyle='--', linewidth=1)
    ax2.set_ylabel('Cumulative share of total (%)')
    ax2.set_ylim(0, 100)

    ax.set_title(f'Countries holding {threshold:.0f}% of the HIV burden')
    return _save(fig, path)


def plot_regional_totals(totals: pd.DataFrame, path: Path) -> Path:
    """Horizontal bar chart of each region's share of the global total."""
    fig, ax = plt.subplots(figsize=FIGSIZE_MEDIUM)
    sns.barplot(data=totals, x='share', y='region', ax=ax, color='steelblue')
    for i, row in enumerate(totals.itertuples()):
        ax.text(row.share, i, f" {row.share:.1f}% ({row.n_countries})", va='center', fontsize=9)
    ax.set_xlabel('Share of people living with HIV (%)')
    ax.set_ylabel('')
    ax.set_title('HIV burden by region')
    return _save(fig, path)


def plot_correlation_heatmap(merged: pd.DataFrame, columns: List[str], path: Path) -> Path:
    """Heatmap of pairwise-complete Pearson correlations."""
    corr = merged[columns].apply(pd.to_numeric, errors='coerce').corr(method='pearson')
    mask = np.triu(np.ones_like(corr, dtype=bool), k=1)

    fig, ax = plt.subplots(figsize=FIGSIZE_LARGE)
    sns.heatmap(corr, mask=mask, annot=True, fmt='.2f', cmap='RdBu_r', vmin=-1, vmax=1,
                square=True, cbar_kws={'shrink': 0.7}, ax=ax)
    ax.set_title('Correlation between HIV burden and poverty indicators')
    return _save(fig, path)


def plot_outcome_scatter(merged: pd.DataFrame, outcome: str, covariates: List[str], path: Path) -> Path:
    """Scatter of log(outcome + 1) against each covariate with a linear fit."""
    n = len(covariates)
    ncols = min(3, n)
    nrows = int(np.ceil(n / ncols))
    fig, axes = plt.subplots(nrows, ncols, figsize=(5 * ncols, 4 * nrows), squeeze=False)
    axes = axes.flatten()

    log_outcome = np.log1p(pd.to_numeric(merged[outcome], errors='coerce'))
    for ax, cov in zip(axes, covariates):
        pair = pd.DataFrame({'x': pd.to_numeric(merged[cov], errors='coerce'), 'y': log_outcome}).dropna()
        if len(pair) >= 2:
            sns.regplot(data=pair, x='x', y='y', ax=ax, scatter_kws={'alpha': 0.6, 's': 20})
        ax.set_xlabel(cov.replace('_', ' '))
        ax.set_ylabel(f'log({outcome} + 1)')
        ax.grid(True, alpha=0.3)

    # Hide unused subplots
    for ax in axes[n:]:
        ax.set_visible(False)

    fig.suptitle('HIV burden against poverty indicators', fontsize=14)
    return _save(fig, path)


def create_choropleth(observations: pd.DataFrame, path: Path, value: str = 'value') -> Path:
    """Interactive world map of the latest value per country (HTML).

    Countries are located by name; names plotly does not recognise are left
    blank on the map.
    """
    latest = observations.sort_values('year', kind='mergesort').drop_duplicates('country', keep='last')
    fig = px.choropleth(
        latest,
        locations='country',
        locationmode='country names',
        color=value,
        hover_name='country',
        hover_data={'region': True, 'year': True},
        color_continuous_scale='Reds',
        title='People living with HIV (latest estimate)',
    )
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.write_html(str(path))
    print(f"Map saved to: {path}")
    return path


def create_all_plots(results: Dict[str, object], figures_dir: Path = FIGURES_DIR,
                     threshold: float = 75.0) -> List[Path]:
    """Create all figures from the output of ``run_analysis``."""
    print("Creating plots...")
    figures_dir = Path(figures_dir)
    paths = []

    if not results['high_burden_global'].empty:
        paths.append(plot_high_burden(results['high_burden_global'],
                                      figures_dir / "high_burden_global.pdf", threshold))
    if not results['regional_totals'].empty:
        paths.append(plot_regional_totals(results['regional_totals'], figures_dir / "regional_totals.pdf"))

    merged = results['merged']
    outcome = results['outcome']
    covariates = [c for c in results['covariates'] if c in merged.columns]
    if len(merged) >= 3 and covariates:
        paths.append(plot_correlation_heatmap(merged, [outcome] + covariates,
                                              figures_dir / "correlations.pdf"))
        paths.append(plot_outcome_scatter(merged, outcome, covariates, figures_dir / "scatter.pdf"))

    if not results['observations'].empty:
        paths.append(create_choropleth(results['observations'], figures_dir / "hiv_map.html"))

    print(f"Created {len(paths)} figures in {figures_dir}")
    return paths
