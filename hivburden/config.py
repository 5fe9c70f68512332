#!/usr/bin/env python3
"""Analysis Configuration and Parameter Documentation.

This module centralizes all pipeline parameters with their justifications,
sources, and default values using Pydantic for validation and documentation.

Parameters are organized by category:
- Parsing: Raw HIV record layout, unit scaling and missing markers
- Poverty columns: Position-based schema mapping for the MPI spreadsheet
- Mortality columns: Raw column names and inclusion rules
- Burden: Cumulative burden threshold
- Regression: Outcome, covariates and mixed-model settings

Usage:
    >>> from hivburden.config import AnalysisConfig
    >>> config = AnalysisConfig()
    >>> print(config.burden.threshold)  # 75.0
    >>> config.parsing.describe('scale')  # Print full documentation
"""

from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator


class DocumentedParameters(BaseModel):
    """Base class for frozen parameter groups with printable documentation."""

    model_config = {'frozen': True, 'extra': 'forbid'}

    def describe(self, param_name: str) -> None:
        """Print comprehensive documentation for a parameter.

        Args:
            param_name: Name of the parameter to describe
        """
        fields = type(self).model_fields
        if param_name not in fields:
            raise ValueError(f"Unknown parameter: {param_name}")

        field_info = fields[param_name]
        value = getattr(self, param_name)
        extra = field_info.json_schema_extra or {}

        print(f"\n{'=' * 70}")
        print(f"Parameter: {param_name}")
        print(f"{'=' * 70}")
        print(f"Value: {value}")
        if 'units' in extra:
            print(f"Units: {extra['units']}")
        print(f"\nDescription:")
        print(f"  {field_info.description}")
        if 'source' in extra:
            print(f"\nSource:")
            print(f"  {extra['source']}")
        if 'interpretation' in extra:
            print(f"\nInterpretation:")
            print(f"  {extra['interpretation']}")
        print(f"{'=' * 70}\n")


# ============================================================================
# Parsing Parameters (HIV records)
# ============================================================================

class ParsingParameters(DocumentedParameters):
    """Layout and cleaning rules for the malformed HIV estimates file."""

    record_fields: Tuple[str, ...] = Field(
        default=("country", "region", "year", "value"),
        min_length=4,
        description="Ordered names of the comma-joined fields packed into the single raw column. Must contain country, region, year and value.",
        json_schema_extra={
            'source': 'Export layout of the HIV estimates table',
            'interpretation': 'Extra tokens are dropped, missing trailing fields are filled with empty strings',
        }
    )

    scale: float = Field(
        default=1000.0,
        gt=0.0,
        description="Factor applied to the parsed magnitude. Source values are reported in thousands of people.",
        json_schema_extra={
            'units': 'people per reported unit',
            'source': 'Reporting unit of the HIV estimates ("123 thousand")',
        }
    )

    missing_markers: Tuple[str, ...] = Field(
        default=("no data", "<"),
        description="Substrings (case-insensitive) that mark a value as missing rather than parsed.",
        json_schema_extra={
            'interpretation': '"No data" and censored "<100" style values are treated as missing',
        }
    )

    year_min: int = Field(
        default=2000,
        ge=1900,
        le=2100,
        description="First year (inclusive) of the observation window.",
        json_schema_extra={'units': 'calendar year'}
    )

    year_max: int = Field(
        default=2023,
        ge=1900,
        le=2100,
        description="Last year (inclusive) of the observation window.",
        json_schema_extra={'units': 'calendar year'}
    )

    @field_validator('record_fields')
    @classmethod
    def validate_fields(cls, v):
        """Ensure the record layout names the fields the parser needs."""
        required = {"country", "region", "year", "value"}
        missing = required - set(v)
        if missing:
            raise ValueError(f"record_fields must include {sorted(required)}, missing {sorted(missing)}")
        if len(set(v)) != len(v):
            raise ValueError(f"record_fields must be unique, got {v}")
        return v

    @model_validator(mode='after')
    def validate_year_range(self):
        """Ensure the year window is not empty."""
        if self.year_min > self.year_max:
            raise ValueError(f"year_min must be <= year_max, got {self.year_min} > {self.year_max}")
        return self


# ============================================================================
# Poverty Columns (MPI spreadsheet schema mapping)
# ============================================================================

class PovertyColumns(DocumentedParameters):
    """Position of each canonical poverty field in the raw spreadsheet.

    The spreadsheet header is malformed: several columns only carry ordinal
    names (``Unnamed: 7``), so fields are addressed by position, once, here.
    """

    skiprows: int = Field(
        default=2,
        ge=0,
        description="Rows above the header row in the MPI spreadsheet.",
        json_schema_extra={'source': 'Title and subtitle rows of the published table'}
    )

    sheet_name: Any = Field(
        default=0,
        description="Sheet name or index holding the MPI table.",
    )

    country: int = Field(default=0, ge=0, description="Position of the country name column.")
    mpi: int = Field(default=1, ge=0, description="Position of the MPI value (0-1).")
    year_survey: int = Field(
        default=2,
        ge=0,
        description="Position of the 'year and survey' column, e.g. '2015/2016 D'.",
        json_schema_extra={'interpretation': 'The last four-digit year is the reporting year'}
    )
    headcount_pct: int = Field(default=3, ge=0, description="Position of the MPI headcount (% of population).")
    intensity_pct: int = Field(default=4, ge=0, description="Position of the intensity of deprivation (%).")
    vulnerable_pct: int = Field(default=5, ge=0, description="Position of the population vulnerable to poverty (%).")
    severe_pct: int = Field(default=6, ge=0, description="Position of the population in severe poverty (%).")
    health_contrib_pct: int = Field(default=7, ge=0, description="Position of the health contribution to deprivation (%).")
    education_contrib_pct: int = Field(default=8, ge=0, description="Position of the education contribution to deprivation (%).")
    living_contrib_pct: int = Field(default=9, ge=0, description="Position of the standard-of-living contribution to deprivation (%).")
    national_poverty_pct: int = Field(default=10, ge=0, description="Position of the population below the national poverty line (%).")
    ppp_poverty_pct: int = Field(default=11, ge=0, description="Position of the population below the international PPP poverty line (%).")

    def positions(self) -> Dict[str, int]:
        """Mapping from canonical field name to raw column position."""
        return {
            name: getattr(self, name)
            for name in type(self).model_fields
            if name not in ('skiprows', 'sheet_name')
        }

    @model_validator(mode='after')
    def validate_unique_positions(self):
        """Two canonical fields cannot read the same raw column."""
        positions = list(self.positions().values())
        if len(set(positions)) != len(positions):
            raise ValueError(f"Poverty column positions must be unique, got {self.positions()}")
        return self


# ============================================================================
# Mortality Columns
# ============================================================================

class MortalityColumns(DocumentedParameters):
    """Raw column names and inclusion rule for the child mortality CSV."""

    country: str = Field(default="Geographic area", description="Raw column with the country name.")
    indicator: str = Field(default="Indicator", description="Raw column with the indicator name.")
    year: str = Field(
        default="Reference Date",
        description="Raw column with the (possibly fractional) reference date.",
        json_schema_extra={'interpretation': 'Fractional dates such as 2010.5 are floored to the calendar year'}
    )
    value: str = Field(default="Observation Value", description="Raw column with the observed rate.")
    status: str = Field(default="Observation Status", description="Raw column with the observation status.")

    included_marker: str = Field(
        default="included",
        min_length=1,
        description="Case-insensitive substring of the status that marks a row as included.",
        json_schema_extra={'source': 'Status values such as "Included in IGME"'}
    )

    indicators: Dict[str, str] = Field(
        default={
            "Under-five mortality rate": "under_five",
            "Neonatal mortality rate": "neonatal",
        },
        description="Mapping from raw indicator name to MortalityIndicator value. Other indicators are dropped.",
    )

    @field_validator('indicators')
    @classmethod
    def validate_indicators(cls, v):
        """Indicator targets must be known MortalityIndicator values."""
        allowed = {"under_five", "neonatal"}
        unknown = set(v.values()) - allowed
        if unknown:
            raise ValueError(f"Unknown mortality indicators {sorted(unknown)}, expected {sorted(allowed)}")
        return v


# ============================================================================
# Burden Parameters
# ============================================================================

class BurdenParameters(DocumentedParameters):
    """Cumulative burden settings."""

    threshold: float = Field(
        default=75.0,
        gt=0.0,
        le=100.0,
        description="Cumulative share of the total (in %) that defines the high-burden set. Entries are kept while the running share stays at or below it.",
        json_schema_extra={
            'units': 'percent',
            'interpretation': 'Smallest ranked set of countries holding three quarters of the burden',
        }
    )


# ============================================================================
# Regression Parameters
# ============================================================================

class RegressionParameters(DocumentedParameters):
    """Random-intercept regression of log HIV burden on poverty indicators."""

    outcome: str = Field(default="value", description="Outcome column, modelled as log(outcome + 1).")

    covariates: List[str] = Field(
        default=["headcount_pct", "intensity_pct", "severe_pct", "vulnerable_pct"],
        min_length=1,
        description="Covariates, standardized to zero mean and unit variance over the fitted rows. "
                    "The default model is poverty-only: mortality rates are correlated with the "
                    "outcome but only enter the regression when listed here.",
        json_schema_extra={'interpretation': 'Coefficients are effects per one standard deviation'}
    )

    group: str = Field(default="region", description="Grouping column for the random intercept.")

    min_rows: int = Field(
        default=5,
        ge=2,
        description="Minimum complete rows beyond the number of covariates required to fit any model.",
    )

    method: str = Field(
        default="lbfgs",
        description="Optimizer passed to MixedLM.fit.",
        json_schema_extra={'source': 'statsmodels MixedLM optimizers: lbfgs, bfgs, cg, powell, nm'}
    )

    maxiter: int = Field(default=500, ge=1, description="Maximum optimizer iterations for the mixed model.")


# ============================================================================
# Main Configuration Class
# ============================================================================

class AnalysisConfig(BaseModel):
    """Complete pipeline configuration with all parameter categories.

    Usage:
        >>> config = AnalysisConfig()
        >>> config.regression.covariates
        >>> config.to_dict()
    """

    model_config = {'frozen': True}

    parsing: ParsingParameters = Field(default_factory=ParsingParameters)
    poverty: PovertyColumns = Field(default_factory=PovertyColumns)
    mortality: MortalityColumns = Field(default_factory=MortalityColumns)
    burden: BurdenParameters = Field(default_factory=BurdenParameters)
    regression: RegressionParameters = Field(default_factory=RegressionParameters)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Export all parameters as nested dictionary."""
        return {name: getattr(self, name).model_dump() for name in type(self).model_fields}

    def describe_all(self) -> None:
        """Print documentation for all parameters in all categories."""
        for category_name in type(self).model_fields:
            category = getattr(self, category_name)
            print(f"\n{'#' * 70}")
            print(f"# {category_name.upper()}")
            print(f"{'#' * 70}")
            for param_name in type(category).model_fields:
                category.describe(param_name)


if __name__ == "__main__":
    config = AnalysisConfig()

    print("=" * 80)
    print("ANALYSIS PARAMETERS")
    print("=" * 80)
    for category_name, params in config.to_dict().items():
        print(f"\n{category_name.upper()}")
        print("-" * 80)
        for param_name, value in params.items():
            print(f"  {param_name:24s} = {value}")
    print("=" * 80)
