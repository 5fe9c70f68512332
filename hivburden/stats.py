#!/usr/bin/env python3
"""Statistical Summary Module.

Descriptive statistics, pairwise-complete Pearson correlations and a
random-intercept regression of the HIV burden on poverty covariates.

The regression models

    log(value + 1) ~ z(covariate_1) + ... + z(covariate_k) + (1 | region)

with covariates standardized over the fitted rows, so each coefficient is
the effect of one standard deviation. If the mixed model does not converge
(or cannot be fit) the same fixed-effects formula is fit by OLS and
the result is tagged as a fallback; callers branch on ``ModelFit.status``.
"""

import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf
from scipy import stats
from statsmodels.tools.sm_exceptions import ConvergenceWarning

from hivburden.config import RegressionParameters


class FitStatus(str, Enum):
    CONVERGED = "converged"
    FALLBACK = "fallback"
    SKIPPED = "skipped"


COEFFICIENT_COLUMNS: List[str] = ["term", "coef", "std_err", "p_value", "ci_low", "ci_high"]


@dataclass
class ModelFit:
    """Outcome of fit_burden_model.

    ``status`` tells which model ran: CONVERGED means the mixed model,
    FALLBACK means OLS after the mixed model failed, SKIPPED means there
    were too few complete rows and ``coefficients`` is empty.
    """
    status: FitStatus
    model: str
    n_obs: int
    n_groups: int
    coefficients: pd.DataFrame
    covariates: List[str] = field(default_factory=list)
    dropped_covariates: List[str] = field(default_factory=list)
    group_variance: float = np.nan
    notes: str = ""

    @property
    def used_fallback(self) -> bool:
        return self.status is FitStatus.FALLBACK

    def summary_frame(self) -> pd.DataFrame:
        """Coefficient table with the model metadata repeated on each row."""
        df = self.coefficients.copy()
        if df.empty:
            df = pd.DataFrame([{col: np.nan for col in COEFFICIENT_COLUMNS}])
        df.insert(0, "model", self.model)
        df.insert(0, "status", self.status.value)
        df["n_obs"] = self.n_obs
        df["n_groups"] = self.n_groups
        df["group_variance"] = self.group_variance
        df["notes"] = self.notes
        return df


# ============================================================================
# Descriptive statistics and correlations
# ============================================================================

def describe_indicators(df: pd.DataFrame, columns: List[str]) -> pd.DataFrame:
    """Count, missing, mean, std, min, median and max for each column."""
    rows = []
    for col in columns:
        s = pd.to_numeric(df[col], errors="coerce")
        rows.append({
            'variable': col,
            'count': int(s.count()),
            'missing': int(s.isna().sum()),
            'mean': s.mean(),
            'std': s.std(),
            'min': s.min(),
            'median': s.median(),
            'max': s.max(),
        })
    return pd.DataFrame(rows, columns=['variable', 'count', 'missing', 'mean', 'std', 'min', 'median', 'max'])


def pairwise_correlations(df: pd.DataFrame, outcome: str, covariates: List[str]) -> pd.DataFrame:
    """Pearson correlation of ``outcome`` with each covariate.

    Each pair uses only the rows where both variables are present. Pairs with
    fewer than three complete rows or a constant variable get NaN.
    """
    rows = []
    for cov in covariates:
        pair = df[[outcome, cov]].apply(pd.to_numeric, errors="coerce").dropna()
        n = len(pair)
        r, p = np.nan, np.nan
        if n >= 3 and pair[outcome].nunique() > 1 and pair[cov].nunique() > 1:
            r, p = stats.pearsonr(pair[outcome], pair[cov])
        rows.append({'covariate': cov, 'n': n, 'r': float(r), 'p_value': float(p)})
    return pd.DataFrame(rows, columns=['covariate', 'n', 'r', 'p_value'])


def standardize(df: pd.DataFrame, columns: List[str]) -> Tuple[pd.DataFrame, List[str]]:
    """Z-score ``columns`` over the rows of ``df``.

    Uses the population standard deviation so each kept column has zero
    mean and unit variance. Columns with zero variance cannot be scaled and
    are returned in the second element instead.

    Returns:
        (copy of df with standardized columns, dropped column names)
    """
    out = df.copy()
    dropped = []
    for col in columns:
        values = out[col].astype(float)
        sd = values.std(ddof=0)
        if not np.isfinite(sd) or sd == 0:
            dropped.append(col)
            continue
        out[col] = (values - values.mean()) / sd
    return out, dropped


# ============================================================================
# Regression
# ============================================================================

def _coefficient_table(result) -> pd.DataFrame:
    """Fixed-effect coefficients of a fitted statsmodels result.

    Fixed effects come first in the parameter vector of both OLS and
    MixedLM results, followed by the variance terms for MixedLM.
    """
    names = list(result.model.exog_names)
    k = len(names)
    conf = np.asarray(result.conf_int())[:k]
    table = pd.DataFrame({
        'term': names,
        'coef': np.asarray(result.params)[:k],
        'std_err': np.asarray(result.bse)[:k],
        'p_value': np.asarray(result.pvalues)[:k],
        'ci_low': conf[:, 0],
        'ci_high': conf[:, 1],
    })
    return table[COEFFICIENT_COLUMNS]


def _fit_mixed(data: pd.DataFrame, formula: str, group: str,
               params: RegressionParameters) -> Tuple[Optional[object], str]:
    """Fit the random-intercept model.

    Returns (result, "") on convergence, otherwise (None, reason). A
    boundary estimate of the group variance still counts as converged.
    """
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", ConvergenceWarning)
        try:
            model = smf.mixedlm(formula, data=data, groups=data[group])
            result = model.fit(method=params.method, maxiter=params.maxiter)
        except Exception as e:
            return None, f"mixedlm failed: {e}"

    failures = [
        str(w.message) for w in caught
        if issubclass(w.category, ConvergenceWarning) and "boundary" not in str(w.message)
    ]
    if not getattr(result, "converged", False) or failures:
        return None, f"mixedlm did not converge: {failures[0] if failures else 'optimizer did not converge'}"
    if not np.all(np.isfinite(np.asarray(result.fe_params))):
        return None, "mixedlm produced non-finite estimates"
    return result, ""


def fit_burden_model(df: pd.DataFrame, params: Optional[RegressionParameters] = None) -> ModelFit:
    """Fit log(outcome + 1) on standardized covariates with a random intercept.

    Rows with any of outcome, covariates or group missing are dropped, and
    standardization is computed over the remaining rows. The mixed model is
    tried first; when it fails to converge, or there are fewer than two
    groups, an OLS model on the same covariates is fit instead.

    Args:
        df: Merged dataset
        params: Outcome, covariates, group column and optimizer settings

    Returns:
        ModelFit tagged CONVERGED, FALLBACK or SKIPPED. Never raises for
        data-driven failures.
    """
    params = params or RegressionParameters()
    outcome, group = params.outcome, params.group
    covariates = list(params.covariates)

    data = df[[outcome, group] + covariates].copy()
    for col in [outcome] + covariates:
        data[col] = pd.to_numeric(data[col], errors="coerce")
    data = data.dropna().reset_index(drop=True)
    data = data.loc[data[outcome] >= 0].reset_index(drop=True)
    data["log_outcome"] = np.log1p(data[outcome])

    data, dropped = standardize(data, covariates)
    kept = [c for c in covariates if c not in dropped]
    n_obs, n_groups = len(data), int(data[group].nunique())

    if not kept or n_obs < len(kept) + params.min_rows:
        print(f"Regression skipped: {n_obs} complete rows for {len(kept)} covariates")
        return ModelFit(
            status=FitStatus.SKIPPED, model="none", n_obs=n_obs, n_groups=n_groups,
            coefficients=pd.DataFrame(columns=COEFFICIENT_COLUMNS),
            covariates=kept, dropped_covariates=dropped,
            notes=f"insufficient data ({n_obs} complete rows)",
        )

    formula = "log_outcome ~ " + " + ".join(kept)

    note = f"only {n_groups} {group} group(s)"
    if n_groups >= 2:
        mixed, note = _fit_mixed(data, formula, group, params)
        if mixed is not None:
            group_var = mixed.cov_re
            group_var = float(group_var.iloc[0, 0]) if hasattr(group_var, "iloc") else float(group_var)
            print(f"Mixed model converged: {n_obs} rows, {n_groups} groups")
            return ModelFit(
                status=FitStatus.CONVERGED, model="mixedlm", n_obs=n_obs, n_groups=n_groups,
                coefficients=_coefficient_table(mixed),
                covariates=kept, dropped_covariates=dropped,
                group_variance=group_var,
            )

    print(f"Warning: falling back to OLS ({note})")
    ols = smf.ols(formula, data=data).fit()
    return ModelFit(
        status=FitStatus.FALLBACK, model="ols", n_obs=n_obs, n_groups=n_groups,
        coefficients=_coefficient_table(ols),
        covariates=kept, dropped_covariates=dropped,
        notes=note,
    )

