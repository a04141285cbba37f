"""
Aggregation of Per-Replicate Results
====================================

Turns the ordered sequence of per-replicate statistics into the two outputs
of the study:

- Rejection-rate mode: the fraction of replicates whose F-statistic exceeds
  the F(level; dfn, dfd) quantile. Under a true null this estimates the
  Type-I error rate, whose nominal value is 1 − level.
- Distribution mode: the empirical sampling distribution of a coefficient
  estimator, summarised by its mean, standard deviation, Monte Carlo
  standard error and a histogram, next to the true coefficient.

The degrees of freedom of the critical value follow the rows used for
inference: F(1, 98) when the full n = 100 rows are reused, F(1, 48) when
only the 50 held-out rows are.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

import numpy as np
from numpy.typing import NDArray
from scipy import stats


# =============================================================================
# CRITICAL VALUES
# =============================================================================

def critical_value(level: float, dfn: int, dfd: int) -> float:
    """
    Quantile of the F(dfn, dfd) distribution.

    Examples
    --------
    >>> round(critical_value(0.95, 1, 98), 3)
    3.938
    """
    if not 0 < level < 1:
        raise ValueError(f"level must be in (0, 1), got {level}")
    return float(stats.f.ppf(level, dfn, dfd))


# =============================================================================
# REJECTION-RATE MODE
# =============================================================================

@dataclass
class RejectionSummary:
    """
    Empirical rejection rate of a test across replicates.

    Attributes
    ----------
    rate : float
        Fraction of defined statistics strictly above ``critical``.
    critical : float
        Critical value used.
    n_rejected : int
        Replicates that rejected.
    n_valid : int
        Replicates with a defined statistic.
    n_undefined : int
        Replicates whose statistic was NaN (excluded).
    level, dfn, dfd : optional
        Provenance of the critical value, when known.
    label : str
        Name of the pipeline.
    """
    rate: float
    critical: float
    n_rejected: int
    n_valid: int
    n_undefined: int = 0
    level: Optional[float] = None
    dfn: Optional[int] = None
    dfd: Optional[int] = None
    label: str = ""

    @property
    def nominal(self) -> float:
        """Nominal Type-I error 1 − level (NaN when level is unknown)."""
        return 1.0 - self.level if self.level is not None else np.nan

    @property
    def mc_se(self) -> float:
        """Binomial Monte Carlo standard error of ``rate``."""
        if self.n_valid == 0:
            return np.nan
        return float(np.sqrt(self.rate * (1 - self.rate) / self.n_valid))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'rate': self.rate,
            'mc_se': self.mc_se,
            'nominal': self.nominal,
            'critical': self.critical,
            'dfn': self.dfn,
            'dfd': self.dfd,
            'n_rejected': self.n_rejected,
            'n_valid': self.n_valid,
            'n_undefined': self.n_undefined,
        }

    def __repr__(self) -> str:
        df_text = f"F({self.dfn}, {self.dfd})" if self.dfn is not None else "F"
        return (
            f"RejectionSummary({self.label or 'test'}: rate={self.rate:.3f}, "
            f"critical={self.critical:.3f} [{df_text}], "
            f"{self.n_rejected}/{self.n_valid} rejected)"
        )


def rejection_rate(
    statistics: Sequence[float],
    critical: float,
    level: Optional[float] = None,
    dfn: Optional[int] = None,
    dfd: Optional[int] = None,
    label: str = "",
) -> RejectionSummary:
    """
    Fraction of replicates whose statistic exceeds the critical value.

    NaN statistics are excluded from both numerator and denominator and
    counted in ``n_undefined``.
    """
    values = np.asarray(statistics, dtype=float).ravel()
    defined = ~np.isnan(values)
    n_valid = int(defined.sum())
    n_rejected = int(np.sum(values[defined] > critical))
    rate = n_rejected / n_valid if n_valid > 0 else np.nan

    return RejectionSummary(
        rate=float(rate),
        critical=float(critical),
        n_rejected=n_rejected,
        n_valid=n_valid,
        n_undefined=int(values.size - n_valid),
        level=level,
        dfn=dfn,
        dfd=dfd,
        label=label,
    )


# =============================================================================
# DISTRIBUTION MODE
# =============================================================================

@dataclass
class DistributionSummary:
    """
    Empirical sampling distribution of a coefficient estimator.

    Attributes
    ----------
    values : ndarray
        Defined estimates in replicate order.
    true_value : float
        Known true coefficient, the marker drawn on the histogram.
    mean, sd : float
        Mean and standard deviation (ddof=1) of ``values``.
    counts, bin_edges : ndarray
        Histogram of ``values``.
    n_undefined : int
        Replicates whose estimate was NaN and excluded.
    n_empty_selection : int
        Replicates in which the LASSO selected no covariate.
    label : str
        Name of the estimator.
    """
    values: NDArray
    true_value: float
    mean: float
    sd: float
    counts: NDArray
    bin_edges: NDArray
    n_undefined: int = 0
    n_empty_selection: int = 0
    label: str = ""

    @property
    def n_valid(self) -> int:
        return int(len(self.values))

    @property
    def sorted_values(self) -> NDArray:
        return np.sort(self.values)

    @property
    def bias(self) -> float:
        """Mean estimate minus the true value."""
        return self.mean - self.true_value

    @property
    def mc_se(self) -> float:
        """Monte Carlo standard error of ``mean``: sd / √R."""
        if self.n_valid < 2:
            return np.nan
        return self.sd / np.sqrt(self.n_valid)

    @property
    def bias_t(self) -> float:
        """Bias in units of its Monte Carlo standard error."""
        se = self.mc_se
        if np.isnan(se) or se == 0:
            return np.nan
        return self.bias / se

    def histogram_table(self) -> Dict[str, NDArray]:
        """Bin edges and counts, ready for a bar plot or DataFrame."""
        return {
            'bin_left': self.bin_edges[:-1],
            'bin_right': self.bin_edges[1:],
            'count': self.counts,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'true_value': self.true_value,
            'mean': self.mean,
            'sd': self.sd,
            'bias': self.bias,
            'mc_se': self.mc_se,
            'bias_t': self.bias_t,
            'n_valid': self.n_valid,
            'n_undefined': self.n_undefined,
            'n_empty_selection': self.n_empty_selection,
        }

    def __repr__(self) -> str:
        return (
            f"DistributionSummary({self.label or 'estimate'}: "
            f"mean={self.mean:.4f}, sd={self.sd:.4f}, true={self.true_value}, "
            f"n={self.n_valid}, undefined={self.n_undefined})"
        )


def coefficient_distribution(
    values: Sequence[float],
    true_value: float,
    bins: int = 30,
    n_empty_selection: int = 0,
    label: str = "",
) -> DistributionSummary:
    """
    Summarise the sampling distribution of a coefficient estimator.

    Parameters
    ----------
    values : sequence of float
        One estimate per replicate; NaN marks an undefined estimate.
    true_value : float
        True coefficient.
    bins : int, default 30
        Number of histogram bins.
    n_empty_selection : int, default 0
        Replicates in which nothing was selected, reported alongside.
    label : str
        Name of the estimator.

    Returns
    -------
    DistributionSummary
    """
    arr = np.asarray(values, dtype=float).ravel()
    defined = arr[~np.isnan(arr)]

    if defined.size == 0:
        mean = np.nan
        sd = np.nan
        counts = np.zeros(bins, dtype=int)
        bin_edges = np.full(bins + 1, np.nan)
    else:
        mean = float(np.mean(defined))
        sd = float(np.std(defined, ddof=1)) if defined.size > 1 else np.nan
        counts, bin_edges = np.histogram(defined, bins=bins)

    return DistributionSummary(
        values=defined,
        true_value=float(true_value),
        mean=mean,
        sd=sd,
        counts=counts,
        bin_edges=bin_edges,
        n_undefined=int(arr.size - defined.size),
        n_empty_selection=int(n_empty_selection),
        label=label,
    )


def selection_frequency(selected_sets: Sequence[Sequence[int]], p: int) -> NDArray:
    """
    Fraction of replicates in which each covariate was selected.

    Parameters
    ----------
    selected_sets : sequence of sequences of int
        Selected covariate indices, one entry per replicate.
    p : int
        Number of covariates.

    Returns
    -------
    ndarray of shape (p,)
    """
    counts = np.zeros(p)
    for sel in selected_sets:
        counts[list(sel)] += 1
    n = len(selected_sets)
    return counts / n if n > 0 else np.full(p, np.nan)


__all__ = [
    'critical_value',
    'RejectionSummary',
    'rejection_rate',
    'DistributionSummary',
    'coefficient_distribution',
    'selection_frequency',
]
