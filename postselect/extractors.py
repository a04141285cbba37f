"""
Statistic extractors: the scalar of interest from a fitted model.
"""

from __future__ import annotations

import numpy as np

from postselect.fitting import FittedModel


def f_statistic(model: FittedModel) -> float:
    """Overall F-statistic of the model (NaN for intercept-only fits)."""
    return float(model.f_statistic)


def rejects(model: FittedModel, critical: float) -> bool:
    """
    True when the model's F-statistic exceeds the critical value.

    An undefined statistic never rejects.
    """
    stat = f_statistic(model)
    if np.isnan(stat):
        return False
    return bool(stat > critical)


def coefficient_of(model: FittedModel, j: int) -> float:
    """
    Slope estimate of covariate ``j``.

    NaN when an OLS model left ``j`` out, e.g. a Post-LASSO refit after the
    LASSO dropped it. Aggregation treats NaN as undefined and excludes it.
    A LASSO model reports its shrunken estimate, exact zeros included.
    """
    return model.coefficient(j)


def selected_count(model: FittedModel) -> int:
    """Number of covariates in the model."""
    return model.n_selected


__all__ = [
    'f_statistic',
    'rejects',
    'coefficient_of',
    'selected_count',
]
