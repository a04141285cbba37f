"""
Model Fitters for the Post-Selection Simulations.

This module implements the competing fitting procedures applied to every
replicate:

- Full regression: OLS of Y on all p covariates, with the overall F-test of
  the joint null β = 0 on (p, n − p − 1) degrees of freedom.
- One-step forward selection: the single-covariate regression Y ~ X_j with
  the largest F-statistic on (1, n − 2) degrees of freedom.
- LASSO at one fixed penalty λ, minimising
      (1 / 2n) · ‖y − β₀ − Xβ‖² + λ · ‖β‖₁
- Post-LASSO: OLS refit on the covariates the LASSO kept.

Selecting the best single covariate and then testing it on the same rows is
the "double dipping" the simulations measure. The F-statistic of the selected
model is the maximum of p F-statistics, so comparing it with the F(1, n − 2)
critical value rejects far more often than the nominal level.

Coefficient vectors always have length p. Entries for covariates outside a
model's ``selected`` set are NaN for OLS fits and exactly zero for LASSO fits.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray
from scipy import stats
from sklearn.linear_model import Lasso, LinearRegression
from sklearn.preprocessing import StandardScaler

from postselect.exceptions import DegenerateFitError, EmptySelectionWarning


# =============================================================================
# CONSTANTS
# =============================================================================

SELECTION_TOL: float = 1e-5      # |β̂_j| above this counts as selected
LASSO_TOL: float = 1e-8          # Coordinate-descent convergence tolerance
LASSO_MAX_ITER: int = 100000     # Coordinate-descent iteration cap


# =============================================================================
# FITTED MODEL CONTAINER
# =============================================================================

@dataclass(frozen=True)
class FittedModel:
    """
    Result of fitting one procedure to one dataset.

    Attributes
    ----------
    method : str
        'full', 'single', 'lasso' or 'post_lasso'.
    selected : tuple of int
        0-based indices of the covariates in the model. The intercept is
        never part of it.
    coef : ndarray of shape (p,)
        Slope estimates indexed by covariate.
    se : ndarray of shape (p,)
        Homoskedastic standard errors (NaN for LASSO and unselected entries).
    intercept : float
        Estimated intercept.
    f_statistic : float
        Overall F-statistic of the model against the intercept-only model.
        NaN when the model has no covariate or was not fitted by OLS.
    df_model, df_resid : int
        Numerator and denominator degrees of freedom of ``f_statistic``.
    p_value : float
        Upper-tail probability of ``f_statistic`` under F(df_model, df_resid).
    n_obs : int
        Rows used in the fit.
    """
    method: str
    selected: Tuple[int, ...]
    coef: NDArray
    se: NDArray
    intercept: float
    f_statistic: float
    df_model: int
    df_resid: int
    p_value: float
    n_obs: int

    @property
    def n_covariates(self) -> int:
        return len(self.coef)

    @property
    def n_selected(self) -> int:
        return len(self.selected)

    def coefficient(self, j: int) -> float:
        """
        Slope of covariate ``j``.

        NaN for a covariate left out of an OLS fit; a LASSO fit reports its
        actual (possibly zero) estimate.
        """
        if not 0 <= j < self.n_covariates:
            raise IndexError(f"covariate index {j} out of range for p={self.n_covariates}")
        return float(self.coef[j])

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (one entry per covariate coefficient)."""
        out = {
            'method': self.method,
            'selected': self.selected,
            'n_selected': self.n_selected,
            'intercept': self.intercept,
            'f_statistic': self.f_statistic,
            'df_model': self.df_model,
            'df_resid': self.df_resid,
            'p_value': self.p_value,
            'n_obs': self.n_obs,
        }
        for j, b in enumerate(self.coef):
            out[f'beta_{j + 1}'] = b
        return out


# =============================================================================
# ORDINARY LEAST SQUARES
# =============================================================================

def _check_inputs(X: NDArray, y: NDArray) -> Tuple[NDArray, NDArray]:
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float).ravel()
    if X.ndim == 1:
        X = X.reshape(-1, 1)
    if X.shape[0] != y.shape[0]:
        raise ValueError("X and y must have the same number of observations")
    return X, y


def fit_ols(
    X: NDArray,
    y: NDArray,
    columns: Optional[Sequence[int]] = None,
    method: str = "full",
) -> FittedModel:
    """
    OLS of y on an intercept and the covariates in ``columns``.

    Parameters
    ----------
    X : ndarray of shape (n, p)
        Covariate matrix.
    y : ndarray of shape (n,)
        Response.
    columns : sequence of int, optional
        Covariates to include. None means all of them; an empty sequence
        fits the intercept-only model.
    method : str, default 'full'
        Label stored on the returned model.

    Returns
    -------
    FittedModel
        Coefficients, standard errors and the overall F-test with
        df (k, n − k − 1) for k included covariates.

    Raises
    ------
    DegenerateFitError
        If the design [1, X_S] is rank-deficient or n ≤ k + 1.
    """
    X, y = _check_inputs(X, y)
    n, p = X.shape
    cols = tuple(range(p)) if columns is None else tuple(int(j) for j in columns)

    # Design matrix Z = [1, X_S]
    Z = np.column_stack([np.ones(n), X[:, list(cols)]]) if cols else np.ones((n, 1))
    k = len(cols)
    df_resid = n - k - 1

    if df_resid <= 0:
        raise DegenerateFitError(
            f"No residual degrees of freedom: n={n} with {k} covariates"
        )
    if np.linalg.matrix_rank(Z) < k + 1:
        raise DegenerateFitError(
            f"Design matrix is rank-deficient for covariates {list(cols)}"
        )

    b, _, _, _ = np.linalg.lstsq(Z, y, rcond=None)
    resid = y - Z @ b
    rss = float(resid @ resid)
    tss = float(np.sum((y - y.mean()) ** 2))

    # Var(b̂) = σ̂² (Z'Z)⁻¹ with σ̂² = RSS / (n − k − 1)
    sigma_sq = rss / df_resid
    cov = sigma_sq * np.linalg.inv(Z.T @ Z)
    se_all = np.sqrt(np.clip(np.diag(cov), 0.0, None))

    if k == 0:
        f_stat = np.nan
        p_value = np.nan
    elif rss <= 0:
        f_stat = np.inf
        p_value = 0.0
    else:
        f_stat = ((tss - rss) / k) / sigma_sq
        p_value = float(stats.f.sf(f_stat, k, df_resid))

    coef = np.full(p, np.nan)
    se = np.full(p, np.nan)
    coef[list(cols)] = b[1:]
    se[list(cols)] = se_all[1:]

    return FittedModel(
        method=method,
        selected=cols,
        coef=coef,
        se=se,
        intercept=float(b[0]),
        f_statistic=float(f_stat),
        df_model=k,
        df_resid=df_resid,
        p_value=p_value,
        n_obs=n,
    )


def fit_full_regression(X: NDArray, y: NDArray) -> FittedModel:
    """OLS of y on all covariates; F-test on (p, n − p − 1) df."""
    return fit_ols(X, y, columns=None, method="full")


def fit_single_covariate(X: NDArray, y: NDArray, j: int) -> FittedModel:
    """Simple regression y ~ X_j; F-test on (1, n − 2) df."""
    return fit_ols(X, y, columns=(j,), method="single")


# =============================================================================
# ONE-STEP FORWARD SELECTION
# =============================================================================

def forward_select_step(X: NDArray, y: NDArray) -> FittedModel:
    """
    One greedy step of forward selection.

    Fits the p single-covariate regressions y ~ X_j and returns the one with
    the largest F-statistic. Ties go to the lowest covariate index.

    Only the first step of the stepwise procedure is taken: the returned
    model always holds exactly one covariate, whatever its F-statistic.

    Parameters
    ----------
    X : ndarray of shape (n, p)
        Covariate matrix.
    y : ndarray of shape (n,)
        Response.

    Returns
    -------
    FittedModel
        The winning single-covariate fit.
    """
    X, y = _check_inputs(X, y)
    candidates = [fit_single_covariate(X, y, j) for j in range(X.shape[1])]
    f_stats = np.array([m.f_statistic for m in candidates])

    # argmax returns the first maximum, i.e. the lowest index on ties
    best = int(np.argmax(f_stats))
    return candidates[best]


# =============================================================================
# LASSO
# =============================================================================

def fit_lasso(
    X: NDArray,
    y: NDArray,
    lam: float,
    standardize: bool = False,
    tol: float = SELECTION_TOL,
) -> FittedModel:
    """
    L1-penalised least squares at a single fixed penalty.

    Uses scikit-learn's coordinate descent with ``alpha = lam``, so the
    objective is (1 / 2n)·RSS + λ·‖β‖₁. The same λ is applied to every
    replicate; no path or cross-validation search is done.

    Parameters
    ----------
    X : ndarray of shape (n, p)
        Covariate matrix.
    y : ndarray of shape (n,)
        Response.
    lam : float
        Penalty strength λ ≥ 0. λ = 0 is plain OLS.
    standardize : bool, default False
        Fit on unit-variance covariates and map the coefficients back to
        the original scale, so the penalty treats all covariates alike.
    tol : float, default 1e-5
        Threshold used to fill ``selected``.

    Returns
    -------
    FittedModel
        ``coef`` holds all p slopes (exact zeros included) and ``selected``
        the covariates with |β̂_j| > tol. The intercept is kept out of both.
    """
    X, y = _check_inputs(X, y)
    n, p = X.shape

    if lam < 0:
        raise ValueError(f"lam must be non-negative, got {lam}")

    if standardize:
        scaler = StandardScaler()
        X_fit = scaler.fit_transform(X)
    else:
        X_fit = X

    if lam == 0:
        model = LinearRegression()
    else:
        model = Lasso(
            alpha=lam,
            fit_intercept=True,
            tol=LASSO_TOL,
            max_iter=LASSO_MAX_ITER,
            selection="cyclic",
        )
    model.fit(X_fit, y)

    coef = np.asarray(model.coef_, dtype=float).ravel()
    intercept = float(model.intercept_)

    if standardize:
        # β_j = β̃_j / s_j,  β₀ = β̃₀ − Σ_j β_j·x̄_j
        coef = coef / scaler.scale_
        intercept = intercept - float(scaler.mean_ @ coef)

    selected = tuple(int(j) for j in np.flatnonzero(np.abs(coef) > tol))

    return FittedModel(
        method="lasso",
        selected=selected,
        coef=coef,
        se=np.full(p, np.nan),
        intercept=intercept,
        f_statistic=np.nan,
        df_model=len(selected),
        df_resid=n - len(selected) - 1,
        p_value=np.nan,
        n_obs=n,
    )


def lasso_selection(model: FittedModel, tol: float = SELECTION_TOL) -> Tuple[int, ...]:
    """Covariates whose LASSO coefficient exceeds ``tol`` in absolute value."""
    coef = np.nan_to_num(model.coef, nan=0.0)
    return tuple(int(j) for j in np.flatnonzero(np.abs(coef) > tol))


# =============================================================================
# POST-LASSO
# =============================================================================

def fit_post_lasso(
    X: NDArray,
    y: NDArray,
    lasso_model: FittedModel,
    tol: float = SELECTION_TOL,
) -> FittedModel:
    """
    OLS refit restricted to the covariates selected by a LASSO fit.

    The refit removes the shrinkage of the selected coefficients. When the
    LASSO kept nothing, the refit is the intercept-only model, an
    :class:`EmptySelectionWarning` is emitted and every slope reads NaN.

    Parameters
    ----------
    X, y : ndarray
        The data the LASSO was fitted on.
    lasso_model : FittedModel
        Output of :func:`fit_lasso`.
    tol : float, default 1e-5
        Selection threshold on |β̂_j|.

    Returns
    -------
    FittedModel
        OLS fit labelled 'post_lasso'.
    """
    selected = lasso_selection(lasso_model, tol)

    if not selected:
        warnings.warn(
            "LASSO selected no covariates; Post-LASSO refit is intercept-only.",
            EmptySelectionWarning,
            stacklevel=2,
        )

    return fit_ols(X, y, columns=selected, method="post_lasso")


__all__ = [
    'FittedModel',
    'fit_ols',
    'fit_full_regression',
    'fit_single_covariate',
    'forward_select_step',
    'fit_lasso',
    'lasso_selection',
    'fit_post_lasso',
    'SELECTION_TOL',
    'LASSO_TOL',
    'LASSO_MAX_ITER',
]
