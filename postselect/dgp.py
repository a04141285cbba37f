"""
Data Generating Process for the Post-Selection Simulations.

Every replicate is drawn from the same linear Gaussian model with a known
ground truth, so the simulated rejection rates and coefficient distributions
can be compared with the truth directly.

Model
-----
Covariates:  X_j ~ N(μ_j, s_j²), independent across j
Response:    Y = β₀ + X'β + ε,  ε ~ N(0, σ²)

All values are rounded to two decimal places after they are drawn.

Designs
-------
Double dipping:  β = 0, so Y is independent of every covariate and the null
                 hypothesis of any test on Y ~ X_j is true by construction.
LASSO bias:      β = (75, −5, 0) with covariate scales (1, 2, 3) and a noise
                 scale σ = 100 that is large relative to the signal.

Randomness
----------
A run draws all of its replicates from one ``numpy.random.Generator`` in a
fixed order (all covariates first, then all noise), so the same seed always
reproduces the same datasets regardless of how the fits are scheduled later.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from postselect.exceptions import InvalidConfigurationError


# =============================================================================
# CONSTANTS
# =============================================================================

DECIMALS: int = 2                       # Rounding precision of generated data
P_DOUBLE_DIPPING: int = 10              # Covariates in the double-dipping design
BETA_LASSO_BIAS = (75.0, -5.0, 0.0)     # True coefficients in the bias design
SCALES_LASSO_BIAS = (1.0, 2.0, 3.0)     # Covariate standard deviations
SIGMA_LASSO_BIAS: float = 100.0         # Noise standard deviation


# =============================================================================
# REPLICATE CONTAINER
# =============================================================================

@dataclass(frozen=True)
class Replicate:
    """
    One synthetic dataset.

    Attributes
    ----------
    replicate_id : int
        Position of the replicate in its run, starting at 1.
    X : ndarray of shape (n, p)
        Covariate matrix, one row per observation.
    y : ndarray of shape (n,)
        Response vector.
    """
    replicate_id: int
    X: NDArray
    y: NDArray

    @property
    def n(self) -> int:
        return self.X.shape[0]

    @property
    def p(self) -> int:
        return self.X.shape[1]


# =============================================================================
# LINEAR GAUSSIAN DGP
# =============================================================================

def _as_vector(value: Union[float, Sequence[float], NDArray], p: int, name: str) -> NDArray:
    """Broadcast a scalar to length p, or check a vector has length p."""
    arr = np.asarray(value, dtype=float)
    if arr.ndim == 0:
        return np.full(p, float(arr))
    arr = arr.ravel()
    if arr.shape[0] != p:
        raise InvalidConfigurationError(
            f"{name} must have length p={p}, got {arr.shape[0]}"
        )
    return arr


@dataclass
class LinearDGP:
    """
    Linear Gaussian data generating process with independent covariates.

    Parameters
    ----------
    p : int
        Number of covariates.
    means : float or array-like of shape (p,), default 0.0
        Covariate means μ_j.
    covariate_sd : float or array-like of shape (p,), default 1.0
        Covariate standard deviations s_j. A scalar gives every covariate
        the same scale.
    beta : float or array-like of shape (p,), default 0.0
        True slope coefficients. The default makes the response independent
        of the covariates.
    noise_sd : float, default 1.0
        Standard deviation σ of the response noise.
    intercept : float, default 0.0
        True intercept β₀.
    decimals : int or None, default 2
        Rounding precision applied to covariates and response. ``None``
        disables rounding.

    Examples
    --------
    >>> dgp = LinearDGP(p=3, beta=[75, -5, 0], covariate_sd=[1, 2, 3], noise_sd=100)
    >>> reps = dgp.generate(n=1000, n_replicates=10, rng=np.random.default_rng(1))
    >>> reps[0].X.shape
    (1000, 3)
    """
    p: int
    means: Union[float, Sequence[float], NDArray] = 0.0
    covariate_sd: Union[float, Sequence[float], NDArray] = 1.0
    beta: Union[float, Sequence[float], NDArray] = 0.0
    noise_sd: float = 1.0
    intercept: float = 0.0
    decimals: Optional[int] = DECIMALS

    _means: NDArray = field(default=None, init=False, repr=False)
    _scales: NDArray = field(default=None, init=False, repr=False)
    _beta: NDArray = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.p < 1:
            raise InvalidConfigurationError(f"p must be at least 1, got {self.p}")

        self._means = _as_vector(self.means, self.p, "means")
        self._scales = _as_vector(self.covariate_sd, self.p, "covariate_sd")
        self._beta = _as_vector(self.beta, self.p, "beta")

        if np.any(self._scales <= 0):
            raise InvalidConfigurationError("covariate_sd must be positive")
        if self.noise_sd <= 0:
            raise InvalidConfigurationError(
                f"noise_sd must be positive, got {self.noise_sd}"
            )

    @property
    def true_beta(self) -> NDArray:
        """True slope vector as a length-p array."""
        return self._beta.copy()

    @property
    def is_null(self) -> bool:
        """True when the response is independent of every covariate."""
        return bool(np.all(self._beta == 0))

    def generate(
        self,
        n: int,
        n_replicates: int,
        rng: np.random.Generator,
    ) -> List[Replicate]:
        """
        Draw ``n_replicates`` independent datasets of ``n`` rows each.

        The generator is consumed in a fixed order: the full covariate
        tensor of shape (R, n, p) first, then the noise matrix of shape
        (R, n).

        Parameters
        ----------
        n : int
            Rows per replicate.
        n_replicates : int
            Number of replicates R.
        rng : numpy.random.Generator
            The run's random-number stream.

        Returns
        -------
        list of Replicate
            Replicates tagged 1..R.
        """
        if n < 1:
            raise InvalidConfigurationError(f"n must be at least 1, got {n}")
        if n_replicates < 1:
            raise InvalidConfigurationError(
                f"n_replicates must be at least 1, got {n_replicates}"
            )

        X = rng.normal(self._means, self._scales, size=(n_replicates, n, self.p))
        eps = rng.normal(0.0, self.noise_sd, size=(n_replicates, n))

        if self.decimals is not None:
            X = np.round(X, self.decimals)

        # Y = β₀ + X'β + ε, computed from the rounded covariates
        y = self.intercept + X @ self._beta + eps

        if self.decimals is not None:
            y = np.round(y, self.decimals)

        return [
            Replicate(replicate_id=r + 1, X=X[r], y=y[r])
            for r in range(n_replicates)
        ]


def generate_replicates(
    dgp: LinearDGP,
    n: int,
    n_replicates: int,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> List[Replicate]:
    """
    Generate the replicates of one run (convenience function).

    Exactly one of ``seed`` and ``rng`` should normally be given; passing an
    existing generator lets the caller keep drawing from the same stream
    afterwards (for example, for random splits).
    """
    if rng is None:
        rng = np.random.default_rng(seed)
    return dgp.generate(n, n_replicates, rng)


# =============================================================================
# PRESET DESIGNS
# =============================================================================

def double_dipping_dgp(p: int = P_DOUBLE_DIPPING) -> LinearDGP:
    """Null design: standard normal covariates, response independent of all."""
    return LinearDGP(p=p, means=0.0, covariate_sd=1.0, beta=0.0, noise_sd=1.0)


def lasso_bias_dgp() -> LinearDGP:
    """
    Shrinkage-bias design: β = (75, −5, 0), heterogeneous covariate scales
    and noise that dominates the signal.
    """
    return LinearDGP(
        p=len(BETA_LASSO_BIAS),
        means=0.0,
        covariate_sd=SCALES_LASSO_BIAS,
        beta=BETA_LASSO_BIAS,
        noise_sd=SIGMA_LASSO_BIAS,
    )


__all__ = [
    'Replicate',
    'LinearDGP',
    'generate_replicates',
    'double_dipping_dgp',
    'lasso_bias_dgp',
    'DECIMALS',
    'P_DOUBLE_DIPPING',
    'BETA_LASSO_BIAS',
    'SCALES_LASSO_BIAS',
    'SIGMA_LASSO_BIAS',
]
