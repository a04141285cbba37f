"""
Simulation configuration.

All inputs of an experiment are read once into a :class:`SimulationConfig`
and validated in ``__post_init__``, before any data is drawn.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Literal, Optional, Sequence, Union

import numpy as np

from postselect.dgp import (
    BETA_LASSO_BIAS,
    DECIMALS,
    P_DOUBLE_DIPPING,
    SCALES_LASSO_BIAS,
    SIGMA_LASSO_BIAS,
    LinearDGP,
)
from postselect.exceptions import InvalidConfigurationError
from postselect.fitting import SELECTION_TOL
from postselect.splitting import MIN_SUBSET_ROWS


# =============================================================================
# DEFAULTS
# =============================================================================

SEED_DEFAULT: int = 20211113     # Seed of the reference runs
R_DEFAULT: int = 1000            # Monte Carlo replications
LEVEL_DEFAULT: float = 0.95      # F quantile used as the critical value
LAMBDA_DEFAULT: float = 5.0      # Fixed LASSO penalty of the bias study
N_JOBS_DEFAULT: int = 1          # Sequential fitting unless asked otherwise

SplitPolicy = Literal["first_k", "random"]


@dataclass
class SimulationConfig:
    """
    Parameters of one Monte Carlo experiment.

    Parameters
    ----------
    n : int
        Rows per replicate.
    p : int
        Covariates per replicate.
    n_replicates : int
        Number of replicates R.
    means : float or sequence, default 0.0
        Covariate means.
    covariate_sd : float or sequence, default 1.0
        Covariate standard deviations.
    beta : float or sequence, default 0.0
        True slope coefficients.
    noise_sd : float, default 1.0
        Response noise standard deviation.
    lam : float, default 5.0
        LASSO penalty λ.
    level : float, default 0.95
        Quantile of the F-distribution used as the rejection threshold.
    seed : int or None, default 20211113
        Seed of the single random stream of the run.
    split_size : int or None
        Rows in the selection subset; defaults to n // 2 (recomputed when
        ``with_overrides`` changes n).
    split_policy : {'first_k', 'random'}, default 'first_k'
        How the rows are partitioned.
    covariate : int, default 0
        0-based index of the covariate whose coefficient is studied.
    selection_tol : float, default 1e-5
        |β̂_j| threshold for a LASSO coefficient to count as selected.
    standardize : bool, default False
        Fit the LASSO on standardised covariates.
    decimals : int or None, default 2
        Rounding precision of the generated data.
    n_jobs : int, default 1
        joblib workers for the fitting loop.
    verbose : bool, default False
        Print progress.
    """
    n: int
    p: int
    n_replicates: int = R_DEFAULT
    means: Union[float, Sequence[float]] = 0.0
    covariate_sd: Union[float, Sequence[float]] = 1.0
    beta: Union[float, Sequence[float]] = 0.0
    noise_sd: float = 1.0
    lam: float = LAMBDA_DEFAULT
    level: float = LEVEL_DEFAULT
    seed: Optional[int] = SEED_DEFAULT
    split_size: Optional[int] = None
    split_policy: SplitPolicy = "first_k"
    covariate: int = 0
    selection_tol: float = SELECTION_TOL
    standardize: bool = False
    decimals: Optional[int] = DECIMALS
    n_jobs: int = N_JOBS_DEFAULT
    verbose: bool = False

    _dgp: LinearDGP = field(default=None, init=False, repr=False)
    _split_size_derived: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.p < 1:
            raise InvalidConfigurationError(f"p must be at least 1, got {self.p}")
        # The full model needs n - p - 1 > 0 residual degrees of freedom
        if self.n <= self.p + 1:
            raise InvalidConfigurationError(
                f"n must exceed p + 1, got n={self.n}, p={self.p}"
            )
        if self.n_replicates <= 0:
            raise InvalidConfigurationError(
                f"n_replicates must be positive, got {self.n_replicates}"
            )
        if self.lam < 0:
            raise InvalidConfigurationError(f"lam must be non-negative, got {self.lam}")
        if not 0 < self.level < 1:
            raise InvalidConfigurationError(f"level must be in (0, 1), got {self.level}")
        if self.selection_tol < 0:
            raise InvalidConfigurationError(
                f"selection_tol must be non-negative, got {self.selection_tol}"
            )
        if not 0 <= self.covariate < self.p:
            raise InvalidConfigurationError(
                f"covariate must be in [0, {self.p - 1}], got {self.covariate}"
            )
        if self.split_policy not in ("first_k", "random"):
            raise InvalidConfigurationError(
                f"split_policy must be 'first_k' or 'random', got {self.split_policy!r}"
            )

        if self.split_size is None:
            self.split_size = self.n // 2
            self._split_size_derived = True
        if not MIN_SUBSET_ROWS <= self.split_size <= self.n - MIN_SUBSET_ROWS:
            raise InvalidConfigurationError(
                f"split_size must be in [{MIN_SUBSET_ROWS}, {self.n - MIN_SUBSET_ROWS}], "
                f"got {self.split_size}"
            )

        # Vector lengths and scales are checked by the DGP itself
        self._dgp = LinearDGP(
            p=self.p,
            means=self.means,
            covariate_sd=self.covariate_sd,
            beta=self.beta,
            noise_sd=self.noise_sd,
            decimals=self.decimals,
        )

    def make_dgp(self) -> LinearDGP:
        """Data generating process described by this configuration."""
        return self._dgp

    @property
    def true_value(self) -> float:
        """True coefficient of the studied covariate."""
        return float(self._dgp.true_beta[self.covariate])

    def make_rng(self) -> np.random.Generator:
        """Fresh random stream for one run."""
        return np.random.default_rng(self.seed)

    def with_overrides(self, **overrides: Any) -> "SimulationConfig":
        """
        Copy with some fields replaced (re-validated).

        A ``split_size`` that was derived from ``n`` is derived again from
        the new ``n`` unless the override sets it explicitly.
        """
        if self._split_size_derived:
            overrides.setdefault('split_size', None)
        return replace(self, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'n': self.n,
            'p': self.p,
            'n_replicates': self.n_replicates,
            'noise_sd': self.noise_sd,
            'lam': self.lam,
            'level': self.level,
            'seed': self.seed,
            'split_size': self.split_size,
            'split_policy': self.split_policy,
            'covariate': self.covariate,
            'selection_tol': self.selection_tol,
            'standardize': self.standardize,
        }


# =============================================================================
# PRESET EXPERIMENTS
# =============================================================================

EXPERIMENT_CONFIGS: Dict[str, Dict[str, Any]] = {
    "double_dipping": {
        "n": 100,
        "p": P_DOUBLE_DIPPING,
        "n_replicates": R_DEFAULT,
        "means": 0.0,
        "covariate_sd": 1.0,
        "beta": 0.0,
        "noise_sd": 1.0,
        "description": "Null model: select the best of 10 covariates, then test it",
    },
    "lasso_bias": {
        "n": 1000,
        "p": len(BETA_LASSO_BIAS),
        "n_replicates": R_DEFAULT,
        "means": 0.0,
        "covariate_sd": SCALES_LASSO_BIAS,
        "beta": BETA_LASSO_BIAS,
        "noise_sd": SIGMA_LASSO_BIAS,
        "lam": LAMBDA_DEFAULT,
        "covariate": 0,
        "description": "LASSO shrinkage of β1 = 75 and its Post-LASSO correction",
    },
}


def _preset(name: str, overrides: Dict[str, Any]) -> SimulationConfig:
    params = {k: v for k, v in EXPERIMENT_CONFIGS[name].items() if k != "description"}
    params.update(overrides)
    return SimulationConfig(**params)


def double_dipping_config(**overrides: Any) -> SimulationConfig:
    """Configuration of the double-dipping study (n=100, p=10, R=1000)."""
    return _preset("double_dipping", overrides)


def lasso_bias_config(**overrides: Any) -> SimulationConfig:
    """Configuration of the LASSO bias study (n=1000, p=3, R=1000)."""
    return _preset("lasso_bias", overrides)


__all__ = [
    'SimulationConfig',
    'EXPERIMENT_CONFIGS',
    'double_dipping_config',
    'lasso_bias_config',
    'SEED_DEFAULT',
    'R_DEFAULT',
    'LEVEL_DEFAULT',
    'LAMBDA_DEFAULT',
    'N_JOBS_DEFAULT',
]
