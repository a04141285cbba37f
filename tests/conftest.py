"""
Pytest configuration file providing shared fixtures.
"""
import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from postselect.dgp import LinearDGP, double_dipping_dgp, lasso_bias_dgp


@pytest.fixture
def rng():
    """Seeded random stream for ad hoc data."""
    return np.random.default_rng(12345)


@pytest.fixture
def null_replicates():
    """Twenty null-design replicates of 100 rows and 10 covariates."""
    dgp = double_dipping_dgp()
    return dgp.generate(n=100, n_replicates=20, rng=np.random.default_rng(20211113))


@pytest.fixture
def lasso_replicate():
    """One replicate of the LASSO bias design (n = 1000)."""
    dgp = lasso_bias_dgp()
    return dgp.generate(n=1000, n_replicates=1, rng=np.random.default_rng(20211113))[0]


@pytest.fixture
def signal_data(rng):
    """
    n = 200 rows, p = 4 independent covariates, y = 1 + 3·X3 + noise.

    Covariate index 2 carries all the signal.
    """
    n, p = 200, 4
    X = rng.normal(size=(n, p))
    y = 1.0 + 3.0 * X[:, 2] + rng.normal(size=n)
    return X, y


@pytest.fixture
def small_dgp():
    return LinearDGP(p=3, means=[1.0, 2.0, 3.0], covariate_sd=[1.0, 0.5, 2.0],
                     beta=[2.0, 0.0, -1.0], noise_sd=1.5, intercept=4.0)
