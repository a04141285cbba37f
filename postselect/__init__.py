"""
postselect: Monte Carlo Studies of Post-Selection Inference
===========================================================

Two simulation studies on what happens when the data that choose a model
are also used to judge it.

Double dipping
--------------
Under a null design (Y independent of all p covariates) the covariate with
the largest single-regression F-statistic is tested against the F(1, n − 2)
critical value. Because the tested statistic is the maximum of p of them,
the empirical Type-I error is far above the nominal 5%. Choosing the
covariate on one half of the rows and testing it on the other half restores
the nominal rate.

LASSO shrinkage
---------------
At a fixed penalty λ the LASSO estimate of β1 = 75 is pulled toward zero.
Refitting OLS on the covariates the LASSO selected (Post-LASSO) removes
the shrinkage.

Quick Start
-----------
>>> from postselect import double_dipping_config, run_double_dipping_experiment
>>> report = run_double_dipping_experiment(double_dipping_config())
>>> report.naive.rate, report.split.rate
>>>
>>> from postselect import lasso_bias_config, run_lasso_bias_experiment
>>> report = run_lasso_bias_experiment(lasso_bias_config())
>>> report.lasso.mean, report.post_lasso.mean
"""

from postselect.aggregation import (
    DistributionSummary,
    RejectionSummary,
    coefficient_distribution,
    critical_value,
    rejection_rate,
    selection_frequency,
)
from postselect.config import (
    EXPERIMENT_CONFIGS,
    SimulationConfig,
    double_dipping_config,
    lasso_bias_config,
)
from postselect.dgp import (
    LinearDGP,
    Replicate,
    double_dipping_dgp,
    generate_replicates,
    lasso_bias_dgp,
)
from postselect.exceptions import (
    DegenerateFitError,
    EmptySelectionWarning,
    InvalidConfigurationError,
    PostSelectError,
    PostSelectWarning,
)
from postselect.extractors import coefficient_of, f_statistic, rejects, selected_count
from postselect.fitting import (
    FittedModel,
    fit_full_regression,
    fit_lasso,
    fit_ols,
    fit_post_lasso,
    fit_single_covariate,
    forward_select_step,
    lasso_selection,
)
from postselect.simulation import (
    DoubleDippingReport,
    LassoBiasReport,
    ReplicationResult,
    double_dipping_pipeline,
    full_regression_pipeline,
    lasso_pipeline,
    post_lasso_pipeline,
    run_double_dipping_experiment,
    run_lasso_bias_experiment,
    run_replications,
    split_pipeline,
)
from postselect.splitting import Split, select_then_refit, split_first_k, split_random

__version__ = "1.0.0"

__all__ = [
    # Data generation
    "LinearDGP",
    "Replicate",
    "generate_replicates",
    "double_dipping_dgp",
    "lasso_bias_dgp",
    # Configuration
    "SimulationConfig",
    "EXPERIMENT_CONFIGS",
    "double_dipping_config",
    "lasso_bias_config",
    # Fitting
    "FittedModel",
    "fit_ols",
    "fit_full_regression",
    "fit_single_covariate",
    "forward_select_step",
    "fit_lasso",
    "lasso_selection",
    "fit_post_lasso",
    # Splitting
    "Split",
    "split_first_k",
    "split_random",
    "select_then_refit",
    # Extraction
    "f_statistic",
    "rejects",
    "coefficient_of",
    "selected_count",
    # Replication
    "ReplicationResult",
    "run_replications",
    "double_dipping_pipeline",
    "split_pipeline",
    "full_regression_pipeline",
    "lasso_pipeline",
    "post_lasso_pipeline",
    "run_double_dipping_experiment",
    "run_lasso_bias_experiment",
    "DoubleDippingReport",
    "LassoBiasReport",
    # Aggregation
    "critical_value",
    "rejection_rate",
    "coefficient_distribution",
    "selection_frequency",
    "RejectionSummary",
    "DistributionSummary",
    # Errors
    "PostSelectError",
    "InvalidConfigurationError",
    "DegenerateFitError",
    "PostSelectWarning",
    "EmptySelectionWarning",
]
