"""
Monte Carlo Replication Driver
==============================

Applies a fitting pipeline to every replicate of a run and collects one
:class:`ReplicationResult` per replicate, in replicate order.

A pipeline is a callable ``Replicate -> ReplicationResult``. The factories
below build the pipelines of the two studies:

    double_dipping_pipeline   forward step and test on the same rows
    split_pipeline            forward step on one subset, test on the other
    full_regression_pipeline  overall F-test of the full model (reference)
    lasso_pipeline            LASSO coefficient of one covariate
    post_lasso_pipeline       Post-LASSO coefficient of one covariate

All randomness of a run (the datasets and, for random splits, the row
permutations) is drawn from one generator before any fitting starts. Fits
are deterministic, so the results are identical whether the replicates are
processed sequentially or by a joblib worker pool.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from joblib import Parallel, delayed
from numpy.typing import NDArray
from tqdm import tqdm

from postselect.aggregation import (
    DistributionSummary,
    RejectionSummary,
    coefficient_distribution,
    critical_value,
    rejection_rate,
    selection_frequency,
)
from postselect.config import SimulationConfig
from postselect.dgp import Replicate
from postselect.exceptions import EmptySelectionWarning
from postselect.extractors import coefficient_of, f_statistic, rejects
from postselect.fitting import (
    SELECTION_TOL,
    fit_full_regression,
    fit_lasso,
    fit_post_lasso,
    forward_select_step,
)
from postselect.splitting import Split, select_then_refit, split_first_k, split_random


Pipeline = Callable[[Replicate], "ReplicationResult"]


# =============================================================================
# RESULT CONTAINER
# =============================================================================

@dataclass
class ReplicationResult:
    """
    Scalar of interest extracted from one replicate.

    Attributes
    ----------
    replicate_id : int
        Replicate the result belongs to.
    statistic : float
        F-statistic or coefficient estimate; NaN when undefined.
    rejected : bool or None
        Test decision, for testing pipelines.
    selected : tuple of int
        Covariates selected in this replicate.
    extra : dict
        Secondary quantities (e.g. the selection-subset F-statistic).
    """
    replicate_id: int
    statistic: float
    rejected: Optional[bool] = None
    selected: Tuple[int, ...] = ()
    extra: Dict[str, float] = field(default_factory=dict)

    @property
    def n_selected(self) -> int:
        return len(self.selected)

    def to_dict(self) -> Dict[str, Any]:
        out = {
            'replicate_id': self.replicate_id,
            'statistic': self.statistic,
            'rejected': self.rejected,
            'selected': self.selected,
            'n_selected': self.n_selected,
        }
        out.update(self.extra)
        return out


# =============================================================================
# PIPELINES
# =============================================================================

def _double_dipping_step(replicate: Replicate, critical: float) -> ReplicationResult:
    model = forward_select_step(replicate.X, replicate.y)
    return ReplicationResult(
        replicate_id=replicate.replicate_id,
        statistic=f_statistic(model),
        rejected=rejects(model, critical),
        selected=model.selected,
    )


def _split_step(
    replicate: Replicate,
    splits: Union[Split, Sequence[Split]],
    critical: float,
) -> ReplicationResult:
    split = splits if isinstance(splits, Split) else splits[replicate.replicate_id - 1]
    selection_model, inference_model = select_then_refit(replicate.X, replicate.y, split)
    return ReplicationResult(
        replicate_id=replicate.replicate_id,
        statistic=f_statistic(inference_model),
        rejected=rejects(inference_model, critical),
        selected=inference_model.selected,
        extra={'selection_statistic': f_statistic(selection_model)},
    )


def _full_regression_step(replicate: Replicate, critical: float) -> ReplicationResult:
    model = fit_full_regression(replicate.X, replicate.y)
    return ReplicationResult(
        replicate_id=replicate.replicate_id,
        statistic=f_statistic(model),
        rejected=rejects(model, critical),
        selected=model.selected,
    )


def _lasso_step(
    replicate: Replicate,
    lam: float,
    covariate: int,
    tol: float,
    standardize: bool,
) -> ReplicationResult:
    model = fit_lasso(replicate.X, replicate.y, lam, standardize=standardize, tol=tol)
    return ReplicationResult(
        replicate_id=replicate.replicate_id,
        statistic=coefficient_of(model, covariate),
        selected=model.selected,
    )


def _post_lasso_step(
    replicate: Replicate,
    lam: float,
    covariate: int,
    tol: float,
    standardize: bool,
) -> ReplicationResult:
    lasso = fit_lasso(replicate.X, replicate.y, lam, standardize=standardize, tol=tol)
    refit = fit_post_lasso(replicate.X, replicate.y, lasso, tol=tol)
    return ReplicationResult(
        replicate_id=replicate.replicate_id,
        statistic=coefficient_of(refit, covariate),
        selected=refit.selected,
        extra={'lasso_statistic': coefficient_of(lasso, covariate)},
    )


def double_dipping_pipeline(critical: float) -> Pipeline:
    """Select the best single covariate and test it on the same rows."""
    return partial(_double_dipping_step, critical=critical)


def split_pipeline(splits: Union[Split, Sequence[Split]], critical: float) -> Pipeline:
    """
    Select on ``split.selection`` and test on ``split.inference``.

    ``splits`` is either one Split shared by every replicate or a sequence
    indexed by ``replicate_id - 1``.
    """
    return partial(_split_step, splits=splits, critical=critical)


def full_regression_pipeline(critical: float) -> Pipeline:
    """Overall F-test of the model with all covariates."""
    return partial(_full_regression_step, critical=critical)


def lasso_pipeline(
    lam: float,
    covariate: int = 0,
    tol: float = SELECTION_TOL,
    standardize: bool = False,
) -> Pipeline:
    """LASSO estimate of one covariate's coefficient."""
    return partial(_lasso_step, lam=lam, covariate=covariate, tol=tol, standardize=standardize)


def post_lasso_pipeline(
    lam: float,
    covariate: int = 0,
    tol: float = SELECTION_TOL,
    standardize: bool = False,
) -> Pipeline:
    """Post-LASSO estimate of one covariate's coefficient (NaN if dropped)."""
    return partial(_post_lasso_step, lam=lam, covariate=covariate, tol=tol, standardize=standardize)


# =============================================================================
# DRIVER
# =============================================================================

def run_replications(
    replicates: Sequence[Replicate],
    pipeline: Pipeline,
    n_jobs: int = 1,
    verbose: bool = False,
    desc: str = "replicates",
) -> List[ReplicationResult]:
    """
    Apply ``pipeline`` to every replicate.

    Parameters
    ----------
    replicates : sequence of Replicate
        Datasets of the run, in replicate order.
    pipeline : callable
        Fitting pipeline ``Replicate -> ReplicationResult``.
    n_jobs : int, default 1
        1 runs sequentially; other values are passed to ``joblib.Parallel``.
    verbose : bool, default False
        Show a progress bar (sequential) or joblib progress (parallel).
    desc : str
        Progress bar label.

    Returns
    -------
    list of ReplicationResult
        Element i belongs to ``replicates[i]``.
    """
    if n_jobs == 1:
        results = [
            pipeline(rep)
            for rep in tqdm(replicates, desc=desc, disable=not verbose)
        ]
    else:
        results = Parallel(n_jobs=n_jobs, verbose=10 if verbose else 0)(
            delayed(pipeline)(rep) for rep in replicates
        )

    expected = [rep.replicate_id for rep in replicates]
    observed = [res.replicate_id for res in results]
    if observed != expected:
        raise RuntimeError(
            "Replication results are out of order or incomplete: "
            f"expected {len(expected)} results, got {len(observed)}"
        )

    return list(results)


def statistics_of(results: Sequence[ReplicationResult]) -> NDArray:
    """Statistic of every result, in replicate order."""
    return np.array([res.statistic for res in results], dtype=float)


# =============================================================================
# EXPERIMENTS
# =============================================================================

@dataclass
class DoubleDippingReport:
    """Rejection rates of the naive, split and full-model tests of one run."""
    config: SimulationConfig
    naive: RejectionSummary
    split: RejectionSummary
    full: RejectionSummary
    naive_results: List[ReplicationResult] = field(repr=False, default_factory=list)
    split_results: List[ReplicationResult] = field(repr=False, default_factory=list)
    full_results: List[ReplicationResult] = field(repr=False, default_factory=list)

    @property
    def type_one_error(self) -> float:
        """Empirical Type-I error of the double-dipping test."""
        return self.naive.rate


@dataclass
class LassoBiasReport:
    """Sampling distributions of the LASSO and Post-LASSO estimates of one run."""
    config: SimulationConfig
    lasso: DistributionSummary
    post_lasso: DistributionSummary
    selection_frequency: NDArray
    lasso_results: List[ReplicationResult] = field(repr=False, default_factory=list)
    post_lasso_results: List[ReplicationResult] = field(repr=False, default_factory=list)


def make_splits(config: SimulationConfig, rng: np.random.Generator) -> Union[Split, List[Split]]:
    """
    Row partitions of a run.

    A fixed first-k split is shared by all replicates. Random splits are
    drawn one per replicate from the run's generator.
    """
    if config.split_policy == "first_k":
        return split_first_k(config.n, config.split_size)
    return [
        split_random(config.n, config.split_size, rng)
        for _ in range(config.n_replicates)
    ]


def run_double_dipping_experiment(config: SimulationConfig) -> DoubleDippingReport:
    """
    Type-I error of testing a covariate chosen on the same data.

    Under a null design every rejection is a false positive. Three tests
    are run on the same replicates:

    - naive: best single covariate tested on all n rows, F(1, n − 2)
    - split: covariate chosen on ``split_size`` rows, tested on the
      remaining m rows, F(1, m − 2)
    - full: overall F-test of the full model, F(p, n − p − 1)

    Parameters
    ----------
    config : SimulationConfig
        Experiment parameters; see :func:`postselect.double_dipping_config`.

    Returns
    -------
    DoubleDippingReport
    """
    if config.verbose:
        print(f"Double dipping: n={config.n}, p={config.p}, R={config.n_replicates}, "
              f"seed={config.seed}")

    rng = config.make_rng()
    replicates = config.make_dgp().generate(config.n, config.n_replicates, rng)
    splits = make_splits(config, rng)

    n, p, k = config.n, config.p, config.split_size
    m = n - k

    crit_naive = critical_value(config.level, 1, n - 2)
    crit_split = critical_value(config.level, 1, m - 2)
    crit_full = critical_value(config.level, p, n - p - 1)

    naive_results = run_replications(
        replicates, double_dipping_pipeline(crit_naive),
        n_jobs=config.n_jobs, verbose=config.verbose, desc="naive",
    )
    split_results = run_replications(
        replicates, split_pipeline(splits, crit_split),
        n_jobs=config.n_jobs, verbose=config.verbose, desc="split",
    )
    full_results = run_replications(
        replicates, full_regression_pipeline(crit_full),
        n_jobs=config.n_jobs, verbose=config.verbose, desc="full",
    )

    report = DoubleDippingReport(
        config=config,
        naive=rejection_rate(
            statistics_of(naive_results), crit_naive,
            level=config.level, dfn=1, dfd=n - 2, label="naive",
        ),
        split=rejection_rate(
            statistics_of(split_results), crit_split,
            level=config.level, dfn=1, dfd=m - 2, label="split",
        ),
        full=rejection_rate(
            statistics_of(full_results), crit_full,
            level=config.level, dfn=p, dfd=n - p - 1, label="full",
        ),
        naive_results=naive_results,
        split_results=split_results,
        full_results=full_results,
    )

    if config.verbose:
        print(f"    naive rejection rate: {report.naive.rate:.3f}")
        print(f"    split rejection rate: {report.split.rate:.3f}")
        print(f"    full-model rejection rate: {report.full.rate:.3f}")

    return report


def run_lasso_bias_experiment(config: SimulationConfig, bins: int = 30) -> LassoBiasReport:
    """
    Shrinkage bias of the LASSO and its removal by Post-LASSO.

    Parameters
    ----------
    config : SimulationConfig
        Experiment parameters; see :func:`postselect.lasso_bias_config`.
    bins : int, default 30
        Histogram bins of the two distributions.

    Returns
    -------
    LassoBiasReport
        Distributions of the estimates of ``config.covariate`` and the
        per-covariate selection frequencies of the LASSO.
    """
    if config.verbose:
        print(f"LASSO bias: n={config.n}, p={config.p}, R={config.n_replicates}, "
              f"lambda={config.lam}, seed={config.seed}")

    rng = config.make_rng()
    replicates = config.make_dgp().generate(config.n, config.n_replicates, rng)
    j = config.covariate

    # One LASSO fit per replicate; the Post-LASSO step carries the LASSO estimate
    post_results = run_replications(
        replicates,
        post_lasso_pipeline(config.lam, j, tol=config.selection_tol, standardize=config.standardize),
        n_jobs=config.n_jobs, verbose=config.verbose, desc="lasso + refit",
    )
    lasso_results = [
        ReplicationResult(
            replicate_id=res.replicate_id,
            statistic=res.extra['lasso_statistic'],
            selected=res.selected,
        )
        for res in post_results
    ]

    n_empty = sum(1 for res in post_results if res.n_selected == 0)
    if n_empty > 0:
        warnings.warn(
            f"LASSO selected no covariates in {n_empty} of {len(post_results)} replicates",
            EmptySelectionWarning,
            stacklevel=2,
        )

    true_value = config.true_value
    report = LassoBiasReport(
        config=config,
        lasso=coefficient_distribution(
            statistics_of(lasso_results), true_value, bins=bins, label="LASSO",
        ),
        post_lasso=coefficient_distribution(
            statistics_of(post_results), true_value, bins=bins,
            n_empty_selection=n_empty, label="Post-LASSO",
        ),
        selection_frequency=selection_frequency(
            [res.selected for res in lasso_results], config.p
        ),
        lasso_results=lasso_results,
        post_lasso_results=post_results,
    )

    if config.verbose:
        print(f"    LASSO mean: {report.lasso.mean:.3f} (true {true_value})")
        print(f"    Post-LASSO mean: {report.post_lasso.mean:.3f} "
              f"({report.post_lasso.n_undefined} undefined)")

    return report


__all__ = [
    'ReplicationResult',
    'Pipeline',
    'double_dipping_pipeline',
    'split_pipeline',
    'full_regression_pipeline',
    'lasso_pipeline',
    'post_lasso_pipeline',
    'run_replications',
    'statistics_of',
    'make_splits',
    'DoubleDippingReport',
    'LassoBiasReport',
    'run_double_dipping_experiment',
    'run_lasso_bias_experiment',
]
