"""
Reporting Functions
===================

Tables of per-replicate results and experiment summaries.
"""

from typing import List, Sequence, Union

import pandas as pd

from postselect.simulation import DoubleDippingReport, LassoBiasReport, ReplicationResult


def results_frame(results: Sequence[ReplicationResult]) -> pd.DataFrame:
    """One row per replicate, indexed by replicate id."""
    df = pd.DataFrame([r.to_dict() for r in results])
    if not df.empty:
        df = df.set_index('replicate_id')
    return df


def summary_table(report: Union[DoubleDippingReport, LassoBiasReport]) -> pd.DataFrame:
    """
    Summary of an experiment, one row per procedure.

    Parameters
    ----------
    report : DoubleDippingReport or LassoBiasReport
        Output of :func:`run_double_dipping_experiment` or
        :func:`run_lasso_bias_experiment`.

    Returns
    -------
    pd.DataFrame
        Rejection rates (double dipping) or distribution summaries
        (LASSO bias).

    Examples
    --------
    >>> from postselect import double_dipping_config, run_double_dipping_experiment
    >>> report = run_double_dipping_experiment(double_dipping_config(n_replicates=200))
    >>> print(summary_table(report))
    """
    if isinstance(report, DoubleDippingReport):
        rows = [s.to_dict() for s in (report.naive, report.split, report.full)]
        return pd.DataFrame(rows).set_index('label')

    if isinstance(report, LassoBiasReport):
        rows = [report.lasso.to_dict(), report.post_lasso.to_dict()]
        return pd.DataFrame(rows).set_index('label')

    raise TypeError(f"Unsupported report type: {type(report).__name__}")


def selection_table(report: LassoBiasReport) -> pd.DataFrame:
    """LASSO selection frequency and true coefficient of every covariate."""
    beta = report.config.make_dgp().true_beta
    names: List[str] = [f'X{j + 1}' for j in range(report.config.p)]
    return pd.DataFrame({
        'covariate': names,
        'true_beta': beta,
        'selection_frequency': report.selection_frequency,
    }).set_index('covariate')


def to_latex(df: pd.DataFrame, float_format: str = "%.3f") -> str:
    """LaTeX tabular of a summary table."""
    return df.to_latex(escape=False, float_format=float_format)
