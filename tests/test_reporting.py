"""
Tests for summary tables and figures.
"""
import matplotlib.pyplot as plt
import pandas as pd
import pytest

from postselect import (
    double_dipping_config,
    lasso_bias_config,
    run_double_dipping_experiment,
    run_lasso_bias_experiment,
)
from postselect.plotting import (
    plot_coefficient_distribution,
    plot_lasso_comparison,
    plot_rejection_rates,
    save_figure,
)
from postselect.reporting import results_frame, selection_table, summary_table, to_latex


@pytest.fixture(scope="module")
def dd_report():
    return run_double_dipping_experiment(double_dipping_config(n_replicates=40))


@pytest.fixture(scope="module")
def lasso_report():
    return run_lasso_bias_experiment(lasso_bias_config(n_replicates=25))


class TestTables:

    def test_double_dipping_summary(self, dd_report):
        table = summary_table(dd_report)

        assert list(table.index) == ['naive', 'split', 'full']
        assert table.loc['naive', 'rate'] == dd_report.naive.rate
        assert table.loc['split', 'dfd'] == 48

    def test_lasso_summary(self, lasso_report):
        table = summary_table(lasso_report)

        assert list(table.index) == ['LASSO', 'Post-LASSO']
        assert (table['true_value'] == 75.0).all()

    def test_unsupported_report(self):
        with pytest.raises(TypeError):
            summary_table(object())

    def test_results_frame(self, dd_report):
        df = results_frame(dd_report.split_results)

        assert len(df) == 40
        assert df.index.name == 'replicate_id'
        assert 'selection_statistic' in df.columns

    def test_latex_export(self, dd_report):
        latex = to_latex(summary_table(dd_report))

        assert latex.startswith('\\begin{tabular}')
        assert 'naive' in latex

    def test_results_frame_empty(self):
        assert results_frame([]).empty

    def test_selection_table(self, lasso_report):
        table = selection_table(lasso_report)

        assert list(table.index) == ['X1', 'X2', 'X3']
        assert table.loc['X1', 'selection_frequency'] == 1.0
        assert isinstance(table, pd.DataFrame)


class TestPlots:

    def test_distribution_plot(self, lasso_report):
        ax = plot_coefficient_distribution(lasso_report.lasso)
        assert ax.get_title().startswith('LASSO')
        plt.close('all')

    def test_comparison_and_save(self, lasso_report, tmp_path):
        fig = plot_lasso_comparison(lasso_report.lasso, lasso_report.post_lasso)
        assert len(fig.axes) == 2

        save_figure(fig, 'lasso_bias', results_dir=tmp_path, formats=('png',))
        assert (tmp_path / 'lasso_bias.png').exists()
        plt.close('all')

    def test_rejection_rates(self, dd_report):
        ax = plot_rejection_rates([dd_report.naive, dd_report.split, dd_report.full])
        assert len(ax.patches) == 3
        plt.close('all')
