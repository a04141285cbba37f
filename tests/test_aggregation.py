"""
Tests for critical values, rejection rates and coefficient distributions.
"""
import numpy as np
import pytest
from scipy import stats

from postselect.aggregation import (
    coefficient_distribution,
    critical_value,
    rejection_rate,
    selection_frequency,
)


class TestCriticalValue:

    def test_one_numerator_df_is_squared_t(self):
        assert np.isclose(critical_value(0.95, 1, 98), stats.t.ppf(0.975, 98) ** 2)
        assert np.isclose(critical_value(0.95, 1, 48), stats.t.ppf(0.975, 48) ** 2)

    def test_split_threshold_is_larger(self):
        # Fewer inference rows, heavier tail
        assert critical_value(0.95, 1, 48) > critical_value(0.95, 1, 98)

    @pytest.mark.parametrize("level", [0.0, 1.0, 1.5])
    def test_invalid_level(self, level):
        with pytest.raises(ValueError):
            critical_value(level, 1, 98)


class TestRejectionRate:

    def test_strict_exceedance(self):
        summary = rejection_rate([1.0, 3.0, 5.0, 10.0], critical=3.0)

        assert summary.n_rejected == 2
        assert summary.rate == 0.5

    def test_nan_excluded_and_counted(self):
        summary = rejection_rate([1.0, 5.0, np.nan, 10.0], critical=3.0)

        assert summary.n_valid == 3
        assert summary.n_undefined == 1
        assert np.isclose(summary.rate, 2 / 3)

    def test_provenance_and_nominal(self):
        summary = rejection_rate([5.0], critical=3.9, level=0.95, dfn=1, dfd=98, label="naive")

        assert np.isclose(summary.nominal, 0.05)
        assert summary.to_dict()['dfd'] == 98
        assert "naive" in repr(summary)

    def test_monte_carlo_se(self):
        summary = rejection_rate(np.r_[np.zeros(75), np.ones(25)], critical=0.5)
        assert np.isclose(summary.mc_se, np.sqrt(0.25 * 0.75 / 100))

    def test_all_undefined(self):
        summary = rejection_rate([np.nan, np.nan], critical=1.0)
        assert np.isnan(summary.rate)
        assert summary.n_valid == 0


class TestCoefficientDistribution:

    def test_summary_statistics(self):
        values = np.array([70.0, 72.0, 74.0, 76.0])
        summary = coefficient_distribution(values, true_value=75.0, bins=4)

        assert summary.mean == 73.0
        assert np.isclose(summary.sd, np.std(values, ddof=1))
        assert summary.bias == -2.0
        assert np.isclose(summary.mc_se, summary.sd / 2)
        assert summary.counts.sum() == 4
        assert len(summary.bin_edges) == 5

    def test_undefined_values_excluded(self):
        summary = coefficient_distribution(
            [74.0, np.nan, 76.0, np.nan], true_value=75.0, n_empty_selection=1,
        )

        assert summary.n_valid == 2
        assert summary.n_undefined == 2
        assert summary.n_empty_selection == 1
        assert summary.mean == 75.0
        assert summary.to_dict()['n_undefined'] == 2

    def test_sorted_values_and_histogram_table(self):
        summary = coefficient_distribution([3.0, 1.0, 2.0], true_value=0.0, bins=3)

        assert np.array_equal(summary.sorted_values, [1.0, 2.0, 3.0])
        table = summary.histogram_table()
        assert np.array_equal(table['bin_right'][:-1], table['bin_left'][1:])
        assert table['count'].sum() == 3

    def test_bias_t(self):
        rng = np.random.default_rng(10)
        shrunk = coefficient_distribution(rng.normal(70, 3, size=1000), true_value=75.0)
        unbiased = coefficient_distribution(rng.normal(75, 3, size=1000), true_value=75.0)

        assert shrunk.bias_t < -20
        assert abs(unbiased.bias_t) < 5

    def test_all_undefined(self):
        summary = coefficient_distribution([np.nan, np.nan], true_value=1.0, bins=5)

        assert np.isnan(summary.mean)
        assert summary.n_undefined == 2
        assert summary.counts.sum() == 0


class TestSelectionFrequency:

    def test_frequencies(self):
        freq = selection_frequency([(0,), (0, 1), ()], p=3)
        assert np.allclose(freq, [2 / 3, 1 / 3, 0.0])

    def test_empty(self):
        assert np.all(np.isnan(selection_frequency([], p=2)))
