"""
Tests for the OLS, forward-selection, LASSO and Post-LASSO fitters.
"""
import warnings

import numpy as np
import pytest
from scipy import stats
from sklearn.linear_model import LinearRegression

from postselect import DegenerateFitError, EmptySelectionWarning
from postselect.fitting import (
    fit_full_regression,
    fit_lasso,
    fit_ols,
    fit_post_lasso,
    fit_single_covariate,
    forward_select_step,
    lasso_selection,
)


class TestOLS:

    def test_matches_sklearn(self, signal_data):
        X, y = signal_data
        model = fit_full_regression(X, y)
        ref = LinearRegression().fit(X, y)

        assert np.allclose(model.coef, ref.coef_)
        assert np.isclose(model.intercept, ref.intercept_)
        assert model.selected == (0, 1, 2, 3)

    def test_overall_f_statistic(self, signal_data):
        X, y = signal_data
        n, p = X.shape
        model = fit_full_regression(X, y)

        resid = y - LinearRegression().fit(X, y).predict(X)
        r2 = 1 - np.sum(resid ** 2) / np.sum((y - y.mean()) ** 2)
        expected = (r2 / p) / ((1 - r2) / (n - p - 1))

        assert model.df_model == p
        assert model.df_resid == n - p - 1
        assert np.isclose(model.f_statistic, expected)
        assert np.isclose(model.p_value, stats.f.sf(expected, p, n - p - 1))

    def test_single_covariate_f_is_t_squared(self, signal_data):
        X, y = signal_data
        model = fit_single_covariate(X, y, 1)

        t = model.coef[1] / model.se[1]
        assert np.isclose(model.f_statistic, t ** 2)
        assert (model.df_model, model.df_resid) == (1, len(y) - 2)

    def test_unselected_coefficients_are_nan(self, signal_data):
        X, y = signal_data
        model = fit_ols(X, y, columns=[0, 3])

        assert model.selected == (0, 3)
        assert np.isnan(model.coefficient(1))
        assert np.isnan(model.coefficient(2))
        assert not np.isnan(model.coefficient(3))

    def test_intercept_only(self, signal_data):
        X, y = signal_data
        model = fit_ols(X, y, columns=[])

        assert model.selected == ()
        assert np.isclose(model.intercept, y.mean())
        assert np.isnan(model.f_statistic)
        assert np.all(np.isnan(model.coef))

    def test_rank_deficient_design(self, rng):
        x = rng.normal(size=50)
        X = np.column_stack([x, x, rng.normal(size=50)])
        y = rng.normal(size=50)

        with pytest.raises(DegenerateFitError, match="rank-deficient"):
            fit_full_regression(X, y)

    def test_constant_covariate_is_degenerate(self, rng):
        X = np.column_stack([np.ones(30), rng.normal(size=30)])
        y = rng.normal(size=30)

        with pytest.raises(DegenerateFitError):
            fit_single_covariate(X, y, 0)

    def test_no_residual_degrees_of_freedom(self, rng):
        X = rng.normal(size=(3, 2))
        y = rng.normal(size=3)

        with pytest.raises(DegenerateFitError, match="residual degrees of freedom"):
            fit_full_regression(X, y)

    def test_coefficient_index_out_of_range(self, signal_data):
        X, y = signal_data
        with pytest.raises(IndexError):
            fit_full_regression(X, y).coefficient(4)

    def test_model_is_immutable(self, signal_data):
        X, y = signal_data
        model = fit_full_regression(X, y)
        with pytest.raises(AttributeError):
            model.f_statistic = 0.0


class TestForwardSelectStep:

    def test_picks_the_signal_covariate(self, signal_data):
        X, y = signal_data
        model = forward_select_step(X, y)

        assert model.selected == (2,)
        assert model.method == "single"

    def test_equals_maximal_single_fit(self, null_replicates):
        for rep in null_replicates:
            step = forward_select_step(rep.X, rep.y)
            f_all = [fit_single_covariate(rep.X, rep.y, j).f_statistic for j in range(rep.p)]

            (j,) = step.selected
            assert step.f_statistic == max(f_all)
            assert all(f < step.f_statistic for f in f_all[:j])

    def test_ties_go_to_lowest_index(self, rng):
        x = rng.normal(size=80)
        z = rng.normal(size=80)
        y = 2.0 * x + rng.normal(size=80)
        X = np.column_stack([z, x, x])

        model = forward_select_step(X, y)
        assert model.selected == (1,)

    def test_single_step_only(self, rng):
        X = rng.normal(size=(100, 3))
        y = X @ np.array([2.0, 2.0, 2.0]) + rng.normal(size=100)

        assert forward_select_step(X, y).n_selected == 1


class TestLasso:

    def test_zero_penalty_is_ols(self, signal_data):
        X, y = signal_data
        lasso = fit_lasso(X, y, lam=0.0)
        ols = fit_full_regression(X, y)

        assert np.allclose(lasso.coef, ols.coef)
        assert np.isclose(lasso.intercept, ols.intercept)

    def test_standardized_zero_penalty_is_ols(self, signal_data):
        X, y = signal_data
        lasso = fit_lasso(X, y, lam=0.0, standardize=True)
        ols = fit_full_regression(X, y)

        assert np.allclose(lasso.coef, ols.coef)
        assert np.isclose(lasso.intercept, ols.intercept)

    def test_shrinks_toward_zero(self, lasso_replicate):
        X, y = lasso_replicate.X, lasso_replicate.y
        lasso = fit_lasso(X, y, lam=5.0)
        ols = fit_full_regression(X, y)

        assert 0 < lasso.coef[0] < ols.coef[0]
        assert np.sum(np.abs(lasso.coef)) < np.sum(np.abs(ols.coef))

    def test_large_penalty_selects_nothing(self, signal_data):
        X, y = signal_data
        lasso = fit_lasso(X, y, lam=1e6)

        assert lasso.selected == ()
        assert np.all(lasso.coef == 0)
        assert np.isclose(lasso.intercept, y.mean())

    def test_selection_is_subset_without_intercept(self, null_replicates):
        for rep in null_replicates:
            lasso = fit_lasso(rep.X, rep.y, lam=0.05)
            selected = lasso_selection(lasso)

            assert set(selected) <= set(range(rep.p))
            assert selected == lasso.selected
            assert len(lasso.coef) == rep.p

    def test_selection_tolerance(self, signal_data):
        X, y = signal_data
        lasso = fit_lasso(X, y, lam=0.01)

        assert 2 in lasso_selection(lasso)
        assert lasso_selection(lasso, tol=1e6) == ()

    def test_deterministic(self, lasso_replicate):
        X, y = lasso_replicate.X, lasso_replicate.y
        a = fit_lasso(X, y, lam=5.0)
        b = fit_lasso(X, y, lam=5.0)

        assert np.array_equal(a.coef, b.coef)

    def test_negative_penalty(self, signal_data):
        X, y = signal_data
        with pytest.raises(ValueError):
            fit_lasso(X, y, lam=-1.0)


class TestPostLasso:

    def test_refit_is_ols_on_selected(self, signal_data):
        X, y = signal_data
        lasso = fit_lasso(X, y, lam=0.5)
        refit = fit_post_lasso(X, y, lasso)
        ols = fit_ols(X, y, columns=lasso.selected)

        assert refit.method == "post_lasso"
        assert refit.selected == lasso.selected
        assert np.allclose(refit.coef, ols.coef, equal_nan=True)

    def test_removes_shrinkage(self, lasso_replicate):
        X, y = lasso_replicate.X, lasso_replicate.y
        lasso = fit_lasso(X, y, lam=5.0)
        refit = fit_post_lasso(X, y, lasso)
        ols = fit_ols(X, y, columns=lasso.selected)

        assert refit.coefficient(0) > lasso.coefficient(0)
        assert np.isclose(refit.coefficient(0), ols.coefficient(0))

    def test_empty_selection_is_intercept_only(self, signal_data):
        X, y = signal_data
        lasso = fit_lasso(X, y, lam=1e6)

        with pytest.warns(EmptySelectionWarning):
            refit = fit_post_lasso(X, y, lasso)

        assert refit.selected == ()
        assert np.isclose(refit.intercept, y.mean())
        assert all(np.isnan(refit.coefficient(j)) for j in range(X.shape[1]))

    def test_no_warning_when_something_selected(self, signal_data):
        X, y = signal_data
        lasso = fit_lasso(X, y, lam=0.5)

        with warnings.catch_warnings():
            warnings.simplefilter("error", EmptySelectionWarning)
            fit_post_lasso(X, y, lasso)
