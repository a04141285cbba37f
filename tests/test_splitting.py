"""
Tests for sample splitting and the select-then-refit procedure.
"""
import numpy as np
import pytest

from postselect import InvalidConfigurationError
from postselect.fitting import fit_single_covariate, forward_select_step
from postselect.splitting import Split, select_then_refit, split_first_k, split_random


class TestSplits:

    @pytest.mark.parametrize("n,k", [(100, 50), (100, 3), (100, 97), (11, 5)])
    def test_first_k_partition(self, n, k):
        split = split_first_k(n, k)

        assert split.sizes == (k, n - k)
        assert np.array_equal(split.selection, np.arange(k))
        assert np.array_equal(split.inference, np.arange(k, n))

    def test_random_partition(self):
        rng = np.random.default_rng(7)
        for _ in range(20):
            split = split_random(100, 50, rng)

            assert np.intersect1d(split.selection, split.inference).size == 0
            assert sum(split.sizes) == 100
            assert np.array_equal(
                np.sort(np.concatenate([split.selection, split.inference])),
                np.arange(100),
            )

    def test_random_split_is_reproducible(self):
        a = split_random(60, 30, np.random.default_rng(8))
        b = split_random(60, 30, np.random.default_rng(8))

        assert np.array_equal(a.selection, b.selection)
        assert not np.array_equal(a.selection, np.arange(30))

    @pytest.mark.parametrize("k", [0, 2, 98, 100])
    def test_subsets_too_small(self, k):
        with pytest.raises(InvalidConfigurationError):
            split_first_k(100, k)

    def test_overlapping_subsets_rejected(self):
        with pytest.raises(InvalidConfigurationError, match="disjoint"):
            Split(selection=np.arange(0, 6), inference=np.arange(5, 10))


class TestSelectThenRefit:

    def test_selection_uses_selection_rows_only(self, null_replicates):
        rep = null_replicates[0]
        split = split_first_k(rep.n, 50)
        selection_model, _ = select_then_refit(rep.X, rep.y, split)

        direct = forward_select_step(rep.X[:50], rep.y[:50])
        assert selection_model.selected == direct.selected
        assert selection_model.f_statistic == direct.f_statistic
        assert selection_model.n_obs == 50

    def test_refit_reuses_selected_covariate(self, null_replicates):
        for rep in null_replicates:
            split = split_first_k(rep.n, 50)
            selection_model, inference_model = select_then_refit(rep.X, rep.y, split)

            (j,) = selection_model.selected
            direct = fit_single_covariate(rep.X[50:], rep.y[50:], j)
            assert inference_model.selected == (j,)
            assert inference_model.f_statistic == direct.f_statistic
            assert (inference_model.df_model, inference_model.df_resid) == (1, 48)

    def test_inference_rows_do_not_affect_selection(self, null_replicates):
        rep = null_replicates[1]
        split = split_first_k(rep.n, 50)

        y_perturbed = rep.y.copy()
        y_perturbed[50:] = 100.0 * rep.X[50:, 9]

        a, _ = select_then_refit(rep.X, rep.y, split)
        b, _ = select_then_refit(rep.X, y_perturbed, split)
        assert a.selected == b.selected
        assert a.f_statistic == b.f_statistic

    def test_random_split(self, null_replicates):
        rep = null_replicates[2]
        split = split_random(rep.n, 40, np.random.default_rng(9))
        selection_model, inference_model = select_then_refit(rep.X, rep.y, split)

        assert selection_model.n_obs == 40
        assert inference_model.n_obs == 60
        assert inference_model.selected == selection_model.selected

    def test_split_must_cover_the_data(self, null_replicates):
        rep = null_replicates[0]
        with pytest.raises(InvalidConfigurationError):
            select_then_refit(rep.X, rep.y, split_first_k(80, 40))
