"""
Sample Splitting for Selective Inference.

The remedy for double dipping: choose the covariate on one part of the data
and test it on another. The selection step only ever receives the rows of
``Split.selection``; the refit only ever receives the rows of
``Split.inference`` and reuses the selected covariate instead of selecting
again. The inference F-statistic is therefore computed on data the selection
never saw, and has its nominal F(1, m − 2) distribution under the null for
an inference subset of m rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numpy.typing import NDArray

from postselect.exceptions import InvalidConfigurationError
from postselect.fitting import FittedModel, fit_single_covariate, forward_select_step


MIN_SUBSET_ROWS: int = 3     # A simple regression needs n − 2 > 0


@dataclass(frozen=True)
class Split:
    """
    Partition of a replicate's rows.

    Attributes
    ----------
    selection : ndarray of int
        Row indices used to choose the covariate.
    inference : ndarray of int
        Row indices used to test it.
    """
    selection: NDArray
    inference: NDArray

    def __post_init__(self) -> None:
        if np.intersect1d(self.selection, self.inference).size > 0:
            raise InvalidConfigurationError("Split subsets must be disjoint")

    @property
    def n(self) -> int:
        return len(self.selection) + len(self.inference)

    @property
    def sizes(self) -> Tuple[int, int]:
        return len(self.selection), len(self.inference)


def _check_split_size(n: int, k: int) -> None:
    if not MIN_SUBSET_ROWS <= k <= n - MIN_SUBSET_ROWS:
        raise InvalidConfigurationError(
            f"split size k must be in [{MIN_SUBSET_ROWS}, {n - MIN_SUBSET_ROWS}] "
            f"for n={n}, got {k}"
        )


def split_first_k(n: int, k: int) -> Split:
    """Rows 0..k−1 select, rows k..n−1 test."""
    _check_split_size(n, k)
    rows = np.arange(n)
    return Split(selection=rows[:k], inference=rows[k:])


def split_random(n: int, k: int, rng: np.random.Generator) -> Split:
    """Random permutation of the rows, then the first k select."""
    _check_split_size(n, k)
    perm = rng.permutation(n)
    return Split(selection=np.sort(perm[:k]), inference=np.sort(perm[k:]))


def select_then_refit(
    X: NDArray,
    y: NDArray,
    split: Split,
) -> Tuple[FittedModel, FittedModel]:
    """
    Forward-select on the selection rows, then refit on the inference rows.

    Parameters
    ----------
    X : ndarray of shape (n, p)
        Covariate matrix of the full replicate.
    y : ndarray of shape (n,)
        Response of the full replicate.
    split : Split
        Row partition; its sizes must sum to n.

    Returns
    -------
    selection_model : FittedModel
        Winner of the forward step on the selection rows.
    inference_model : FittedModel
        Regression of y on the same covariate using only the inference rows.
    """
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float).ravel()

    rows = np.sort(np.concatenate([split.selection, split.inference]))
    if not np.array_equal(rows, np.arange(X.shape[0])):
        raise InvalidConfigurationError(
            f"Split covers {split.n} rows but the data has {X.shape[0]}"
        )

    selection_model = forward_select_step(X[split.selection], y[split.selection])
    (j,) = selection_model.selected

    inference_model = fit_single_covariate(X[split.inference], y[split.inference], j)
    return selection_model, inference_model


__all__ = [
    'Split',
    'split_first_k',
    'split_random',
    'select_then_refit',
    'MIN_SUBSET_ROWS',
]
