"""
Exceptions and Warning Categories
=================================

Error hierarchy for the postselect simulations.

All simulation parameters are fixed before the first replicate is drawn and
every fit is deterministic given the seed, so nothing here is retried: an
error always points at a misconfigured experiment.

Suppress only the empty-selection warnings of a LASSO study with:

>>> import warnings
>>> from postselect import EmptySelectionWarning
>>> warnings.filterwarnings('ignore', category=EmptySelectionWarning)
"""


class PostSelectError(Exception):
    """Base exception class for all postselect errors."""
    pass


class InvalidConfigurationError(PostSelectError, ValueError):
    """
    Raised when simulation parameters are rejected before any work starts.

    Common triggers:

    - n ≤ p (no residual degrees of freedom for the full regression)
    - a non-positive replicate count R
    - a negative penalty strength λ
    - a split that leaves fewer than three rows on either side
    - vectors (means, scales, coefficients) whose length is not p
    """
    pass


class DegenerateFitError(PostSelectError):
    """
    Raised when an OLS design matrix is rank-deficient or leaves no
    residual degrees of freedom.
    """
    pass


class PostSelectWarning(UserWarning):
    """Base warning class for all postselect warnings."""
    pass


class EmptySelectionWarning(PostSelectWarning):
    """
    Warning raised when a LASSO fit keeps no covariate.

    The Post-LASSO refit of that replicate degenerates to an intercept-only
    model and its covariate coefficients are recorded as NaN.
    """
    pass
