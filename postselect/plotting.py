"""
Plotting Functions
==================

Histograms of simulated sampling distributions and bar charts of
rejection rates.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from postselect.aggregation import DistributionSummary, RejectionSummary


COLORS: Dict[str, str] = {
    'lasso': '#E8505B',
    'post_lasso': '#2E86AB',
    'naive': '#E8505B',
    'split': '#2E86AB',
    'full': '#7F7F7F',
    'truth': '#000000',
}

FIGURE_SIZES: Dict[str, Tuple[float, float]] = {
    'single': (6, 4.5),
    'double': (11, 4.5),
}


def set_publication_style() -> None:
    """Serif fonts, light grid, tight saving."""
    sns.set_theme(style="whitegrid", context="paper")
    plt.rcParams.update({
        'font.family': 'serif',
        'font.serif': ['Times New Roman', 'DejaVu Serif', 'serif'],
        'font.size': 11,
        'axes.titleweight': 'bold',
        'grid.alpha': 0.3,
        'savefig.dpi': 300,
        'savefig.bbox': 'tight',
        'savefig.facecolor': 'white',
    })


def plot_coefficient_distribution(
    summary: DistributionSummary,
    ax: Optional[Any] = None,
    color: Optional[str] = None,
    figsize: Tuple[float, float] = FIGURE_SIZES['single'],
    show_mean: bool = True,
) -> Any:
    """
    Histogram of a coefficient's sampling distribution.

    The true value is drawn as a solid vertical line and the simulated mean
    as a dashed one, so shrinkage shows up as a gap between the two.

    Parameters
    ----------
    summary : DistributionSummary
        Output of :func:`postselect.coefficient_distribution`.
    ax : matplotlib Axes, optional
        Axes to draw on. A new figure is created if None.
    color : str, optional
        Bar colour.
    figsize : tuple
        Figure size when creating a new figure.
    show_mean : bool, default True
        Draw the mean of the estimates.

    Returns
    -------
    matplotlib Axes
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)

    color = color or COLORS['post_lasso']

    if summary.n_valid:
        sns.histplot(
            x=summary.values, bins=summary.bin_edges, ax=ax,
            color=color, alpha=0.7, edgecolor='white', linewidth=0.5,
        )

    ax.axvline(
        summary.true_value, color=COLORS['truth'], linewidth=1.8,
        label=f'True value = {summary.true_value:g}',
    )
    if show_mean and not np.isnan(summary.mean):
        ax.axvline(
            summary.mean, color=color, linestyle='--', linewidth=1.5,
            label=f'Mean = {summary.mean:.2f}',
        )

    title = summary.label or 'Estimate'
    if summary.n_undefined:
        title += f'  ({summary.n_undefined} undefined)'
    ax.set_title(title)
    ax.set_xlabel('Coefficient estimate')
    ax.set_ylabel('Replicates')
    ax.legend(loc='upper left', fontsize=9)

    return ax


def plot_lasso_comparison(
    lasso: DistributionSummary,
    post_lasso: DistributionSummary,
    figsize: Tuple[float, float] = FIGURE_SIZES['double'],
) -> Any:
    """LASSO and Post-LASSO distributions side by side on a shared x-axis."""
    fig, axes = plt.subplots(1, 2, figsize=figsize, sharex=True)

    plot_coefficient_distribution(lasso, ax=axes[0], color=COLORS['lasso'])
    plot_coefficient_distribution(post_lasso, ax=axes[1], color=COLORS['post_lasso'])

    fig.tight_layout()
    return fig


def plot_rejection_rates(
    summaries: Sequence[RejectionSummary],
    ax: Optional[Any] = None,
    figsize: Tuple[float, float] = FIGURE_SIZES['single'],
) -> Any:
    """Bar chart of empirical rejection rates against the nominal level."""
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)

    labels = [s.label or f'test {i + 1}' for i, s in enumerate(summaries)]
    rates = [s.rate for s in summaries]
    errs = [1.96 * s.mc_se for s in summaries]
    colors = [COLORS.get(label, COLORS['full']) for label in labels]

    ax.bar(labels, rates, yerr=errs, color=colors, alpha=0.85, capsize=6)

    nominal = [s.nominal for s in summaries if not np.isnan(s.nominal)]
    if nominal:
        ax.axhline(nominal[0], color=COLORS['truth'], linestyle='--',
                   label=f'Nominal = {nominal[0]:.2f}')
        ax.legend(loc='upper right')

    ax.set_ylim(0, 1)
    ax.set_ylabel('Rejection rate')
    ax.set_title('Type-I error under the null')

    return ax


def save_figure(
    fig: Any,
    name: str,
    results_dir: Union[str, Path] = 'results',
    formats: Sequence[str] = ('pdf', 'png'),
) -> None:
    """Save ``fig`` as ``results_dir/name.<fmt>`` for every format."""
    out = Path(results_dir)
    out.mkdir(parents=True, exist_ok=True)
    for fmt in formats:
        fig.savefig(out / f'{name}.{fmt}', dpi=300, bbox_inches='tight', facecolor='white')
