#!/usr/bin/env python3
"""
================================================================================
MASTER REPLICATION SCRIPT
================================================================================

Runs both Monte Carlo studies and writes their tables and figures:

    1. Double dipping: Type-I error of testing the best of p covariates on
       the data that chose it, against sample splitting.
    2. LASSO bias: sampling distributions of the LASSO and Post-LASSO
       estimates of β1 = 75.

Usage:
    python run_all.py [n_jobs]

Output:
    Tables (.csv, .tex) and figures (.pdf, .png) are written to results/

Random Seeds:
    Both studies use SEED_DEFAULT = 20211113 (postselect.config).

================================================================================
"""

import os
import sys
import time
from pathlib import Path
from typing import Dict, List

os.environ.setdefault('MPLBACKEND', 'Agg')

import matplotlib.pyplot as plt

from postselect import (
    double_dipping_config,
    lasso_bias_config,
    run_double_dipping_experiment,
    run_lasso_bias_experiment,
)
from postselect.plotting import (
    plot_lasso_comparison,
    plot_rejection_rates,
    save_figure,
    set_publication_style,
)
from postselect.reporting import results_frame, selection_table, summary_table, to_latex


# =============================================================================
# CONFIGURATION
# =============================================================================

REPO_ROOT = Path(__file__).parent.absolute()
RESULTS_DIR = REPO_ROOT / "results"

# Suffix -> heading in the output listing
OUTPUT_KINDS: Dict[str, str] = {
    ".csv": "Tables (CSV)",
    ".tex": "Tables (LaTeX)",
    ".pdf": "Figures (PDF)",
    ".png": "Figures (PNG)",
}

EXPERIMENTS = [
    {
        "name": "Double Dipping",
        "outputs": [
            "double_dipping_summary.csv",
            "double_dipping_summary.tex",
            "double_dipping_naive.csv",
            "double_dipping_split.csv",
            "double_dipping_rejection_rates.pdf",
            "double_dipping_rejection_rates.png",
        ],
        "description": "Type-I error after selecting on the same data vs a held-out split",
    },
    {
        "name": "LASSO Bias",
        "outputs": [
            "lasso_bias_summary.csv",
            "lasso_bias_summary.tex",
            "lasso_bias_selection.csv",
            "lasso_bias_estimates.csv",
            "lasso_bias_distributions.pdf",
            "lasso_bias_distributions.png",
        ],
        "description": "Shrinkage of LASSO coefficients and the Post-LASSO refit",
    },
]


# =============================================================================
# EXPERIMENTS
# =============================================================================

def run_double_dipping(n_jobs: int, results_dir: Path) -> None:
    report = run_double_dipping_experiment(double_dipping_config(n_jobs=n_jobs, verbose=True))

    table = summary_table(report)
    print()
    print(table.round(4).to_string())

    table.to_csv(results_dir / "double_dipping_summary.csv")
    (results_dir / "double_dipping_summary.tex").write_text(to_latex(table))
    results_frame(report.naive_results).to_csv(results_dir / "double_dipping_naive.csv")
    results_frame(report.split_results).to_csv(results_dir / "double_dipping_split.csv")

    fig, ax = plt.subplots(figsize=(6, 4.5))
    plot_rejection_rates([report.naive, report.split, report.full], ax=ax)
    save_figure(fig, "double_dipping_rejection_rates", results_dir)
    plt.close(fig)


def run_lasso_bias(n_jobs: int, results_dir: Path) -> None:
    report = run_lasso_bias_experiment(lasso_bias_config(n_jobs=n_jobs, verbose=True))

    table = summary_table(report)
    selection = selection_table(report)
    print()
    print(table.round(4).to_string())
    print()
    print(selection.round(3).to_string())

    table.to_csv(results_dir / "lasso_bias_summary.csv")
    (results_dir / "lasso_bias_summary.tex").write_text(to_latex(table))
    selection.to_csv(results_dir / "lasso_bias_selection.csv")

    estimates = results_frame(report.post_lasso_results)
    estimates = estimates.rename(columns={'statistic': 'post_lasso_statistic'})
    estimates.to_csv(results_dir / "lasso_bias_estimates.csv")

    fig = plot_lasso_comparison(report.lasso, report.post_lasso)
    save_figure(fig, "lasso_bias_distributions", results_dir)
    plt.close(fig)


RUNNERS = {
    "Double Dipping": run_double_dipping,
    "LASSO Bias": run_lasso_bias,
}


# =============================================================================
# OUTPUT CHECKS
# =============================================================================

def missing_outputs(experiment: dict, results_dir: Path) -> List[str]:
    """Expected outputs of ``experiment`` not present in ``results_dir``."""
    return [name for name in experiment["outputs"] if not (results_dir / name).exists()]


def list_outputs(results_dir: Path) -> Dict[str, List[str]]:
    """Files in ``results_dir`` grouped by the headings of OUTPUT_KINDS."""
    grouped = {}
    for suffix, heading in OUTPUT_KINDS.items():
        names = sorted(f.name for f in results_dir.glob(f"*{suffix}"))
        if names:
            grouped[heading] = names
    return grouped


def print_header(text: str, char: str = "=") -> None:
    width = 70
    print("\n" + char * width)
    print(text.center(width))
    print(char * width + "\n")


# =============================================================================
# MAIN EXECUTION
# =============================================================================

def main() -> int:
    """Run every experiment; exit code 1 if any expected output is missing."""
    n_jobs = int(sys.argv[1]) if len(sys.argv) > 1 else 1

    print_header("POST-SELECTION INFERENCE SIMULATIONS")
    print(f"Results will be saved to: {RESULTS_DIR}")

    RESULTS_DIR.mkdir(exist_ok=True)
    set_publication_style()

    failures = 0
    total_start = time.time()

    for i, experiment in enumerate(EXPERIMENTS, 1):
        print_header(f"EXPERIMENT {i}/{len(EXPERIMENTS)}: {experiment['name']}", "-")
        print(f"   {experiment['description']}\n")

        start_time = time.time()
        RUNNERS[experiment["name"]](n_jobs, RESULTS_DIR)
        print(f"   Completed in {time.time() - start_time:.1f}s")

        missing = missing_outputs(experiment, RESULTS_DIR)
        if missing:
            print(f"   Missing outputs: {missing}")
            failures += 1

    print_header("REPLICATION COMPLETE")
    print(f"  Total time: {time.time() - total_start:.1f}s")
    print(f"  Experiments: {len(EXPERIMENTS) - failures} succeeded, {failures} failed")

    for heading, names in list_outputs(RESULTS_DIR).items():
        print(f"\n  {heading}:")
        for name in names:
            print(f"    • {name}")

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
