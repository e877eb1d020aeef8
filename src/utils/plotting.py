"""Plotting utilities for solver convergence and timing data.

Applies the seaborn style on import.
"""

from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns


def _apply_styles():
    sns.set_theme(style="whitegrid")


_apply_styles()


def plot_residual_history(df_global: pd.DataFrame, ax=None, label: str | None = None):
    """Semilog plot of the residual per iteration of one run.

    Parameters
    ----------
    df_global : pd.DataFrame
        Global results table (one row) with a ``residual_history`` column
    ax : matplotlib Axes, optional
        Axes to draw on (default: new figure)
    label : str, optional
        Legend label

    Returns
    -------
    matplotlib Axes
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 5))

    history = list(df_global["residual_history"].iloc[0])
    ax.semilogy(range(1, len(history) + 1), history, marker=".", label=label)
    ax.set_xlabel("Iteration")
    ax.set_ylabel(r"$\|Ax - b\|_\infty$")
    ax.set_title("Jacobi residual history")
    if label is not None:
        ax.legend()
    return ax


def plot_per_rank_timings(df_perrank: pd.DataFrame, output_file: Path | str):
    """Stacked compute / communication time per rank, saved to ``output_file``."""
    fig, ax = plt.subplots(figsize=(10, 5))

    df_plot = df_perrank[["mpi_rank", "compute_time", "mpi_comm_time"]].set_index("mpi_rank")
    df_plot.plot(kind="bar", stacked=True, ax=ax, color=["coral", "forestgreen"])
    ax.set_title("Per-Rank Timing Breakdown")
    ax.set_xlabel("MPI Rank")
    ax.set_ylabel("Time (s)")
    ax.legend(["Compute", "MPI Comm"])

    fig.tight_layout()
    fig.savefig(output_file)
    plt.close(fig)
    print(f"Per-rank timing plot saved to: {output_file}")
