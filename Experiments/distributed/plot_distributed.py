#!/usr/bin/env python3
"""
Plot results from the distributed Jacobi solver.

Reads every run saved by compute_distributed.py (``--results NAME``) and plots
the residual histories side by side, plus the per-rank timing of the newest run.
"""

import matplotlib.pyplot as plt

from utils import io
from utils.plotting import plot_per_rank_timings, plot_residual_history

data_dir = io.get_data_dir(__file__)
figures_dir = io.get_figures_dir(__file__)

runs = io.find_result_runs(data_dir)
if not runs:
    raise SystemExit(f"No results in {data_dir}. Run compute_distributed.py with --results first.")

# Residual histories of all runs
fig, ax = plt.subplots(figsize=(8, 5))
for base_name in runs:
    tables = io.load_results(data_dir, base_name)
    config = tables["config"].iloc[0]
    label = f"{base_name} (N={config['N']}, p={config['mpi_size']})"
    plot_residual_history(tables["global"], ax=ax, label=label)
fig.tight_layout()
output_file = figures_dir / "residual_history.pdf"
fig.savefig(output_file)
plt.close(fig)
print(f"Residual history plot saved to: {output_file}")

# Timing breakdown of the newest run
newest = io.load_results(data_dir, runs[0])
plot_per_rank_timings(newest["perrank"], figures_dir / f"{runs[0]}_timing.pdf")

print("\nSummary of newest run:")
print(newest["global"].drop(columns=["residual_history"]).T.to_string(header=False))
