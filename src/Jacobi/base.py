"""Base class for Jacobi linear-system solvers."""

from __future__ import annotations

import math
from dataclasses import asdict
from pathlib import Path

import numpy as np
import pandas as pd
from numba import get_num_threads

from .datastructures import (
    CONVERGED,
    DIVERGED,
    ITERATING,
    MAX_ITERS_REACHED,
    GlobalResults,
    IterationState,
    PerRankResults,
    RuntimeConfig,
)
from .errors import ConfigError
from .kernels import matvec_numba, matvec_numpy

DEFAULT_RELATIVE_TOLERANCE = 1e-10


def default_tolerance(n: int) -> float:
    """Residual tolerance used when none is configured, scaled with n."""
    return DEFAULT_RELATIVE_TOLERANCE * max(n, 1)


class LinearSolver:
    """Base class for all Jacobi solvers of Ax = b.

    Provides configuration, kernel selection, the shared termination rules
    and result reporting. Subclasses override solve().

    Parameters
    ----------
    max_iter : int, default 1000
        Iteration cap; reaching it is not an error
    tolerance : float, optional
        Convergence threshold on the infinity norm of Ax - b
        (default: 1e-10 * n)
    divergence_factor : float, default 1e8
        Residuals above ``divergence_factor * max(|b|_inf, 1)`` count as blowing up
    divergence_patience : int, default 5
        Consecutive blown-up iterations before giving up
    use_numba : bool, default False
        Use the numba mat-vec kernel
    verbose : bool, default False
        Print convergence info (rank 0 only)
    """

    def __init__(self, **kwargs):
        # Extract verbose before passing to RuntimeConfig
        self.verbose = kwargs.pop("verbose", False)
        self.config = RuntimeConfig(**kwargs)
        self._validate_config()
        self._tolerance = self.config.tolerance
        self.config.num_threads = get_num_threads() if self.config.use_numba else 1
        self._matvec = matvec_numba if self.config.use_numba else matvec_numpy

        self.rank = 0
        self.x = None
        self.global_results = GlobalResults()
        self.per_rank_results = PerRankResults()
        self.all_per_rank_results = []

    def solve(self, n, A, b, x=None):
        """Solve Ax = b. Subclasses must override this."""
        raise NotImplementedError("Subclass must implement solve()")

    def warmup(self, n=10):
        """Trigger JIT compilation of the selected kernel."""
        A = np.eye(n)
        self._matvec(A, np.ones(n))

    # ============================================================================
    # Iteration bookkeeping
    # ============================================================================

    def _validate_config(self):
        cfg = self.config
        if cfg.max_iter < 1:
            raise ConfigError(f"max_iter must be positive, got {cfg.max_iter}")
        if cfg.tolerance is not None and not cfg.tolerance > 0:
            raise ConfigError(f"tolerance must be positive, got {cfg.tolerance}")
        if not cfg.divergence_factor > 1:
            raise ConfigError(f"divergence_factor must exceed 1, got {cfg.divergence_factor}")
        if cfg.divergence_patience < 1:
            raise ConfigError(f"divergence_patience must be positive, got {cfg.divergence_patience}")

    def _init_state(self, n, x, diag, b, rx, b_norm):
        self.config.N = n
        if self._tolerance is None:
            self.config.tolerance = default_tolerance(n)
        else:
            self.config.tolerance = self._tolerance

        return IterationState(
            x=x,
            diag=diag,
            b=b,
            rx=rx,
            tolerance=self.config.tolerance,
            max_iter=self.config.max_iter,
            divergence_bound=self.config.divergence_factor * max(b_norm, 1.0),
            divergence_patience=self.config.divergence_patience,
        )

    def _advance(self, state: IterationState, residual: float, nonfinite: bool = False) -> str:
        """Record one finished iteration and decide whether to stop.

        Every input must be identical on all ranks so that all ranks take the
        same decision.
        """
        state.iteration += 1
        state.residual = residual
        state.residual_history.append(float(residual))

        if nonfinite or not math.isfinite(residual):
            state.status = DIVERGED
        elif residual < state.tolerance:
            state.status = CONVERGED
        elif residual > state.divergence_bound:
            state.over_bound_streak += 1
            if state.over_bound_streak >= state.divergence_patience:
                state.status = DIVERGED
        else:
            state.over_bound_streak = 0

        if state.status == ITERATING and state.iteration >= state.max_iter:
            state.status = MAX_ITERS_REACHED
        return state.status

    def _report(self, state: IterationState):
        if not (self.verbose and self.rank == 0):
            return
        if state.status == CONVERGED:
            print(f"Converged at iteration {state.iteration} (residual: {state.residual:.2e})")
        elif state.status == MAX_ITERS_REACHED:
            print(f"Did not converge after {state.max_iter} iterations (residual: {state.residual:.2e})")
        elif state.status == DIVERGED:
            print(f"Diverged at iteration {state.iteration} (residual: {state.residual:.2e})")

    def _build_global_results(self, state, all_perrank):
        return GlobalResults(
            iterations=state.iteration,
            residual_history=list(state.residual_history),
            status=state.status,
            converged=state.status == CONVERGED,
            final_residual=float(state.residual),
            wall_time=max(pr.wall_time for pr in all_perrank),
            compute_time=sum(pr.compute_time for pr in all_perrank),
            mpi_comm_time=sum(pr.mpi_comm_time for pr in all_perrank),
        )

    # ============================================================================
    # Reporting
    # ============================================================================

    def print_summary(self):
        """Print a summary of the solver results."""
        print(f"Wall time = {self.global_results.wall_time:.6f} s")
        print(f"Compute time = {self.global_results.compute_time:.6f} s")
        print(f"MPI comm time = {self.global_results.mpi_comm_time:.6f} s")
        print(f"Iterations = {self.global_results.iterations}")
        print(f"Status = {self.global_results.status}")
        if self.global_results.converged:
            print(f"Converged within tolerance {self.config.tolerance}")
        print(f"Final residual = {self.global_results.final_residual:.6e}")

    def save_results(self, data_dir, output_name=None):
        """Save config, global and per-rank results to parquet, x to npy.

        Parameters
        ----------
        data_dir : Path
            Directory to save results
        output_name : str, optional
            Custom base name for output files

        Returns
        -------
        dict
            Paths of the written files
        """
        data_dir = Path(data_dir)
        if output_name:
            base_name = output_name.replace(".npy", "").replace(".parquet", "")
        else:
            base_name = (
                f"run_N{self.config.N}_iter{self.global_results.iterations}"
                f"_p{self.config.mpi_size}_{self.config.method}"
            )

        files = {
            "config": data_dir / f"{base_name}_config.parquet",
            "global": data_dir / f"{base_name}_global.parquet",
            "perrank": data_dir / f"{base_name}_perrank.parquet",
        }
        pd.DataFrame([asdict(self.config)]).to_parquet(files["config"], index=False)
        pd.DataFrame([asdict(self.global_results)]).to_parquet(files["global"], index=False)
        pd.DataFrame([asdict(pr) for pr in self.all_per_rank_results]).to_parquet(
            files["perrank"], index=False
        )

        if self.x is not None:
            files["solution"] = data_dir / f"{base_name}_x.npy"
            np.save(files["solution"], self.x)

        for kind, path in files.items():
            print(f"{kind.capitalize()} saved to: {path}")
        return files

    def mlflow_start_log(self, experiment_name, tracking_uri=None):
        import mlflow

        if tracking_uri is None:
            mlflow.login(backend="databricks", interactive=False)
        else:
            mlflow.set_tracking_uri(tracking_uri)
        mlflow.set_experiment(experiment_name)
        mlflow.start_run()

    def mlflow_end_log(self):
        import mlflow

        mlflow.log_params(asdict(self.config))

        # Lists and strings can't be logged as metrics
        global_dict = asdict(self.global_results)
        residual_history = global_dict.pop("residual_history", [])
        mlflow.set_tag("status", global_dict.pop("status"))
        mlflow.log_metrics({key: float(value) for key, value in global_dict.items()})

        # Residual history as step-by-step metric for the convergence graph
        for step, residual in enumerate(residual_history):
            mlflow.log_metric("residual", residual, step=step)

        per_rank_dicts = [asdict(pr) for pr in self.all_per_rank_results]
        mlflow.log_table(pd.DataFrame(per_rank_dicts), "per_rank_results.json")
        mlflow.end_run()
