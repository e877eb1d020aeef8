"""Sequential Jacobi solver."""

import socket
import time

import numpy as np

from .base import LinearSolver
from .datastructures import DIVERGED, ITERATING, PerRankResults
from .errors import DimensionError, DivergedError
from .kernels import jacobi_update, residual_inf_norm, split_diagonal


def check_inputs(n, A, b, x=None):
    """Validate sizes against n and return A as (n, n) and b as (n,) float64 arrays."""
    if n < 1:
        raise DimensionError(f"Problem size must be positive, got {n}")
    if np.size(A) != n * n:
        raise DimensionError(f"Matrix has {np.size(A)} entries, expected {n * n}")
    if np.size(b) != n:
        raise DimensionError(f"Vector b has {np.size(b)} entries, expected {n}")
    if x is not None and np.size(x) != n:
        raise DimensionError(f"Output buffer x has {np.size(x)} entries, expected {n}")
    A = np.asarray(A, dtype=np.float64).reshape(n, n)
    b = np.asarray(b, dtype=np.float64).reshape(n)
    return A, b


class SequentialJacobi(LinearSolver):
    """Sequential Jacobi solver (single process, no distribution).

    Runs the same update, residual and termination rules as the distributed
    solver and serves as its reference.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.config.method = "sequential_jacobi"

    def solve(self, n, A, b, x=None):
        """Solve Ax = b.

        Parameters
        ----------
        n : int
            Problem size
        A : array_like
            Matrix, n*n values (flat or n x n)
        b : array_like
            Right-hand side, n values
        x : np.ndarray, optional
            Caller-owned buffer receiving the solution

        Returns
        -------
        np.ndarray
            The final iterate (converged or best effort at the iteration cap)

        Raises
        ------
        DimensionError
            If A, b or x do not match n
        DivergedError
            If the iteration blows up
        """
        A, b = check_inputs(n, A, b, x)
        t_start = time.perf_counter()

        diag, R = split_diagonal(A, 0, 0)
        state = self._init_state(
            n, x=np.zeros(n), diag=diag, b=b, rx=np.zeros(n), b_norm=float(np.abs(b).max())
        )

        # Main iteration loop
        while state.status == ITERATING:
            state.x = jacobi_update(state.b, state.rx, state.diag)
            state.rx = self._matvec(R, state.x)
            residual = residual_inf_norm(state.rx, state.diag, state.x, state.b)
            self._advance(state, residual, nonfinite=not np.all(np.isfinite(state.x)))

        elapsed_time = time.perf_counter() - t_start

        self.per_rank_results = PerRankResults(
            mpi_rank=0,
            hostname=socket.gethostname(),
            wall_time=elapsed_time,
            compute_time=elapsed_time,
            mpi_comm_time=0.0,
        )
        self.all_per_rank_results = [self.per_rank_results]
        self.global_results = self._build_global_results(state, self.all_per_rank_results)
        self._report(state)

        if state.status == DIVERGED:
            raise DivergedError(state.iteration, state.residual)

        self.x = state.x
        if x is not None:
            x[:] = state.x
        return state.x
