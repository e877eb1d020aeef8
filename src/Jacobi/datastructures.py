"""Data structures for solver configuration, local data and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

# Vector layouts on the process grid
COLUMN_AXIS = "column"  # segment i lives on worker (i, 0)
ROW_AXIS = "row"        # worker (i, j) holds segment j

# Solver states
ITERATING = "iterating"
CONVERGED = "converged"
MAX_ITERS_REACHED = "max_iters_reached"
DIVERGED = "diverged"


@dataclass
class RuntimeConfig:
    """Global runtime configuration (same for all ranks)."""
    # Problem
    N: int = 0

    # Specs
    mpi_size: int = 1
    grid_side: int = 1
    method: str = ""

    # Jacobi Solver
    use_numba: bool = False
    num_threads: int = 1
    max_iter: int = 1000
    tolerance: Optional[float] = None
    divergence_factor: float = 1e8
    divergence_patience: int = 5


@dataclass
class GlobalResults:
    """Global solver results (same for all ranks)."""
    # Convergence info
    iterations: int = 0
    residual_history: list[float] = field(default_factory=list)
    status: str = ""
    converged: bool = False
    final_residual: float = 0.0
    # Global timings
    wall_time: float = 0.0
    compute_time: float = 0.0
    mpi_comm_time: float = 0.0


@dataclass
class PerRankResults:
    """Per-rank performance results."""
    mpi_rank: int = 0
    grid_row: int = 0
    grid_col: int = 0
    hostname: str = ""
    wall_time: float = 0.0
    compute_time: float = 0.0
    mpi_comm_time: float = 0.0


@dataclass(frozen=True)
class LocalMatrixBlock:
    """Rectangular block of the global matrix owned by one worker."""
    data: np.ndarray
    row_start: int
    col_start: int

    @property
    def rows(self) -> int:
        return self.data.shape[0]

    @property
    def cols(self) -> int:
        return self.data.shape[1]

    @property
    def row_range(self) -> tuple[int, int]:
        return self.row_start, self.row_start + self.rows

    @property
    def col_range(self) -> tuple[int, int]:
        return self.col_start, self.col_start + self.cols


@dataclass
class LocalVectorSegment:
    """Piece of a global vector held by one worker.

    ``data`` is empty on workers outside the active axis.
    """
    data: np.ndarray
    start: int
    axis: str = COLUMN_AXIS

    def __len__(self) -> int:
        return self.data.shape[0]

    @property
    def stop(self) -> int:
        return self.start + len(self)


@dataclass
class IterationState:
    """Mutable state of one Jacobi solve.

    In the distributed solver ``x``, ``diag``, ``b`` and ``rx`` are the
    column-aligned local pieces (empty off column 0).
    """
    x: np.ndarray
    diag: np.ndarray
    b: np.ndarray
    rx: np.ndarray
    tolerance: float
    max_iter: int
    divergence_bound: float
    divergence_patience: int
    iteration: int = 0
    residual: float = float("inf")
    over_bound_streak: int = 0
    status: str = ITERATING
    residual_history: list[float] = field(default_factory=list)
