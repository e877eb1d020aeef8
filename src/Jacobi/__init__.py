"""Distributed dense Jacobi solver package."""

from .base import LinearSolver, default_tolerance
from .datastructures import (
    RuntimeConfig,
    GlobalResults,
    PerRankResults,
    LocalMatrixBlock,
    LocalVectorSegment,
    IterationState,
)
from .errors import JacobiError, ConfigError, DimensionError, DivergedError
from .grid import ProcessGrid, grid_side, grid_coords, block_decompose, counts_displs
from .distribution import MatrixDistributor, VectorDistributor
from .transpose import VectorTranspose
from .matvec import DistributedMatVec
from .kernels import matvec_numpy, matvec_numba
from .sequential import SequentialJacobi
from .mpi_grid import MPIJacobiGrid
from .problems import diag_dom_rand, randn, perturbed_diagonal_problem, non_dominant_rand
from .solve import solve, solve_sequential, solve_distributed, create_solver

__all__ = [
    "LinearSolver",
    "default_tolerance",
    "RuntimeConfig",
    "GlobalResults",
    "PerRankResults",
    "LocalMatrixBlock",
    "LocalVectorSegment",
    "IterationState",
    "JacobiError",
    "ConfigError",
    "DimensionError",
    "DivergedError",
    "ProcessGrid",
    "grid_side",
    "grid_coords",
    "block_decompose",
    "counts_displs",
    "MatrixDistributor",
    "VectorDistributor",
    "VectorTranspose",
    "DistributedMatVec",
    "matvec_numpy",
    "matvec_numba",
    "SequentialJacobi",
    "MPIJacobiGrid",
    "diag_dom_rand",
    "randn",
    "perturbed_diagonal_problem",
    "non_dominant_rand",
    "solve",
    "solve_sequential",
    "solve_distributed",
    "create_solver",
]
