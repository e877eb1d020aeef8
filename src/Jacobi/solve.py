"""Entry points for solving Ax = b with the Jacobi method."""

import sys

from mpi4py import MPI

from .grid import ProcessGrid
from .mpi_grid import MPIJacobiGrid
from .sequential import SequentialJacobi


def solve_sequential(n, A, b, x, **kwargs):
    """Solve on a single process; the solution is written into ``x``.

    Returns the GlobalResults of the run.
    """
    solver = SequentialJacobi(**kwargs)
    solver.solve(n, A, b, x)
    return solver.global_results


def solve_distributed(n, A, b, x, grid, **kwargs):
    """Solve on ``grid``; must be called by every rank of the grid.

    A and b are read and x is written on grid rank 0 only. Returns the
    GlobalResults of the run (identical on all ranks).
    """
    solver = MPIJacobiGrid(grid=grid, **kwargs)
    solver.solve(n, A, b, x)
    return solver.global_results


def create_solver(comm=None, **kwargs):
    """Pick the solver for the size of ``comm``.

    One process gets the sequential solver; q*q processes get the grid
    solver. Any other count raises ConfigError on every rank.
    """
    if comm is None:
        comm = MPI.COMM_WORLD
    if comm.Get_size() == 1:
        print(
            "[WARNING]: Running the sequential solver. Start with mpirun to execute the parallel version.",
            file=sys.stderr,
        )
        return SequentialJacobi(**kwargs)
    return MPIJacobiGrid(grid=ProcessGrid.build(comm), **kwargs)


def solve(n, A, b, x, comm=None, **kwargs):
    """Solve Ax = b on all processes of ``comm`` (default: MPI.COMM_WORLD).

    ``n`` only needs to be known on rank 0; it is broadcast first.
    """
    if comm is None:
        comm = MPI.COMM_WORLD
    n = comm.bcast(n, root=0)
    solver = create_solver(comm, **kwargs)
    solver.solve(n, A, b, x)
    return solver.global_results
