"""MPI Jacobi solver with 2D block decomposition on a q x q process grid."""

import socket

import numpy as np
from mpi4py import MPI

from .base import LinearSolver
from .datastructures import (
    COLUMN_AXIS,
    DIVERGED,
    ITERATING,
    GlobalResults,
    LocalMatrixBlock,
    LocalVectorSegment,
    PerRankResults,
)
from .distribution import MatrixDistributor, VectorDistributor
from .errors import DimensionError, DivergedError
from .grid import ProcessGrid
from .kernels import jacobi_update, residual_inf_norm, split_diagonal
from .matvec import DistributedMatVec


class MPIJacobiGrid(LinearSolver):
    """Distributed Jacobi solver for dense Ax = b.

    Worker (i, j) of the grid owns block (i, j) of A; vectors live on grid
    column 0. Each iteration performs one transpose, one distributed mat-vec
    with the off-diagonal part R and two scalar all-reduces (residual and
    divergence flag), so all ranks stop at the same iteration.

    Parameters
    ----------
    grid : ProcessGrid, optional
        Process grid (default: built over MPI.COMM_WORLD)
    **kwargs
        Solver configuration, see LinearSolver

    Examples
    --------
    >>> grid = ProcessGrid.build(MPI.COMM_WORLD)
    >>> solver = MPIJacobiGrid(grid=grid, max_iter=500)
    >>> x = solver.solve(n, A, b)  # x on rank 0, None elsewhere
    """

    def __init__(self, grid=None, **kwargs):
        super().__init__(**kwargs)
        self.grid = grid if grid is not None else ProcessGrid.build(MPI.COMM_WORLD)
        self.rank = self.grid.rank
        self.config.mpi_size = self.grid.size
        self.config.grid_side = self.grid.q
        self.config.method = "mpi_grid_jacobi"

        self.matrix_distributor = MatrixDistributor(self.grid)
        self.vector_distributor = VectorDistributor(self.grid)
        self.matvec = DistributedMatVec(self.grid, kernel=self._matvec)

        if self.verbose and self.rank == 0:
            print(
                f"Using {'numba' if self.config.use_numba else 'numpy'} kernel with {self.grid.size} MPI ranks "
                f"(grid: {self.grid.q}x{self.grid.q})"
            )

    def solve(self, n, A, b, x=None, root=0):
        """Solve Ax = b; A, b and x are only read/written on ``root``.

        Returns
        -------
        np.ndarray or None
            Solution on ``root``, None on the other ranks

        Raises
        ------
        DimensionError
            On every rank, if the inputs on ``root`` do not match n
        DivergedError
            On every rank, once the group agrees the iteration blew up
        """
        grid = self.grid
        comm = grid.comm

        bad_x = comm.bcast(x is not None and np.size(x) != n if grid.rank == root else None, root=root)
        if bad_x:
            raise DimensionError(f"Output buffer x does not have {n} entries")

        self.matvec.reset_timers()
        compute_time = 0.0
        comm_time = 0.0
        t_start = MPI.Wtime()

        # Distribute A in blocks and b along column 0
        block = self.matrix_distributor.scatter(A, n, root=root)
        b_seg = self.vector_distributor.scatter(b, n, root=root)
        state, off_diag = self._setup(block, b_seg, n)
        x_seg = LocalVectorSegment(data=state.x, start=b_seg.start, axis=COLUMN_AXIS)

        # Main iteration loop
        while state.status == ITERATING:
            t0 = MPI.Wtime()
            state.x = jacobi_update(state.b, state.rx, state.diag)
            x_seg = LocalVectorSegment(data=state.x, start=b_seg.start, axis=COLUMN_AXIS)
            t1 = MPI.Wtime()

            # R x for the residual now and for the next update
            state.rx = self.matvec.apply(off_diag, x_seg, n).data

            t2 = MPI.Wtime()
            local_residual = residual_inf_norm(state.rx, state.diag, state.x, state.b)
            local_nonfinite = not bool(np.all(np.isfinite(state.x)))
            t3 = MPI.Wtime()

            residual = comm.allreduce(local_residual, op=MPI.MAX)
            nonfinite = comm.allreduce(local_nonfinite, op=MPI.LOR)
            t4 = MPI.Wtime()

            compute_time += (t1 - t0) + (t3 - t2)
            comm_time += t4 - t3
            self._advance(state, residual, nonfinite)

        x_global = None
        if state.status != DIVERGED:
            x_global = self.vector_distributor.gather(x_seg, n, root=root)

        wall_time = MPI.Wtime() - t_start
        self._collect_results(
            state,
            wall_time,
            compute_time + self.matvec.compute_time,
            comm_time + self.matvec.comm_time,
            root,
        )
        self._report(state)

        if state.status == DIVERGED:
            raise DivergedError(state.iteration, state.residual)

        self.x = x_global
        if x is not None and grid.rank == root:
            x[:] = x_global
        return x_global

    def _setup(self, block, b_seg, n):
        """Split off the diagonal and build the initial iteration state.

        The diagonal entries of block-row i sit on whichever workers own the
        matching columns; a row sum-reduction brings them to (i, 0).
        """
        grid = self.grid
        local_diag, R = split_diagonal(block.data, block.row_start, block.col_start)
        diag = self.matvec.transpose.to_column_axis(local_diag, block.row_start).data
        off_diag = LocalMatrixBlock(data=R, row_start=block.row_start, col_start=block.col_start)

        local_b_norm = float(np.abs(b_seg.data).max()) if len(b_seg) else 0.0
        b_norm = grid.comm.allreduce(local_b_norm, op=MPI.MAX)

        # x0 = 0, hence R x0 = 0
        rows = len(b_seg)
        state = self._init_state(
            n, x=np.zeros(rows), diag=diag, b=b_seg.data, rx=np.zeros(rows), b_norm=b_norm
        )
        return state, off_diag

    def _collect_results(self, state, wall_time, compute_time, comm_time, root):
        grid = self.grid
        self.per_rank_results = PerRankResults(
            mpi_rank=grid.rank,
            grid_row=grid.row,
            grid_col=grid.col,
            hostname=socket.gethostname(),
            wall_time=wall_time,
            compute_time=compute_time,
            mpi_comm_time=comm_time,
        )

        # Gather all per-rank results
        all_perrank = grid.comm.gather(self.per_rank_results, root=root)

        if grid.rank == root:
            self.all_per_rank_results = all_perrank
            global_results = self._build_global_results(state, all_perrank)
        else:
            global_results = GlobalResults()

        # Broadcast to all ranks
        self.global_results = grid.comm.bcast(global_results, root=root)
