"""Matrix-vector product for a matrix distributed in 2D blocks."""

from __future__ import annotations

from mpi4py import MPI

from .datastructures import ROW_AXIS, LocalMatrixBlock, LocalVectorSegment
from .errors import DimensionError
from .grid import ProcessGrid
from .kernels import matvec_numpy
from .transpose import VectorTranspose


class DistributedMatVec:
    """Computes y = M x with M in 2D blocks and x along one grid axis.

    Each worker multiplies its block by the x segment matching its column
    range; a sum-reduction along each grid row yields y on column 0.
    Synchronisation per call is one column broadcast and one row reduction.

    Parameters
    ----------
    grid : ProcessGrid
        Process grid shared by all components
    kernel : callable, optional
        Local mat-vec kernel ``kernel(M, x) -> y`` (default: numpy)
    """

    def __init__(self, grid: ProcessGrid, kernel=matvec_numpy):
        self.grid = grid
        self.transpose = VectorTranspose(grid)
        self._kernel = kernel
        self.reset_timers()

    def reset_timers(self):
        self.compute_time = 0.0
        self.comm_time = 0.0

    def multiply(self, block: LocalMatrixBlock, x: LocalVectorSegment) -> LocalVectorSegment:
        """Multiply by a row-aligned x; result is column-aligned."""
        if x.axis != ROW_AXIS:
            raise ValueError(f"Expected a row-aligned segment, got '{x.axis}'")
        if len(x) != block.cols:
            raise DimensionError(f"Block has {block.cols} columns but x segment has {len(x)} entries")

        t0 = MPI.Wtime()
        partial = self._kernel(block.data, x.data)
        t1 = MPI.Wtime()
        y = self.transpose.to_column_axis(partial, block.row_start, op=MPI.SUM)
        t2 = MPI.Wtime()

        self.compute_time += t1 - t0
        self.comm_time += t2 - t1
        return y

    def apply(self, block: LocalMatrixBlock, x: LocalVectorSegment, n: int) -> LocalVectorSegment:
        """Multiply by a column-aligned x (transposes it first)."""
        t0 = MPI.Wtime()
        x_row = self.transpose.to_row_axis(x, n)
        self.comm_time += MPI.Wtime() - t0
        return self.multiply(block, x_row)
