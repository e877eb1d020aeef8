"""Moving vector segments between the column axis and the row axis."""

from __future__ import annotations

import numpy as np
from mpi4py import MPI

from .datastructures import COLUMN_AXIS, ROW_AXIS, LocalVectorSegment
from .grid import ProcessGrid, block_decompose

_DIAGONAL_TAG = 11


class VectorTranspose:
    """Bridges the distribution layout and the multiply layout of a vector.

    Column axis: segment i lives on worker (i, 0).
    Row axis: every worker (i, j) holds segment j, the one matching the
    column range of its matrix block.
    """

    def __init__(self, grid: ProcessGrid):
        self.grid = grid

    def to_row_axis(self, segment: LocalVectorSegment, n: int) -> LocalVectorSegment:
        """Replicate a column-aligned vector so each worker gets its column's segment.

        (i, 0) hands segment i to the diagonal worker (i, i), which then
        broadcasts it down column i.
        """
        grid = self.grid
        i, j = grid.row, grid.col
        if segment.axis != COLUMN_AXIS:
            raise ValueError(f"Expected a column-aligned segment, got '{segment.axis}'")

        length, start = block_decompose(n, grid.q, j)
        buf = np.empty(length)

        if j == 0 and i != 0:
            grid.row_comm.Send(np.ascontiguousarray(segment.data), dest=i, tag=_DIAGONAL_TAG)
        if i == j:
            if i == 0:
                buf[:] = segment.data
            else:
                grid.row_comm.Recv(buf, source=0, tag=_DIAGONAL_TAG)

        # Rank inside a column group equals the row index, so (j, j) is root j
        grid.col_comm.Bcast(buf, root=j)

        return LocalVectorSegment(data=buf, start=start, axis=ROW_AXIS)

    def to_column_axis(
        self, partial: np.ndarray, start: int, op: MPI.Op = MPI.SUM
    ) -> LocalVectorSegment:
        """Reduce per-worker partial results of block-row i onto worker (i, 0)."""
        grid = self.grid
        partial = np.ascontiguousarray(partial, dtype=np.float64)

        result = np.empty_like(partial) if grid.col == 0 else None
        grid.row_comm.Reduce(partial, result, op=op, root=0)

        if result is None:
            result = np.empty(0)
        return LocalVectorSegment(data=result, start=start, axis=COLUMN_AXIS)
