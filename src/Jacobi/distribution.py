"""Scatter/gather of the matrix and vectors over the process grid."""

from __future__ import annotations

import numpy as np
from mpi4py import MPI

from .datastructures import COLUMN_AXIS, LocalMatrixBlock, LocalVectorSegment
from .errors import ConfigError, DimensionError
from .grid import ProcessGrid, counts_displs


def _agree_on_size(grid: ProcessGrid, data, expected: int, root: int, what: str) -> None:
    """Broadcast the coordinator's input size and check it on every rank."""
    size = grid.comm.bcast(None if data is None else int(np.size(data)), root=root)
    if expected < 1 or size != expected:
        raise DimensionError(f"{what} has {size} entries, expected {expected}")


class MatrixDistributor:
    """Distributes an n x n matrix into the 2D block layout of a grid.

    Worker (i, j) owns rows of block-row i and columns of block-column j.
    Scattering runs in two stages: the root column splits rows, then every
    worker of that column splits its strip across its row.

    Parameters
    ----------
    grid : ProcessGrid
        Process grid shared by all components
    """

    def __init__(self, grid: ProcessGrid):
        self.grid = grid

    def scatter(self, A: np.ndarray | None, n: int, root: int = 0) -> LocalMatrixBlock:
        """Scatter ``A`` (given on ``root`` only) and return this worker's block.

        Raises
        ------
        DimensionError
            On every rank, if ``A`` on the root does not hold n*n values
        """
        grid = self.grid
        q = grid.q
        _agree_on_size(grid, A if grid.rank == root else None, n * n, root, "Matrix")

        root_row, root_col = grid.coords_of(root)
        rows, row_start = grid.row_block(n)
        cols, col_start = grid.col_block(n)
        counts, displs = counts_displs(n, q)

        # Stage 1: split block-rows down the root column
        strip = None
        if grid.col == root_col:
            sendbuf = None
            if grid.rank == root:
                A = np.ascontiguousarray(A, dtype=np.float64).reshape(n, n)
                sendbuf = [A, [c * n for c in counts], [d * n for d in displs], MPI.DOUBLE]
            strip = np.empty((rows, n))
            grid.col_comm.Scatterv(sendbuf, strip, root=root_row)

        # Stage 2: split each strip into column blocks along its row
        sendbuf = None
        if grid.col == root_col:
            packed = np.concatenate(
                [strip[:, d : d + c].ravel() for c, d in zip(counts, displs)]
            )
            sendbuf = [packed, [rows * c for c in counts], [rows * d for d in displs], MPI.DOUBLE]
        block = np.empty((rows, cols))
        grid.row_comm.Scatterv(sendbuf, block, root=root_col)

        return LocalMatrixBlock(data=block, row_start=row_start, col_start=col_start)

    def gather(self, block: LocalMatrixBlock, n: int, root: int = 0) -> np.ndarray | None:
        """Reassemble the global matrix on ``root``; returns None elsewhere."""
        grid = self.grid
        q = grid.q
        root_row, root_col = grid.coords_of(root)
        rows = block.rows
        counts, displs = counts_displs(n, q)

        # Stage 1: collect column blocks of each block-row in the root column
        recvbuf = None
        packed = None
        if grid.col == root_col:
            packed = np.empty(rows * n)
            recvbuf = [packed, [rows * c for c in counts], [rows * d for d in displs], MPI.DOUBLE]
        grid.row_comm.Gatherv(np.ascontiguousarray(block.data), recvbuf, root=root_col)

        if grid.col != root_col:
            return None

        strip = np.empty((rows, n))
        for c, d in zip(counts, displs):
            strip[:, d : d + c] = packed[rows * d : rows * (d + c)].reshape(rows, c)

        # Stage 2: stack the block-rows on the root
        A = None
        recvbuf = None
        if grid.rank == root:
            A = np.empty((n, n))
            recvbuf = [A, [c * n for c in counts], [d * n for d in displs], MPI.DOUBLE]
        grid.col_comm.Gatherv(strip, recvbuf, root=root_row)

        return A


class VectorDistributor:
    """Distributes length-n vectors along grid column 0.

    Worker (i, 0) owns the segment matching block-row i; all other workers
    hold an empty segment.
    """

    def __init__(self, grid: ProcessGrid):
        self.grid = grid

    def _check_root(self, root: int) -> int:
        root_row, root_col = self.grid.coords_of(root)
        if root_col != 0:
            raise ConfigError(f"Vector coordinator must sit in grid column 0, rank {root} does not")
        return root_row

    def scatter(self, v: np.ndarray | None, n: int, root: int = 0) -> LocalVectorSegment:
        grid = self.grid
        root_row = self._check_root(root)
        _agree_on_size(grid, v if grid.rank == root else None, n, root, "Vector")

        length, start = grid.row_block(n)
        if grid.col != 0:
            return LocalVectorSegment(data=np.empty(0), start=start, axis=COLUMN_AXIS)

        counts, displs = counts_displs(n, grid.q)
        sendbuf = None
        if grid.rank == root:
            v = np.ascontiguousarray(v, dtype=np.float64).reshape(n)
            sendbuf = [v, counts, displs, MPI.DOUBLE]
        segment = np.empty(length)
        grid.col_comm.Scatterv(sendbuf, segment, root=root_row)

        return LocalVectorSegment(data=segment, start=start, axis=COLUMN_AXIS)

    def gather(self, segment: LocalVectorSegment, n: int, root: int = 0) -> np.ndarray | None:
        """Collect a column-aligned vector on ``root``; returns None elsewhere."""
        grid = self.grid
        root_row = self._check_root(root)
        if segment.axis != COLUMN_AXIS:
            raise ValueError(f"Can only gather column-aligned segments, got '{segment.axis}'")
        if grid.col != 0:
            return None

        counts, displs = counts_displs(n, grid.q)
        v = None
        recvbuf = None
        if grid.rank == root:
            v = np.empty(n)
            recvbuf = [v, counts, displs, MPI.DOUBLE]
        grid.col_comm.Gatherv(np.ascontiguousarray(segment.data), recvbuf, root=root_row)

        return v
