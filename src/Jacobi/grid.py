"""Square process grid and block-size bookkeeping."""

from __future__ import annotations

import math
from dataclasses import dataclass

from mpi4py import MPI

from .errors import ConfigError


def grid_side(total_workers: int) -> int:
    """Side length q of a q x q grid holding ``total_workers`` processes."""
    if total_workers < 1:
        raise ConfigError(f"Need at least one MPI process, got {total_workers}")
    q = math.isqrt(total_workers)
    if q * q != total_workers:
        raise ConfigError(
            f"The number of MPI processes must be a perfect square, got {total_workers}"
        )
    return q


def grid_coords(total_workers: int, rank: int) -> tuple[int, int, int]:
    """Return ``(q, row, col)`` for ``rank`` with row-major placement."""
    q = grid_side(total_workers)
    if not 0 <= rank < total_workers:
        raise ConfigError(f"Rank {rank} outside of [0, {total_workers})")
    row, col = divmod(rank, q)
    return q, row, col


def block_decompose(n: int, parts: int, index: int) -> tuple[int, int]:
    """Size and global start of block ``index`` when splitting n into ``parts``.

    The first ``n % parts`` blocks get one extra element.
    """
    base_size, remainder = divmod(n, parts)
    local_n = base_size + (1 if index < remainder else 0)
    start = index * base_size + min(index, remainder)
    return local_n, start


def counts_displs(n: int, parts: int) -> tuple[list[int], list[int]]:
    """Counts and displacements of all blocks, for Scatterv/Gatherv."""
    blocks = [block_decompose(n, parts, k) for k in range(parts)]
    counts = [size for size, _ in blocks]
    displs = [start for _, start in blocks]
    return counts, displs


@dataclass(frozen=True)
class ProcessGrid:
    """A q x q Cartesian arrangement of MPI processes.

    Built once and handed to every component. Inside ``row_comm`` the rank of
    a worker is its column index; inside ``col_comm`` it is its row index.

    Parameters
    ----------
    q : int
        Grid side length
    rank : int
        Rank in the Cartesian communicator (row-major, equal to the parent rank)
    row, col : int
        Grid coordinates of this worker
    comm : MPI.Cartcomm
        Communicator spanning the whole grid
    row_comm, col_comm : MPI.Cartcomm
        Sub-communicators of the workers sharing this row / column
    """

    q: int
    rank: int
    row: int
    col: int
    comm: MPI.Comm
    row_comm: MPI.Comm
    col_comm: MPI.Comm

    @classmethod
    def build(cls, comm: MPI.Comm | None = None) -> "ProcessGrid":
        """Create the grid over ``comm`` (default: MPI.COMM_WORLD).

        Raises ConfigError on every rank when the size is not a perfect square.
        """
        if comm is None:
            comm = MPI.COMM_WORLD
        q = grid_side(comm.Get_size())

        cart = comm.Create_cart([q, q], periods=[False, False], reorder=False)
        rank = cart.Get_rank()
        row, col = cart.Get_coords(rank)

        # Row group: fixed row, varying column. Column group: the opposite.
        row_comm = cart.Sub([False, True])
        col_comm = cart.Sub([True, False])
        return cls(q=q, rank=rank, row=row, col=col, comm=cart, row_comm=row_comm, col_comm=col_comm)

    @property
    def size(self) -> int:
        return self.q * self.q

    def row_group(self) -> MPI.Comm:
        return self.row_comm

    def col_group(self) -> MPI.Comm:
        return self.col_comm

    def coords_of(self, rank: int) -> tuple[int, int]:
        """Grid coordinates of another rank."""
        return divmod(rank, self.q)

    def row_block(self, n: int) -> tuple[int, int]:
        """(local rows, global row start) of this worker's matrix block."""
        return block_decompose(n, self.q, self.row)

    def col_block(self, n: int) -> tuple[int, int]:
        """(local cols, global col start) of this worker's matrix block."""
        return block_decompose(n, self.q, self.col)

    def free(self) -> None:
        """Release the communicators created by build()."""
        for comm in (self.row_comm, self.col_comm, self.comm):
            comm.Free()
