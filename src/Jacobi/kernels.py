"""Computational kernels for the Jacobi solvers.

Pure functions on local numpy buffers, shared by the sequential and the
distributed solver. The mat-vec kernel has a numba twin selected with
``use_numba``.
"""

from __future__ import annotations

import numpy as np
from numba import njit, prange


def matvec_numpy(M: np.ndarray, x: np.ndarray) -> np.ndarray:
    """Dense local product ``M @ x``."""
    # Diverging iterates overflow; the solver reports that itself
    with np.errstate(invalid="ignore", over="ignore"):
        return M @ x


@njit(parallel=True)
def matvec_numba(M: np.ndarray, x: np.ndarray) -> np.ndarray:
    rows, cols = M.shape
    y = np.zeros(rows)
    for i in prange(rows):
        acc = 0.0
        for j in range(cols):
            acc += M[i, j] * x[j]
        y[i] = acc
    return y


def split_diagonal(
    block: np.ndarray, row_start: int, col_start: int
) -> tuple[np.ndarray, np.ndarray]:
    """Split a matrix block into its diagonal part D and remainder R.

    Only entries whose global row equals their global column count as
    diagonal. The returned diagonal has one slot per local row; rows whose
    diagonal entry lives in another block get 0.

    Parameters
    ----------
    block : np.ndarray
        Local block, shape (rows, cols)
    row_start, col_start : int
        Global index of the block's first row / column

    Returns
    -------
    diag : np.ndarray
        Shape (rows,)
    off_diag : np.ndarray
        Copy of ``block`` with the diagonal entries zeroed
    """
    rows, cols = block.shape
    diag = np.zeros(rows)
    off_diag = np.array(block, dtype=np.float64, copy=True)

    lo = max(row_start, col_start)
    hi = min(row_start + rows, col_start + cols)
    if lo < hi:
        g = np.arange(lo, hi)
        diag[g - row_start] = block[g - row_start, g - col_start]
        off_diag[g - row_start, g - col_start] = 0.0

    return diag, off_diag


def jacobi_update(b: np.ndarray, rx: np.ndarray, diag: np.ndarray) -> np.ndarray:
    """x_new = (b - R x) / D, elementwise."""
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        return (b - rx) / diag


def residual_inf_norm(rx: np.ndarray, diag: np.ndarray, x: np.ndarray, b: np.ndarray) -> float:
    """Local infinity norm of A x - b, using A x = R x + D x.

    Returns inf when any entry is not finite, 0.0 for an empty segment.
    """
    if x.shape[0] == 0:
        return 0.0
    with np.errstate(invalid="ignore", over="ignore"):
        r = np.abs(rx + diag * x - b)
    if not np.all(np.isfinite(r)):
        return float("inf")
    return float(r.max())
