"""Test problems for the Jacobi solvers.

This module generates random diagonally dominant systems (for which Jacobi
is guaranteed to converge) and a few hand-shaped systems used in checks.
"""

from __future__ import annotations

import numpy as np


def _rng(seed) -> np.random.Generator:
    return seed if isinstance(seed, np.random.Generator) else np.random.default_rng(seed)


def diag_dom_rand(n: int, difficulty: float = 0.5, seed=None) -> np.ndarray:
    """Create a random strictly diagonally dominant n x n matrix.

    Off-diagonal entries are uniform in [-1, 1]. Each diagonal entry is the
    row's off-diagonal magnitude sum times a margin that shrinks from 3 to
    1.01 as ``difficulty`` goes from 0.0 to 1.0; a smaller margin means
    slower convergence.

    Parameters
    ----------
    n : int
        Matrix size
    difficulty : float, default 0.5
        Between 0.0 (easiest) and 1.0 (hardest)
    seed : int or np.random.Generator, optional
        Random seed or generator

    Returns
    -------
    np.ndarray
        Matrix of shape (n, n)

    Examples
    --------
    >>> A = diag_dom_rand(100, difficulty=0.2, seed=42)
    """
    if n < 1:
        raise ValueError(f"n must be positive, got {n}")
    if not 0.0 <= difficulty <= 1.0:
        raise ValueError(f"difficulty must be in [0, 1], got {difficulty}")

    rng = _rng(seed)
    A = rng.uniform(-1.0, 1.0, size=(n, n))
    np.fill_diagonal(A, 0.0)

    margin = 1.01 + 1.99 * (1.0 - difficulty)
    row_sums = np.abs(A).sum(axis=1)
    np.fill_diagonal(A, margin * row_sums + 1.0)
    return A


def randn(n: int, seed=None) -> np.ndarray:
    """Standard normal vector of length n."""
    return _rng(seed).standard_normal(n)


def perturbed_diagonal_problem(
    n: int = 4, diagonal: float = 2.0, noise: float = 1e-3, seed=None
) -> tuple[np.ndarray, np.ndarray]:
    """``diagonal * I`` plus small off-diagonal noise, with b = [2, 4, ..., 2n].

    The solution is close to [1, 2, ..., n] for diagonal = 2 and small noise.
    """
    rng = _rng(seed)
    A = noise * rng.uniform(-1.0, 1.0, size=(n, n))
    np.fill_diagonal(A, diagonal)
    b = 2.0 * np.arange(1, n + 1, dtype=np.float64)
    return A, b


def non_dominant_rand(n: int, ratio: float = 100.0, seed=None) -> np.ndarray:
    """Matrix whose off-diagonal magnitudes dwarf the diagonal; Jacobi diverges on it."""
    if n < 2:
        raise ValueError(f"n must be at least 2, got {n}")
    rng = _rng(seed)
    A = ratio * (1.0 + rng.uniform(0.0, 1.0, size=(n, n)))
    np.fill_diagonal(A, 1.0)
    return A
