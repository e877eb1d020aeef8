"""In-process tests of the distributed components on a 1 x 1 grid."""

import numpy as np
import pytest
from mpi4py import MPI

from Jacobi import (
    DimensionError,
    DistributedMatVec,
    DivergedError,
    LocalVectorSegment,
    MatrixDistributor,
    MPIJacobiGrid,
    SequentialJacobi,
    VectorDistributor,
    VectorTranspose,
    create_solver,
    diag_dom_rand,
    non_dominant_rand,
    perturbed_diagonal_problem,
    randn,
    solve,
    solve_distributed,
)


def test_matrix_round_trip(grid, rng):
    A = rng.standard_normal((5, 5))
    distributor = MatrixDistributor(grid)

    block = distributor.scatter(A, 5)

    assert block.row_range == (0, 5)
    assert block.col_range == (0, 5)
    np.testing.assert_array_equal(block.data, A)
    np.testing.assert_array_equal(distributor.gather(block, 5), A)


def test_matrix_scatter_accepts_flat_input(grid):
    A = np.arange(9, dtype=np.float64)
    block = MatrixDistributor(grid).scatter(A, 3)
    np.testing.assert_array_equal(block.data, A.reshape(3, 3))


def test_matrix_scatter_rejects_wrong_size(grid):
    with pytest.raises(DimensionError):
        MatrixDistributor(grid).scatter(np.ones(8), 3)


def test_vector_round_trip(grid, rng):
    v = rng.standard_normal(6)
    distributor = VectorDistributor(grid)

    segment = distributor.scatter(v, 6)

    assert segment.axis == "column"
    assert (segment.start, segment.stop) == (0, 6)
    np.testing.assert_array_equal(distributor.gather(segment, 6), v)


def test_vector_scatter_rejects_wrong_size(grid):
    with pytest.raises(DimensionError):
        VectorDistributor(grid).scatter(np.ones(4), 5)


def test_transpose_round_trip(grid):
    transpose = VectorTranspose(grid)
    column = LocalVectorSegment(data=np.arange(4.0), start=0, axis="column")

    row = transpose.to_row_axis(column, 4)

    assert row.axis == "row"
    np.testing.assert_array_equal(row.data, column.data)
    back = transpose.to_column_axis(row.data, row.start)
    assert back.axis == "column"
    np.testing.assert_array_equal(back.data, column.data)


def test_transpose_rejects_wrong_axis(grid):
    row = LocalVectorSegment(data=np.zeros(2), start=0, axis="row")
    with pytest.raises(ValueError):
        VectorTranspose(grid).to_row_axis(row, 2)


def test_distributed_matvec(grid, rng):
    n = 7
    A = rng.standard_normal((n, n))
    x = rng.standard_normal(n)
    block = MatrixDistributor(grid).scatter(A, n)
    x_seg = VectorDistributor(grid).scatter(x, n)
    matvec = DistributedMatVec(grid)

    y = matvec.apply(block, x_seg, n)

    np.testing.assert_allclose(y.data, A @ x, rtol=1e-12, atol=1e-12)
    assert matvec.compute_time >= 0.0
    assert matvec.comm_time >= 0.0


def test_distributed_matvec_checks_segment(grid):
    block = MatrixDistributor(grid).scatter(np.eye(3), 3)
    matvec = DistributedMatVec(grid)
    with pytest.raises(ValueError):
        matvec.multiply(block, LocalVectorSegment(np.ones(3), 0, "column"))
    with pytest.raises(DimensionError):
        matvec.multiply(block, LocalVectorSegment(np.ones(2), 0, "row"))


def test_grid_solver_agrees_with_sequential(grid):
    n = 50
    A = diag_dom_rand(n, 0.5, seed=21)
    b = randn(n, seed=22)

    solver = MPIJacobiGrid(grid=grid)
    x_dist = solver.solve(n, A, b)
    x_seq = SequentialJacobi().solve(n, A, b)

    assert solver.global_results.converged
    assert solver.config.grid_side == 1
    assert solver.config.mpi_size == 1
    assert solver.config.method == "mpi_grid_jacobi"
    np.testing.assert_allclose(x_dist, x_seq, atol=1e-9)
    np.testing.assert_allclose(x_dist, np.linalg.solve(A, b), atol=1e-8)


def test_solve_distributed_writes_buffer(grid):
    A, b = perturbed_diagonal_problem(4, noise=1e-12, seed=0)
    x = np.empty(4)

    results = solve_distributed(4, A, b, x, grid, tolerance=1e-12)

    assert results.converged
    np.testing.assert_allclose(x, [1.0, 2.0, 3.0, 4.0], atol=1e-9)


def test_single_unknown_one_iteration(grid):
    x = np.empty(1)
    results = solve_distributed(1, np.array([3.0]), np.array([6.0]), x, grid)
    assert results.iterations == 1
    np.testing.assert_allclose(x, [2.0])


def test_grid_solver_divergence(grid):
    n = 6
    x = np.full(n, -1.0)
    solver = MPIJacobiGrid(grid=grid)

    with pytest.raises(DivergedError) as excinfo:
        solver.solve(n, non_dominant_rand(n, seed=1), np.ones(n), x)

    assert excinfo.value.iterations <= 20
    assert solver.global_results.status == "diverged"
    np.testing.assert_array_equal(x, np.full(n, -1.0))


def test_grid_solver_iteration_cap(grid):
    n = 30
    results = solve_distributed(
        n, diag_dom_rand(n, 1.0, seed=2), randn(n, seed=3), np.empty(n), grid, max_iter=2
    )
    assert results.status == "max_iters_reached"
    assert results.iterations == 2


def test_grid_solver_per_rank_results(grid):
    n = 8
    solver = MPIJacobiGrid(grid=grid)
    solver.solve(n, diag_dom_rand(n, seed=4), randn(n, seed=5))

    assert len(solver.all_per_rank_results) == 1
    per_rank = solver.all_per_rank_results[0]
    assert (per_rank.mpi_rank, per_rank.grid_row, per_rank.grid_col) == (0, 0, 0)
    assert solver.global_results.wall_time == per_rank.wall_time


def test_grid_solver_checks_output_buffer(grid):
    with pytest.raises(DimensionError):
        MPIJacobiGrid(grid=grid).solve(2, np.eye(2), np.ones(2), np.empty(5))


def test_single_process_uses_sequential_solver(capsys):
    solver = create_solver(MPI.COMM_SELF)
    assert isinstance(solver, SequentialJacobi)
    assert "[WARNING]" in capsys.readouterr().err


def test_solve_on_single_process():
    n = 12
    A = diag_dom_rand(n, seed=6)
    b = randn(n, seed=7)
    x = np.empty(n)

    results = solve(n, A, b, x, comm=MPI.COMM_SELF)

    assert results.converged
    np.testing.assert_allclose(x, np.linalg.solve(A, b), atol=1e-8)
