"""Multi-process scenarios, launched by test_mpi.py.

Usage: mpiexec -n P python -m mpi4py mpi_scenarios.py SCENARIO P

Rank 0 prints ``PASS``, ``FAIL: <reason>`` or ``SKIP: <reason>``.
"""

import sys
import traceback

import numpy as np
from mpi4py import MPI

from Jacobi import (
    ConfigError,
    DimensionError,
    DivergedError,
    MatrixDistributor,
    MPIJacobiGrid,
    ProcessGrid,
    SequentialJacobi,
    VectorDistributor,
    VectorTranspose,
    DistributedMatVec,
    diag_dom_rand,
    non_dominant_rand,
    perturbed_diagonal_problem,
    randn,
    solve_distributed,
)


class ScenarioFailure(Exception):
    pass


def check(condition, message):
    if not condition:
        raise ScenarioFailure(message)


def scenario_round_trip(comm):
    grid = ProcessGrid.build(comm)
    rng = np.random.default_rng(0)
    for n in [1, 2, 3, 5, 7, 10, 16]:
        # Every rank draws the same A; only the root hands it in
        A = rng.standard_normal((n, n))
        v = rng.standard_normal(n)
        matrices = MatrixDistributor(grid)
        vectors = VectorDistributor(grid)

        block = matrices.scatter(A if grid.rank == 0 else None, n)
        r0, r1 = block.row_range
        c0, c1 = block.col_range
        check(np.array_equal(block.data, A[r0:r1, c0:c1]), f"wrong block for n={n}")

        A_back = matrices.gather(block, n)
        if grid.rank == 0:
            check(np.array_equal(A_back, A), f"matrix round trip failed for n={n}")
        else:
            check(A_back is None, "gather returned data off the root")

        segment = vectors.scatter(v if grid.rank == 0 else None, n)
        if grid.col == 0:
            check(np.array_equal(segment.data, v[segment.start : segment.stop]), f"wrong segment for n={n}")
        else:
            check(len(segment) == 0, "segment off column 0")
        v_back = vectors.gather(segment, n)
        if grid.rank == 0:
            check(np.array_equal(v_back, v), f"vector round trip failed for n={n}")


def scenario_transpose_matvec(comm):
    grid = ProcessGrid.build(comm)
    n = 11
    A = diag_dom_rand(n, seed=1)
    x = randn(n, seed=2)
    x_seg = VectorDistributor(grid).scatter(x if grid.rank == 0 else None, n)

    row = VectorTranspose(grid).to_row_axis(x_seg, n)
    _, col_start = grid.col_block(n)
    check(row.start == col_start, "row segment start mismatch")
    check(np.array_equal(row.data, x[row.start : row.stop]), "row-axis segment does not match column range")

    block = MatrixDistributor(grid).scatter(A if grid.rank == 0 else None, n)
    y = DistributedMatVec(grid).apply(block, x_seg, n)
    y_global = VectorDistributor(grid).gather(y, n)
    if grid.rank == 0:
        check(np.allclose(y_global, A @ x, rtol=1e-12, atol=1e-12), "distributed mat-vec mismatch")


def scenario_small_system(comm):
    grid = ProcessGrid.build(comm)
    A, b = perturbed_diagonal_problem(4, noise=1e-12, seed=0)
    x = np.empty(4) if grid.rank == 0 else None

    results = solve_distributed(4, A, b, x, grid, tolerance=1e-12)
    check(results.converged, "n=4 system did not converge")
    if grid.rank == 0:
        check(np.allclose(x, [1.0, 2.0, 3.0, 4.0], atol=1e-9), f"unexpected solution {x}")

    A, b = perturbed_diagonal_problem(4, noise=1e-3, seed=1)
    x = np.empty(4) if grid.rank == 0 else None
    solve_distributed(4, A, b, x, grid, tolerance=1e-12)
    if grid.rank == 0:
        x_seq = SequentialJacobi(tolerance=1e-12).solve(4, A, b)
        check(np.allclose(x, x_seq, atol=1e-9), "distributed and sequential disagree")


def scenario_agreement(comm):
    grid = ProcessGrid.build(comm)
    n = 100
    A = diag_dom_rand(n, 0.5, seed=42)
    b = randn(n, seed=43)

    solver = MPIJacobiGrid(grid=grid)
    x1 = solver.solve(n, A if grid.rank == 0 else None, b if grid.rank == 0 else None)
    iterations = solver.global_results.iterations
    x2 = solver.solve(n, A if grid.rank == 0 else None, b if grid.rank == 0 else None)

    # Lockstep: every rank saw the same iteration count and residuals
    counts = comm.allgather(iterations)
    check(len(set(counts)) == 1, f"iteration counts differ across ranks: {counts}")
    check(solver.global_results.converged, "n=100 system did not converge")

    if grid.rank == 0:
        check(np.array_equal(x1, x2), "repeated solves differ")

        single = ProcessGrid.build(MPI.COMM_SELF)
        x_q1 = MPIJacobiGrid(grid=single).solve(n, A, b)
        single.free()
        x_seq = SequentialJacobi().solve(n, A, b)
        check(np.abs(x1 - x_q1).max() < 1e-6, "q=1 and multi-process solutions disagree")
        check(np.abs(x1 - x_seq).max() < 1e-6, "sequential and distributed solutions disagree")


def scenario_divergence(comm):
    grid = ProcessGrid.build(comm)
    n = 8
    A = non_dominant_rand(n, seed=3)
    x = np.full(n, 5.0) if grid.rank == 0 else None

    raised = False
    iterations = -1
    try:
        MPIJacobiGrid(grid=grid).solve(n, A if grid.rank == 0 else None, np.ones(n), x)
    except DivergedError as err:
        raised = True
        iterations = err.iterations

    check(raised, "DivergedError not raised")
    check(iterations <= 20, f"divergence detected too late ({iterations} iterations)")
    check(len(set(comm.allgather(iterations))) == 1, "ranks stopped at different iterations")
    if grid.rank == 0:
        check(np.array_equal(x, np.full(n, 5.0)), "output written despite divergence")


def scenario_dimension(comm):
    grid = ProcessGrid.build(comm)
    raised = False
    try:
        MPIJacobiGrid(grid=grid).solve(4, np.ones(15) if grid.rank == 0 else None, np.ones(4))
    except DimensionError:
        raised = True
    check(raised, "DimensionError not raised on every rank")


def scenario_non_square(comm):
    raised = False
    try:
        ProcessGrid.build(comm)
    except ConfigError:
        raised = True
    check(raised, "ConfigError not raised for a non-square process count")


SCENARIOS = {
    "round_trip": scenario_round_trip,
    "transpose_matvec": scenario_transpose_matvec,
    "small_system": scenario_small_system,
    "agreement": scenario_agreement,
    "divergence": scenario_divergence,
    "dimension": scenario_dimension,
    "non_square": scenario_non_square,
}


def main():
    comm = MPI.COMM_WORLD
    name, expected_size = sys.argv[1], int(sys.argv[2])

    if comm.Get_size() != expected_size:
        if comm.Get_rank() == 0:
            print(f"SKIP: world size {comm.Get_size()}, expected {expected_size}")
        return

    message = ""
    try:
        SCENARIOS[name](comm)
        ok = True
    except ScenarioFailure as err:
        ok, message = False, str(err)
    except Exception:
        ok, message = False, traceback.format_exc()

    messages = comm.gather(message, root=0)
    ok = comm.allreduce(ok, op=MPI.LAND)
    if comm.Get_rank() == 0:
        if ok:
            print("PASS")
        else:
            print("FAIL: " + " | ".join(m for m in messages if m))
    sys.stdout.flush()


if __name__ == "__main__":
    main()
