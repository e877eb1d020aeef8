"""Solve a dense system Ax = b with the Jacobi method on a q x q MPI grid.

Run with e.g. ``mpiexec -n 4 python -m mpi4py compute_distributed.py -n 1000``
or ``... --input-A A.bin --input-b b.bin --output x.bin``. With a single
process the sequential solver is used.
"""

import sys

import numpy as np
from mpi4py import MPI

from utils import cli, io
from Jacobi import SequentialJacobi, create_solver, diag_dom_rand, randn


parser = cli.create_parser(
    methods=["auto", "sequential"],
    default_method="auto",
    description="Distributed dense Jacobi solver",
)
options = cli.parse_options(parser)

comm = MPI.COMM_WORLD
rank = comm.Get_rank()

# Ax = b, only rank 0 holds the input
A = b = x = None
n = None
if rank == 0:
    if options.from_files:
        A = io.read_binary_file(options.input_A)
        b = io.read_binary_file(options.input_b)
        n = b.size
        if A.size != n * n:
            raise ValueError("The input dimensions are not matching")
    else:
        n = options.n
        A = diag_dom_rand(n, options.difficulty, seed=options.seed)
        b = randn(n, seed=None if options.seed is None else options.seed + 1)

solver_kwargs = dict(
    max_iter=options.iter,
    tolerance=options.tolerance,
    use_numba=options.numba,
    verbose=options.verbose,
)

# Input loading and parsing are not part of the timing
t_start = MPI.Wtime()

n = comm.bcast(n, root=0)
if options.method == "sequential":
    if comm.Get_size() != 1:
        parser.error("--method sequential needs a single process")
    solver = SequentialJacobi(**solver_kwargs)
else:
    solver = create_solver(comm, **solver_kwargs)

if options.numba:
    solver.warmup()

if rank == 0:
    x = np.empty(n)
if options.mlflow_experiment and rank == 0:
    solver.mlflow_start_log(options.mlflow_experiment)

solver.solve(n, A, b, x)

if rank == 0:
    time_secs = MPI.Wtime() - t_start
    print(time_secs, file=sys.stderr)

    if options.verbose:
        solver.print_summary()
    if options.output:
        io.write_binary_file(options.output, x)
    if options.results:
        solver.save_results(io.get_data_dir(__file__), output_name=options.results)
    if options.mlflow_experiment:
        solver.mlflow_end_log()
