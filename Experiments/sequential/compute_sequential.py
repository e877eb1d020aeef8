"""Sequential Jacobi baseline checked against numpy.linalg.solve."""

import numpy as np

from utils import cli, io
from Jacobi import SequentialJacobi, diag_dom_rand, randn


parser = cli.create_parser(
    methods=["sequential"],
    description="Sequential Jacobi baseline",
)
options = cli.parse_options(parser)

if options.from_files:
    A = io.read_binary_file(options.input_A)
    b = io.read_binary_file(options.input_b)
    n = b.size
else:
    n = options.n
    A = diag_dom_rand(n, options.difficulty, seed=options.seed)
    b = randn(n, seed=None if options.seed is None else options.seed + 1)

solver = SequentialJacobi(
    max_iter=options.iter,
    tolerance=options.tolerance,
    use_numba=options.numba,
    verbose=True,
)
if options.numba:
    solver.warmup()

x = np.empty(n)
solver.solve(n, A, b, x)
solver.print_summary()

x_ref = np.linalg.solve(np.reshape(A, (n, n)), b)
print(f"Max deviation from numpy.linalg.solve = {np.abs(x - x_ref).max():.6e}")

if options.output:
    io.write_binary_file(options.output, x)
if options.results:
    solver.save_results(io.get_data_dir(__file__), output_name=options.results)
