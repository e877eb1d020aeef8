"""Command-line interface utilities for the Jacobi solver experiments.

This module provides the shared argument parser used by the compute scripts.
"""

from argparse import ArgumentParser, Namespace
from typing import List


def create_parser(
    methods: List[str],
    default_method: str | None = None,
    description: str = "Dense Jacobi solver for Ax = b",
) -> ArgumentParser:
    """Create argument parser for Jacobi solver experiments.

    Two input modes, as in ``jacobi <input_A> <input_b> <output_x>`` and
    ``jacobi -n <n> [-d <difficulty>]``: read A and b from raw float64 files,
    or generate a random diagonally dominant system of size n.

    Parameters
    ----------
    methods : List[str]
        List of available solver methods
    default_method : str, optional
        Default method to use (defaults to first method in list)
    description : str
        Parser description

    Returns
    -------
    ArgumentParser
        Configured argument parser

    Examples
    --------
    >>> parser = create_parser(["auto", "sequential"])
    >>> options = parse_options(parser, ["-n", "200", "-d", "0.3"])
    """
    if default_method is None:
        default_method = methods[0]

    parser = ArgumentParser(description=description)

    # Random input
    parser.add_argument(
        "-n",
        type=int,
        default=None,
        help="Size of a randomly generated system (A is n-by-n)",
    )
    parser.add_argument(
        "-d",
        "--difficulty",
        type=float,
        default=0.5,
        help="Difficulty of the random input, 0.0 (easiest) to 1.0 (default: 0.5)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the random input",
    )

    # File input/output
    parser.add_argument("--input-A", dest="input_A", default=None, help="Binary file holding A (n*n doubles)")
    parser.add_argument("--input-b", dest="input_b", default=None, help="Binary file holding b (n doubles)")
    parser.add_argument("--output", default=None, help="Binary file receiving x (n doubles)")

    # Iteration control
    parser.add_argument(
        "--iter",
        type=int,
        default=1000,
        help="Number of (max) iterations.",
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        default=None,
        help="Tolerance on the infinity norm of Ax - b (default: 1e-10 * n).",
    )
    parser.add_argument(
        "--numba",
        action="store_true",
        help="Use the numba mat-vec kernel",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Print convergence info")

    # Results
    parser.add_argument(
        "--results",
        type=str,
        default=None,
        help="Base name for parquet result files (default: not saved)",
    )
    parser.add_argument(
        "--mlflow-experiment",
        dest="mlflow_experiment",
        default=None,
        help="Log the run to this MLflow experiment",
    )

    # Solver method
    parser.add_argument(
        "--method",
        choices=methods,
        default=default_method,
        help=f"Solver method (default: {default_method}).",
    )

    return parser


def parse_options(parser: ArgumentParser, args=None) -> Namespace:
    """Parse and cross-check options; exits via ``parser.error`` on misuse."""
    options = parser.parse_args(args)

    from_files = options.input_A is not None or options.input_b is not None
    if from_files and (options.input_A is None or options.input_b is None):
        parser.error("--input-A and --input-b must be given together")
    if from_files and options.n is not None:
        parser.error("-n cannot be combined with --input-A/--input-b")
    if not from_files and options.n is None:
        parser.error("either -n or --input-A/--input-b is required")
    if options.n is not None and options.n < 1:
        parser.error(f"-n must be positive, got {options.n}")
    if not 0.0 <= options.difficulty <= 1.0:
        parser.error(f"difficulty must be in [0, 1], got {options.difficulty}")

    options.from_files = from_files
    return options
